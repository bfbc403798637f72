"""
Unit of Work
============

Transaction boundary for application services. Repositories built on the
same session stage their writes; the service commits once its operation is
complete, before it reports success or sends notifications.
"""

from abc import ABC, abstractmethod


class IUnitOfWork(ABC):
    """Commits the writes staged by the repositories sharing one session."""

    @abstractmethod
    async def commit(self) -> None:
        """
        Make the staged writes durable.

        Raises:
            StoreUnavailableException: The store rejected the commit
        """
