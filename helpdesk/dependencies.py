"""
Shared FastAPI Dependencies
===========================

Repository and unit-of-work providers, actor resolution and the notifier used by every router.

Repositories are built per request on the request's session. Tests swap
them for in-memory fakes through app.dependency_overrides.
"""

from typing import Optional

from fastapi import BackgroundTasks, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.admin.application import (
    IUserRepository, ICategoryRepository,
    ISLATargetRepository, ISettingsRepository
)
from helpdesk.admin.domain import User, NotificationSettings
from helpdesk.admin.infrastructure import (
    SQLAlchemyUserRepository, SQLAlchemyCategoryRepository,
    SQLAlchemySLATargetRepository, SQLAlchemySettingsRepository
)
from helpdesk.core import IUnitOfWork
from helpdesk.infrastructure.database import SQLAlchemyUnitOfWork, get_session
from helpdesk.tickets.application import ITicketRepository, ITicketNotifier
from helpdesk.tickets.infrastructure import SQLAlchemyTicketRepository, SlackTicketNotifier


# ========== Repositories ==========

async def get_user_repository(
    session: AsyncSession = Depends(get_session)
) -> IUserRepository:
    return SQLAlchemyUserRepository(session)


async def get_category_repository(
    session: AsyncSession = Depends(get_session)
) -> ICategoryRepository:
    return SQLAlchemyCategoryRepository(session)


async def get_sla_target_repository(
    session: AsyncSession = Depends(get_session)
) -> ISLATargetRepository:
    return SQLAlchemySLATargetRepository(session)


async def get_settings_repository(
    session: AsyncSession = Depends(get_session)
) -> ISettingsRepository:
    return SQLAlchemySettingsRepository(session)


async def get_ticket_repository(
    session: AsyncSession = Depends(get_session)
) -> ITicketRepository:
    return SQLAlchemyTicketRepository(session)


async def get_unit_of_work(
    session: AsyncSession = Depends(get_session)
) -> IUnitOfWork:
    """Commits the request's session; shares it with the repositories above."""
    return SQLAlchemyUnitOfWork(session)


# ========== Actor ==========

async def get_current_actor(
    x_user_id: Optional[str] = Header(None, description="ID of the acting user"),
    user_repo: IUserRepository = Depends(get_user_repository)
) -> User:
    """
    Resolve the acting user from the X-User-Id header.

    Raises:
        HTTPException 401: Header missing or naming no user
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required"
        )

    user = await user_repo.get_by_id(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user"
        )
    return user


# ========== Notifications ==========

async def get_ticket_notifier(
    request: Request,
    background_tasks: BackgroundTasks,
    settings_repo: ISettingsRepository = Depends(get_settings_repository)
) -> Optional[ITicketNotifier]:
    """
    Slack notifier for the request, or None when Slack is not configured.

    Deliveries are queued as background tasks and run after the response.
    """
    slack_client = getattr(request.app.state, "slack_client", None)
    if slack_client is None or not slack_client.is_configured:
        return None

    stored = await settings_repo.get(NotificationSettings.KEY)
    return SlackTicketNotifier(
        slack_client,
        NotificationSettings(**stored) if stored else NotificationSettings(),
        schedule=background_tasks.add_task
    )
