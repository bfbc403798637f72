"""
Ticket Infrastructure Layer
===========================

Database models, repositories, and external service integrations.
"""

from helpdesk.tickets.infrastructure.models import (
    TicketModel,
    TimelineEntryModel,
    InternalCommentModel,
)
from helpdesk.tickets.infrastructure.repositories import SQLAlchemyTicketRepository
from helpdesk.tickets.infrastructure.external import (
    CircuitBreaker,
    CircuitState,
    SlackClient,
    SlackMessage,
    SlackTicketNotifier,
    SLAScheduler,
)

__all__ = [
    # Models
    "TicketModel",
    "TimelineEntryModel",
    "InternalCommentModel",
    # Repositories
    "SQLAlchemyTicketRepository",
    # External services
    "CircuitBreaker",
    "CircuitState",
    "SlackClient",
    "SlackMessage",
    "SlackTicketNotifier",
    "SLAScheduler",
]
