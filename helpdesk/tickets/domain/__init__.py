"""
Ticket Domain Layer
===================

Domain layer for the ticket lifecycle module.

Contains:
- Entities: Ticket, TimelineEntry, InternalComment
- Value Objects: TicketUpdate
- Domain Services: SLACalculator, TransitionGuard, DashboardAggregator

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.tickets.domain.value_objects import (
    SLACalculator,
    TicketUpdate,
    NEAR_DEADLINE_WINDOW,
)
from helpdesk.tickets.domain.entities import Ticket, TimelineEntry, InternalComment
from helpdesk.tickets.domain.policies import TransitionGuard, can_view_ticket
from helpdesk.tickets.domain.dashboard import (
    DashboardAggregator,
    DashboardStats,
    CountBucket,
)

__all__ = [
    # Entities
    "Ticket",
    "TimelineEntry",
    "InternalComment",
    # Value Objects & Services
    "SLACalculator",
    "TicketUpdate",
    "NEAR_DEADLINE_WINDOW",
    "TransitionGuard",
    "can_view_ticket",
    "DashboardAggregator",
    "DashboardStats",
    "CountBucket",
]
