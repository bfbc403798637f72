"""
Ticket Domain Entities
======================

Pure Python domain entities for the ticket lifecycle.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from helpdesk.config import TicketStatus, ACTIVE_STATUSES
from helpdesk.tickets.domain.value_objects import SLACalculator


@dataclass(frozen=True)
class TimelineEntry:
    """
    Immutable audit record on a ticket timeline.

    One entry per notable event: a comment, or a change of status,
    assignment or priority.
    """

    id: str
    ticket_id: str
    user_id: str
    user_name: str
    message: str
    type: str
    created_at: datetime

    @classmethod
    def new(
        cls,
        ticket_id: str,
        user_id: str,
        user_name: str,
        message: str,
        entry_type: str,
        created_at: datetime
    ) -> "TimelineEntry":
        """Create an entry with a fresh id."""
        return cls(
            id=str(uuid4()),
            ticket_id=ticket_id,
            user_id=user_id,
            user_name=user_name,
            message=message,
            type=entry_type,
            created_at=created_at
        )


@dataclass(frozen=True)
class InternalComment:
    """
    Staff-only note on a ticket.

    Never shown to the requesting user.
    """

    id: str
    ticket_id: str
    technician_id: str
    technician_name: str
    message: str
    created_at: datetime

    @classmethod
    def new(
        cls,
        ticket_id: str,
        technician_id: str,
        technician_name: str,
        message: str,
        created_at: datetime
    ) -> "InternalComment":
        """Create a comment with a fresh id."""
        return cls(
            id=str(uuid4()),
            ticket_id=ticket_id,
            technician_id=technician_id,
            technician_name=technician_name,
            message=message,
            created_at=created_at
        )


@dataclass
class Ticket:
    """
    Ticket entity representing a support request.

    sla_deadline is fixed at creation from the category's SLA hours.
    timeline and internal_comments are append-only; they are populated
    only when the ticket is loaded with its logs.
    """

    # Core attributes
    id: str
    title: str
    description: str
    priority: str
    status: str
    category_id: str
    user_id: str

    # Timestamps
    created_at: datetime
    updated_at: datetime
    sla_deadline: datetime

    # Lifecycle
    assigned_to: Optional[str] = None
    resolved_at: Optional[datetime] = None
    attachments: List[str] = field(default_factory=list)

    # Logs
    timeline: List[TimelineEntry] = field(default_factory=list)
    internal_comments: List[InternalComment] = field(default_factory=list)

    def __post_init__(self):
        """Validate ticket on initialization."""
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")

        if self.sla_deadline < self.created_at:
            raise ValueError("sla_deadline cannot be before created_at")

        if self.resolved_at and self.resolved_at < self.created_at:
            raise ValueError("resolved_at cannot be before created_at")

    @property
    def is_active(self) -> bool:
        """Open, in progress or waiting on the user."""
        return self.status in ACTIVE_STATUSES

    @property
    def resolution_hours(self) -> Optional[float]:
        """Hours from creation to resolution, if resolved."""
        if self.resolved_at is None:
            return None
        return (self.resolved_at - self.created_at).total_seconds() / 3600

    def sla_timeliness(self, now: datetime) -> Optional[str]:
        """
        Classify the ticket against its SLA deadline.

        Returns None for resolved and closed tickets: their clock has stopped.
        """
        if self.status in (TicketStatus.RESOLVED, TicketStatus.CLOSED):
            return None
        return SLACalculator.classify(self.sla_deadline, now)
