"""
Ticket Value Objects
====================

Immutable value objects and pure calculations for the ticket domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from helpdesk.config import SLATimeliness


# A ticket this close to its deadline is flagged as near-deadline.
NEAR_DEADLINE_WINDOW = timedelta(hours=2)


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA deadline and timeliness logic in one
    place. Deadlines are plain calendar arithmetic on aware datetimes; there
    is no business-hours calendar.
    """

    @staticmethod
    def compute_deadline(created_at: datetime, sla_hours: int) -> datetime:
        """
        Calculate the SLA deadline for a ticket.

        Args:
            created_at: When the ticket was created
            sla_hours: Hour budget of the ticket's category

        Returns:
            created_at + sla_hours
        """
        return created_at + timedelta(hours=sla_hours)

    @staticmethod
    def is_overdue(deadline: datetime, now: datetime) -> bool:
        """The deadline has passed."""
        return now > deadline

    @staticmethod
    def is_near_deadline(deadline: datetime, now: datetime) -> bool:
        """Strictly before the deadline and at most two hours left."""
        remaining = deadline - now
        return timedelta(0) < remaining <= NEAR_DEADLINE_WINDOW

    @staticmethod
    def classify(deadline: datetime, now: datetime) -> str:
        """
        Classify timeliness against a deadline.

        Exactly one of on_time, near_deadline or overdue holds for any
        instant. At the deadline itself nothing is left and nothing is
        late yet, which reads as on_time.
        """
        if SLACalculator.is_overdue(deadline, now):
            return SLATimeliness.OVERDUE
        if SLACalculator.is_near_deadline(deadline, now):
            return SLATimeliness.NEAR_DEADLINE
        return SLATimeliness.ON_TIME

    @staticmethod
    def hours_remaining(deadline: datetime, now: datetime) -> float:
        """Hours until the deadline (negative once overdue)."""
        return (deadline - now).total_seconds() / 3600


@dataclass(frozen=True)
class TicketUpdate:
    """
    A proposed change to a ticket's status, priority or assignee.

    None means "leave unchanged" for status and priority. Assignment needs
    a flag because None is also a meaningful value (unassign).
    """

    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    assignment_given: bool = False

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.priority is None and not self.assignment_given
