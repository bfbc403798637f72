"""
Ticket Policies
===============

Rules deciding who sees a ticket and which status/assignment changes are
accepted, plus the timeline entries an accepted change produces.
"""

from datetime import datetime
from typing import List, Optional

from helpdesk.admin.domain import User
from helpdesk.config import (
    Capability, TicketStatus, UserRole, TimelineEntryType,
    STATUS_LABELS, PRIORITY_LABELS
)
from helpdesk.core import ValidationException
from helpdesk.core.permissions import can_perform, require
from helpdesk.tickets.domain.entities import Ticket, TimelineEntry
from helpdesk.tickets.domain.value_objects import TicketUpdate


def can_view_ticket(actor: User, ticket: Ticket) -> bool:
    """
    Administrators see everything. Technicians see tickets assigned to
    them or still unassigned. Everyone sees the tickets they filed.
    """
    if can_perform(actor.role, Capability.VIEW_ALL_TICKETS):
        return True
    if ticket.user_id == actor.id:
        return True
    if actor.role == UserRole.TECHNICIAN:
        return ticket.assigned_to in (None, actor.id)
    return False


class TransitionGuard:
    """
    Guards status, priority and assignment changes on a ticket.

    check() validates a proposal without touching the ticket; apply()
    mutates the ticket and returns the timeline entries to append.
    """

    @staticmethod
    def required_capabilities(ticket: Ticket, update: TicketUpdate) -> List[str]:
        """Capabilities needed for the fields the proposal actually changes."""
        needed = []
        if update.status is not None and update.status != ticket.status:
            needed.append(Capability.CHANGE_STATUS)
        if update.priority is not None and update.priority != ticket.priority:
            needed.append(Capability.CHANGE_PRIORITY)
        if update.assignment_given and (update.assigned_to or None) != ticket.assigned_to:
            needed.append(Capability.ASSIGN_TICKET)
        return needed

    @staticmethod
    def check(actor: User, ticket: Ticket, update: TicketUpdate) -> None:
        """
        Validate a proposed update.

        Raises:
            PermissionDeniedException: actor's role lacks a needed capability
            ValidationException: the ticket would leave 'open' unassigned
        """
        for capability in TransitionGuard.required_capabilities(ticket, update):
            require(actor.role, capability)

        new_status = update.status if update.status is not None else ticket.status
        if update.assignment_given:
            new_assignee = update.assigned_to or None
        else:
            new_assignee = ticket.assigned_to

        if new_status != TicketStatus.OPEN and not new_assignee:
            raise ValidationException(
                "Ticket must be assigned to a technician before its status can change",
                {"ticket_id": ticket.id, "status": new_status}
            )

    @staticmethod
    def apply(
        actor: User,
        ticket: Ticket,
        update: TicketUpdate,
        now: datetime,
        assignee_name: Optional[str] = None
    ) -> List[TimelineEntry]:
        """
        Apply an already-checked update to the ticket.

        Stamps updated_at, and resolved_at when the ticket moves into
        'resolved'. Moving out of 'resolved' keeps resolved_at as it was.

        Returns:
            Timeline entries in the order status, assignment, priority
        """
        entries = []

        def record(message: str, entry_type: str) -> None:
            entries.append(TimelineEntry.new(
                ticket.id, actor.id, actor.name, message, entry_type, now
            ))

        if update.status is not None and update.status != ticket.status:
            ticket.status = update.status
            if update.status == TicketStatus.RESOLVED:
                ticket.resolved_at = now
            record(
                f"Status changed to {STATUS_LABELS.get(update.status, update.status)}",
                TimelineEntryType.STATUS_CHANGE
            )

        if update.assignment_given:
            new_assignee = update.assigned_to or None
            if new_assignee != ticket.assigned_to:
                ticket.assigned_to = new_assignee
                if new_assignee:
                    record(
                        f"Ticket assigned to {assignee_name or new_assignee}",
                        TimelineEntryType.ASSIGNMENT
                    )
                else:
                    record("Ticket unassigned", TimelineEntryType.ASSIGNMENT)

        if update.priority is not None and update.priority != ticket.priority:
            ticket.priority = update.priority
            record(
                f"Priority changed to {PRIORITY_LABELS.get(update.priority, update.priority)}",
                TimelineEntryType.PRIORITY_CHANGE
            )

        ticket.updated_at = now
        return entries
