from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.config import TicketStatus, TimelineEntryType
from helpdesk.core import PermissionDeniedException, ValidationException
from helpdesk.tickets.domain import Ticket, TicketUpdate, TransitionGuard, can_view_ticket

from tests.conftest import T0

LATER = T0 + timedelta(hours=3)


def make_ticket(**overrides):
    fields = dict(
        id="t-1",
        title="VPN drops",
        description="Every five minutes",
        priority="medium",
        status=TicketStatus.OPEN,
        category_id="cat-network",
        user_id="user-1",
        created_at=T0,
        updated_at=T0,
        sla_deadline=T0 + timedelta(hours=24),
    )
    fields.update(overrides)
    return Ticket(**fields)


# ========== check ==========

def test_unassigned_ticket_cannot_leave_open(tech):
    ticket = make_ticket()
    with pytest.raises(ValidationException):
        TransitionGuard.check(tech, ticket, TicketUpdate(status=TicketStatus.IN_PROGRESS))


def test_assigning_in_the_same_update_satisfies_guard(tech):
    ticket = make_ticket()
    update = TicketUpdate(
        status=TicketStatus.IN_PROGRESS, assigned_to=tech.id, assignment_given=True
    )
    TransitionGuard.check(tech, ticket, update)


def test_unassigning_while_moving_status_is_rejected(tech):
    ticket = make_ticket(assigned_to=tech.id)
    update = TicketUpdate(
        status=TicketStatus.RESOLVED, assigned_to=None, assignment_given=True
    )
    with pytest.raises(ValidationException):
        TransitionGuard.check(tech, ticket, update)


def test_unassigning_an_in_progress_ticket_is_rejected(tech):
    ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to=tech.id)
    with pytest.raises(ValidationException):
        TransitionGuard.check(tech, ticket, TicketUpdate(assigned_to=None, assignment_given=True))


def test_priority_change_on_open_unassigned_ticket_is_allowed(tech):
    TransitionGuard.check(tech, make_ticket(), TicketUpdate(priority="high"))


def test_requester_may_not_change_status(requester):
    ticket = make_ticket(assigned_to="tech-1")
    with pytest.raises(PermissionDeniedException):
        TransitionGuard.check(requester, ticket, TicketUpdate(status=TicketStatus.CLOSED))


def test_resending_current_values_needs_no_capability(requester):
    ticket = make_ticket(priority="medium")
    TransitionGuard.check(requester, ticket, TicketUpdate(priority="medium", status=TicketStatus.OPEN))


def test_required_capabilities_only_cover_changed_fields(tech):
    ticket = make_ticket(assigned_to=tech.id, priority="high")
    update = TicketUpdate(
        status=TicketStatus.IN_PROGRESS,
        priority="high",
        assigned_to=tech.id,
        assignment_given=True
    )
    assert TransitionGuard.required_capabilities(ticket, update) == ["change_status"]


def test_check_does_not_mutate(tech):
    ticket = make_ticket()
    with pytest.raises(ValidationException):
        TransitionGuard.check(tech, ticket, TicketUpdate(status=TicketStatus.RESOLVED, priority="low"))
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == "medium"


# ========== apply ==========

def test_apply_records_entries_in_order(tech):
    ticket = make_ticket()
    update = TicketUpdate(
        status=TicketStatus.IN_PROGRESS,
        priority="critical",
        assigned_to=tech.id,
        assignment_given=True
    )
    entries = TransitionGuard.apply(tech, ticket, update, LATER, assignee_name=tech.name)

    assert [e.type for e in entries] == [
        TimelineEntryType.STATUS_CHANGE,
        TimelineEntryType.ASSIGNMENT,
        TimelineEntryType.PRIORITY_CHANGE,
    ]
    assert entries[0].message == "Status changed to In Progress"
    assert entries[1].message == "Ticket assigned to Marco Silva"
    assert entries[2].message == "Priority changed to Critical"
    assert all(e.user_id == tech.id and e.created_at == LATER for e in entries)
    assert ticket.status == TicketStatus.IN_PROGRESS
    assert ticket.assigned_to == tech.id
    assert ticket.updated_at == LATER


def test_apply_stamps_resolved_at(tech):
    ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to=tech.id)
    TransitionGuard.apply(tech, ticket, TicketUpdate(status=TicketStatus.RESOLVED), LATER)
    assert ticket.resolved_at == LATER


def test_reopening_keeps_resolved_at(tech):
    ticket = make_ticket(status=TicketStatus.RESOLVED, assigned_to=tech.id, resolved_at=T0 + timedelta(hours=1))
    entries = TransitionGuard.apply(tech, ticket, TicketUpdate(status=TicketStatus.OPEN), LATER)
    assert ticket.status == TicketStatus.OPEN
    assert ticket.resolved_at == T0 + timedelta(hours=1)
    assert len(entries) == 1


def test_unassignment_entry(admin):
    ticket = make_ticket(assigned_to="tech-1")
    entries = TransitionGuard.apply(admin, ticket, TicketUpdate(assigned_to=None, assignment_given=True), LATER)
    assert [e.message for e in entries] == ["Ticket unassigned"]
    assert ticket.assigned_to is None


def test_no_op_update_only_touches_updated_at(tech):
    ticket = make_ticket(assigned_to=tech.id)
    entries = TransitionGuard.apply(tech, ticket, TicketUpdate(status=TicketStatus.OPEN), LATER)
    assert entries == []
    assert ticket.updated_at == LATER


# ========== visibility ==========

def test_visibility_by_role(admin, tech, tech2, requester, other_requester):
    unassigned = make_ticket()
    mine = make_ticket(id="t-2", assigned_to=tech.id)

    assert can_view_ticket(admin, mine)
    assert can_view_ticket(requester, mine)
    assert not can_view_ticket(other_requester, mine)
    assert can_view_ticket(tech, unassigned)
    assert can_view_ticket(tech, mine)
    assert can_view_ticket(tech2, unassigned)
    assert not can_view_ticket(tech2, mine)
