from datetime import timedelta

import pytest

from helpdesk.config import TicketStatus, TimelineEntryType
from helpdesk.core import (
    PermissionDeniedException, ResourceNotFoundException,
    StoreUnavailableException, ValidationException
)
from helpdesk.tickets.application import TicketCreateRequest, TicketService
from helpdesk.tickets.domain import TicketUpdate

from tests.conftest import T0


def new_ticket_request(**overrides):
    fields = dict(
        title="VPN drops",
        description="Disconnects every five minutes",
        priority="high",
        category_id="cat-network"
    )
    fields.update(overrides)
    return TicketCreateRequest(**fields)


@pytest.fixture
async def ticket(ticket_service, requester):
    return await ticket_service.create_ticket(requester, new_ticket_request())


# ========== create ==========

async def test_create_fixes_sla_deadline_from_category(ticket_service, requester, notifier):
    ticket = await ticket_service.create_ticket(requester, new_ticket_request())

    assert ticket.status == TicketStatus.OPEN
    assert ticket.user_id == requester.id
    assert ticket.created_at == T0
    assert ticket.updated_at == T0
    assert ticket.sla_deadline == T0 + timedelta(hours=24)
    assert ticket.assigned_to is None
    assert notifier.events == [("created", ticket.id, requester.id)]


async def test_deadline_survives_category_sla_change(
    ticket_service, category_repo, requester, ticket
):
    category_repo.categories["cat-network"].sla_hours = 2
    reloaded = await ticket_service.get_ticket(requester, ticket.id)
    assert reloaded.sla_deadline == T0 + timedelta(hours=24)


async def test_create_rejects_unknown_category(ticket_service, requester):
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.create_ticket(requester, new_ticket_request(category_id="nope"))


async def test_create_rejects_inactive_category(ticket_service, requester):
    with pytest.raises(ValidationException):
        await ticket_service.create_ticket(requester, new_ticket_request(category_id="cat-old"))


# ========== update ==========

async def test_status_change_without_assignee_is_rejected_and_nothing_written(
    ticket_service, ticket_repo, tech, ticket
):
    with pytest.raises(ValidationException):
        await ticket_service.update_ticket(
            tech, ticket.id, TicketUpdate(status=TicketStatus.IN_PROGRESS)
        )

    stored = await ticket_repo.get_by_id(ticket.id)
    assert stored.status == TicketStatus.OPEN
    assert stored.timeline == []


async def test_assign_then_progress_logs_each_change(ticket_service, tech, clock, ticket, notifier):
    clock.now = T0 + timedelta(hours=1)
    await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
    )
    clock.now = T0 + timedelta(hours=2)
    updated = await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(status=TicketStatus.IN_PROGRESS)
    )

    assert updated.status == TicketStatus.IN_PROGRESS
    assert updated.updated_at == T0 + timedelta(hours=2)
    assert [e.type for e in updated.timeline] == [
        TimelineEntryType.ASSIGNMENT, TimelineEntryType.STATUS_CHANGE
    ]
    assert updated.timeline[0].message == "Ticket assigned to Marco Silva"
    assert notifier.events[-1] == ("updated", ticket.id, [TimelineEntryType.STATUS_CHANGE])


async def test_resolving_stamps_resolved_at(ticket_service, tech, clock, ticket):
    await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
    )
    clock.now = T0 + timedelta(hours=5)
    resolved = await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(status=TicketStatus.RESOLVED)
    )
    assert resolved.resolved_at == T0 + timedelta(hours=5)
    assert resolved.sla_timeliness(T0 + timedelta(days=3)) is None


async def test_closing_sends_close_notification(ticket_service, admin, tech, ticket, notifier):
    await ticket_service.update_ticket(
        admin, ticket.id,
        TicketUpdate(status=TicketStatus.CLOSED, assigned_to=tech.id, assignment_given=True)
    )
    assert notifier.events[-1] == ("closed", ticket.id, admin.id)


async def test_assignee_must_be_a_technician(ticket_service, admin, requester, ticket):
    with pytest.raises(ValidationException):
        await ticket_service.update_ticket(
            admin, ticket.id, TicketUpdate(assigned_to=requester.id, assignment_given=True)
        )


async def test_unknown_assignee(ticket_service, admin, ticket):
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.update_ticket(
            admin, ticket.id, TicketUpdate(assigned_to="ghost", assignment_given=True)
        )


async def test_requester_cannot_change_priority(ticket_service, requester, ticket):
    with pytest.raises(PermissionDeniedException):
        await ticket_service.update_ticket(requester, ticket.id, TicketUpdate(priority="critical"))


async def test_technician_cannot_touch_ticket_assigned_elsewhere(
    ticket_service, tech, tech2, ticket
):
    await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
    )
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.update_ticket(tech2, ticket.id, TicketUpdate(priority="low"))


async def test_start_work_requires_assignee(ticket_service, tech, ticket):
    with pytest.raises(ValidationException):
        await ticket_service.start_work(tech, ticket.id)

    await ticket_service.update_ticket(
        tech, ticket.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
    )
    started = await ticket_service.start_work(tech, ticket.id)
    assert started.status == TicketStatus.IN_PROGRESS


# ========== visibility ==========

async def test_other_requesters_cannot_see_ticket(ticket_service, other_requester, ticket):
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.get_ticket(other_requester, ticket.id)


async def test_list_is_role_filtered(ticket_service, requester, other_requester, tech, tech2, admin):
    mine = await ticket_service.create_ticket(requester, new_ticket_request())
    theirs = await ticket_service.create_ticket(other_requester, new_ticket_request(title="Printer"))
    await ticket_service.update_ticket(
        admin, theirs.id, TicketUpdate(assigned_to=tech2.id, assignment_given=True)
    )

    assert [t.id for t in await ticket_service.list_tickets(requester)] == [mine.id]
    assert [t.id for t in await ticket_service.list_tickets(tech)] == [mine.id]
    assert {t.id for t in await ticket_service.list_tickets(tech2)} == {mine.id, theirs.id}
    assert len(await ticket_service.list_tickets(admin)) == 2
    assert await ticket_service.list_tickets(admin, priority="low") == []


# ========== comments ==========

async def test_comments_append_in_order(ticket_service, requester, tech, ticket):
    await ticket_service.add_comment(requester, ticket.id, "Still broken")
    await ticket_service.add_comment(tech, ticket.id, "Looking into it")

    timeline = await ticket_service.list_timeline(requester, ticket.id)
    assert [e.message for e in timeline] == ["Still broken", "Looking into it"]
    assert all(e.type == TimelineEntryType.COMMENT for e in timeline)
    assert timeline[0].user_name == "Pedro Santos"


async def test_append_timeline_entry_unknown_ticket(ticket_service, tech):
    with pytest.raises(ResourceNotFoundException):
        await ticket_service.append_timeline_entry("missing", tech, "hello")


async def test_internal_comments_hidden_from_requester(ticket_service, requester, tech, ticket):
    await ticket_service.add_internal_comment(tech, ticket.id, "Check the router firmware")

    with pytest.raises(PermissionDeniedException):
        await ticket_service.add_internal_comment(requester, ticket.id, "let me in")
    with pytest.raises(PermissionDeniedException):
        await ticket_service.list_internal_comments(requester, ticket.id)

    seen_by_requester = await ticket_service.get_ticket(requester, ticket.id)
    seen_by_tech = await ticket_service.get_ticket(tech, ticket.id)
    assert seen_by_requester.internal_comments == []
    assert [c.message for c in seen_by_tech.internal_comments] == ["Check the router firmware"]
    assert seen_by_tech.internal_comments[0].technician_name == "Marco Silva"


# ========== delete ==========

async def test_only_admin_deletes(ticket_service, ticket_repo, tech, admin, ticket):
    await ticket_service.add_comment(tech, ticket.id, "note")
    with pytest.raises(PermissionDeniedException):
        await ticket_service.delete_ticket(tech, ticket.id)

    await ticket_service.delete_ticket(admin, ticket.id)
    assert not await ticket_repo.exists(ticket.id)
    assert ticket_repo.timeline.get(ticket.id) is None

    with pytest.raises(ResourceNotFoundException):
        await ticket_service.delete_ticket(admin, ticket.id)


async def test_service_works_without_notifier(ticket_repo, category_repo, user_repo, requester):
    service = TicketService(ticket_repo, category_repo, user_repo)
    ticket = await service.create_ticket(requester, new_ticket_request())
    assert ticket.id


# ========== transactions ==========

async def test_each_write_commits_once(ticket_service, requester, tech, unit_of_work, ticket):
    assert unit_of_work.commits == 1

    await ticket_service.update_ticket(
        tech, ticket.id,
        TicketUpdate(status=TicketStatus.IN_PROGRESS, assigned_to=tech.id, assignment_given=True)
    )
    await ticket_service.add_comment(requester, ticket.id, "thanks")
    await ticket_service.add_internal_comment(tech, ticket.id, "router swapped")
    assert unit_of_work.commits == 4

    await ticket_service.get_ticket(tech, ticket.id)
    await ticket_service.list_timeline(tech, ticket.id)
    assert unit_of_work.commits == 4


async def test_failed_commit_skips_notifications(ticket_service, tech, unit_of_work, notifier, ticket):
    notifier.events.clear()
    unit_of_work.fail = True

    with pytest.raises(StoreUnavailableException):
        await ticket_service.update_ticket(
            tech, ticket.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
        )
    assert notifier.events == []
