from datetime import timedelta

from helpdesk.config import SLATimeliness, TicketStatus
from helpdesk.tickets.domain import DashboardAggregator, Ticket, TicketUpdate

from tests.conftest import T0
from tests.test_ticket_service import new_ticket_request


def make_ticket(ticket_id, **overrides):
    fields = dict(
        id=ticket_id,
        title="t",
        description="d",
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


def test_empty_dashboard_is_all_zeros(network, retired, tech, tech2):
    stats = DashboardAggregator.aggregate([], [network, retired], [tech, tech2], T0)

    assert stats.total_tickets == 0
    assert set(stats.by_status) == {"open", "in_progress", "waiting_user", "resolved", "closed"}
    assert not any(stats.by_status.values())
    assert set(stats.by_priority) == {"low", "medium", "high", "critical"}
    assert [(b.id, b.count) for b in stats.by_category] == [("cat-network", 0)]
    assert [(b.name, b.count) for b in stats.by_technician] == [("Marco Silva", 0), ("Julia Costa", 0)]
    assert stats.sla == {"on_time": 0, "near_deadline": 0, "overdue": 0}
    assert stats.average_resolution_hours == 0.0


def test_counts_and_sla_summary(network, tech, tech2):
    now = T0 + timedelta(hours=23)
    tickets = [
        make_ticket("a"),
        make_ticket("b", status=TicketStatus.IN_PROGRESS, assigned_to=tech.id, priority="high",
                    sla_deadline=T0 + timedelta(hours=10)),
        make_ticket("c", status=TicketStatus.RESOLVED, assigned_to=tech.id,
                    resolved_at=T0 + timedelta(hours=4)),
        make_ticket("d", status=TicketStatus.CLOSED, assigned_to=tech2.id,
                    resolved_at=T0 + timedelta(hours=8)),
        make_ticket("e", status=TicketStatus.WAITING_USER, assigned_to=tech2.id,
                    sla_deadline=T0 + timedelta(hours=48)),
    ]

    stats = DashboardAggregator.aggregate(tickets, [network], [tech, tech2], now)

    assert stats.total_tickets == 5
    assert stats.by_status["resolved"] == 1
    assert stats.by_status["closed"] == 1
    assert stats.by_priority == {"low": 0, "medium": 4, "high": 1, "critical": 0}
    assert stats.by_category[0].count == 5
    assert {b.id: b.count for b in stats.by_technician} == {tech.id: 2, tech2.id: 2}
    # a: 1h left, b: overdue, e: 25h left; c and d are finished
    assert stats.sla == {
        SLATimeliness.ON_TIME: 1,
        SLATimeliness.NEAR_DEADLINE: 1,
        SLATimeliness.OVERDUE: 1,
    }
    assert stats.average_resolution_hours == 6.0


def test_reopened_ticket_still_counts_towards_resolution_average(network):
    reopened = make_ticket("r", resolved_at=T0 + timedelta(hours=3))
    stats = DashboardAggregator.aggregate([reopened], [network], [], T0)
    assert stats.average_resolution_hours == 3.0


async def test_dashboard_service_filters_by_role(
    ticket_service, dashboard_service, requester, other_requester, tech, admin
):
    mine = await ticket_service.create_ticket(requester, new_ticket_request())
    await ticket_service.create_ticket(other_requester, new_ticket_request())
    await ticket_service.update_ticket(
        admin, mine.id, TicketUpdate(assigned_to=tech.id, assignment_given=True)
    )

    assert (await dashboard_service.get_dashboard(admin)).total_tickets == 2
    assert (await dashboard_service.get_dashboard(requester)).total_tickets == 1

    tech_view = await dashboard_service.get_dashboard(tech)
    assert tech_view.total_tickets == 2
    assert {b.id: b.count for b in tech_view.by_technician}[tech.id] == 1
