"""
Dashboard Aggregation
=====================

Derives the dashboard counters from in-memory ticket, category and
technician lists. Pure functions, no I/O.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from helpdesk.admin.domain import Category, User
from helpdesk.config import SLATimeliness, VALID_PRIORITIES, VALID_STATUSES
from helpdesk.tickets.domain.entities import Ticket


@dataclass
class CountBucket:
    """Ticket count for one category or technician."""
    id: str
    name: str
    count: int = 0


@dataclass
class DashboardStats:
    """Aggregated dashboard figures."""
    total_tickets: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: List[CountBucket] = field(default_factory=list)
    by_technician: List[CountBucket] = field(default_factory=list)
    sla: Dict[str, int] = field(default_factory=dict)
    average_resolution_hours: float = 0.0


class DashboardAggregator:
    """Pure aggregation over ticket lists."""

    @staticmethod
    def average_resolution_hours(tickets: Iterable[Ticket]) -> float:
        """
        Mean of resolved_at - created_at, in hours, over tickets that have
        resolved_at. 0.0 when there are none.
        """
        durations = [t.resolution_hours for t in tickets if t.resolved_at is not None]
        if not durations:
            return 0.0
        return sum(durations) / len(durations)

    @staticmethod
    def aggregate(
        tickets: List[Ticket],
        categories: List[Category],
        technicians: List[User],
        now: datetime
    ) -> DashboardStats:
        """
        Count tickets by status, priority, category and technician.

        Buckets are zero-filled: every status and priority, every active
        category and every technician appears even with no tickets.
        Tickets in inactive categories count everywhere except by_category.
        """
        by_status = {status: 0 for status in VALID_STATUSES}
        by_priority = {priority: 0 for priority in VALID_PRIORITIES}
        sla = {state: 0 for state in (
            SLATimeliness.ON_TIME, SLATimeliness.NEAR_DEADLINE, SLATimeliness.OVERDUE
        )}

        category_buckets = {
            c.id: CountBucket(id=c.id, name=c.name) for c in categories if c.is_active
        }
        technician_buckets = {
            t.id: CountBucket(id=t.id, name=t.name) for t in technicians
        }

        for ticket in tickets:
            if ticket.status in by_status:
                by_status[ticket.status] += 1
            if ticket.priority in by_priority:
                by_priority[ticket.priority] += 1
            if ticket.category_id in category_buckets:
                category_buckets[ticket.category_id].count += 1
            if ticket.assigned_to in technician_buckets:
                technician_buckets[ticket.assigned_to].count += 1

            timeliness = ticket.sla_timeliness(now)
            if timeliness is not None:
                sla[timeliness] += 1

        return DashboardStats(
            total_tickets=len(tickets),
            by_status=by_status,
            by_priority=by_priority,
            by_category=list(category_buckets.values()),
            by_technician=list(technician_buckets.values()),
            sla=sla,
            average_resolution_hours=DashboardAggregator.average_resolution_hours(tickets)
        )
