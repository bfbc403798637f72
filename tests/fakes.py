"""In-memory repository and notifier fakes for service and API tests."""

import copy
from datetime import datetime
from typing import Dict, List, Optional

from helpdesk.admin.application import (
    IUserRepository, ICategoryRepository,
    ISLATargetRepository, ISettingsRepository
)
from helpdesk.admin.domain import User, Category, SLATarget
from helpdesk.core import IUnitOfWork, StoreUnavailableException
from helpdesk.tickets.application import ITicketRepository, ITicketNotifier
from helpdesk.tickets.domain import Ticket, TimelineEntry, InternalComment


class FakeUserRepository(IUserRepository):
    def __init__(self, users: Optional[List[User]] = None):
        self.users: Dict[str, User] = {u.id: u for u in users or []}

    async def get_by_id(self, user_id):
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def get_by_email(self, email):
        for user in self.users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def list(self, role=None):
        users = [u for u in self.users.values() if role is None or u.role == role]
        return sorted((copy.deepcopy(u) for u in users), key=lambda u: u.name)

    async def create(self, user):
        self.users[user.id] = copy.deepcopy(user)
        return user

    async def update(self, user):
        self.users[user.id] = copy.deepcopy(user)
        return user


class FakeCategoryRepository(ICategoryRepository):
    def __init__(self, categories: Optional[List[Category]] = None):
        self.categories: Dict[str, Category] = {c.id: c for c in categories or []}

    async def get_by_id(self, category_id):
        category = self.categories.get(category_id)
        return copy.deepcopy(category) if category else None

    async def list(self, include_inactive=False):
        found = [
            copy.deepcopy(c) for c in self.categories.values()
            if include_inactive or c.is_active
        ]
        return sorted(found, key=lambda c: c.name)

    async def create(self, category):
        self.categories[category.id] = copy.deepcopy(category)
        return category

    async def update(self, category):
        self.categories[category.id] = copy.deepcopy(category)
        return category


class FakeSLATargetRepository(ISLATargetRepository):
    def __init__(self, targets: Optional[List[SLATarget]] = None):
        self.targets: Dict[str, SLATarget] = {t.id: t for t in targets or []}

    async def get_by_id(self, target_id):
        target = self.targets.get(target_id)
        return copy.deepcopy(target) if target else None

    async def list(self):
        return [copy.deepcopy(t) for t in self.targets.values()]

    async def create(self, target):
        self.targets[target.id] = copy.deepcopy(target)
        return target

    async def update(self, target):
        self.targets[target.id] = copy.deepcopy(target)
        return target


class FakeSettingsRepository(ISettingsRepository):
    def __init__(self):
        self.documents: Dict[str, dict] = {}

    async def get(self, key):
        value = self.documents.get(key)
        return dict(value) if value is not None else None

    async def save(self, key, value):
        self.documents[key] = dict(value)
        return value


class FakeTicketRepository(ITicketRepository):
    """Stores tickets without logs; logs live in per-ticket lists."""

    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}
        self.timeline: Dict[str, List[TimelineEntry]] = {}
        self.internal_comments: Dict[str, List[InternalComment]] = {}

    def _load(self, ticket_id: str, with_logs: bool) -> Ticket:
        ticket = copy.deepcopy(self.tickets[ticket_id])
        if with_logs:
            ticket.timeline = list(self.timeline.get(ticket_id, []))
            ticket.internal_comments = list(self.internal_comments.get(ticket_id, []))
        return ticket

    async def get_by_id(self, ticket_id, with_logs=True):
        if ticket_id not in self.tickets:
            return None
        return self._load(ticket_id, with_logs)

    async def list(self, filters, limit=None, offset=0):
        def matches(t: Ticket) -> bool:
            if filters.get("user_id") and t.user_id != filters["user_id"]:
                return False
            if filters.get("technician_id"):
                tech = filters["technician_id"]
                if t.assigned_to not in (None, tech) and t.user_id != tech:
                    return False
            if filters.get("status") and t.status != filters["status"]:
                return False
            if filters.get("statuses") and t.status not in filters["statuses"]:
                return False
            if filters.get("priority") and t.priority != filters["priority"]:
                return False
            if filters.get("category_id") and t.category_id != filters["category_id"]:
                return False
            return True

        found = sorted(
            (self._load(t.id, False) for t in self.tickets.values() if matches(t)),
            key=lambda t: t.created_at,
            reverse=True
        )
        found = found[offset:]
        return found[:limit] if limit is not None else found

    async def create(self, ticket):
        stored = copy.deepcopy(ticket)
        stored.timeline = []
        stored.internal_comments = []
        self.tickets[ticket.id] = stored
        return self._load(ticket.id, False)

    async def update(self, ticket):
        stored = copy.deepcopy(ticket)
        stored.timeline = []
        stored.internal_comments = []
        self.tickets[ticket.id] = stored
        return self._load(ticket.id, False)

    async def delete(self, ticket_id):
        if ticket_id not in self.tickets:
            return False
        del self.tickets[ticket_id]
        self.timeline.pop(ticket_id, None)
        self.internal_comments.pop(ticket_id, None)
        return True

    async def exists(self, ticket_id):
        return ticket_id in self.tickets

    async def append_timeline_entry(self, entry):
        self.timeline.setdefault(entry.ticket_id, []).append(entry)
        return entry

    async def append_internal_comment(self, comment):
        self.internal_comments.setdefault(comment.ticket_id, []).append(comment)
        return comment

    async def list_timeline(self, ticket_id):
        return list(self.timeline.get(ticket_id, []))

    async def list_internal_comments(self, ticket_id):
        return list(self.internal_comments.get(ticket_id, []))


class RecordingNotifier(ITicketNotifier):
    """Records every notification as (event, ticket_id, extra)."""

    def __init__(self):
        self.events: List[tuple] = []

    async def ticket_created(self, ticket, actor):
        self.events.append(("created", ticket.id, actor.id))

    async def ticket_updated(self, ticket, actor, entries):
        self.events.append(("updated", ticket.id, [e.type for e in entries]))

    async def ticket_closed(self, ticket, actor):
        self.events.append(("closed", ticket.id, actor.id))

    async def sla_risk(self, ticket, timeliness, now: datetime):
        self.events.append(("sla_risk", ticket.id, timeliness))
        return True


class FakeUnitOfWork(IUnitOfWork):
    """Counts commits; set fail to make the next commits raise."""

    def __init__(self):
        self.commits = 0
        self.fail = False

    async def commit(self):
        if self.fail:
            raise StoreUnavailableException("commit", {"error": "disk I/O error"})
        self.commits += 1


class FixedClock:
    """Settable clock for services."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
