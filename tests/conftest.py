"""Shared fixtures: a small helpdesk with one user of each role and two categories."""

from datetime import datetime, timezone

import pytest

from helpdesk.admin.application import AdminService
from helpdesk.admin.domain import User, Category, SLATarget
from helpdesk.config import UserRole
from helpdesk.tickets.application import TicketService, DashboardService
from tests.fakes import (
    FakeUserRepository, FakeCategoryRepository, FakeSLATargetRepository,
    FakeSettingsRepository, FakeTicketRepository, RecordingNotifier, FixedClock, FakeUnitOfWork
)

T0 = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


def make_user(user_id: str, name: str, role: str) -> User:
    return User(
        id=user_id,
        name=name,
        email=f"{user_id}@helpdesk.local",
        password="secret",
        role=role,
        created_at=T0
    )


@pytest.fixture
def admin():
    return make_user("admin-1", "Ana Admin", UserRole.ADMIN)


@pytest.fixture
def tech():
    return make_user("tech-1", "Marco Silva", UserRole.TECHNICIAN)


@pytest.fixture
def tech2():
    return make_user("tech-2", "Julia Costa", UserRole.TECHNICIAN)


@pytest.fixture
def requester():
    return make_user("user-1", "Pedro Santos", UserRole.USER)


@pytest.fixture
def other_requester():
    return make_user("user-2", "Rita Lima", UserRole.USER)


@pytest.fixture
def network():
    return Category(id="cat-network", name="Network", sla_hours=24, created_at=T0)


@pytest.fixture
def retired():
    return Category(id="cat-old", name="Legacy", sla_hours=8, created_at=T0, is_active=False)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def user_repo(admin, tech, tech2, requester, other_requester):
    return FakeUserRepository([admin, tech, tech2, requester, other_requester])


@pytest.fixture
def category_repo(network, retired):
    return FakeCategoryRepository([network, retired])


@pytest.fixture
def sla_target_repo():
    return FakeSLATargetRepository([
        SLATarget(id="sla-critical", priority="critical", response_hours=1, resolution_hours=4),
        SLATarget(id="sla-medium", priority="medium", response_hours=4, resolution_hours=24),
    ])


@pytest.fixture
def settings_repo():
    return FakeSettingsRepository()


@pytest.fixture
def ticket_repo():
    return FakeTicketRepository()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def unit_of_work():
    return FakeUnitOfWork()


@pytest.fixture
def ticket_service(ticket_repo, category_repo, user_repo, notifier, clock, unit_of_work):
    return TicketService(
        ticket_repo, category_repo, user_repo, notifier,
        clock=clock, unit_of_work=unit_of_work
    )


@pytest.fixture
def dashboard_service(ticket_repo, category_repo, user_repo, clock):
    return DashboardService(ticket_repo, category_repo, user_repo, clock=clock)


@pytest.fixture
def admin_service(user_repo, category_repo, sla_target_repo, settings_repo, clock, unit_of_work):
    return AdminService(
        user_repo, category_repo, sla_target_repo, settings_repo,
        clock=clock, unit_of_work=unit_of_work
    )
