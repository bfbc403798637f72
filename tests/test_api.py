"""HTTP surface with repositories swapped for in-memory fakes."""

import importlib
import warnings

import pytest
from fastapi.testclient import TestClient

from helpdesk.dependencies import (
    get_category_repository, get_settings_repository, get_sla_target_repository,
    get_ticket_repository, get_unit_of_work, get_user_repository
)
from helpdesk.core import ValidationException
from helpdesk.main import app
from helpdesk.shared.api import middleware


@pytest.fixture
def client(user_repo, category_repo, sla_target_repo, settings_repo, ticket_repo, unit_of_work):
    app.dependency_overrides.update({
        get_user_repository: lambda: user_repo,
        get_category_repository: lambda: category_repo,
        get_sla_target_repository: lambda: sla_target_repo,
        get_settings_repository: lambda: settings_repo,
        get_ticket_repository: lambda: ticket_repo,
        get_unit_of_work: lambda: unit_of_work,
    })
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-User-Id": user_id}


def create_ticket(client, user_id="user-1", **overrides):
    body = {
        "title": "VPN drops",
        "description": "Every five minutes",
        "priority": "high",
        "category_id": "cat-network",
    }
    body.update(overrides)
    response = client.post("/tickets", json=body, headers=as_user(user_id))
    assert response.status_code == 201, response.text
    return response.json()


# ========== Actor & auth ==========

def test_missing_actor_header_is_401(client):
    assert client.get("/tickets").status_code == 401
    assert client.get("/tickets", headers=as_user("ghost")).status_code == 401


def test_login(client):
    ok = client.post("/auth/login", json={"email": "tech-1@helpdesk.local", "password": "secret"})
    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == "tech-1"
    assert "password" not in ok.json()["user"]

    bad = client.post("/auth/login", json={"email": "tech-1@helpdesk.local", "password": "nope"})
    assert bad.status_code == 401


def test_capabilities(client):
    body = client.get("/users/me/capabilities", headers=as_user("user-1")).json()
    assert body["role"] == "user"
    assert body["capabilities"]["create_ticket"] is True
    assert body["capabilities"]["change_status"] is False


# ========== Tickets ==========

def test_create_and_fetch_ticket(client):
    created = create_ticket(client)
    assert created["status"] == "open"
    assert created["sla_status"] == "on_time"
    assert created["internal_comments"] is None

    fetched = client.get(f"/tickets/{created['id']}", headers=as_user("user-1"))
    assert fetched.status_code == 200
    assert fetched.json()["sla_deadline"] == created["sla_deadline"]


def test_create_in_inactive_category_is_422(client):
    response = client.post(
        "/tickets",
        json={"title": "x", "description": "y", "category_id": "cat-old"},
        headers=as_user("user-1")
    )
    assert response.status_code == 422
    assert response.json()["error_type"] == "ValidationException"


def test_guard_rejects_status_change_without_assignee(client):
    ticket = create_ticket(client)
    response = client.put(
        f"/tickets/{ticket['id']}", json={"status": "in_progress"}, headers=as_user("tech-1")
    )
    assert response.status_code == 422
    assert "assigned" in response.json()["detail"]


def test_assign_start_resolve_flow(client):
    ticket = create_ticket(client)
    url = f"/tickets/{ticket['id']}"

    assigned = client.put(url, json={"assigned_to": "tech-1"}, headers=as_user("tech-1"))
    assert assigned.status_code == 200
    assert assigned.json()["assigned_to"] == "tech-1"

    started = client.post(f"{url}/start", headers=as_user("tech-1"))
    assert started.json()["status"] == "in_progress"

    resolved = client.put(url, json={"status": "resolved"}, headers=as_user("tech-1")).json()
    assert resolved["resolved_at"] is not None
    assert resolved["sla_status"] is None
    assert [e["type"] for e in resolved["timeline"]] == [
        "assignment", "status_change", "status_change"
    ]


def test_unassign_with_explicit_null(client):
    ticket = create_ticket(client)
    url = f"/tickets/{ticket['id']}"
    client.put(url, json={"assigned_to": "tech-1"}, headers=as_user("admin-1"))

    response = client.put(url, json={"assigned_to": None}, headers=as_user("admin-1"))
    assert response.status_code == 200
    assert response.json()["assigned_to"] is None
    assert response.json()["timeline"][-1]["message"] == "Ticket unassigned"


def test_failed_commit_is_reported_as_503(client, unit_of_work):
    ticket = create_ticket(client)
    unit_of_work.fail = True

    response = client.put(
        f"/tickets/{ticket['id']}", json={"assigned_to": "tech-1"}, headers=as_user("admin-1")
    )

    assert response.status_code == 503
    assert response.json()["error_type"] == "StoreUnavailableException"


def test_requester_cannot_change_status(client):
    ticket = create_ticket(client)
    response = client.put(
        f"/tickets/{ticket['id']}", json={"priority": "critical"}, headers=as_user("user-1")
    )
    assert response.status_code == 403


def test_hidden_ticket_is_404(client):
    ticket = create_ticket(client)
    assert client.get(f"/tickets/{ticket['id']}", headers=as_user("user-2")).status_code == 404
    assert client.get("/tickets/nope", headers=as_user("admin-1")).status_code == 404


def test_list_filters_by_role_and_query(client):
    create_ticket(client, "user-1", priority="low")
    create_ticket(client, "user-2", priority="high")

    assert len(client.get("/tickets", headers=as_user("user-1")).json()) == 1
    assert len(client.get("/tickets", headers=as_user("admin-1")).json()) == 2
    high = client.get("/tickets", params={"priority": "high"}, headers=as_user("admin-1")).json()
    assert [t["priority"] for t in high] == ["high"]
    assert "timeline" not in high[0]


def test_comments_and_internal_comments(client):
    ticket = create_ticket(client)
    base = f"/tickets/{ticket['id']}"

    comment = client.post(f"{base}/timeline", json={"message": "  still down  "}, headers=as_user("user-1"))
    assert comment.status_code == 201
    assert comment.json()["message"] == "still down"
    assert comment.json()["type"] == "comment"

    note = client.post(f"{base}/internal-comments", json={"message": "reboot router"}, headers=as_user("tech-1"))
    assert note.status_code == 201

    assert client.get(f"{base}/internal-comments", headers=as_user("user-1")).status_code == 403
    assert client.post(f"{base}/internal-comments", json={"message": "x"}, headers=as_user("user-1")).status_code == 403

    as_requester = client.get(base, headers=as_user("user-1")).json()
    as_tech = client.get(base, headers=as_user("tech-1")).json()
    assert as_requester["internal_comments"] is None
    assert [c["message"] for c in as_tech["internal_comments"]] == ["reboot router"]
    assert [e["message"] for e in client.get(f"{base}/timeline", headers=as_user("user-1")).json()] == ["still down"]


def test_blank_comment_is_rejected(client):
    ticket = create_ticket(client)
    response = client.post(f"/tickets/{ticket['id']}/timeline", json={"message": "   "}, headers=as_user("user-1"))
    assert response.status_code == 422


def test_delete_is_admin_only(client):
    ticket = create_ticket(client)
    url = f"/tickets/{ticket['id']}"
    assert client.delete(url, headers=as_user("tech-1")).status_code == 403
    assert client.delete(url, headers=as_user("admin-1")).status_code == 204
    assert client.get(url, headers=as_user("admin-1")).status_code == 404


def test_dashboard(client):
    create_ticket(client)
    body = client.get("/dashboard", headers=as_user("admin-1")).json()

    assert body["total_tickets"] == 1
    assert body["by_status"]["open"] == 1
    assert body["by_priority"]["high"] == 1
    assert body["by_category"] == [{"id": "cat-network", "name": "Network", "count": 1}]
    assert body["sla"]["on_time"] == 1
    assert body["average_resolution_hours"] == 0.0


# ========== Admin ==========

def test_categories_listing(client):
    names = [c["id"] for c in client.get("/categories", headers=as_user("user-1")).json()]
    assert names == ["cat-network"]
    everything = client.get("/categories", params={"include_inactive": "true"}, headers=as_user("admin-1"))
    assert len(everything.json()) == 2
    assert client.get("/categories", params={"include_inactive": "true"}, headers=as_user("user-1")).status_code == 403


def test_category_update(client):
    response = client.put("/categories/cat-network", json={"sla_hours": 4}, headers=as_user("admin-1"))
    assert response.status_code == 200
    assert response.json()["sla_hours"] == 4
    assert client.put("/categories/cat-network", json={"sla_hours": 0}, headers=as_user("admin-1")).status_code == 422


def test_users_endpoints(client):
    assert client.get("/users", headers=as_user("user-1")).status_code == 403
    techs = client.get("/users", params={"role": "technician"}, headers=as_user("tech-1")).json()
    assert {u["id"] for u in techs} == {"tech-1", "tech-2"}

    created = client.post(
        "/users",
        json={"name": "Lia", "email": "lia@helpdesk.local", "password": "pw", "role": "technician"},
        headers=as_user("admin-1")
    )
    assert created.status_code == 201
    updated = client.put(f"/users/{created.json()['id']}", json={"phone": "123"}, headers=as_user("admin-1"))
    assert updated.json()["phone"] == "123"


def test_sla_config(client):
    targets = client.get("/sla-config", headers=as_user("user-1")).json()
    assert {t["priority"] for t in targets} == {"critical", "medium"}

    response = client.put("/sla-config/sla-medium", json={"response_hours": 30}, headers=as_user("admin-1"))
    assert response.status_code == 422


def test_settings(client):
    assert client.get("/settings/general", headers=as_user("user-1")).json()["company_name"] == "HelpDesk Pro"
    assert client.get("/settings/notifications", headers=as_user("user-1")).status_code == 403

    saved = client.put(
        "/settings/notifications",
        json={"notify_on_new": False, "notify_on_update": True, "notify_on_close": True, "notify_on_sla_risk": False},
        headers=as_user("admin-1")
    )
    assert saved.status_code == 200
    assert client.get("/settings/notifications", headers=as_user("admin-1")).json()["notify_on_new"] is False


def test_root_and_correlation_header(client):
    response = client.get("/", headers={"X-Correlation-ID": "abc"})
    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "abc"
    assert response.json()["service"] == "HelpDesk Service"


def test_status_table_loads_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        importlib.reload(middleware)
    assert dict(middleware.EXCEPTION_STATUS_CODES)[ValidationException] == 422
