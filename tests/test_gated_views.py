# tests/test_gated_views.py

"""
Tests for the permission-gated list views and the dashboard routes.
"""

import pytest
from fastapi.testclient import TestClient

from core.errors import AccessRestrictedError, WriteFailedError
from models.enums import Role
from models.records import ExternalAppCreate, WorkLogCreate
from services.gated_views import (
    AppDirectoryView,
    MarketFeedView,
    MarketRecordsView,
    UserAppsView,
    UsersView,
    WorkLogLedgerView,
    submit_work_log,
)


def test_role_gate_renders_restricted_without_query(make_context, fake_supabase):
    view = WorkLogLedgerView(make_context(Role.employee)).load()

    rendered = view.render()
    assert rendered["status"] == "restricted"
    assert rendered["reason"] == "Role 'employee' lacks 'work_logs:read'"
    assert fake_supabase.calls == []


def test_denied_read_blocks_writes(make_context, fake_supabase):
    """After a permission-denied read, writes are refused without a DB call."""
    fake_supabase.deny("external_apps")
    view = AppDirectoryView(make_context(Role.admin)).load()
    assert view.permission_denied

    with pytest.raises(AccessRestrictedError):
        view.add_app(ExternalAppCreate(name="Valuation Calc", url="https://calc.example"))
    assert fake_supabase.writes() == []


def test_retry_clears_denial(make_context, fake_supabase):
    fake_supabase.deny("external_apps")
    view = AppDirectoryView(make_context(Role.admin)).load()
    assert view.render()["status"] == "restricted"

    fake_supabase.errors.clear()
    fake_supabase.rows["external_apps"] = [{"id": "a1", "name": "Maps", "url": "https://maps.example"}]
    assert view.retry().render()["count"] == 1


def test_other_errors_keep_rows_visible(make_context, fake_supabase):
    fake_supabase.errors[("daily_work_logs", "select")] = RuntimeError("timeout")
    rendered = WorkLogLedgerView(make_context(Role.admin)).load().render()
    assert rendered["status"] == "ok"
    assert rendered["error"] == "timeout"


def test_malformed_rows_are_quarantined(make_context, fake_supabase):
    fake_supabase.rows["market_intelligence"] = [
        {"id": "m1", "lat": 29.2, "lng": 78.9, "type": "Commercial", "rate": 4500, "user_id": "u1"},
        {"id": "m2", "lat": "north", "type": "Castle", "user_id": "u1"},
    ]
    rendered = MarketFeedView(make_context(Role.admin)).load().render()
    assert rendered["count"] == 1
    assert rendered["quarantined"] == 1


def test_market_feed_search(make_context, fake_supabase):
    fake_supabase.rows["market_intelligence"] = [
        {"id": "m1", "lat": 29.2, "lng": 78.9, "type": "Residential", "rate": 2500, "user_id": "u1", "area_name": "Cheema Chauraha"},
        {"id": "m2", "lat": 29.3, "lng": 78.8, "type": "Residential", "rate": 2700, "user_id": "u1", "area_name": "Ramnagar Road"},
    ]
    rendered = MarketFeedView(make_context(Role.admin), search="cheema").load().render()
    assert [r["id"] for r in rendered["rows"]] == ["m1"]


def test_write_failure_raises_alert(make_context, fake_supabase):
    fake_supabase.errors[("external_apps", "insert")] = RuntimeError("insert rejected")
    view = AppDirectoryView(make_context(Role.admin))
    with pytest.raises(WriteFailedError) as exc:
        view.add_app(ExternalAppCreate(name="Calc", url="https://calc.example"))
    assert exc.value.alert == "Action Blocked: Check Admin Matrix permissions."


def test_super_admin_record_is_protected(make_context, fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "owner@abs.test", "role": "super_admin"}]
    view = UsersView(make_context(Role.admin))

    with pytest.raises(AccessRestrictedError) as exc:
        view.update_role("owner@abs.test", "client")
    assert exc.value.reason == "protected-record"

    with pytest.raises(AccessRestrictedError):
        view.delete("owner@abs.test")
    assert fake_supabase.writes() == []


def test_update_role(make_context, fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "staff@abs.test", "role": "client"}]
    UsersView(make_context(Role.admin)).update_role("Staff@ABS.test", "employee")
    assert fake_supabase.rows["user_permissions"][0]["role"] == "employee"


def test_update_role_rejects_super_admin_grant(make_context, fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "staff@abs.test", "role": "client"}]
    with pytest.raises(ValueError):
        UsersView(make_context(Role.admin)).update_role("staff@abs.test", "super_admin")


def test_update_role_unknown_user(make_context):
    with pytest.raises(LookupError):
        UsersView(make_context(Role.admin)).update_role("ghost@abs.test", "employee")


def test_gallery_system_apps_by_role(make_context):
    staff = UserAppsView(make_context(Role.employee)).system_apps()
    client = UserAppsView(make_context(Role.client)).system_apps()
    assert [a["id"] for a in staff] == ["work-log", "market-data"]
    assert [a["id"] for a in client] == ["work-log"]


def test_client_sees_only_own_records(make_context, fake_supabase):
    fake_supabase.rows["market_intelligence"] = [
        {"id": "m1", "lat": 29.2, "lng": 78.9, "type": "Residential", "rate": 2500, "user_id": "user-1"},
        {"id": "m2", "lat": 29.3, "lng": 78.8, "type": "Residential", "rate": 2700, "user_id": "user-2"},
    ]
    own = MarketRecordsView(make_context(Role.client)).load().render()
    everyone = MarketRecordsView(make_context(Role.employee)).load().render()
    assert [r["id"] for r in own["rows"]] == ["m1"]
    assert everyone["count"] == 2


def test_live_view_tracks_subscription(make_context, fake_supabase, mock_scheduler):
    ctx = make_context(Role.admin)
    changes = []
    view = WorkLogLedgerView(ctx, scheduler=mock_scheduler)
    view.on_change(changes.append)
    view.open()

    assert len(ctx.subscriptions) == 1
    assert len(changes) == 1
    mock_scheduler.add_job.assert_called_once()

    ctx.teardown()
    mock_scheduler.remove_job.assert_called_once()


# ============================================================
# Work log
# ============================================================
def test_submit_work_log(make_context, fake_supabase):
    entry = submit_work_log(make_context(Role.client, email="field@abs.test"), WorkLogCreate(reason=" Site visit "))
    assert entry["reason"] == "Site visit"
    assert entry["name"] == "field"
    assert entry["recorded_by"] == "field@abs.test"
    assert "/" in entry["date"]


def test_submit_work_log_requires_reason(make_context):
    with pytest.raises(ValueError):
        submit_work_log(make_context(Role.client), WorkLogCreate(reason="   "))


def test_submit_work_log_denied(make_context, fake_supabase):
    fake_supabase.deny("daily_work_logs", "insert")
    with pytest.raises(WriteFailedError) as exc:
        submit_work_log(make_context(Role.client), WorkLogCreate(reason="Visit"))
    assert exc.value.alert.startswith("PERMISSION ERROR")


# ============================================================
# Routes
# ============================================================
def test_dashboard_apps_route(client: TestClient, as_role, fake_supabase):
    as_role(Role.client)
    data = client.get("/dashboard/apps").json()
    assert [a["id"] for a in data["system_apps"]] == ["work-log"]
    assert data["external_apps"]["status"] == "ok"


def test_dashboard_work_log_route(client: TestClient, as_role):
    as_role(Role.employee)
    response = client.post("/dashboard/work-logs", json={"reason": "Valuation at Jaspur"})
    assert response.status_code == 201

    blank = client.post("/dashboard/work-logs", json={"reason": ""})
    assert blank.status_code == 400
    assert blank.json()["detail"] == "Please describe your activity."


def test_dashboard_write_failure_alert(client: TestClient, as_role, fake_supabase):
    fake_supabase.deny("daily_work_logs", "insert")
    as_role(Role.employee)
    response = client.post("/dashboard/work-logs", json={"reason": "Visit"})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("PERMISSION ERROR")


def test_admin_app_directory_routes(client: TestClient, as_role, fake_supabase):
    as_role(Role.admin)
    created = client.post("/admin/apps", json={"name": "Rate Sheet", "url": "https://rates.example"})
    assert created.status_code == 201

    listing = client.get("/admin/apps").json()
    assert listing["count"] == 1

    app_id = listing["rows"][0]["id"]
    assert client.delete(f"/admin/apps/{app_id}").status_code == 200
    assert client.get("/admin/apps").json()["count"] == 0


def test_admin_role_change_routes(client: TestClient, as_role, fake_supabase):
    fake_supabase.rows["user_permissions"] = [
        {"email": "staff@abs.test", "role": "client"},
        {"email": "owner@abs.test", "role": "super_admin"},
    ]
    as_role(Role.admin)

    assert client.patch("/admin/users/staff@abs.test/role", json={"role": "employee"}).status_code == 200
    assert client.patch("/admin/users/ghost@abs.test/role", json={"role": "employee"}).status_code == 404
    assert client.patch("/admin/users/staff@abs.test/role", json={"role": "super_admin"}).status_code == 400

    protected = client.delete("/admin/users/owner@abs.test")
    assert protected.status_code == 403
    assert protected.json()["reason"] == "protected-record"
