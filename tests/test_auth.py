# tests/test_auth.py

"""
Tests for authentication endpoints and session resolution.
"""

from fastapi.testclient import TestClient
from unittest.mock import patch, Mock

from core.session import Identity, SessionResolver
from models.enums import Role


def _sign_in_response(token="test-token", email="new.user@example.com"):
    mock_session = Mock()
    mock_session.access_token = token
    mock_user = Mock()
    mock_user.id = "uid-1"
    mock_user.email = email
    mock_user.user_metadata = {"full_name": "New User"}
    mock_response = Mock()
    mock_response.session = mock_session
    mock_response.user = mock_user
    return mock_response


def test_login_success_creates_client_record(client: TestClient, fake_supabase):
    """First sign-in creates a client permission record."""
    with patch("routers.auth.get_supabase_client") as mock_supabase, \
            patch("dependencies.auth.get_user_client", return_value=fake_supabase):
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.return_value = _sign_in_response()
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "New.User@Example.com", "password": "password123"}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"] == "test-token"
    assert data["user"]["role"] == "client"
    assert data["user"]["is_staff"] is False
    assert data["user"]["display_name"] == "New User"

    records = fake_supabase.rows["user_permissions"]
    assert len(records) == 1
    assert records[0]["email"] == "new.user@example.com"
    assert records[0]["role"] == "client"


def test_login_keeps_existing_role(client: TestClient, fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "boss@example.com", "role": "admin"}]

    with patch("routers.auth.get_supabase_client") as mock_supabase, \
            patch("dependencies.auth.get_user_client", return_value=fake_supabase):
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.return_value = _sign_in_response(email="boss@example.com")
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "boss@example.com", "password": "password123"}
        )

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"
    assert response.json()["user"]["is_admin"] is True
    assert "last_login" in fake_supabase.rows["user_permissions"][0]


def test_login_invalid_credentials(client: TestClient):
    """Test login with invalid credentials."""
    with patch("routers.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.side_effect = Exception("Invalid credentials")
        mock_supabase.return_value = mock_client

        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "wrongpassword"}
        )

        assert response.status_code == 401
        assert "Invalid email or password" in response.json()["detail"]


def test_login_rate_limiting(client: TestClient):
    """Ten attempts per minute per client, then 429."""
    with patch("routers.auth.get_supabase_client") as mock_supabase:
        mock_client = Mock()
        mock_client.auth.sign_in_with_password.side_effect = Exception("Invalid credentials")
        mock_supabase.return_value = mock_client

        for _ in range(10):
            response = client.post(
                "/auth/login",
                json={"email": "test@example.com", "password": "wrong"}
            )
            assert response.status_code == 401

        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "wrong"}
        )
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"


def test_me_requires_sign_in(client: TestClient, as_role):
    as_role(signed_in=False)
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_me_navigation_for_employee(client: TestClient, as_role):
    as_role(Role.employee, email="staff@abs.test")
    response = client.get("/auth/me")

    assert response.status_code == 200
    data = response.json()
    ids = [item["id"] for item in data["dashboard_navigation"]]
    assert ids[2] == "market-intelligence"
    assert data["admin_navigation"] == []


def test_me_navigation_for_client(client: TestClient, as_role):
    as_role(Role.client, email="buyer@abs.test")
    data = client.get("/auth/me").json()

    assert "market-intelligence" not in [item["id"] for item in data["dashboard_navigation"]]
    assert data["user"]["is_staff"] is False


def test_logout_releases_subscriptions(client: TestClient, as_role):
    ctx = as_role(Role.client)
    subscription = Mock()
    ctx.track(subscription)

    with patch("routers.auth.get_supabase_client") as mock_supabase:
        response = client.post("/auth/logout")

    assert response.status_code == 200
    subscription.cancel.assert_called_once()
    assert ctx.identity is None
    mock_supabase.return_value.auth.admin.sign_out.assert_called_once_with("token")


# ============================================================
# SessionResolver
# ============================================================
def test_resolver_falls_back_to_client_on_read_failure(fake_supabase):
    fake_supabase.errors[("user_permissions", "select")] = RuntimeError("network down")
    role = SessionResolver(fake_supabase).resolve(Identity(uid="u", email="a@b.com"))
    assert role == Role.client


def test_resolver_malformed_record_is_client(fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "a@b.com", "role": "overlord"}]
    role = SessionResolver(fake_supabase).resolve(Identity(uid="u", email="A@B.com"))
    assert role == Role.client


def test_create_default_does_not_overwrite_role(fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "a@b.com", "role": "admin"}]
    SessionResolver(fake_supabase).create_default(Identity(uid="u", email="a@b.com"))
    assert fake_supabase.rows["user_permissions"][0]["role"] == "admin"


def test_role_watch_updates_context(make_context, mock_scheduler, fake_supabase):
    fake_supabase.rows["user_permissions"] = [{"email": "admin@abs.test", "role": "employee"}]
    ctx = make_context(role=Role.admin)

    ctx.watch_role(SessionResolver(fake_supabase), scheduler=mock_scheduler)
    assert ctx.role == Role.employee

    fake_supabase.rows["user_permissions"][0]["role"] = "client"
    ctx.subscriptions[0].refresh()
    assert ctx.role == Role.client

    ctx.teardown()
    mock_scheduler.remove_job.assert_called_once()
