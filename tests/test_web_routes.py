"""
tests/test_web_routes.py -- Integration tests for the server-rendered web UI.

Covers:
  - Landing page renders for everyone; ?auth=signup opens the form modal
  - Sign-up form: short password shows the inline error and creates nothing
  - Sign-up form: success sets the cookie and redirects to /dashboard
  - Sign-in form: unknown email keeps the visitor signed out with the error
  - Gate: every protected page redirects signed-out visitors to "/"
  - Dashboard: profile, preferences and tasks; settings form round-trip
  - Sign-out: clears the cookie; the dashboard is gated again
  - next= cannot redirect off-site

Fixtures used (from conftest.py):
  - web_client: (client, user_store, records) -- follow_redirects=False
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import unique_email


@pytest.fixture(autouse=True)
def signed_out(web_client):
    """Every test starts without a session cookie."""
    client, _users, _records = web_client
    client.cookies.clear()
    yield
    client.cookies.clear()


def _web_sign_up(client: TestClient, email: str, password: str = "password123", name: str = "Web User"):
    return client.post(
        "/signup",
        data={"name": name, "email": email, "password": password, "next": "/dashboard", "form_page": "landing"},
    )


class TestLanding:
    def test_landing_renders_for_anonymous(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.get("/")
        assert resp.status_code == 200
        assert "Get Started" in resp.text
        assert 'id="nav-signin"' in resp.text
        assert 'id="auth-modal"' not in resp.text

    def test_auth_param_opens_modal(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.get("/?auth=signup")
        assert 'id="auth-modal"' in resp.text
        assert 'id="signup-form"' in resp.text


class TestSignUpForm:
    def test_short_password_shows_inline_error(self, web_client) -> None:
        client, users, _records = web_client
        email = unique_email("short")
        resp = _web_sign_up(client, email, password="1234567")
        assert resp.status_code == 200
        assert 'id="auth-error"' in resp.text
        assert "Password must be at least 8 characters long" in resp.text
        assert users.get_by_email(email) is None
        assert "access_token" not in client.cookies

    def test_blank_name_shows_inline_error(self, web_client) -> None:
        client, users, _records = web_client
        email = unique_email()
        resp = _web_sign_up(client, email, name="   ")
        assert "Name is required" in resp.text
        assert users.get_by_email(email) is None

    def test_success_redirects_to_dashboard_with_cookie(self, web_client) -> None:
        client, users, records = web_client
        email = unique_email("ok")
        resp = _web_sign_up(client, email)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard"
        assert "access_token" in client.cookies

        user = users.get_by_email(email)
        assert records.count_preferences(user.id) == 1

    def test_duplicate_email_message_shown(self, web_client) -> None:
        client, _users, _records = web_client
        email = unique_email("dup")
        _web_sign_up(client, email)
        client.cookies.clear()
        resp = _web_sign_up(client, email)
        assert resp.status_code == 200
        assert "User already exists. Use another email." in resp.text

    def test_password_is_not_echoed(self, web_client) -> None:
        client, _users, _records = web_client
        resp = _web_sign_up(client, unique_email(), password="secret7")
        assert "secret7" not in resp.text

    def test_offsite_next_is_ignored(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.post(
            "/signup",
            data={"name": "N", "email": unique_email(), "password": "password123", "next": "//evil.example.com"},
        )
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard"


class TestSignInForm:
    def test_unknown_email_stays_signed_out(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.post("/signin", data={"email": unique_email("nobody"), "password": "password123"})
        assert resp.status_code == 200
        assert 'id="auth-error"' in resp.text
        assert "Invalid email or password" in resp.text
        assert "access_token" not in client.cookies
        assert client.get("/dashboard").status_code == 302

    def test_sign_in_after_sign_up(self, web_client) -> None:
        client, _users, _records = web_client
        email = unique_email("back")
        _web_sign_up(client, email)
        client.cookies.clear()
        resp = client.post("/signin", data={"email": email, "password": "password123", "next": "/auth-test"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/auth-test"
        assert "Authentication successful!" in client.get("/auth-test").text


class TestGate:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/dashboard"),
            ("post", "/dashboard/preferences"),
            ("post", "/dashboard/tasks"),
            ("post", "/dashboard/tasks/1/toggle"),
            ("post", "/dashboard/tasks/1/delete"),
        ],
    )
    def test_signed_out_redirects_to_landing(self, web_client, method, path) -> None:
        client, _users, _records = web_client
        resp = getattr(client, method)(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"

    def test_revoked_cookie_is_gated(self, web_client) -> None:
        client, _users, _records = web_client
        _web_sign_up(client, unique_email())
        token = client.cookies["access_token"]
        client.post("/signout")
        client.cookies.set("access_token", token)
        assert client.get("/dashboard").status_code == 302


class TestDashboard:
    def test_dashboard_shows_profile_and_default_preferences(self, web_client) -> None:
        client, _users, _records = web_client
        email = unique_email("dash")
        _web_sign_up(client, email, name="Dana")
        resp = client.get("/dashboard")
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"
        assert 'id="profile-name">Dana<' in resp.text
        assert email in resp.text
        assert "Theme: system" in resp.text
        assert "Notifications: Enabled" in resp.text
        assert 'id="nav-signout"' in resp.text

    def test_preferences_form_round_trip(self, web_client) -> None:
        client, users, records = web_client
        email = unique_email("prefs")
        _web_sign_up(client, email)
        # Unchecked checkbox: the field is simply absent from the form body.
        resp = client.post("/dashboard/preferences", data={"theme": "dark", "language": "de"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard"

        prefs = records.get_preferences(users.get_by_email(email).id)
        assert (prefs.theme, prefs.notifications, prefs.language) == ("dark", False, "de")
        assert "Notifications: Disabled" in client.get("/dashboard").text

    def test_invalid_theme_reports_error(self, web_client) -> None:
        client, _users, _records = web_client
        _web_sign_up(client, unique_email())
        resp = client.post("/dashboard/preferences", data={"theme": "neon"})
        assert resp.headers["location"] == "/dashboard?error=preferences_invalid"
        assert "Those settings could not be saved." in client.get(resp.headers["location"]).text

    def test_task_add_toggle_delete(self, web_client) -> None:
        client, users, records = web_client
        email = unique_email("tasks")
        _web_sign_up(client, email)
        user_id = users.get_by_email(email).id

        client.post("/dashboard/tasks", data={"text": "water plants"})
        (task,) = records.list_tasks(user_id)
        assert "water plants" in client.get("/dashboard").text

        client.post(f"/dashboard/tasks/{task.id}/toggle")
        assert records.get_task(task.id).is_completed is True

        client.post(f"/dashboard/tasks/{task.id}/delete")
        assert records.list_tasks(user_id) == []

    def test_blank_task_reports_error(self, web_client) -> None:
        client, _users, _records = web_client
        _web_sign_up(client, unique_email())
        resp = client.post("/dashboard/tasks", data={"text": "  "})
        assert resp.headers["location"] == "/dashboard?error=task_invalid"

    def test_unknown_error_param_is_not_rendered(self, web_client) -> None:
        client, _users, _records = web_client
        _web_sign_up(client, unique_email())
        resp = client.get("/dashboard?error=<script>alert(1)</script>")
        assert "<script>alert(1)</script>" not in resp.text


class TestSignOut:
    def test_sign_out_clears_session(self, web_client) -> None:
        client, _users, _records = web_client
        _web_sign_up(client, unique_email())
        assert client.get("/dashboard").status_code == 200

        resp = client.post("/signout")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert "access_token" not in client.cookies

        assert client.get("/dashboard").status_code == 302
        assert 'id="nav-signin"' in client.get("/").text


class TestDemoPages:
    def test_auth_test_shows_form_when_signed_out(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.get("/auth-test")
        assert resp.status_code == 200
        assert 'id="signin-form"' in resp.text
        assert 'id="signup-form"' in client.get("/auth-test?mode=signup").text

    def test_signup_demo_page(self, web_client) -> None:
        client, _users, _records = web_client
        resp = client.get("/signup")
        assert resp.status_code == 200
        assert 'id="signup-form"' in resp.text
