"""End-to-end login / logout / registration through the HTTP surface."""

from fastapi.testclient import TestClient

from app.main import create_app
from conftest import login, make_settings, register


def test_login_and_registration_pages_are_public(client):
    assert client.get("/login").status_code == 200
    assert client.get("/registro").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_login_page_reports_flags(client):
    body = client.get("/login?error").json()
    assert body["error"] is True
    assert body["logout"] is False
    assert client.get("/login?registroExitoso").json()["registroExitoso"] is True


def test_full_scenario(client, settings):
    resp = register(client, "alice", "pw123", "pw123")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?registroExitoso"

    resp = login(client, "alice", "wrongpw")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?error"
    assert settings.SESSION_COOKIE_NAME not in client.cookies

    resp = login(client, "alice", "pw123")
    assert resp.status_code == 302
    assert resp.headers["location"] == settings.DEFAULT_SUCCESS_URL
    old_cookie = client.cookies[settings.SESSION_COOKIE_NAME]
    assert len(client.app.state.sessions.active_sessions("alice")) == 1

    home = client.get("/")
    assert home.status_code == 200
    assert home.json() == {"username": "alice", "authorities": ["ROLE_USER"]}

    resp = client.get("/logout")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?logout"
    assert client.app.state.sessions.active_sessions("alice") == []

    resp = client.get(
        "/products",
        headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={old_cookie}"},
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


def test_unknown_user_gets_same_failure_as_wrong_password(client):
    register(client, "alice", "pw123")
    wrong_password = login(client, "alice", "nope")
    unknown_user = login(client, "mallory", "pw123")
    assert wrong_password.headers["location"] == unknown_user.headers["location"] == "/login?error"


def test_logout_via_post_without_session(client):
    resp = client.post("/logout")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?logout"


def test_forged_cookie_is_ignored(client, settings):
    resp = client.get(
        "/products",
        headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}=not-a-token"},
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


def test_relogin_replaces_current_session(client):
    register(client, "alice", "pw123")
    login(client, "alice", "pw123")
    login(client, "alice", "pw123")
    assert len(client.app.state.sessions.active_sessions("alice")) == 1


# ── Registration validation ──────────────────────────────────────────
def test_password_confirmation_mismatch(client):
    resp = register(client, "alice", "pw123", "pw999")
    assert resp.status_code == 400
    assert "confirmPassword" in resp.json()["errors"]
    assert login(client, "alice", "pw123").headers["location"] == "/login?error"


def test_duplicate_username(client):
    register(client, "alice", "pw123")
    resp = register(client, "alice", "other")
    assert resp.status_code == 400
    body = resp.json()
    assert body["username"] == "alice"
    assert "username" in body["errors"]


def test_blank_fields(client):
    resp = client.post("/registro", data={"username": "  ", "password": ""})
    assert resp.status_code == 400
    errors = resp.json()["errors"]
    assert "username" in errors
    assert "password" in errors


def test_password_over_72_bytes_is_a_field_error(client):
    resp = register(client, "longpw", "p" * 100)
    assert resp.status_code == 400
    assert "password" in resp.json()["errors"]
    assert login(client, "longpw", "p" * 100).headers["location"] == "/login?error"


def test_username_whitespace_is_ignored_at_login(client):
    resp = register(client, " alice", "pw123")
    assert resp.headers["location"] == "/login?registroExitoso"
    assert login(client, " alice ", "pw123").headers["location"] == "/"
    client.cookies.clear()
    assert login(client, "alice", "pw123").headers["location"] == "/"


# ── Session cap through the login endpoint ───────────────────────────
def test_block_policy_turns_extra_login_into_generic_failure(tmp_path):
    settings = make_settings(
        tmp_path, MAX_SESSIONS_PER_USER=1, MAX_SESSIONS_PREVENTS_LOGIN=True,
    )
    with TestClient(create_app(settings), follow_redirects=False) as client:
        register(client, "alice", "pw123")
        assert login(client, "alice", "pw123").headers["location"] == "/"
        client.cookies.clear()
        assert login(client, "alice", "pw123").headers["location"] == "/login?error"


def test_evict_policy_keeps_newest_session(tmp_path):
    settings = make_settings(tmp_path, MAX_SESSIONS_PER_USER=1)
    with TestClient(create_app(settings), follow_redirects=False) as client:
        register(client, "alice", "pw123")
        login(client, "alice", "pw123")
        first = client.cookies[settings.SESSION_COOKIE_NAME]
        client.cookies.clear()
        login(client, "alice", "pw123")

        assert client.get("/").status_code == 200
        resp = client.get(
            "/", headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={first}"},
        )
        assert resp.status_code == 302


def test_shutdown_clears_sessions(app):
    with TestClient(app, follow_redirects=False) as client:
        register(client, "alice", "pw123")
        login(client, "alice", "pw123")
        assert len(app.state.sessions) == 1
    assert len(app.state.sessions) == 0
