"""
Unit tests for the encrypted cookie session
"""

import logging

import pytest
from starlette.requests import Request
from starlette.responses import Response

from blog.core.errors import SessionError
from blog.core.sessions import MAX_COOKIE_SIZE, SessionManager, SessionState
from tests.utils.factories import TEST_SESSION_KEY

pytestmark = pytest.mark.unit


def make_request(cookies=None):
    """Minimal ASGI request carrying ``cookies``"""
    headers = []
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": headers,
        "client": ("127.0.0.1", 12345),
    }
    return Request(scope)


def saved_cookie(manager, session):
    response = Response()
    manager.save(session, response)
    header = response.headers["set-cookie"]
    name_value = header.split(";", 1)[0]
    name, value = name_value.split("=", 1)
    return name, value, header


@pytest.fixture
def manager():
    return SessionManager(TEST_SESSION_KEY, kdf_iterations=100_000)


class TestSessionState:
    """State helpers track modification"""

    def test_new_session_is_anonymous_and_clean(self):
        session = SessionState()
        assert not session.is_authenticated
        assert not session.modified

    def test_flashes_are_consumed_once(self):
        session = SessionState()
        session.add_flash("passwords don't match")

        assert session.consume_flashes() == ["passwords don't match"]
        assert session.consume_flashes() == []
        assert session.modified

    def test_set_and_clear_active_user(self):
        session = SessionState()
        session.set_active_user("alice", 1)
        assert session.is_authenticated

        session.clear_active_user()
        assert not session.is_authenticated
        assert session.active_user_id is None

    def test_stashed_form_is_popped_once(self):
        session = SessionState()
        session.stash_form("post", {"slug": "hello", "title": ""})

        assert session.pop_form("post") == {"slug": "hello", "title": ""}
        assert session.pop_form("post") is None

    def test_reading_untouched_session_is_not_a_modification(self):
        session = SessionState()
        session.consume_flashes()
        session.pop_form("post")
        assert not session.modified


class TestSessionManager:
    """Cookie round trips and rejection of tampered cookies"""

    def test_missing_cookie_gives_fresh_session(self, manager):
        session = manager.load(make_request())
        assert session == SessionState()

    def test_saved_session_loads_back(self, manager):
        session = SessionState()
        session.set_active_user("alice", 1)
        session.add_flash("welcome")
        name, value, _ = saved_cookie(manager, session)

        loaded = manager.load(make_request({name: value}))

        assert loaded.active_username == "alice"
        assert loaded.active_user_id == 1
        assert loaded.flashes == ["welcome"]
        assert not loaded.modified

    def test_cookie_is_encrypted(self, manager):
        session = SessionState()
        session.set_active_user("alice", 1)
        _, value, _ = saved_cookie(manager, session)

        assert "alice" not in value

    def test_cookie_flags(self, manager):
        _, _, header = saved_cookie(manager, SessionState())
        lowered = header.lower()

        assert header.startswith("blog=")
        assert "httponly" in lowered
        assert "samesite=lax" in lowered
        assert "path=/" in lowered
        assert "secure" not in lowered

    def test_https_only_sets_secure(self):
        manager = SessionManager(TEST_SESSION_KEY, https_only=True, kdf_iterations=100_000)
        _, _, header = saved_cookie(manager, SessionState())
        assert "secure" in header.lower()

    def test_tampered_cookie_gives_fresh_session(self, manager, caplog):
        caplog.set_level(logging.INFO)
        session = SessionState()
        session.set_active_user("alice", 1)
        name, value, _ = saved_cookie(manager, session)
        tampered = value[:-4] + ("AAAA" if not value.endswith("AAAA") else "BBBB")

        loaded = manager.load(make_request({name: tampered}))

        assert not loaded.is_authenticated
        assert any(
            getattr(record, "event_type", None) == "session_rejected" for record in caplog.records
        )

    def test_cookie_from_other_key_is_rejected(self, manager):
        other = SessionManager("another-session-key-0123456789-abcdefghij", kdf_iterations=100_000)
        session = SessionState()
        session.set_active_user("alice", 1)
        name, value, _ = saved_cookie(other, session)

        assert not manager.load(make_request({name: value})).is_authenticated

    def test_wrongly_typed_payload_is_logged_out(self, manager):
        # Validly encrypted, but the user id is not an integer
        payload = b'{"active_username": "alice", "active_user_id": "1"}'
        value = manager._cipher.encrypt(payload).decode("utf-8")

        loaded = manager.load(make_request({"blog": value}))

        assert not loaded.is_authenticated

    def test_stashed_form_cookie_stays_under_limit(self, manager):
        session = SessionState()
        session.add_flash("Title: empty")
        session.stash_form("post", {"slug": "hello-world", "body": "x" * 1000})

        name, value, _ = saved_cookie(manager, session)

        assert len(name) + len(value) <= MAX_COOKIE_SIZE

    def test_oversized_cookie_is_refused(self, manager):
        session = SessionState()
        session.stash_form("post", {"body": "x" * 6000})
        response = Response()

        with pytest.raises(SessionError):
            manager.save(session, response)

        assert "set-cookie" not in response.headers
