"""
Tests for SessionStore: login, 24h expiry and logout fan-out.
"""
import pytest

from kitchen.config import TOKEN_ISSUED_AT_KEY, TOKEN_KEY
from kitchen.errors import Unauthenticated
from kitchen.session import SessionStore

HOUR_MS = 60 * 60 * 1000


class MillisClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now


class TestSessionExpiry:
    """Tests for the expiry guard."""

    def setup_method(self):
        self.clock = MillisClock()

    def test_fresh_token_is_current(self, store):
        sessions = SessionStore(store, clock=self.clock)
        sessions.login("abc")
        self.clock.now += HOUR_MS
        assert sessions.current() == "abc"
        assert sessions.is_expired() is False
        assert sessions.is_authenticated is True

    def test_token_older_than_a_day_is_cleared(self, store):
        """A token issued 25 hours ago is treated as absent and removed."""
        sessions = SessionStore(store, clock=self.clock)
        sessions.login("abc")
        self.clock.now += 25 * HOUR_MS

        assert sessions.is_expired() is True
        assert sessions.current() is None
        assert store.get(TOKEN_KEY) is None
        assert store.get(TOKEN_ISSUED_AT_KEY) is None

    def test_missing_issue_time_is_expired(self, store):
        store.set(TOKEN_KEY, "abc")
        sessions = SessionStore(store, clock=self.clock)
        assert sessions.is_expired() is True
        assert sessions.current() is None

    def test_non_numeric_issue_time_is_expired(self, store):
        store.set(TOKEN_KEY, "abc")
        store.set(TOKEN_ISSUED_AT_KEY, "yesterday")
        assert SessionStore(store, clock=self.clock).current() is None

    def test_session_survives_a_new_store_instance(self, store):
        """The token is read back from the store, not held in memory."""
        SessionStore(store, clock=self.clock).login("abc")
        session = SessionStore(store, clock=self.clock).session()
        assert session is not None
        assert session.token == "abc"
        assert session.issued_at_millis == self.clock.now


class TestLoginLogout:
    def test_empty_token_is_rejected(self, store):
        with pytest.raises(Unauthenticated):
            SessionStore(store).login("  ")

    def test_logout_clears_and_notifies(self, store):
        sessions = SessionStore(store)
        sessions.login("abc")
        calls = []
        sessions.add_logout_listener(lambda: calls.append("first"))
        sessions.add_logout_listener(lambda: calls.append("second"))

        sessions.logout()

        assert sessions.current() is None
        assert calls == ["first", "second"]

    def test_failing_listener_does_not_stop_others(self, store):
        sessions = SessionStore(store)
        calls = []

        def broken():
            raise RuntimeError("boom")

        sessions.add_logout_listener(broken)
        sessions.add_logout_listener(lambda: calls.append("ran"))

        sessions.logout()

        assert calls == ["ran"]
