"""Session store holding the bearer token and its issue time."""

from __future__ import annotations

import logging
import time
from typing import Callable

from kitchen.config import SESSION_TTL_SECONDS, TOKEN_ISSUED_AT_KEY, TOKEN_KEY
from kitchen.errors import Unauthenticated
from kitchen.models import Session
from kitchen.persistence import KeyValueStore

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """Login/logout plus an expiry guard that runs on every read."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], int] = _now_millis,
        ttl_seconds: float = SESSION_TTL_SECONDS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.ttl_millis = int(ttl_seconds * 1000)
        self._logout_listeners: list[Callable[[], None]] = []

    def add_logout_listener(self, listener: Callable[[], None]) -> None:
        self._logout_listeners.append(listener)

    def login(self, token: str) -> Session:
        token = (token or "").strip()
        if not token:
            raise Unauthenticated("cannot start a session without a token")
        session = Session(token=token, issued_at_millis=self.clock())
        self.store.set(TOKEN_KEY, session.token)
        self.store.set(TOKEN_ISSUED_AT_KEY, session.issued_at_millis)
        logger.info("session_login issued_at=%s", session.issued_at_millis)
        return session

    def logout(self) -> None:
        self.store.delete(TOKEN_KEY)
        self.store.delete(TOKEN_ISSUED_AT_KEY)
        logger.info("session_logout")
        for listener in list(self._logout_listeners):
            try:
                listener()
            except Exception:
                logger.exception("logout listener failed")

    def is_expired(self) -> bool:
        issued_at = self.store.get(TOKEN_ISSUED_AT_KEY)
        if isinstance(issued_at, bool) or not isinstance(issued_at, (int, float)):
            return True
        return self.clock() - issued_at > self.ttl_millis

    def session(self) -> Session | None:
        """Return the live session, clearing a stored one that has expired."""
        token = self.store.get(TOKEN_KEY)
        if self.is_expired() or not token:
            if token is not None:
                logger.info("session_expired")
                self.store.delete(TOKEN_KEY)
                self.store.delete(TOKEN_ISSUED_AT_KEY)
            return None
        return Session(token=str(token), issued_at_millis=int(self.store.get(TOKEN_ISSUED_AT_KEY)))

    def current(self) -> str | None:
        session = self.session()
        return session.token if session else None

    @property
    def is_authenticated(self) -> bool:
        return self.current() is not None
