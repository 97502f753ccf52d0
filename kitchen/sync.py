"""Poll cycle: fetch, diff against the accepted snapshot, notify."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable

from kitchen.api import KitchenApiClient
from kitchen.diff import DiffEngine
from kitchen.errors import ApiError, MalformedResponse, NetworkError, Unauthenticated
from kitchen.fetcher import OrderSnapshotFetcher
from kitchen.models import Message, Order, Snapshot
from kitchen.notifications import NotificationCoordinator
from kitchen.session import SessionStore

logger = logging.getLogger(__name__)


class OrderSynchronizer:
    """
    Applies fetched snapshots to the visible order list.

    The first clean snapshot of a session is a baseline: its orders are
    marked as seen without a chime. A result whose fetch started before the
    last accepted one is dropped, and a network failure keeps the current
    list on screen, as does an unparseable body. A non-2xx listing is
    applied as an empty snapshot.
    """

    def __init__(
        self,
        session: SessionStore,
        fetcher: OrderSnapshotFetcher,
        diff_engine: DiffEngine,
        coordinator: NotificationCoordinator,
        clock: Callable[[], float] = time.monotonic,
        notify_on_initial_load: bool = False,
    ) -> None:
        self.session = session
        self.fetcher = fetcher
        self.diff_engine = diff_engine
        self.coordinator = coordinator
        self.clock = clock
        self.notify_on_initial_load = notify_on_initial_load

        self.orders: Snapshot = []
        self.last_fetch: datetime | None = None
        self._accepted_started: float | None = None
        self._baseline_taken = False
        self._snapshot_listeners: list[Callable[[Snapshot], None]] = []
        self._status_listeners: list[Callable[[Order], None]] = []

    def add_snapshot_listener(self, listener: Callable[[Snapshot], None]) -> None:
        self._snapshot_listeners.append(listener)

    def add_status_listener(self, listener: Callable[[Order], None]) -> None:
        self._status_listeners.append(listener)

    def reset(self) -> None:
        self.orders = []
        self.last_fetch = None
        self._accepted_started = None
        self._baseline_taken = False
        self.diff_engine.reset()

    def _publish(self, listeners: list, value: object) -> None:
        for listener in list(listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("sync listener failed")

    def _replace(self, snapshot: Snapshot) -> None:
        self.orders = snapshot
        self._publish(self._snapshot_listeners, snapshot)

    async def poll(self) -> bool:
        """Run one cycle; return False when the backend could not be read."""
        token = self.session.current()
        if token is None:
            # Expired while polling: end the session so every component resets.
            logger.info("poll_skipped reason=no_session")
            self.session.logout()
            return False

        started = self.clock()
        try:
            result = await self.fetcher.fetch(token)
        except Unauthenticated:
            logger.info("poll_skipped reason=unauthenticated")
            return False

        if self.session.current() != token:
            # Logged out while the request was in flight.
            logger.info("poll_result_dropped reason=session_ended")
            return False

        if self._accepted_started is not None and started < self._accepted_started:
            logger.info("poll_result_dropped reason=stale started=%s", started)
            return True

        if result.error is not None:
            # Keep what is on screen; the next tick retries.
            return False

        self._accepted_started = started
        self.last_fetch = datetime.now(timezone.utc)

        if not self._baseline_taken and result.ok and not self.notify_on_initial_load:
            self.diff_engine.prime(result.orders)
            self._baseline_taken = True
            self._replace(result.orders)
            logger.info("poll_baseline orders=%d", len(result.orders))
            return True

        diff = self.diff_engine.diff(self.orders, result.orders)
        if diff.replace:
            self._replace(result.orders)
        self.coordinator.on_diff(diff)
        for order in diff.changed_orders:
            logger.info("order_status_changed order_id=%s status=%s", order.id, order.status)
            self._publish(self._status_listeners, order)
        # A degraded listing means zero active orders, not a failed poll.
        return True


class MessageWatcher:
    """Counts inbound customer messages not seen before and notifies once per poll."""

    def __init__(
        self,
        session: SessionStore,
        api: KitchenApiClient,
        coordinator: NotificationCoordinator,
        limit: int = 50,
    ) -> None:
        self.session = session
        self.api = api
        self.coordinator = coordinator
        self.limit = limit
        self._seen_ids: set[int] = set()
        self._baseline_taken = False

    def reset(self) -> None:
        self._seen_ids.clear()
        self._baseline_taken = False

    async def poll(self) -> bool:
        token = self.session.current()
        if token is None:
            return False
        try:
            records = await self.api.list_messages(token, limit=self.limit)
        except Unauthenticated:
            return False
        except (NetworkError, MalformedResponse, ApiError) as exc:
            logger.warning("message fetch failed: %s", exc)
            return False

        if self.session.current() != token:
            # Logged out while the request was in flight.
            logger.info("message_result_dropped reason=session_ended")
            return False

        inbound_ids: list[int] = []
        for record in records:
            try:
                message = Message.from_api(record)
            except (TypeError, ValueError) as exc:
                logger.warning("skipping unparseable message record: %s", exc)
                continue
            if message.is_inbound:
                inbound_ids.append(message.id)

        fresh = {message_id for message_id in inbound_ids if message_id not in self._seen_ids}
        self._seen_ids.update(inbound_ids)
        if not self._baseline_taken:
            self._baseline_taken = True
            return True
        if fresh:
            self.coordinator.notify_new_message(len(fresh))
        return True


def combine_polls(primary: Callable[[], Awaitable[bool]], *extra: Callable[[], Awaitable[bool]]):
    """Run several poll functions as one scheduler poll; the primary decides success."""

    async def poll() -> bool:
        ok = await primary()
        for fn in extra:
            try:
                await fn()
            except Exception:
                logger.exception("secondary poll failed")
        return ok

    return poll
