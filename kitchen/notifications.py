"""Notification coordinator: one chime, one desktop alert, one counter bump per batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from kitchen.audio import ChimePlayer
from kitchen.config import BASE_TITLE
from kitchen.desktop import GRANTED, PermissionBroker
from kitchen.models import DiffResult, NotificationState
from kitchen.notification_settings import NotificationSettingsStore

logger = logging.getLogger(__name__)

ORDERS = "orders"
MESSAGES = "messages"

ORDER_TAG = "kitchen-orders"
MESSAGE_TAG = "kitchen-messages"


class TitleBadge(Protocol):
    def set_title(self, title: str) -> None: ...


class CallbackTitleBadge:
    """Title badge that forwards to a setter, e.g. a Textual app's `title`."""

    def __init__(self, setter: Callable[[str], None]) -> None:
        self.setter = setter
        self.title = ""

    def set_title(self, title: str) -> None:
        self.title = title
        self.setter(title)


def format_title(base_title: str, unseen_orders: int) -> str:
    if unseen_orders > 0:
        return f"({unseen_orders}) {base_title} - New Orders!"
    return base_title


def _plural(count: int, noun: str) -> str:
    return f"{count} new {noun}{'s' if count != 1 else ''}"


@dataclass(frozen=True)
class NotificationEvent:
    """One coordinated notification, as shown to listeners (toasts, logs)."""

    category: str
    count: int
    title: str
    body: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationCoordinator:
    """
    Fans a trigger out to the chime, the desktop notifier, the unread
    counters and the title badge.

    Counters are partitioned by category; acknowledging one never clears the
    other. Channel failures are logged and never reach the caller.
    """

    def __init__(
        self,
        settings: NotificationSettingsStore,
        chime: ChimePlayer,
        notifier: PermissionBroker,
        title_badge: TitleBadge,
        base_title: str = BASE_TITLE,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings
        self.chime = chime
        self.notifier = notifier
        self.title_badge = title_badge
        self.base_title = base_title
        self.clock = clock
        self.state = NotificationState()
        self._listeners: list[Callable[[NotificationEvent], None]] = []
        self._counter_listeners: list[Callable[[NotificationState], None]] = []

    def add_listener(self, listener: Callable[[NotificationEvent], None]) -> None:
        self._listeners.append(listener)

    def add_counter_listener(self, listener: Callable[[NotificationState], None]) -> None:
        self._counter_listeners.append(listener)

    @property
    def permission(self) -> str:
        return self.notifier.permission

    # Triggers

    def on_diff(self, result: DiffResult) -> None:
        if result.new_orders:
            self.notify_new_order(len(result.new_orders))

    def notify_new_order(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.state.unseen_orders += count
        self.state.last_order_check = self.clock()
        logger.info("notify_new_order count=%d unseen=%d", count, self.state.unseen_orders)
        self._emit(
            NotificationEvent(
                category=ORDERS,
                count=count,
                title="New Order Alert!",
                body=f"{_plural(count, 'order')} received - Check the kitchen!",
            ),
            tag=ORDER_TAG,
        )

    def notify_new_message(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.state.unseen_messages += count
        self.state.last_message_check = self.clock()
        logger.info("notify_new_message count=%d unseen=%d", count, self.state.unseen_messages)
        self._emit(
            NotificationEvent(
                category=MESSAGES,
                count=count,
                title="New Message Alert!",
                body=f"{_plural(count, 'message')} received",
            ),
            tag=MESSAGE_TAG,
        )

    def _emit(self, event: NotificationEvent, tag: str) -> None:
        self.play_chime()
        self._desktop_notify(event.title, event.body, tag)
        self._update_title()
        self._publish_counters()
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("notification listener failed")

    # Channels

    def play_chime(self) -> str | None:
        """Play the chime if sound is enabled; settings are read at play time."""
        try:
            settings = self.settings.load()
        except Exception:
            logger.exception("could not read notification settings")
            return None
        if not settings.sound_enabled:
            return None
        try:
            return self.chime.play(settings.volume)
        except Exception:
            logger.exception("chime playback failed")
            return None

    def test_sound(self) -> str | None:
        return self.play_chime()

    def _desktop_notify(self, title: str, body: str, tag: str) -> bool:
        try:
            return self.notifier.notify(title, body, tag=tag, require_interaction=False)
        except Exception:
            logger.exception("desktop notification failed")
            return False

    def request_permission(self) -> str:
        """Ask for notification permission; confirm with one notification when granted."""
        try:
            result = self.notifier.request_permission()
        except Exception:
            logger.exception("notification permission request failed")
            return self.notifier.permission
        if result == GRANTED:
            self._desktop_notify(
                "Notifications enabled",
                "You will be alerted when new orders arrive.",
                ORDER_TAG,
            )
        return result

    def _update_title(self) -> None:
        try:
            self.title_badge.set_title(format_title(self.base_title, self.state.unseen_orders))
        except Exception:
            logger.exception("title badge update failed")

    def _publish_counters(self) -> None:
        for listener in list(self._counter_listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("counter listener failed")

    # Acknowledgement

    def mark_orders_read(self) -> None:
        self.state.unseen_orders = 0
        self._acknowledged()

    def mark_messages_read(self) -> None:
        self.state.unseen_messages = 0
        self._acknowledged()

    def mark_all_read(self) -> None:
        self.state.unseen_orders = 0
        self.state.unseen_messages = 0
        self._acknowledged()

    def _acknowledged(self) -> None:
        self._update_title()
        self._publish_counters()

    def reset(self) -> None:
        """Start a clean state for a new session."""
        self.state = NotificationState()
        self._acknowledged()
