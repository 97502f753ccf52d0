"""Desktop notifications gated by an explicit, persisted permission."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import Callable, Protocol, Sequence

from kitchen.config import NOTIFICATION_PERMISSION_KEY
from kitchen.errors import PermissionDenied
from kitchen.persistence import KeyValueStore

logger = logging.getLogger(__name__)

GRANTED = "granted"
DENIED = "denied"
DEFAULT = "default"

Runner = Callable[[Sequence[str]], None]


class PermissionBroker(Protocol):
    """Native notification channel with browser-style permission states."""

    @property
    def permission(self) -> str: ...

    def request_permission(self) -> str: ...

    def notify(self, title: str, body: str, tag: str, require_interaction: bool = False) -> bool: ...


def _run(argv: Sequence[str]) -> None:
    subprocess.run(list(argv), check=True, timeout=5, capture_output=True)


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def resolve_notifier_argv(title: str, body: str, tag: str, require_interaction: bool) -> list[str] | None:
    """Build a notifier command for this platform, or None when there is none."""
    if sys.platform == "darwin" and shutil.which("osascript"):
        script = f"display notification {_applescript_quote(body)} with title {_applescript_quote(title)}"
        return ["osascript", "-e", script]
    notify_send = shutil.which("notify-send")
    if notify_send:
        urgency = "critical" if require_interaction else "normal"
        # The synchronous hint lets the notification server replace rather than stack.
        return [
            notify_send,
            f"--urgency={urgency}",
            f"--hint=string:x-canonical-private-synchronous:{tag}",
            title,
            body,
        ]
    return None


class DesktopNotifier:
    """
    Sends OS notifications once the user has granted permission.

    `notify` never raises and is a silent no-op while permission is
    `default` or `denied`.
    """

    def __init__(
        self,
        store: KeyValueStore,
        runner: Runner = _run,
        resolver: Callable[..., list[str] | None] = resolve_notifier_argv,
    ) -> None:
        self.store = store
        self.runner = runner
        self.resolver = resolver

    @property
    def permission(self) -> str:
        value = self.store.get(NOTIFICATION_PERMISSION_KEY, DEFAULT)
        return value if value in {GRANTED, DENIED} else DEFAULT

    def request_permission(self) -> str:
        available = self.resolver("", "", "probe", False) is not None
        result = GRANTED if available else DENIED
        self.store.set(NOTIFICATION_PERMISSION_KEY, result)
        logger.info("notification_permission result=%s", result)
        return result

    def revoke(self) -> None:
        self.store.delete(NOTIFICATION_PERMISSION_KEY)

    def ensure_granted(self) -> None:
        if self.permission != GRANTED:
            raise PermissionDenied(f"desktop notifications are {self.permission}")

    def notify(self, title: str, body: str, tag: str, require_interaction: bool = False) -> bool:
        try:
            self.ensure_granted()
        except PermissionDenied:
            return False
        argv = self.resolver(title, body, tag, require_interaction)
        if argv is None:
            logger.info("no desktop notifier available; skipping %s", tag)
            return False
        try:
            self.runner(argv)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("desktop notification failed: %s", exc)
            return False
        return True
