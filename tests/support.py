"""Fakes and record builders shared by the test modules."""

from __future__ import annotations

from typing import Any

import httpx

from kitchen.api import KitchenApiClient
from kitchen.desktop import DENIED, GRANTED

BASE_URL = "https://kitchen.test"


class FakeClock:
    """Manually advanced clock; callable like time.monotonic."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChime:
    def __init__(self) -> None:
        self.volumes: list[int] = []

    def play(self, volume: int) -> str:
        self.volumes.append(volume)
        return "recording"


class RecordingNotifier:
    def __init__(self, permission: str = GRANTED, grant_on_request: bool = True) -> None:
        self._permission = permission
        self.grant_on_request = grant_on_request
        self.sent: list[dict[str, Any]] = []

    @property
    def permission(self) -> str:
        return self._permission

    def request_permission(self) -> str:
        self._permission = GRANTED if self.grant_on_request else DENIED
        return self._permission

    def notify(self, title: str, body: str, tag: str, require_interaction: bool = False) -> bool:
        if self._permission != GRANTED:
            return False
        self.sent.append({"title": title, "body": body, "tag": tag})
        return True


class RecordingTitle:
    def __init__(self) -> None:
        self.titles: list[str] = []

    def set_title(self, title: str) -> None:
        self.titles.append(title)

    @property
    def current(self) -> str | None:
        return self.titles[-1] if self.titles else None


def order_record(
    order_id: int, status: str = "received", created_at: str = "2024-05-01T12:00:00Z", **extra: Any
) -> dict[str, Any]:
    record = {
        "id": order_id,
        "status": status,
        "created_at": created_at,
        "updated_at": created_at,
        "food_total": 12.5,
        "items": '[{"name": "Burger"}]',
        "drinks": "[]",
        "ingredients": ["lettuce", "tomato"],
        "quantity": 1,
        "size": "M",
        "order_source": "whatsapp",
        "profile_name": f"Customer {order_id}",
    }
    record.update(extra)
    return record


def make_api(handler, **kwargs: Any) -> KitchenApiClient:
    return KitchenApiClient(BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler), **kwargs)
