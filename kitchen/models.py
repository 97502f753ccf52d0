"""Domain models for the kitchen display."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class OrderStatus:
    """Status values used by the kitchen backend."""

    RECEIVED = "received"
    ACKNOWLEDGED = "acknowledged"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    ALL = (RECEIVED, ACKNOWLEDGED, PREPARING, READY, OUT_FOR_DELIVERY, DELIVERED, CANCELLED)


TERMINAL_STATUSES: frozenset[str] = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

NEXT_STATUS: dict[str, str] = {
    OrderStatus.RECEIVED: OrderStatus.ACKNOWLEDGED,
    OrderStatus.ACKNOWLEDGED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EMPTY_PAYLOADS = {"", "null", "undefined"}


def parse_timestamp(value: Any) -> datetime:
    """Parse a backend timestamp into an aware UTC datetime (epoch when unusable)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
    else:
        return _EPOCH
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _as_ingredients(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    return ()


def _as_payload(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Order:
    """One order as listed by the backend."""

    id: int
    status: str
    created_at: str = ""
    updated_at: str = ""
    total_amount: float = 0.0
    items: str | None = None
    drinks: str | None = None
    ingredients: tuple[str, ...] = ()
    quantity: int = 0
    size: str = ""
    source: str | None = None
    customer_name: str = ""
    wa_id: str = ""
    delivery_info: str = ""
    spice_level: str = ""
    sauce: str = ""
    payment_method: str | None = None
    payment_status: str | None = None

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> Order:
        """Build an order from a backend record; raise ValueError without a usable id."""
        if not isinstance(record, dict):
            raise ValueError(f"order record must be an object, got {type(record).__name__}")
        raw_id = record.get("id")
        if isinstance(raw_id, bool) or raw_id is None:
            raise ValueError(f"order record has no id: {record!r}")
        try:
            order_id = int(raw_id)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"order id is not an integer: {raw_id!r}") from exc

        return cls(
            id=order_id,
            status=str(record.get("status") or "").strip().lower(),
            created_at=str(record.get("created_at") or ""),
            updated_at=str(record.get("updated_at") or ""),
            total_amount=_as_float(record.get("food_total", record.get("total_amount"))),
            items=_as_payload(record.get("items")),
            drinks=_as_payload(record.get("drinks")),
            ingredients=_as_ingredients(record.get("ingredients")),
            quantity=_as_int(record.get("quantity")),
            size=str(record.get("size") or ""),
            source=_as_optional_str(record.get("order_source", record.get("source"))),
            customer_name=str(record.get("profile_name") or ""),
            wa_id=str(record.get("wa_id") or ""),
            delivery_info=str(record.get("delivery_info") or ""),
            spice_level=str(record.get("spice_level") or ""),
            sauce=str(record.get("sauce") or ""),
            payment_method=_as_optional_str(record.get("payment_method")),
            payment_status=_as_optional_str(record.get("payment_status")),
        )

    @property
    def has_items(self) -> bool:
        """True when the order carries a parsed items payload."""
        return self.items is not None and self.items.strip() not in _EMPTY_PAYLOADS

    @property
    def is_active(self) -> bool:
        return bool(self.status) and self.status not in TERMINAL_STATUSES

    @property
    def created(self) -> datetime:
        return parse_timestamp(self.created_at)


Snapshot = list[Order]


@dataclass(frozen=True)
class DiffResult:
    """Outcome of comparing two snapshots."""

    replace: bool
    new_orders: list[Order] = field(default_factory=list)
    changed_orders: list[Order] = field(default_factory=list)


@dataclass
class NotificationState:
    """Unread counters partitioned by category."""

    unseen_orders: int = 0
    unseen_messages: int = 0
    last_order_check: datetime | None = None
    last_message_check: datetime | None = None

    @property
    def total(self) -> int:
        return self.unseen_orders + self.unseen_messages


@dataclass(frozen=True)
class NotificationSettings:
    """Sound preferences for the chime."""

    sound_enabled: bool = True
    volume: int = 70

    def __post_init__(self) -> None:
        object.__setattr__(self, "volume", clamp_volume(self.volume))


def clamp_volume(volume: Any) -> int:
    return max(0, min(100, _as_int(volume, 70)))


@dataclass(frozen=True)
class Session:
    """A bearer credential and when it was issued."""

    token: str
    issued_at_millis: int


@dataclass(frozen=True)
class Message:
    """A customer message as listed by the backend."""

    id: int
    wa_id: str = ""
    customer_name: str = ""
    body: str = ""
    direction: str = "inbound"
    is_order: bool = False
    created_at: str = ""

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> Message:
        if not isinstance(record, dict) or record.get("id") is None:
            raise ValueError(f"message record has no id: {record!r}")
        return cls(
            id=int(record["id"]),
            wa_id=str(record.get("wa_id") or ""),
            customer_name=str(record.get("profile_name") or ""),
            body=str(record.get("body") or ""),
            direction=str(record.get("direction") or "inbound"),
            is_order=bool(record.get("is_order", False)),
            created_at=str(record.get("created_at") or ""),
        )

    @property
    def is_inbound(self) -> bool:
        return self.direction != "outbound"
