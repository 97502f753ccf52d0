"""One authenticated fetch of the active order snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from kitchen.api import KitchenApiClient
from kitchen.config import MAX_ORDERS
from kitchen.errors import KitchenError, MalformedResponse, NetworkError, Unauthenticated
from kitchen.models import Order, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """
    Snapshot plus the failure that produced it, if any.

    `orders` is always a usable snapshot. `error` is set for timeouts and
    transport failures (`NetworkError`) and unparseable bodies
    (`MalformedResponse`), so callers can tell "zero active orders" apart
    from "could not ask". A non-2xx answer is the backend's degraded empty
    listing: no error, but `degraded` is set.
    """

    orders: Snapshot = field(default_factory=list)
    error: KitchenError | None = None
    degraded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.degraded


def extract_order_records(payload: Any) -> list[Any]:
    """Normalise `{orders: [...]}`, a bare list, or anything else into a record list."""
    if isinstance(payload, dict) and isinstance(payload.get("orders"), list):
        return payload["orders"]
    if isinstance(payload, list):
        return payload
    raise MalformedResponse(f"unrecognised order listing shape: {type(payload).__name__}")


def parse_orders(records: Iterable[Any]) -> list[Order]:
    orders: list[Order] = []
    for record in records:
        try:
            orders.append(Order.from_api(record))
        except ValueError as exc:
            logger.warning("skipping unparseable order record: %s", exc)
    return orders


def active_snapshot(orders: Iterable[Order]) -> Snapshot:
    """Keep non-terminal orders; complete payloads first, then newest first."""
    active = [order for order in orders if order.is_active]
    # Two stable passes: newest first, then partition by completeness.
    active.sort(key=lambda order: order.created, reverse=True)
    active.sort(key=lambda order: 0 if order.has_items else 1)
    return active


class OrderSnapshotFetcher:
    """Fetches, normalises, filters and sorts the order listing."""

    def __init__(self, api: KitchenApiClient, max_orders: int = MAX_ORDERS) -> None:
        self.api = api
        self.max_orders = max_orders

    async def fetch(self, credential: str | None) -> FetchResult:
        if not credential:
            raise Unauthenticated("no credential available for order fetch")

        try:
            response = await self.api.list_orders(credential, limit=self.max_orders)
        except NetworkError as exc:
            logger.warning("order fetch failed: %s", exc)
            return FetchResult([], exc)

        if not response.is_success:
            logger.warning("order fetch returned HTTP %s; showing no active orders", response.status_code)
            return FetchResult([], None, degraded=True)

        try:
            records = extract_order_records(response.json())
        except ValueError:
            logger.warning("order fetch returned a non-JSON body")
            return FetchResult([], MalformedResponse("order listing is not JSON"))
        except MalformedResponse as exc:
            logger.warning("order fetch returned an unexpected body: %s", exc)
            return FetchResult([], exc)

        snapshot = active_snapshot(parse_orders(records))
        logger.info("order_fetch records=%d active=%d", len(records), len(snapshot))
        return FetchResult(snapshot, None)
