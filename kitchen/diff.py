"""Snapshot comparison with a session-scoped record of seen order ids."""

from __future__ import annotations

from typing import Iterable

from kitchen.models import DiffResult, Order, Snapshot


def _render_key(order: Order) -> tuple:
    """Fields that change what an order card shows."""
    return (
        order.id,
        order.status,
        order.updated_at,
        order.total_amount,
        order.size,
        order.quantity,
        len(order.ingredients),
        order.items,
        order.drinks,
        order.source,
        order.payment_status,
        order.payment_method,
    )


def needs_replace(previous: Snapshot, next_snapshot: Snapshot) -> bool:
    """False only when both lists render identically, position by position."""
    if len(previous) != len(next_snapshot):
        return True
    return any(_render_key(old) != _render_key(new) for old, new in zip(previous, next_snapshot))


class DiffEngine:
    """
    Classifies a fresh snapshot against the previously accepted one.

    The seen-id set lives for one authenticated session: an order that drops
    out of a listing and comes back is never reported as new twice. Calling
    `diff` advances the set.
    """

    def __init__(self) -> None:
        self._seen_ids: set[int] = set()

    @property
    def seen_ids(self) -> frozenset[int]:
        return frozenset(self._seen_ids)

    def prime(self, snapshot: Iterable[Order]) -> None:
        """Mark orders as seen without reporting them."""
        self._seen_ids.update(order.id for order in snapshot)

    def reset(self) -> None:
        self._seen_ids.clear()

    def diff(self, previous: Snapshot, next_snapshot: Snapshot) -> DiffResult:
        previous_by_id = {order.id: order for order in previous}
        known_ids = self._seen_ids | previous_by_id.keys()

        new_orders: list[Order] = []
        changed_orders: list[Order] = []
        reported: set[int] = set()
        for order in next_snapshot:
            if order.id not in known_ids:
                # Duplicate ids inside one listing still count once.
                if order.id not in reported:
                    new_orders.append(order)
                    reported.add(order.id)
                continue
            before = previous_by_id.get(order.id)
            if before is not None and before.status != order.status:
                changed_orders.append(order)

        self._seen_ids.update(previous_by_id)
        self._seen_ids.update(order.id for order in next_snapshot)

        return DiffResult(
            replace=needs_replace(previous, next_snapshot),
            new_orders=new_orders,
            changed_orders=changed_orders,
        )
