"""Rendering helpers for order rows and the live indicator."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text

from kitchen.models import NotificationState, Order, OrderStatus

_STATUS_STYLES: dict[str, str] = {
    OrderStatus.RECEIVED: "bold #ffffff on #b23a48",
    OrderStatus.ACKNOWLEDGED: "bold #0b1f0f on #e0b341",
    OrderStatus.PREPARING: "bold #ffffff on #2f6db5",
    OrderStatus.READY: "bold #0b1f0f on #5fbf72",
    OrderStatus.OUT_FOR_DELIVERY: "bold #ffffff on #6b4fb5",
}


def status_style(status: str) -> str:
    """Return a consistent badge style for an order status."""
    return _STATUS_STYLES.get(status, "bold #ffffff on #555555")


def status_label(status: str) -> str:
    return status.replace("_", " ").upper()


def format_order_label(order: Order) -> Text:
    """Render an order row: id, status badge, customer and total."""
    text = Text()
    text.append(f"#{order.id} ")
    text.append(f" {status_label(order.status)} ", style=status_style(order.status))
    name = order.customer_name or order.wa_id or "Customer"
    text.append(f" {name}")
    if order.quantity:
        size = f" {order.size}" if order.size else ""
        text.append(f"  {order.quantity}x{size}", style="dim")
    text.append(f"  {order.total_amount:.2f}", style="bold")
    if not order.has_items:
        text.append("  (incomplete)", style="italic dim")
    return text


def format_order_details(order: Order) -> Text:
    text = Text()
    if order.ingredients:
        text.append(", ".join(order.ingredients))
    extras = [part for part in (order.spice_level, order.sauce) if part]
    if extras:
        if order.ingredients:
            text.append("  ")
        text.append(" / ".join(extras), style="dim")
    return text


def time_since(moment: datetime | None, now: datetime | None = None) -> str:
    """`12s ago` under a minute, `3m ago` after."""
    if moment is None:
        return "never"
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - moment).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    return f"{seconds // 60}m ago"


def format_indicator(is_polling: bool, last_fetch: datetime | None, now: datetime | None = None) -> Text:
    text = Text()
    if is_polling:
        text.append(" Live ", style="bold #ffffff on #2e8b57")
    else:
        text.append(" Connected ", style="bold #ffffff on #2f6db5")
    text.append(f"  updated {time_since(last_fetch, now)}", style="dim")
    return text


def format_counters(state: NotificationState) -> Text:
    text = Text()
    text.append(f"Orders {state.unseen_orders}", style="bold #ffffff on #b23a48" if state.unseen_orders else "dim")
    text.append("  ")
    text.append(
        f"Messages {state.unseen_messages}",
        style="bold #0b1f0f on #5fbf72" if state.unseen_messages else "dim",
    )
    return text
