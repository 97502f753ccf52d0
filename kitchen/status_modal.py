"""Modal for moving one order to another status."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from kitchen.models import NEXT_STATUS, Order, OrderStatus
from kitchen.rendering import format_order_details, format_order_label, status_label, status_style


def status_choices(order: Order) -> list[str]:
    """Next forward status first, then cancellation, then every other status."""
    choices: list[str] = []
    forward = NEXT_STATUS.get(order.status)
    if forward:
        choices.append(forward)
    if order.status != OrderStatus.CANCELLED:
        choices.append(OrderStatus.CANCELLED)
    for status in OrderStatus.ALL:
        if status != order.status and status not in choices:
            choices.append(status)
    return choices


class StatusModal(ModalScreen[str | None]):
    """Pick a new status for the order; dismisses with the status or None."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "choose", "Apply"),
    ]

    CSS = """
    StatusModal {
        align: center middle;
        background: $background 60%;
    }

    #status-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #status-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #status-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, order: Order) -> None:
        super().__init__()
        self.order = order
        self.choices = status_choices(order)

    def compose(self) -> ComposeResult:
        with Container(id="status-dialog"):
            yield Static(f"Update order #{self.order.id}", id="status-title")
            yield Static(id="status-body")
            yield Static("J/K/↑/↓ move, Enter apply, Esc/q close", id="status-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if not self.choices:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.choices)
        self._refresh_content()

    def action_choose(self) -> None:
        if not self.choices:
            self.dismiss(None)
            return
        self.dismiss(self.choices[self.cursor_index])

    def _refresh_content(self) -> None:
        content = Text(style="white")
        content.append_text(format_order_label(self.order))
        details = format_order_details(self.order)
        if details.plain:
            content.append("\n")
            content.append_text(details)
        content.append("\n")
        for idx, status in enumerate(self.choices):
            content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            content.append(pointer)
            content.append(f" {status_label(status)} ", style=status_style(status))
        self.query_one("#status-body", Static).update(content)
