"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Header, Static

from kitchen.api import KitchenApiClient
from kitchen.config import BASE_TITLE
from kitchen.errors import ApiError, KitchenError, NetworkError, Unauthenticated
from kitchen.login_modal import LoginModal
from kitchen.models import NotificationState, Order, Snapshot
from kitchen.notifications import NotificationEvent
from kitchen.persistence import SqliteKeyValueStore
from kitchen.rendering import format_counters, format_indicator, format_order_details, format_order_label
from kitchen.services import KitchenServices, build_services
from kitchen.status_modal import StatusModal

logger = logging.getLogger(__name__)

_TOKEN_CHECK_SECONDS = 5 * 60


class KitchenDisplayApp(App):
    """A Textual dashboard that keeps the kitchen's active orders in sync."""

    TITLE = BASE_TITLE
    SUB_TITLE = "Active Orders"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #side-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #indicator, #counters, #sound {
        margin-bottom: 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #help {
        color: $text-muted;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    order_selected_index = reactive(None)

    BINDINGS = [
        ("r", "refresh", "Refresh"),
        ("j", "move_selection(1)", "Next order"),
        ("k", "move_selection(-1)", "Previous order"),
        ("down", "move_selection(1)", "Next order"),
        ("up", "move_selection(-1)", "Previous order"),
        ("enter", "update_status", "Update status"),
        ("o", "mark_orders_read", "Orders read"),
        ("m", "mark_messages_read", "Messages read"),
        ("a", "mark_all_read", "All read"),
        ("p", "request_permission", "Desktop alerts"),
        ("s", "toggle_sound", "Sound on/off"),
        ("plus", "change_volume(5)", "Volume +"),
        ("minus", "change_volume(-5)", "Volume -"),
        ("t", "test_sound", "Test sound"),
        Binding("ctrl+l", "logout", "Logout", priority=True),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, services: KitchenServices | None = None) -> None:
        super().__init__()
        if services is None:
            services = build_services(
                SqliteKeyValueStore(),
                KitchenApiClient(),
                title_setter=self._set_title,
                bell=self.bell,
            )
        self.services = services
        self.system_status = ""
        self._token_timer = None

        services.synchronizer.add_snapshot_listener(self._on_snapshot)
        services.coordinator.add_listener(self._on_notification)
        services.coordinator.add_counter_listener(self._on_counters)
        services.scheduler.add_state_listener(self._on_polling_state)
        services.session.add_logout_listener(self._on_logout)

    def _set_title(self, title: str) -> None:
        self.title = title

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Active Orders", classes="pane-title")
                yield Static("(no active orders)", id="orders-list")
            with Vertical(id="side-pane"):
                yield Static(id="indicator")
                yield Static(id="counters")
                yield Static(id="sound")
                yield Static(id="system-status")
                yield Static(
                    "R refresh  Enter status  O/M/A mark read\n"
                    "S sound  +/- volume  T test  P desktop alerts\n"
                    "Ctrl+L logout  Ctrl+Q quit",
                    id="help",
                )

    def on_mount(self) -> None:
        self.set_interval(1, self._refresh_indicator)
        self._refresh_all()
        if self.services.session.is_authenticated:
            self._start_session()
        else:
            self._prompt_login()

    async def on_unmount(self) -> None:
        self.services.scheduler.stop()
        await self.services.api.aclose()

    # Session

    def _prompt_login(self, error: str = "") -> None:
        if isinstance(self.screen, LoginModal):
            return
        self.push_screen(LoginModal(error), callback=self._on_login_submitted)

    def _on_login_submitted(self, api_key: str | None) -> None:
        if api_key is None:
            self.exit()
            return
        self.run_worker(self._login(api_key), exclusive=True, group="login")

    async def _login(self, api_key: str) -> None:
        try:
            token = await self.services.api.login(api_key)
            self.services.session.login(token)
        except KitchenError as exc:
            logger.warning("login failed: %s", exc)
            self._prompt_login(str(exc) or "Login failed")
            return
        self._start_session()

    def _start_session(self) -> None:
        self.system_status = "Signed in"
        self.services.scheduler.start()
        if self._token_timer is None:
            self._token_timer = self.set_interval(_TOKEN_CHECK_SECONDS, self._schedule_token_check)
        self._refresh_all()

    def _schedule_token_check(self) -> None:
        self.run_worker(self._validate_token(), exclusive=True, group="token")

    async def _validate_token(self) -> None:
        token = self.services.session.current()
        if token is None:
            self.services.session.logout()
            return
        try:
            await self.services.api.test_connection(token)
        except Unauthenticated:
            logger.info("token rejected during validation")

    def _on_logout(self) -> None:
        if self._token_timer is not None:
            self._token_timer.stop()
            self._token_timer = None
        self.order_selected_index = None
        self.system_status = "Signed out"
        self._refresh_all()
        self._prompt_login()

    def action_logout(self) -> None:
        self.services.session.logout()

    # Listeners

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self._refresh_orders()

    def _on_notification(self, event: NotificationEvent) -> None:
        self.notify(event.body, title=event.title)

    def _on_counters(self, state: NotificationState) -> None:
        self._refresh_counters()

    def _on_polling_state(self, is_polling: bool) -> None:
        self._refresh_indicator()

    # Actions

    def _modal_open(self) -> bool:
        return isinstance(self.screen, (LoginModal, StatusModal))

    def action_refresh(self) -> None:
        if self._modal_open():
            return
        self.run_worker(self.services.scheduler.refresh_now(), group="poll")

    def action_move_selection(self, delta: int) -> None:
        if self._modal_open():
            return
        orders = self.services.synchronizer.orders
        if not orders:
            return
        if self.order_selected_index is None:
            self.order_selected_index = 0 if delta > 0 else len(orders) - 1
        else:
            self.order_selected_index = (self.order_selected_index + delta) % len(orders)
        self._refresh_orders()

    def action_update_status(self) -> None:
        if self._modal_open():
            return
        order = self._selected_order()
        if order is None:
            return

        def apply(status: str | None) -> None:
            if status is None:
                return
            self.run_worker(self._apply_status(order, status), group="status")

        self.push_screen(StatusModal(order), callback=apply)

    async def _apply_status(self, order: Order, status: str) -> None:
        token = self.services.session.current()
        if token is None:
            self.services.session.logout()
            return
        try:
            await self.services.api.update_order_status(token, order.id, status)
        except Unauthenticated:
            self.notify("Authentication failed. Please log in again.", severity="error")
            return
        except (ApiError, NetworkError) as exc:
            logger.warning("status update failed order_id=%s: %s", order.id, exc)
            self.notify(f"Failed to update order #{order.id}", severity="error")
            return
        self.notify(f"Order #{order.id} updated to {status}")
        await self.services.scheduler.refresh_now()

    def action_mark_orders_read(self) -> None:
        if self._modal_open():
            return
        self.services.coordinator.mark_orders_read()

    def action_mark_messages_read(self) -> None:
        if self._modal_open():
            return
        self.services.coordinator.mark_messages_read()

    def action_mark_all_read(self) -> None:
        if self._modal_open():
            return
        self.services.coordinator.mark_all_read()

    def action_request_permission(self) -> None:
        if self._modal_open():
            return
        result = self.services.coordinator.request_permission()
        self.system_status = f"Desktop alerts: {result}"
        self._refresh_status()

    def action_toggle_sound(self) -> None:
        if self._modal_open():
            return
        self.services.settings.toggle_sound()
        self._refresh_sound()

    def action_change_volume(self, delta: int) -> None:
        if self._modal_open():
            return
        current = self.services.settings.load()
        self.services.settings.set_volume(current.volume + delta)
        self._refresh_sound()

    def action_test_sound(self) -> None:
        if self._modal_open():
            return
        played = self.services.coordinator.test_sound()
        self.system_status = f"Test sound: {played or 'muted or unavailable'}"
        self._refresh_status()

    # Rendering

    def _selected_order(self) -> Order | None:
        orders = self.services.synchronizer.orders
        if self.order_selected_index is None:
            return None
        if not (0 <= self.order_selected_index < len(orders)):
            return None
        return orders[self.order_selected_index]

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_indicator()
        self._refresh_counters()
        self._refresh_sound()
        self._refresh_status()

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
        except NoMatches:
            return
        orders = self.services.synchronizer.orders
        if not orders:
            self.order_selected_index = None
            orders_widget.update("(no active orders)")
            return

        if self.order_selected_index is not None and self.order_selected_index >= len(orders):
            self.order_selected_index = len(orders) - 1

        # Each order takes a label line and a details line.
        visible_orders = max(1, self._visible_rows(orders_widget) // 2)
        start, end = self._window_bounds(len(orders), visible_orders, self.order_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.order_selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_order_label(orders[idx]))
            details = format_order_details(orders[idx])
            if details.plain:
                lines.append("\n    ")
                lines.append_text(details)

        if end < len(orders):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)

    def _refresh_indicator(self) -> None:
        try:
            widget = self.query_one("#indicator", Static)
        except NoMatches:
            return
        widget.update(
            format_indicator(self.services.scheduler.is_polling, self.services.synchronizer.last_fetch)
        )

    def _refresh_counters(self) -> None:
        try:
            widget = self.query_one("#counters", Static)
        except NoMatches:
            return
        widget.update(format_counters(self.services.coordinator.state))

    def _refresh_sound(self) -> None:
        try:
            widget = self.query_one("#sound", Static)
        except NoMatches:
            return
        settings = self.services.settings.load()
        state = f"on, volume {settings.volume}%" if settings.sound_enabled else "off"
        widget.update(f"Sound: {state}  Desktop alerts: {self.services.coordinator.permission}")

    def _refresh_status(self) -> None:
        try:
            widget = self.query_one("#system-status", Static)
        except NoMatches:
            return
        widget.update(self.system_status or "Ready")
