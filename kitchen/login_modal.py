"""API key entry modal shown while no session is active."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static


class LoginModal(ModalScreen[str | None]):
    """Prompt for the kitchen API key; dismisses with the key or None."""

    CSS = """
    LoginModal {
        align: center middle;
        background: $background 60%;
    }

    #login-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #login-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #login-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #login-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #login-help {
        color: #dddddd;
    }
    """

    def __init__(self, error: str = "") -> None:
        super().__init__()
        self.value = ""
        self.error = error

    def compose(self) -> ComposeResult:
        with Container(id="login-dialog"):
            yield Static("Kitchen Login", id="login-title")
            yield Static(id="login-value")
            yield Static(id="login-error")
            yield Static("Type the API key. Enter confirm. Backspace delete. Esc quit.", id="login-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        if not self.value.strip():
            self.error = "Please enter an API key."
            self._refresh_content()
            return
        self.dismiss(self.value.strip())

    def _refresh_content(self) -> None:
        self.query_one("#login-value", Static).update("*" * len(self.value))
        self.query_one("#login-error", Static).update(self.error or "")
