"""Entry point for the kitchen display Textual app."""

from __future__ import annotations

from kitchen.kitchen_app import KitchenDisplayApp
from kitchen.logs import configure_logging


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    KitchenDisplayApp().run()


if __name__ == "__main__":
    main()
