"""Runtime configuration defaults for polling, notifications and storage."""

from __future__ import annotations

import os


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


API_BASE_URL = _env_str("KITCHEN_API_URL", "https://backend.kblbites.com")
API_TIMEOUT_SECONDS = _env_float("KITCHEN_API_TIMEOUT", 15.0)

POLL_INTERVAL_SECONDS = _env_float("KITCHEN_POLL_INTERVAL", 60.0)
POLL_DEBOUNCE_SECONDS = _env_float("KITCHEN_POLL_DEBOUNCE", 2.0)
# Slower tick used once polls keep failing.
MAX_POLL_INTERVAL_SECONDS = _env_float("KITCHEN_MAX_POLL_INTERVAL", 60.0)
BACKOFF_AFTER_ERRORS = int(_env_float("KITCHEN_BACKOFF_AFTER_ERRORS", 3))
MAX_ORDERS = int(_env_float("KITCHEN_MAX_ORDERS", 50))

SESSION_TTL_SECONDS = _env_float("KITCHEN_SESSION_TTL", 24 * 60 * 60)
TOKEN_KEY = "kitchen_token"
TOKEN_ISSUED_AT_KEY = "kitchen_token_issued_at"
NOTIFICATION_SETTINGS_KEY = "notification-settings"
NOTIFICATION_PERMISSION_KEY = "notification-permission"

STORE_PATH = _env_str("KITCHEN_STORE_PATH", "data/kitchen.db")
SOUND_PATH = _env_str("KITCHEN_SOUND_PATH", "sounds/simple-notification.wav")
LOG_PATH = _env_str("KITCHEN_LOG_PATH", "/tmp/kitchen-display.log")

BASE_TITLE = _env_str("KITCHEN_BASE_TITLE", "KBL Bites Kitchen")
DEFAULT_SOUND_ENABLED = True
DEFAULT_VOLUME = 70
