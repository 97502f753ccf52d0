"""Failure taxonomy for the order sync and notification core."""

from __future__ import annotations


class KitchenError(Exception):
    """Base class for every error raised by the kitchen display."""


class Unauthenticated(KitchenError):
    """No credential, an expired one, or the backend rejected it (401/403)."""


class NetworkError(KitchenError):
    """Timeout, DNS failure, refused connection."""


class MalformedResponse(KitchenError):
    """A 2xx response whose body is not the expected shape."""


class ApiError(KitchenError):
    """Non-2xx response from a mutating backend call."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")
        self.status_code = status_code
        self.detail = detail


class PermissionDenied(KitchenError):
    """Desktop notifications are not permitted."""


class AudioUnavailable(KitchenError):
    """A chime strategy could not produce sound."""
