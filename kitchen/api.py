"""Async client for the remote kitchen backend."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from kitchen.config import API_BASE_URL, API_TIMEOUT_SECONDS
from kitchen.errors import ApiError, MalformedResponse, NetworkError, Unauthenticated

logger = logging.getLogger(__name__)

_AUTH_FAILURE_CODES = {401, 403}


class KitchenApiClient:
    """
    Thin wrapper over the backend REST endpoints.

    Every request is bounded by `timeout`; httpx closes the underlying
    connection when it fires. A 401/403 from any call invokes
    `on_unauthenticated` so the UI can log the session out.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        on_unauthenticated: Callable[[], None] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.on_unauthenticated = on_unauthenticated
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> KitchenApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _notify_unauthenticated(self, response: httpx.Response) -> bool:
        if response.status_code not in _AUTH_FAILURE_CODES:
            return False
        logger.warning("backend rejected credential: HTTP %s", response.status_code)
        if self.on_unauthenticated is not None:
            try:
                self.on_unauthenticated()
            except Exception:
                logger.exception("unauthenticated hook failed")
        return True

    def _handle_auth_failure(self, response: httpx.Response) -> None:
        if self._notify_unauthenticated(response):
            raise Unauthenticated(f"backend returned HTTP {response.status_code}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{method} {url} timed out after {self.timeout}s") from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

    def _json_or_default(self, response: httpx.Response, default: Any) -> Any:
        try:
            return response.json()
        except ValueError:
            return default

    async def _checked(self, method: str, url: str, token: str, **kwargs: Any) -> httpx.Response:
        response = await self._request(method, url, headers=self._auth_headers(token), **kwargs)
        self._handle_auth_failure(response)
        if not response.is_success:
            raise ApiError(response.status_code, response.text[:200])
        return response

    async def login(self, api_key: str) -> str:
        """Exchange an API key for a bearer token."""
        api_key = (api_key or "").strip()
        if not api_key:
            raise Unauthenticated("API key is required")
        response = await self._request("POST", "/auth/login", headers={"x-api-key": api_key})
        if not response.is_success:
            logger.warning("login failed: HTTP %s", response.status_code)
            raise Unauthenticated("Invalid API key or authentication failed")
        data = self._json_or_default(response, None)
        token = None
        if isinstance(data, dict):
            token = data.get("token") or data.get("access_token")
        elif isinstance(data, str):
            token = data
        if not token:
            token = response.text.strip()
        if not token:
            raise MalformedResponse("No token received from server")
        return str(token)

    async def list_orders(
        self, token: str, limit: int, offset: int = 0, status: str | None = None
    ) -> httpx.Response:
        """Fetch the raw order listing; status codes are left to the caller."""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = status
        response = await self._request("GET", "/orders", params=params, headers=self._auth_headers(token))
        self._notify_unauthenticated(response)
        return response

    async def update_order_status(
        self,
        token: str,
        order_id: int,
        status: str,
        notify_customer: bool = True,
        custom_message: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"status": status, "notify_customer": notify_customer}
        if custom_message:
            body["custom_message"] = custom_message
        response = await self._checked("PUT", f"/orders/{order_id}/status", token, json=body)
        logger.info("order_status_updated order_id=%s status=%s", order_id, status)
        return self._json_or_default(response, {"success": True})

    async def bulk_update_status(
        self, token: str, from_status: str, to_status: str, notify_customers: bool = False
    ) -> dict[str, Any]:
        if not from_status or not to_status:
            raise ValueError("from_status and to_status are required")
        body = {"from_status": from_status, "to_status": to_status, "notify_customers": notify_customers}
        response = await self._checked("PUT", "/orders/bulk-update-status", token, json=body)
        return self._json_or_default(response, {"success": True})

    async def assign_rider(
        self,
        token: str,
        order_id: int,
        rider_name: str,
        rider_phone: str,
        notify_customer: bool = False,
    ) -> dict[str, Any]:
        body = {"rider_name": rider_name, "rider_phone": rider_phone, "notify_customer": notify_customer}
        response = await self._checked("PUT", f"/orders/{order_id}/rider", token, json=body)
        return self._json_or_default(response, {"success": True})

    async def list_messages(self, token: str, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        response = await self._checked(
            "GET", "/messages/", token, params={"limit": limit, "offset": offset}
        )
        data = self._json_or_default(response, None)
        if isinstance(data, dict) and isinstance(data.get("messages"), list):
            return data["messages"]
        if isinstance(data, list):
            return data
        raise MalformedResponse("unexpected messages payload")

    async def test_connection(self, token: str) -> bool:
        """Validate the token; False on transient backend trouble, raise on rejection."""
        try:
            response = await self._request(
                "GET", "/orders", params={"limit": 1}, headers=self._auth_headers(token)
            )
        except NetworkError as exc:
            logger.warning("token validation skipped: %s", exc)
            return False
        self._handle_auth_failure(response)
        if not response.is_success:
            logger.warning("token validation failed with status %s", response.status_code)
            return False
        return True
