"""
Async REST client for the Hande backend.

* Injects ``Authorization: Bearer <token>`` from the ``TokenStore``.
* A 401 clears the stored token before the error propagates.
* Non-2xx responses raise ``ApiError`` carrying the backend's ``message``.
* ``request_as`` validates the JSON body against a pydantic type and raises
  ``DecodeError`` when the backend's shape drifts.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .token_store import TokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """Raised for any failed backend call (HTTP status or transport)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DecodeError(ApiError):
    """Raised when a response body does not match the expected schema."""


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_store: TokenStore,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_store = token_store
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        headers = {}
        token = self.token_store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(
                method, path.lstrip("/"), json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise ApiError(f"Network error: {exc}") from exc

        if response.status_code == 401:
            logger.info("Token rejected by backend, clearing it")
            self.token_store.clear()

        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError("Response is not JSON", response.status_code) from exc

    async def request_as(self, type_: type[T], method: str, path: str, **kwargs) -> T:
        data = await self.request(method, path, **kwargs)
        try:
            return TypeAdapter(type_).validate_python(data)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected {method} {path} payload: {exc}") from exc

    async def get(self, type_: type[T], path: str, **kwargs) -> T:
        return await self.request_as(type_, "GET", path, **kwargs)

    async def post(self, type_: type[T], path: str, **kwargs) -> T:
        return await self.request_as(type_, "POST", path, **kwargs)

    async def put(self, type_: type[T], path: str, **kwargs) -> T:
        return await self.request_as(type_, "PUT", path, **kwargs)

    async def send(self, method: str, path: str, **kwargs) -> None:
        """Fire a call whose response body is ignored."""
        await self.request(method, path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = body["message"]
        # NestJS validation errors arrive as a list of strings
        if isinstance(message, list):
            return "; ".join(str(m) for m in message)
        return str(message)
    return f"Request failed with status {response.status_code}"
