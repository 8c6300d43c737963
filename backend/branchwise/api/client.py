# Overview: HTTP client for the Laravel back office; turns transport and HTTP failures into ProviderError.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import ProviderError


logger = logging.getLogger(__name__)


class LaravelClient:
    """
    Thin JSON client over httpx.

    Every call either returns the decoded JSON body or raises ProviderError
    carrying the back office's `message` (Laravel puts user-facing text
    there for both business and validation failures).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def get(self, path: str, params: Optional[Dict] = None) -> Any:
        return self._request("GET", path, params=params)

    def get_or_none(self, path: str, params: Optional[Dict] = None) -> Any:
        """GET where 404 means 'nothing there' rather than an error."""
        return self._request("GET", path, params=params, missing_ok=True)

    def post(self, path: str, json: Optional[Dict] = None, headers: Optional[Dict] = None) -> Any:
        return self._request("POST", path, json=json, headers=headers)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict] = None,
        json: Optional[Dict] = None,
        headers: Optional[Dict] = None,
        missing_ok: bool = False,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        try:
            response = self.client.request(method, path, params=params, json=json, headers=headers)
        except httpx.RequestError as exc:
            logger.error("Back office unreachable: %s %s (%s)", method, path, exc)
            raise ProviderError()

        if missing_ok and response.status_code == 404:
            logger.debug("Back office has nothing at %s %s", method, path)
            return None

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "Back office error: %s %s -> %s %s",
                method, path, response.status_code, message,
            )
            raise ProviderError(message, provider_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.error("Back office returned non-JSON body: %s %s", method, path)
            raise ProviderError("Unexpected response from server")


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    if body.get("message"):
        return str(body["message"])
    errors = body.get("errors")
    if isinstance(errors, dict):
        for messages in errors.values():
            if messages:
                return str(messages[0] if isinstance(messages, list) else messages)
    return None


def unwrap_list(body: Any) -> list:
    """Laravel returns either a bare array or a paginator with `data`."""
    if body is None:
        return []
    if isinstance(body, list):
        return body
    return list(body.get("data") or [])
