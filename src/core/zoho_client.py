"""
Zoho CRM HTTP client with lazy initialization.
"""

import logging
from typing import Any

import httpx

from core.config import ZOHO_API_VERSION, ZOHO_TIMEOUT_SECONDS
from core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared HTTP client (lazy initialization)."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=ZOHO_TIMEOUT_SECONDS)
    return _http_client


async def close_http_client() -> None:
    """Close the shared HTTP client; the next call creates a new one."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def _response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _json_body(response: httpx.Response, method: str, path: str) -> dict:
    """Decoded JSON object of a 2xx reply; anything else is an upstream failure."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        logger.error(
            "Zoho %s %s returned an unreadable body (%s): %.200s",
            method, path, response.status_code, response.text,
        )
        raise UpstreamUnavailable(
            "Zoho returned an unreadable response",
            upstream_status=response.status_code,
            payload=response.text,
        )
    return body


class ZohoClient:
    """Thin authenticated wrapper over the CRM REST API of one session."""

    def __init__(self, access_token: str, api_domain: str):
        self.access_token = access_token
        self.api_domain = api_domain.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.api_domain}/crm/{ZOHO_API_VERSION}/{path.lstrip('/')}"

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Zoho-oauthtoken {self.access_token}"}

    async def get(self, path: str, params: dict | None = None) -> list[dict]:
        """GET a module path and return its ``data`` list.

        Zoho answers an empty result with 204 and no body.

        Raises:
            UpstreamUnavailable: on transport errors, non-2xx responses or a
                body that is not a JSON object
        """
        client = get_http_client()
        try:
            response = await client.get(self.url(path), headers=self.headers, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Zoho request failed: {exc}") from exc

        if response.status_code == 204:
            return []
        if response.is_error:
            payload = _response_payload(response)
            logger.error("Zoho GET %s failed (%s): %s", path, response.status_code, payload)
            raise UpstreamUnavailable(
                f"Zoho request failed with status {response.status_code}",
                upstream_status=response.status_code,
                payload=payload,
            )
        data = _json_body(response, "GET", path).get("data")
        return data if isinstance(data, list) else []

    async def post(self, path: str, json: dict) -> dict:
        """POST to a module path and return the decoded body."""
        client = get_http_client()
        try:
            response = await client.post(self.url(path), headers=self.headers, json=json)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Zoho request failed: {exc}") from exc

        if response.is_error:
            payload = _response_payload(response)
            logger.error("Zoho POST %s failed (%s): %s", path, response.status_code, payload)
            raise UpstreamUnavailable(
                f"Zoho request failed with status {response.status_code}",
                upstream_status=response.status_code,
                payload=payload,
            )
        return _json_body(response, "POST", path)
