"""
Zoho OAuth 2.0 calls: authorization URL, code exchange, refresh, revocation.

Zoho takes these parameters on the query string of a POST and, on failure,
often answers 200 with an ``error`` field in the body, so both a non-2xx
status and an ``error`` body count as failures.
"""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from core.config import (
    ZOHO_ACCOUNTS_URL,
    ZOHO_CLIENT_ID,
    ZOHO_CLIENT_SECRET,
    ZOHO_REDIRECT_URI,
    ZOHO_SCOPE,
)
from core.errors import TokenExchangeError
from core.zoho_client import get_http_client

logger = logging.getLogger(__name__)

TOKEN_URL = f"{ZOHO_ACCOUNTS_URL}/oauth/v2/token"
REVOKE_URL = f"{ZOHO_ACCOUNTS_URL}/oauth/v2/token/revoke"
AUTH_URL = f"{ZOHO_ACCOUNTS_URL}/oauth/v2/auth"


def build_authorization_url() -> str:
    """URL the browser is sent to for the authorization-code grant."""
    params = {
        "scope": ZOHO_SCOPE,
        "client_id": ZOHO_CLIENT_ID,
        "response_type": "code",
        "access_type": "offline",
        "redirect_uri": ZOHO_REDIRECT_URI,
    }
    return f"{AUTH_URL}?{urlencode(params)}"


async def _token_request(url: str, params: dict[str, str]) -> dict[str, Any]:
    client = get_http_client()
    try:
        response = await client.post(url, params=params)
    except httpx.HTTPError as exc:
        raise TokenExchangeError(f"Network error during token request: {exc}") from exc

    if response.is_error:
        # Status only; the body may echo the grant
        raise TokenExchangeError(f"Token endpoint returned HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise TokenExchangeError("Token endpoint returned a non-JSON body") from exc

    if "error" in data:
        raise TokenExchangeError(f"Token endpoint rejected the request: {data['error']}")
    return data


async def exchange_code_for_tokens(code: str) -> dict[str, Any]:
    """
    Exchange an authorization code for tokens.

    Returns:
        Token response with access_token, refresh_token, expires_in, api_domain

    Raises:
        TokenExchangeError: if the exchange fails for any reason
    """
    data = await _token_request(
        TOKEN_URL,
        {
            "code": code,
            "client_id": ZOHO_CLIENT_ID,
            "client_secret": ZOHO_CLIENT_SECRET,
            "redirect_uri": ZOHO_REDIRECT_URI,
            "grant_type": "authorization_code",
        },
    )
    if not data.get("access_token"):
        raise TokenExchangeError("Token response did not include an access token")
    return data


async def refresh_access_token(refresh_token: str) -> dict[str, Any]:
    """
    Get a new access token with a refresh token.

    Returns:
        Token response with access_token and expires_in

    Raises:
        TokenExchangeError: if the refresh fails for any reason
    """
    data = await _token_request(
        TOKEN_URL,
        {
            "refresh_token": refresh_token,
            "client_id": ZOHO_CLIENT_ID,
            "client_secret": ZOHO_CLIENT_SECRET,
            "grant_type": "refresh_token",
        },
    )
    if not data.get("access_token"):
        raise TokenExchangeError("Refresh response did not include an access token")
    return data


async def revoke_token(token: str) -> None:
    """Revoke a refresh token at the accounts server."""
    await _token_request(REVOKE_URL, {"token": token})
