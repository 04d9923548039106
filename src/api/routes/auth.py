"""Zoho OAuth login, callback and logout endpoints."""

import logging
import time
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import SESSION_KEY, get_session_id
from api.models.responses import ErrorResponse, ok
from core.config import FRONTEND_URL, ZOHO_API_URL
from core.errors import TokenExchangeError
from core.oauth import build_authorization_url, exchange_code_for_tokens, revoke_token
from core.sessions import CredentialRecord, SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/login")
async def login():
    """Return the Zoho authorization URL; the frontend redirects the browser to it."""
    return ok("Authorization URL generated", {"auth_url": build_authorization_url()})


@router.get("/oauth-callback")
async def oauth_callback(
    request: Request,
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    store: SessionStore = Depends(get_session_store),
):
    """
    Zoho redirects here after the user authorizes.

    Exchanges the code for tokens, stores them under a new session id and
    sends the browser to the calendar view.
    """
    if error:
        logger.warning("Zoho OAuth error: %s", error)
        return RedirectResponse(
            url=f"{FRONTEND_URL}/?error={quote('Zoho authentication failed: ' + error)}",
            status_code=302,
        )

    if not code:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                code=400, message="Authorization code not found."
            ).model_dump(),
        )

    try:
        tokens = await exchange_code_for_tokens(code)
    except TokenExchangeError as exc:
        logger.error("Error during OAuth callback: %s", exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(code=500, message="Authentication failed.").model_dump(),
        )

    # Replace any previous login in this browser
    store.destroy(get_session_id(request))
    session_id = store.new_session_id()
    store.put(
        session_id,
        CredentialRecord.from_token_response(tokens, time.time(), ZOHO_API_URL),
    )
    request.session[SESSION_KEY] = session_id
    logger.info("Zoho tokens obtained and stored in session")

    return RedirectResponse(url=f"{FRONTEND_URL}/calendar", status_code=302)


@router.get("/api/session")
async def session_status(
    request: Request, store: SessionStore = Depends(get_session_store)
):
    """Whether the caller is logged in; never refreshes."""
    authenticated = store.get(get_session_id(request)) is not None
    return ok("Session status", {"authenticated": authenticated})


@router.get("/api/logout")
async def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    """Destroy the session and its credentials, revoking the refresh token."""
    record = store.destroy(get_session_id(request))
    request.session.clear()

    if record is not None and record.refresh_token:
        try:
            await revoke_token(record.refresh_token)
        except TokenExchangeError as exc:
            logger.warning("Failed to revoke Zoho refresh token: %s", exc)

    return ok("Logged out successfully.")
