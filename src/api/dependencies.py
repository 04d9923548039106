"""FastAPI dependencies for authentication and shared resources."""

from fastapi import Depends, Request

from core.errors import SessionExpired
from core.sessions import CredentialRecord, SessionStore, get_session_store
from services.token_guard import ensure_fresh_credentials

SESSION_KEY = "sid"


def get_session_id(request: Request) -> str | None:
    """Opaque session id from the signed session cookie."""
    return request.session.get(SESSION_KEY)


async def require_credentials(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> CredentialRecord:
    """
    Guard for protected routes: fresh Zoho credentials or a 401.

    Raises:
        Unauthenticated: no credentials in the session
        SessionExpired: refresh failed; the session cookie is cleared too
    """
    try:
        return await ensure_fresh_credentials(store, get_session_id(request))
    except SessionExpired:
        request.session.clear()
        raise


async def optional_credentials(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> CredentialRecord | None:
    """Like :func:`require_credentials`, but None for a session that never logged in."""
    if store.get(get_session_id(request)) is None:
        return None
    return await require_credentials(request, store)
