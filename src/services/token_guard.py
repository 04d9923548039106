"""
Token lifecycle guard.

Every protected operation calls :func:`ensure_fresh_credentials` once before
it touches Zoho. A token with more than the refresh margin left is used as
is; otherwise it is refreshed in place. A session that cannot be refreshed
is destroyed so the caller has to log in again.
"""

import logging
import time

from core.config import TOKEN_REFRESH_MARGIN_SECONDS
from core.errors import SessionExpired, TokenExchangeError, Unauthenticated
from core.oauth import refresh_access_token
from core.sessions import CredentialRecord, SessionStore

logger = logging.getLogger(__name__)


async def ensure_fresh_credentials(
    store: SessionStore,
    session_id: str | None,
    now: float | None = None,
) -> CredentialRecord:
    """
    Return usable credentials for a session, refreshing them when close to expiry.

    The read-check-refresh-write runs under the session's lock, so two
    concurrent requests never both refresh; the second sees the new record.

    Raises:
        Unauthenticated: no credentials in the session
        SessionExpired: refresh failed or no refresh token; session destroyed
    """
    if store.get(session_id) is None:
        raise Unauthenticated()

    async with store.lock(session_id):
        record = store.get(session_id)
        if record is None:
            # Destroyed by a concurrent request while we waited
            raise SessionExpired()

        current = time.time() if now is None else now
        if record.remaining(current) > TOKEN_REFRESH_MARGIN_SECONDS:
            return record

        if not record.refresh_token:
            logger.warning("No refresh token available, forcing re-authentication")
            store.destroy(session_id)
            raise SessionExpired()

        logger.info("Access token expired or near expiration, refreshing")
        try:
            data = await refresh_access_token(record.refresh_token)
        except TokenExchangeError as exc:
            logger.warning("Failed to refresh token, forcing re-authentication: %s", exc)
            store.destroy(session_id)
            raise SessionExpired() from exc

        refreshed = CredentialRecord(
            access_token=data["access_token"],
            refresh_token=record.refresh_token,
            expires_in=int(data.get("expires_in", record.expires_in)),
            issued_at=current,
            api_domain=record.api_domain,
        )
        store.put(session_id, refreshed)
        logger.info("Access token refreshed")
        return refreshed
