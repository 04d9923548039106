"""Tests for the token lifecycle guard."""

import asyncio
from dataclasses import replace

import pytest

from core.errors import SessionExpired, Unauthenticated
from core.sessions import SessionStore
from services.token_guard import ensure_fresh_credentials

ISSUED_AT = 1_700_000_000.0


@pytest.fixture
def store(credentials):
    store = SessionStore()
    store.put("sid", credentials)
    return store


async def test_fresh_token_proceeds_without_refresh(store, zoho, credentials):
    now = ISSUED_AT + 3600 - 301

    record = await ensure_fresh_credentials(store, "sid", now=now)

    assert record == credentials
    assert zoho.calls("/oauth/v2/token") == []


async def test_near_expiry_refreshes_exactly_once(store, zoho):
    now = ISSUED_AT + 3600 - 300

    record = await ensure_fresh_credentials(store, "sid", now=now)

    assert len(zoho.calls("/oauth/v2/token")) == 1
    assert record.access_token == "access-2"
    assert record.issued_at == now
    assert record.refresh_token == "refresh-1"
    assert store.get("sid") == record


async def test_expired_token_refresh_sends_refresh_grant(store, zoho):
    await ensure_fresh_credentials(store, "sid", now=ISSUED_AT + 10_000)

    (request,) = zoho.calls("/oauth/v2/token")
    assert request.method == "POST"
    assert request.url.params["grant_type"] == "refresh_token"
    assert request.url.params["refresh_token"] == "refresh-1"


async def test_missing_refresh_token_destroys_session(store, zoho, credentials):
    store.put("sid", replace(credentials, refresh_token=None))

    with pytest.raises(SessionExpired):
        await ensure_fresh_credentials(store, "sid", now=ISSUED_AT + 10_000)

    assert store.get("sid") is None
    assert zoho.calls("/oauth/v2/token") == []


async def test_failed_refresh_destroys_session(store, zoho):
    zoho.failures["/oauth/v2/token"] = 400

    with pytest.raises(SessionExpired):
        await ensure_fresh_credentials(store, "sid", now=ISSUED_AT + 10_000)

    assert store.get("sid") is None


async def test_refresh_error_body_counts_as_failure(store, zoho):
    zoho.refresh_response = {"error": "invalid_code"}

    with pytest.raises(SessionExpired):
        await ensure_fresh_credentials(store, "sid", now=ISSUED_AT + 10_000)

    assert store.get("sid") is None


async def test_no_credentials_is_unauthenticated(zoho):
    with pytest.raises(Unauthenticated):
        await ensure_fresh_credentials(SessionStore(), "unknown", now=ISSUED_AT)
    with pytest.raises(Unauthenticated):
        await ensure_fresh_credentials(SessionStore(), None, now=ISSUED_AT)


async def test_concurrent_requests_share_one_refresh(store, zoho):
    now = ISSUED_AT + 10_000

    first, second = await asyncio.gather(
        ensure_fresh_credentials(store, "sid", now=now),
        ensure_fresh_credentials(store, "sid", now=now),
    )

    assert len(zoho.calls("/oauth/v2/token")) == 1
    assert first == second
