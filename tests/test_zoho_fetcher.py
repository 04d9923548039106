"""Tests for deal fetching, enrichment and master lists."""

import asyncio

import httpx
import pytest

from conftest import make_deal
from core import zoho_client
from core.errors import UpstreamUnavailable
from models.events import ACCESS_DENIED, UNKNOWN
from services import zoho as zoho_service
from services.zoho import build_date_criteria, fetch_master_lists, fetch_zoho_events


async def test_artist_lookup_denied_downgrades_only_that_field(zoho, credentials):
    zoho.deals = [make_deal("D1", artist_id="A1")]
    zoho.failures["/crm/v8/Artistas/A1"] = 403

    (event,) = await fetch_zoho_events(credentials, {})

    assert event.artist_type == ACCESS_DENIED
    assert event.promoter_phone == "+57 300 0000000"
    assert event.promoter_email == "booking@promo.co"
    assert event.artist_name == "Los Artistas"
    assert event.event_name == "Concierto"


async def test_promoter_lookup_denied(zoho, credentials):
    zoho.deals = [make_deal("D1")]
    zoho.failures["/crm/v8/Accounts/P1"] = 500

    (event,) = await fetch_zoho_events(credentials, {})

    assert event.promoter_phone == ACCESS_DENIED
    assert event.promoter_email == ACCESS_DENIED
    assert event.artist_type == "Concierto"


async def test_unreadable_lookup_body_downgrades_only_that_field(zoho, credentials):
    zoho.deals = [make_deal("D1"), make_deal("D2", name="Gira")]
    zoho.malformed["/crm/v8/Artistas/A1"] = "<html>gateway</html>"
    zoho.malformed["/crm/v8/Accounts/P1"] = '["not", "an", "object"]'

    events = await fetch_zoho_events(credentials, {})

    assert [e.id for e in events] == ["D1", "D2"]
    for event in events:
        assert event.artist_type == ACCESS_DENIED
        assert event.promoter_phone == ACCESS_DENIED
        assert event.promoter_email == ACCESS_DENIED
        assert event.artist_name == "Los Artistas"


async def test_unreadable_listing_body_propagates(zoho, credentials):
    zoho.malformed["/crm/v8/Deals"] = "<html>gateway</html>"

    with pytest.raises(UpstreamUnavailable) as excinfo:
        await fetch_zoho_events(credentials, {})

    assert excinfo.value.status_code == 500
    assert excinfo.value.payload == "<html>gateway</html>"


async def test_absent_upstream_values_are_unknown(zoho, credentials):
    zoho.deals = [make_deal("D1", artist_id=None), make_deal("D2", account_id="P2")]
    zoho.accounts["P2"] = {"id": "P2", "Tel_fono_Contratacion": None, "Correo_Contratacion": ""}

    first, second = await fetch_zoho_events(credentials, {})

    assert first.artist_type == UNKNOWN
    assert second.promoter_phone == UNKNOWN
    assert second.promoter_email == ""
    # No lookup for a deal without an artist
    assert all(r.url.path != "/crm/v8/Artistas/None" for r in zoho.requests)


async def test_listing_order_is_preserved(zoho, credentials):
    zoho.deals = [make_deal(f"D{i}", name=f"Evento {i}") for i in range(5)]

    events = await fetch_zoho_events(credentials, {})

    assert [e.id for e in events] == ["D0", "D1", "D2", "D3", "D4"]


async def test_status_resolved_from_local_records(zoho, credentials):
    zoho.deals = [make_deal("D1", stage="Confirmado"), make_deal("D2", stage="Negociacion")]
    statuses = {"Confirmado": {"id": 1, "name": "Confirmado", "color": "#0f0"}}

    first, second = await fetch_zoho_events(credentials, statuses)

    assert (first.status.name, first.status.color) == ("Confirmado", "#0f0")
    assert (second.status.name, second.status.color) == ("Negociacion", None)


async def test_listing_request_shape(zoho, credentials):
    zoho.deals = [make_deal("D1")]

    await fetch_zoho_events(credentials, {})

    (request,) = zoho.calls("/crm/v8/Deals")
    assert request.headers["Authorization"] == "Zoho-oauthtoken access-1"
    assert request.url.params["per_page"] == "200"
    assert "Fecha_Inicio_Evento" in request.url.params["fields"]
    assert "criteria" not in request.url.params


async def test_date_range_uses_inclusive_day_bounds(zoho, credentials):
    zoho.deals = [make_deal("D1")]

    await fetch_zoho_events(credentials, {}, start_date="2025-07-01", end_date="2025-07-31")

    (request,) = zoho.calls("/crm/v8/Deals/search")
    assert request.url.params["criteria"] == build_date_criteria("2025-07-01", "2025-07-31")
    assert "2025-07-01T00:00:00Z" in request.url.params["criteria"]
    assert "2025-07-31T23:59:59Z" in request.url.params["criteria"]


async def test_single_deal_fetch_is_idempotent(zoho, credentials):
    zoho.deals = [make_deal("D1"), make_deal("D2")]

    first = await fetch_zoho_events(credentials, {}, deal_id="D2")
    second = await fetch_zoho_events(credentials, {}, deal_id="D2")

    assert [e.id for e in first] == ["D2"]
    assert first == second
    assert len(zoho.calls("/crm/v8/Deals/D2")) == 2


async def test_empty_listing(zoho, credentials):
    assert await fetch_zoho_events(credentials, {}) == []


async def test_listing_failure_propagates(zoho, credentials):
    zoho.failures["/crm/v8/Deals"] = 401

    with pytest.raises(UpstreamUnavailable) as excinfo:
        await fetch_zoho_events(credentials, {})

    assert excinfo.value.status_code == 401
    assert excinfo.value.payload == {"code": "NO_PERMISSION"}


async def test_enrichment_concurrency_is_bounded(monkeypatch, credentials):
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        if request.url.path == "/crm/v8/Deals":
            return httpx.Response(200, json={"data": [make_deal(f"D{i}") for i in range(6)]})
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json={"data": [{"Tipo_de_Eventos": "Concierto"}]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(zoho_client, "_http_client", client)
    monkeypatch.setattr(zoho_service, "ENRICHMENT_CONCURRENCY", 2)

    events = await fetch_zoho_events(credentials, {})

    assert len(events) == 6
    assert peak == 2


async def test_master_lists(zoho, credentials):
    master = await fetch_master_lists(credentials)

    assert [(a.id, a.name) for a in master.artist] == [("A1", "Los Artistas")]
    assert [(p.id, p.name) for p in master.promoter] == [("P1", "Promo SAS")]
    assert [(v.id, v.name) for v in master.venue] == [("V1", "Teatro Colon")]
    assert [(c.id, c.name) for c in master.city] == [("V1", "Bogota")]


async def test_master_lists_fail_on_upstream_error(zoho, credentials):
    zoho.failures["/crm/v8/Recintos"] = 500

    with pytest.raises(UpstreamUnavailable):
        await fetch_master_lists(credentials)
