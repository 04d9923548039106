"""
Deal fetching and enrichment from Zoho CRM.

A deal listing only carries lookup ids for the artist and the promoter
account, so every deal costs two more calls: the artist's event type and the
promoter's booking phone/email. Those calls run concurrently across the
batch, bounded by a semaphore, and a failed lookup only downgrades its own
field to the ``AccessDenied`` sentinel.
"""

import asyncio
import logging

from core.config import DEAL_FIELDS, ENRICHMENT_CONCURRENCY, ZOHO_PER_PAGE
from core.errors import UpstreamUnavailable
from core.sessions import CredentialRecord
from core.zoho_client import ZohoClient
from models.events import ACCESS_DENIED, UNKNOWN, MasterItem, MasterLists, UnifiedEvent
from services.normalizer import nested_id, normalize_deal, resolve_status

logger = logging.getLogger(__name__)


def build_date_criteria(start_date: str, end_date: str) -> str:
    """Inclusive day-boundary filter on the event start."""
    return (
        f"(Fecha_Inicio_Evento:between:"
        f"({start_date}T00:00:00Z,{end_date}T23:59:59Z))"
    )


def _lookup_value(value) -> str:
    """Enrichment field value; null upstream means Unknown, empty stays empty."""
    if value is None:
        return UNKNOWN
    return str(value)


async def fetch_artist_type(
    client: ZohoClient, artist_id: str | None, semaphore: asyncio.Semaphore
) -> str:
    """Event type of an artist, or a sentinel when it can't be resolved."""
    if artist_id is None:
        return UNKNOWN
    async with semaphore:
        try:
            records = await client.get(
                f"Artistas/{artist_id}", params={"fields": "Tipo_de_Eventos"}
            )
        except UpstreamUnavailable as exc:
            logger.warning("Error fetching artist type for %s: %s", artist_id, exc.payload or exc)
            return ACCESS_DENIED
    if not records:
        return UNKNOWN
    return _lookup_value(records[0].get("Tipo_de_Eventos"))


async def fetch_promoter_contact(
    client: ZohoClient, account_id: str | None, semaphore: asyncio.Semaphore
) -> tuple[str, str]:
    """Booking phone and email of a promoter account."""
    if account_id is None:
        return UNKNOWN, UNKNOWN
    async with semaphore:
        try:
            records = await client.get(
                f"Accounts/{account_id}",
                params={"fields": "Tel_fono_Contratacion,Correo_Contratacion"},
            )
        except UpstreamUnavailable as exc:
            logger.warning(
                "Error fetching promoter details for %s: %s", account_id, exc.payload or exc
            )
            return ACCESS_DENIED, ACCESS_DENIED
    if not records:
        return UNKNOWN, UNKNOWN
    account = records[0]
    return (
        _lookup_value(account.get("Tel_fono_Contratacion")),
        _lookup_value(account.get("Correo_Contratacion")),
    )


async def _enrich_deal(
    client: ZohoClient,
    deal: dict,
    statuses: dict[str, dict],
    semaphore: asyncio.Semaphore,
) -> UnifiedEvent:
    artist_type, (phone, email) = await asyncio.gather(
        fetch_artist_type(client, nested_id(deal, "Artista"), semaphore),
        fetch_promoter_contact(client, nested_id(deal, "Account_Name"), semaphore),
    )
    return normalize_deal(
        deal,
        artist_type=artist_type,
        promoter_phone=phone,
        promoter_email=email,
        status=resolve_status(deal.get("Stage"), statuses),
    )


async def fetch_zoho_events(
    credentials: CredentialRecord,
    statuses: dict[str, dict],
    *,
    deal_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[UnifiedEvent]:
    """
    Fetch deals and return them as unified events, in Zoho's listing order.

    Args:
        credentials: fresh session credentials
        statuses: local Status Records keyed by name, for stage lookup
        deal_id: fetch this one deal instead of listing
        start_date, end_date: YYYY-MM-DD range on the event start (both required)

    Raises:
        UpstreamUnavailable: the deal listing itself failed
    """
    client = ZohoClient(credentials.access_token, credentials.api_domain)

    params = {"fields": ",".join(DEAL_FIELDS), "per_page": ZOHO_PER_PAGE}
    if start_date and end_date:
        params["criteria"] = build_date_criteria(start_date, end_date)

    path = f"Deals/{deal_id}" if deal_id else "Deals"
    if start_date and end_date and not deal_id:
        # Filtering by criteria needs the search endpoint
        path = "Deals/search"
    deals = await client.get(path, params=params)

    semaphore = asyncio.Semaphore(ENRICHMENT_CONCURRENCY)
    events = await asyncio.gather(
        *(_enrich_deal(client, deal, statuses, semaphore) for deal in deals)
    )
    logger.info("Fetched %d events from Zoho CRM", len(events))
    return list(events)


# =============================================================================
# MASTER LISTS
# =============================================================================


async def _fetch_lookup(client: ZohoClient, module: str, field: str) -> list[MasterItem]:
    records = await client.get(module, params={"fields": field})
    return [MasterItem(id=str(record["id"]), name=record.get(field)) for record in records]


async def fetch_master_lists(credentials: CredentialRecord) -> MasterLists:
    """Artists, promoters, venues and cities for the event form."""
    client = ZohoClient(credentials.access_token, credentials.api_domain)
    artists, promoters, venues, cities = await asyncio.gather(
        _fetch_lookup(client, "Artistas", "Name"),
        _fetch_lookup(client, "Accounts", "Account_Name"),
        _fetch_lookup(client, "Recintos", "Name"),
        _fetch_lookup(client, "Recintos", "Localidad"),
    )
    return MasterLists(artist=artists, promoter=promoters, venue=venues, city=cities)
