"""Read-only proxy endpoints over Zoho CRM."""

from datetime import datetime

from fastapi import APIRouter, Depends, Request

from api.dependencies import require_credentials
from api.models.responses import ok
from core.database import connection, statuses_by_name
from core.errors import InvalidRequest, NotFound
from core.sessions import CredentialRecord
from services.zoho import fetch_master_lists, fetch_zoho_events

router = APIRouter(prefix="/api/zoho")


def parse_date_range(
    start_date: str | None, end_date: str | None
) -> tuple[str | None, str | None]:
    """Validate an optional YYYY-MM-DD range; both bounds or neither."""
    if not start_date and not end_date:
        return None, None
    if not start_date or not end_date:
        raise InvalidRequest("start_date and end_date must be given together")
    try:
        start = datetime.strptime(start_date, "%Y-%m-%d").date()
        end = datetime.strptime(end_date, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRequest("Invalid date format, expected YYYY-MM-DD")
    if end < start:
        raise InvalidRequest("end_date must not be before start_date")
    return start_date, end_date


def load_statuses() -> dict[str, dict]:
    with connection() as conn:
        return statuses_by_name(conn)


@router.get("/events")
async def get_zoho_events(
    request: Request,
    start_date: str | None = None,
    end_date: str | None = None,
    credentials: CredentialRecord = Depends(require_credentials),
):
    """Zoho deals as unified events, optionally within a date range."""
    start, end = parse_date_range(start_date, end_date)
    events = await fetch_zoho_events(
        credentials, load_statuses(), start_date=start, end_date=end
    )
    request.state.events_returned = len(events)
    return ok("Events fetched successfully", events)


@router.get("/event/{event_id}")
async def get_zoho_event(
    event_id: str,
    credentials: CredentialRecord = Depends(require_credentials),
):
    """One Zoho deal as a unified event."""
    events = await fetch_zoho_events(credentials, load_statuses(), deal_id=event_id)
    if not events:
        raise NotFound("Event not found")
    return ok("Event fetched successfully", events[0])


@router.get("/master")
async def get_master(credentials: CredentialRecord = Depends(require_credentials)):
    """Lookup lists for the event form."""
    master = await fetch_master_lists(credentials)
    return ok("Master Events fetched successfully", master)
