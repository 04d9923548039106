"""Local event CRUD and the merged Zoho + local listing."""

import logging
import sqlite3

from fastapi import APIRouter, Body, Depends, Request
from pydantic import ValidationError

from api.dependencies import optional_credentials, require_credentials
from api.models.responses import ok
from api.routes.zoho import load_statuses, parse_date_range
from core import database
from core.errors import NotFound, TaskCreationFailed, ValidationFailure
from core.sessions import CredentialRecord
from models.events import (
    EXTERNAL,
    EventCreate,
    EventUpdate,
    StatusRef,
    UnifiedEvent,
    check_schedule,
)
from services.aggregator import merge_events
from services.normalizer import row_to_event, to_row
from services.tasks import create_zoho_task
from services.zoho import fetch_zoho_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

SCHEDULE_FIELDS = ("start_date", "start_time", "end_date", "end_time")


def validation_message(exc: ValidationError) -> str:
    """One line per failed field: "loc: message"."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
        for error in exc.errors()
    )


def list_local_events() -> list[UnifiedEvent]:
    with database.connection() as conn:
        return [row_to_event(row) for row in database.list_events(conn)]


@router.get("/events/all")
async def get_all_events(
    request: Request,
    start_date: str | None = None,
    end_date: str | None = None,
    credentials: CredentialRecord = Depends(require_credentials),
):
    """Zoho events (optionally in a date range) followed by every local event."""
    start, end = parse_date_range(start_date, end_date)
    external = await fetch_zoho_events(
        credentials, load_statuses(), start_date=start, end_date=end
    )
    events = merge_events(external, list_local_events())
    request.state.events_returned = len(events)
    return ok("All events fetched successfully", events)


@router.post("/event")
async def create_event(
    payload: dict = Body(...),
    credentials: CredentialRecord | None = Depends(optional_credentials),
):
    """
    Save a local event, then file a "create" task in Zoho.

    The task is best effort: without a Zoho session it is skipped, and a
    failure is only logged. The local event is saved either way.
    """
    try:
        event_in = EventCreate.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure(f"Error creating event: {validation_message(exc)}")

    try:
        with database.connection() as conn:
            row = database.insert_event(conn, to_row(event_in.model_dump()))
    except sqlite3.IntegrityError as exc:
        raise ValidationFailure(f"Error creating event: {exc}")
    event = row_to_event(row)

    if credentials is not None:
        try:
            await create_zoho_task(credentials, event, is_new=True)
        except TaskCreationFailed as exc:
            logger.warning("Event %s saved but Zoho task not created: %s", event.id, exc)

    return ok("Event created successfully", event)


@router.get("/events")
async def get_events(
    request: Request, _credentials: CredentialRecord = Depends(require_credentials)
):
    """All local events."""
    events = list_local_events()
    request.state.events_returned = len(events)
    return ok("Events fetched successfully", events)


@router.get("/event/{event_id}")
async def get_event(
    event_id: str, _credentials: CredentialRecord = Depends(require_credentials)
):
    with database.connection() as conn:
        row = database.get_event(conn, event_id)
    if row is None:
        raise NotFound("Event not found")
    return ok("Event fetched successfully", row_to_event(row))


async def _request_external_update(
    event_id: str, payload: dict, credentials: CredentialRecord
) -> dict:
    """Zoho events are never written; an edit becomes an "update" task on the deal."""
    fields = {k: v for k, v in payload.items() if k != "status"}
    status = payload.get("status")
    if isinstance(status, dict) and status.get("name"):
        fields["status"] = StatusRef.model_validate(status)
    try:
        event = UnifiedEvent.model_validate({**fields, "id": event_id, "source": EXTERNAL})
    except ValidationError as exc:
        raise ValidationFailure(f"Error updating event: {validation_message(exc)}")

    # A failed task means the update did not happen: let TaskCreationFailed through
    result = await create_zoho_task(credentials, event, is_new=False)
    return ok(
        "Task to update event created successfully in Zoho CRM",
        {"task_id": (result.get("details") or {}).get("id")},
    )


@router.patch("/event/{event_id}")
async def update_event(
    event_id: str,
    payload: dict = Body(...),
    credentials: CredentialRecord = Depends(require_credentials),
):
    """Update a local event, or request an update of a Zoho event."""
    if payload.get("source") == EXTERNAL:
        return await _request_external_update(event_id, payload, credentials)

    try:
        update = EventUpdate.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure(f"Error updating event: {validation_message(exc)}")
    fields = update.model_dump(exclude_unset=True)

    with database.connection() as conn:
        existing = database.get_event(conn, event_id)
        if existing is None:
            raise NotFound("Event not found")

        schedule = {name: existing[name] for name in SCHEDULE_FIELDS}
        schedule.update({k: v for k, v in fields.items() if k in SCHEDULE_FIELDS})
        try:
            merged = EventUpdate.model_validate(schedule)
            check_schedule(merged.start_date, merged.start_time, merged.end_date, merged.end_time)
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError too
            raise ValidationFailure(f"Error updating event: {exc}")

        try:
            row = database.update_event(conn, event_id, to_row(fields))
        except sqlite3.IntegrityError as exc:
            raise ValidationFailure(f"Error updating event: {exc}")

    return ok("Event updated successfully", row_to_event(row))


@router.delete("/event/{event_id}")
async def delete_event(
    event_id: str, _credentials: CredentialRecord = Depends(require_credentials)
):
    with database.connection() as conn:
        row = database.delete_event(conn, event_id)
    if row is None:
        raise NotFound("Event not found")
    return ok("Event deleted successfully", row_to_event(row))
