"""Status Record CRUD."""

import sqlite3

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from api.dependencies import require_credentials
from api.models.responses import ok
from api.routes.events import validation_message
from core import database
from core.errors import NotFound, ValidationFailure
from core.sessions import CredentialRecord
from models.events import Status, StatusCreate, StatusUpdate

router = APIRouter(prefix="/api", dependencies=[Depends(require_credentials)])


def _status(row: dict) -> Status:
    return Status(id=str(row["id"]), name=row["name"], color=row["color"])


@router.post("/status")
async def create_status(payload: dict = Body(...)):
    try:
        status_in = StatusCreate.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure(f"Error creating status: {validation_message(exc)}")
    with database.connection() as conn:
        row = database.create_status(conn, status_in.model_dump())
    return ok("Status created successfully", _status(row))


@router.get("/statuses")
async def get_statuses():
    with database.connection() as conn:
        rows = database.list_statuses(conn)
    return ok("Statuses fetched successfully", [_status(row) for row in rows])


@router.get("/status/{status_id}")
async def get_status(status_id: str):
    with database.connection() as conn:
        row = database.get_status(conn, status_id)
    if row is None:
        raise NotFound("Status not found")
    return ok("Status fetched successfully", _status(row))


@router.patch("/status/{status_id}")
async def update_status(status_id: str, payload: dict = Body(...)):
    """Edits show up on every event that references this status."""
    try:
        fields = StatusUpdate.model_validate(payload).model_dump(exclude_unset=True)
    except ValidationError as exc:
        raise ValidationFailure(f"Error updating status: {validation_message(exc)}")
    try:
        with database.connection() as conn:
            row = database.update_status(conn, status_id, fields)
    except sqlite3.IntegrityError as exc:
        raise ValidationFailure(f"Error updating status: {exc}")
    if row is None:
        raise NotFound("Status not found")
    return ok("Status updated successfully", _status(row))


@router.delete("/status/{status_id}")
async def delete_status(status_id: str):
    with database.connection() as conn:
        row = database.delete_status(conn, status_id)
    if row is None:
        raise NotFound("Status not found")
    return ok("Status deleted successfully", _status(row))
