"""
Data models for booking events and statuses.

``UnifiedEvent`` is the one shape the calendar UI consumes, whether the
booking came from a Zoho deal or from the local store. The ``*Create`` and
``*Update`` models validate local writes.
"""

from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# Provenance tags
EXTERNAL = "external"
LOCAL = "local"

# Sentinels for enrichment fields that could not be resolved
ACCESS_DENIED = "AccessDenied"  # lookup failed
UNKNOWN = "Unknown"  # field absent upstream


class StatusRef(BaseModel):
    """Display status of an event: a name and an optional color."""

    id: str | None = None
    name: str
    color: str | None = None


class Status(BaseModel):
    """Locally stored Status Record."""

    id: str
    name: str
    color: str


class StatusCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    color: str


class StatusUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    color: str | None = None


class UnifiedEvent(BaseModel):
    """Canonical booking shape consumed by the calendar view."""

    model_config = ConfigDict(extra="ignore")

    id: str
    source: Literal["external", "local"]
    start_date: str | None = None
    start_time: str | None = None
    end_date: str | None = None
    end_time: str | None = None
    event_name: str = ""
    artist_name: str = ""
    artist_type: str = ""
    city: str = ""
    venue: str = ""
    artist_amount: float = 0
    promoter_name: str = ""
    promoter_phone: str = ""
    promoter_email: str = ""
    status: StatusRef | None = None
    created_at: str | None = None
    updated_at: str | None = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def check_schedule(
    start_date: date | None,
    start_time: datetime | None,
    end_date: date | None,
    end_time: datetime | None,
) -> None:
    """Raise ValueError when an end precedes its start."""
    if start_date and end_date and end_date < start_date:
        raise ValueError("end_date must not be before start_date")
    if start_time and end_time and _as_utc(end_time) < _as_utc(start_time):
        raise ValueError("end_time must not be before start_time")


def check_not_past(
    start_date: date,
    start_time: datetime,
    end_date: date,
    end_time: datetime,
    now: datetime | None = None,
) -> None:
    """Raise ValueError when a new booking starts or ends in the past."""
    now = _as_utc(now or datetime.now(timezone.utc))
    for name, day in (("start_date", start_date), ("end_date", end_date)):
        if day < now.date():
            raise ValueError(f"{name} must not be in the past")
    for name, moment in (("start_time", start_time), ("end_time", end_time)):
        if _as_utc(moment) < now:
            raise ValueError(f"{name} must not be in the past")


class EventCreate(BaseModel):
    """Body of ``POST /api/event``. ``status`` is the id of a Status Record."""

    model_config = ConfigDict(extra="ignore")

    start_date: date
    start_time: datetime
    end_date: date
    end_time: datetime
    event_name: str
    artist_name: str
    artist_type: str
    city: str = ""
    venue: str = ""
    artist_amount: float
    promoter_name: str = ""
    promoter_phone: str = ""
    promoter_email: str = ""
    status: int | str

    @model_validator(mode="after")
    def schedule_is_valid(self):
        check_schedule(self.start_date, self.start_time, self.end_date, self.end_time)
        check_not_past(self.start_date, self.start_time, self.end_date, self.end_time)
        return self


class EventUpdate(BaseModel):
    """Body of ``PATCH /api/event/{id}`` for local events; every field optional."""

    model_config = ConfigDict(extra="ignore")

    start_date: date | None = None
    start_time: datetime | None = None
    end_date: date | None = None
    end_time: datetime | None = None
    event_name: str | None = None
    artist_name: str | None = None
    artist_type: str | None = None
    city: str | None = None
    venue: str | None = None
    artist_amount: float | None = None
    promoter_name: str | None = None
    promoter_phone: str | None = None
    promoter_email: str | None = None
    status: int | str | None = None

    @field_validator("status")
    @classmethod
    def status_not_cleared(cls, value):
        if value is None:
            raise ValueError("status cannot be removed from an event")
        return value


class MasterItem(BaseModel):
    id: str
    name: str | None = None


class MasterLists(BaseModel):
    """Lookup lists offered by the event form."""

    artist: list[MasterItem]
    promoter: list[MasterItem]
    venue: list[MasterItem]
    city: list[MasterItem]
