"""
Mapping between Zoho deals, local rows and the unified event shape.

Both directions are driven by the same field tables, so a field renamed on
one side cannot silently drift from the other.
"""

from typing import Any

from models.events import EXTERNAL, LOCAL, StatusRef, UnifiedEvent

# Unified field -> path into a Zoho deal record. Nested relations are
# lookup objects ({"id": ..., "name": ...}) and may be null.
DEAL_FIELD_MAP: dict[str, tuple[str, ...]] = {
    "event_name": ("Deal_Name",),
    "start_time": ("Fecha_Inicio_Evento",),
    "end_time": ("Fecha_Fin_Evento",),
    "city": ("Ciudad",),
    "artist_amount": ("Cach",),
    "artist_name": ("Artista", "name"),
    "venue": ("Recinto", "name"),
    "promoter_name": ("Account_Name", "name"),
}

# Unified field -> local events column
LOCAL_FIELD_MAP: dict[str, str] = {
    "start_date": "start_date",
    "start_time": "start_time",
    "end_date": "end_date",
    "end_time": "end_time",
    "event_name": "event_name",
    "artist_name": "artist_name",
    "artist_type": "artist_type",
    "city": "city",
    "venue": "venue",
    "artist_amount": "artist_amount",
    "promoter_name": "promoter_name",
    "promoter_phone": "promoter_phone",
    "promoter_email": "promoter_email",
    "status": "status_id",
}


def _get_path(record: dict, path: tuple[str, ...]) -> Any:
    value: Any = record
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _set_path(record: dict, path: tuple[str, ...], value: Any) -> None:
    target = record
    for key in path[:-1]:
        target = target.setdefault(key, {})
    target[path[-1]] = value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        # Lookup field where a plain string was expected
        return str(value.get("name") or "")
    return str(value)


def _date_part(value: str | None) -> str | None:
    """Date of an ISO datetime string ("2025-07-01T20:00:00-05:00" -> "2025-07-01")."""
    if not value:
        return None
    return value[:10]


def nested_id(deal: dict, relation: str) -> str | None:
    """Id of a lookup relation on a deal, or None when the relation is empty."""
    value = _get_path(deal, (relation, "id"))
    return str(value) if value else None


def resolve_status(stage: str | None, statuses: dict[str, dict]) -> StatusRef | None:
    """Local status for a Zoho stage; unmatched stages keep their label, no color."""
    if not stage:
        return None
    status = statuses.get(stage)
    if status is None:
        return StatusRef(name=stage, color=None)
    return StatusRef(id=str(status["id"]), name=status["name"], color=status["color"])


def normalize_deal(
    deal: dict,
    *,
    artist_type: str,
    promoter_phone: str,
    promoter_email: str,
    status: StatusRef | None,
) -> UnifiedEvent:
    """Build a unified event from a raw deal plus its enrichment results."""
    fields = {name: _get_path(deal, path) for name, path in DEAL_FIELD_MAP.items()}
    start_time = fields["start_time"]
    end_time = fields["end_time"]
    return UnifiedEvent(
        id=str(deal["id"]),
        source=EXTERNAL,
        start_date=_date_part(start_time),
        start_time=start_time,
        end_date=_date_part(end_time),
        end_time=end_time,
        event_name=_text(fields["event_name"]),
        artist_name=_text(fields["artist_name"]),
        artist_type=artist_type,
        city=_text(fields["city"]),
        venue=_text(fields["venue"]),
        artist_amount=fields["artist_amount"] or 0,
        promoter_name=_text(fields["promoter_name"]),
        promoter_phone=promoter_phone,
        promoter_email=promoter_email,
        status=status,
    )


def to_deal(event: UnifiedEvent) -> dict:
    """Inverse of :func:`normalize_deal` for the fields a deal carries."""
    values = event.model_dump()
    deal: dict = {"id": event.id}
    for name, path in DEAL_FIELD_MAP.items():
        _set_path(deal, path, values[name])
    if event.status is not None:
        deal["Stage"] = event.status.name
    return deal


def row_to_event(row: dict) -> UnifiedEvent:
    """Unified event from a local events row joined with its status."""
    data: dict[str, Any] = {
        name: row.get(column) for name, column in LOCAL_FIELD_MAP.items() if name != "status"
    }
    status = None
    if row.get("status_id") is not None and row.get("status_name") is not None:
        status = StatusRef(
            id=str(row["status_id"]), name=row["status_name"], color=row["status_color"]
        )
    for name, value in data.items():
        if value is None and name not in ("start_date", "start_time", "end_date", "end_time"):
            data[name] = 0 if name == "artist_amount" else ""
    return UnifiedEvent(
        id=str(row["id"]),
        source=LOCAL,
        status=status,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        **data,
    )


def to_row(fields: dict) -> dict:
    """Local events columns from validated write fields (unified names)."""
    row = {}
    for name, column in LOCAL_FIELD_MAP.items():
        if name not in fields:
            continue
        value = fields[name]
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        if name == "status" and value is not None:
            value = int(value) if str(value).isdigit() else value
        row[column] = value
    return row
