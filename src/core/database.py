"""
SQLite database operations for local events and statuses.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from core import config

# Columns of the events table that carry event data (id and bookkeeping excluded)
EVENT_COLUMNS = [
    "start_date",
    "start_time",
    "end_date",
    "end_time",
    "event_name",
    "artist_name",
    "artist_type",
    "city",
    "venue",
    "artist_amount",
    "promoter_name",
    "promoter_phone",
    "promoter_email",
    "status_id",
]

STATUS_COLUMNS = ["name", "color"]

_EVENT_SELECT = """
    SELECT e.*, s.name AS status_name, s.color AS status_color
    FROM events e
    LEFT JOIN statuses s ON s.id = e.status_id
"""


def get_connection() -> sqlite3.Connection:
    """Get a database connection."""
    conn = sqlite3.connect(config.DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def connection() -> Iterator[sqlite3.Connection]:
    """Open a connection for the duration of a block."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they don't exist."""
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS statuses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            color TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            start_date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_date TEXT NOT NULL,
            end_time TEXT NOT NULL,
            event_name TEXT NOT NULL,
            artist_name TEXT NOT NULL,
            artist_type TEXT NOT NULL,
            city TEXT,
            venue TEXT,
            artist_amount REAL NOT NULL,
            promoter_name TEXT,
            promoter_phone TEXT,
            promoter_email TEXT,
            status_id INTEGER,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (status_id) REFERENCES statuses(id) ON DELETE SET NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT UNIQUE NOT NULL,
            timestamp TEXT NOT NULL,
            endpoint TEXT NOT NULL,
            method TEXT NOT NULL,
            client_ip TEXT,
            status_code INTEGER NOT NULL,
            error_code TEXT,
            error_message TEXT,
            processing_time_ms INTEGER NOT NULL,
            events_returned INTEGER
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_statuses_name ON statuses(name)")
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
    )
    conn.commit()


def _row_id(record_id: str | int) -> int | None:
    """Parse an id from a URL; non-numeric ids match nothing."""
    try:
        return int(record_id)
    except (TypeError, ValueError):
        return None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# STATUSES
# =============================================================================


def list_statuses(conn: sqlite3.Connection) -> list[dict]:
    cursor = conn.execute("SELECT * FROM statuses ORDER BY id")
    return [dict(row) for row in cursor.fetchall()]


def get_status(conn: sqlite3.Connection, status_id: str | int) -> dict | None:
    row_id = _row_id(status_id)
    if row_id is None:
        return None
    row = conn.execute("SELECT * FROM statuses WHERE id = ?", (row_id,)).fetchone()
    return dict(row) if row else None


def statuses_by_name(conn: sqlite3.Connection) -> dict[str, dict]:
    """Map status name to its record; the first record wins on duplicate names."""
    result: dict[str, dict] = {}
    for status in list_statuses(conn):
        result.setdefault(status["name"], status)
    return result


def create_status(conn: sqlite3.Connection, fields: dict) -> dict:
    cursor = conn.execute(
        "INSERT INTO statuses (name, color) VALUES (?, ?)",
        (fields["name"], fields["color"]),
    )
    conn.commit()
    return get_status(conn, cursor.lastrowid)


def update_status(conn: sqlite3.Connection, status_id: str | int, fields: dict) -> dict | None:
    existing = get_status(conn, status_id)
    if existing is None:
        return None
    changes = {k: v for k, v in fields.items() if k in STATUS_COLUMNS}
    if changes:
        assignments = ", ".join(f"{column} = ?" for column in changes)
        conn.execute(
            f"UPDATE statuses SET {assignments} WHERE id = ?",
            (*changes.values(), existing["id"]),
        )
        conn.commit()
    return get_status(conn, existing["id"])


def delete_status(conn: sqlite3.Connection, status_id: str | int) -> dict | None:
    existing = get_status(conn, status_id)
    if existing is None:
        return None
    conn.execute("DELETE FROM statuses WHERE id = ?", (existing["id"],))
    conn.commit()
    return existing


# =============================================================================
# EVENTS
# =============================================================================


def list_events(conn: sqlite3.Connection) -> list[dict]:
    """All local events in insertion order, each joined with its status."""
    cursor = conn.execute(f"{_EVENT_SELECT} ORDER BY e.id")
    return [dict(row) for row in cursor.fetchall()]


def get_event(conn: sqlite3.Connection, event_id: str | int) -> dict | None:
    row_id = _row_id(event_id)
    if row_id is None:
        return None
    row = conn.execute(f"{_EVENT_SELECT} WHERE e.id = ?", (row_id,)).fetchone()
    return dict(row) if row else None


def insert_event(conn: sqlite3.Connection, fields: dict) -> dict:
    """Insert an event; raises sqlite3.IntegrityError on missing or dangling fields."""
    now = _now()
    values = [fields.get(column) for column in EVENT_COLUMNS]
    placeholders = ", ".join("?" for _ in range(len(EVENT_COLUMNS) + 2))
    cursor = conn.execute(
        f"INSERT INTO events ({', '.join(EVENT_COLUMNS)}, created_at, updated_at) "
        f"VALUES ({placeholders})",
        (*values, now, now),
    )
    conn.commit()
    return get_event(conn, cursor.lastrowid)


def update_event(conn: sqlite3.Connection, event_id: str | int, fields: dict) -> dict | None:
    existing = get_event(conn, event_id)
    if existing is None:
        return None
    changes = {k: v for k, v in fields.items() if k in EVENT_COLUMNS}
    changes["updated_at"] = _now()
    assignments = ", ".join(f"{column} = ?" for column in changes)
    conn.execute(
        f"UPDATE events SET {assignments} WHERE id = ?",
        (*changes.values(), existing["id"]),
    )
    conn.commit()
    return get_event(conn, existing["id"])


def delete_event(conn: sqlite3.Connection, event_id: str | int) -> dict | None:
    existing = get_event(conn, event_id)
    if existing is None:
        return None
    conn.execute("DELETE FROM events WHERE id = ?", (existing["id"],))
    conn.commit()
    return existing
