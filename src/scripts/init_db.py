#!/usr/bin/env python3
"""Create the booking-calendar SQLite3 database with statuses and events tables."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.database import connection, init_schema


def create_database():
    """Create the database and tables if they don't exist."""
    # Ensure directory exists
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    with connection() as conn:
        init_schema(conn)
    print(f"Database created successfully at: {DB_PATH}")


if __name__ == "__main__":
    create_database()
