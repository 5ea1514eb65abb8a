"""Embedded KuzuDB store for people and their relationships."""
import logging
import os
from pathlib import Path

import kuzu

logger = logging.getLogger(__name__)

DB_PATH = Path(os.environ.get("DB_PATH", Path(__file__).resolve().parent.parent / "graph_data"))

SCHEMA = [
    "CREATE NODE TABLE IF NOT EXISTS Person("
    "id STRING, name STRING, nickname STRING, email STRING, photo_url STRING, "
    "PRIMARY KEY(id))",
    # One directed edge per direction; seeding writes both with identical properties.
    "CREATE REL TABLE IF NOT EXISTS HAS_RELATIONSHIP("
    "FROM Person TO Person, status STRING, frequency INT64, importance INT64)",
]

_database = None


def _init_schema(database: kuzu.Database):
    conn = kuzu.Connection(database)
    for statement in SCHEMA:
        conn.execute(statement)


def get_database() -> kuzu.Database:
    """Process-wide database at DB_PATH, created with its schema on first use."""
    global _database
    if _database is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _database = kuzu.Database(str(DB_PATH))
        _init_schema(_database)
        logger.info("Opened relationship store at %s", DB_PATH)
    return _database


def connect() -> kuzu.Connection:
    return kuzu.Connection(get_database())
