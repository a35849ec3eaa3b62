"""Database configuration and schema bootstrap"""

import logging
import os
from datetime import date
from pathlib import Path

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlmodel import Session, SQLModel

from swim_registry.config import config

logger = logging.getLogger(__name__)

# Columns introduced after the first release of the users table. Added on
# startup when missing; re-running against a migrated store is a no-op.
ADDITIVE_COLUMNS = {
    "date_naissance": "TEXT",
    "niveau_natation": "TEXT",
}

# Messages emitted by sqlite / postgresql when a column already exists
_DUPLICATE_COLUMN_MARKERS = ("duplicate column", "already exists")


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for the given URL"""
    connect_args = {}
    if make_url(database_url).get_backend_name() == "sqlite":
        # Sessions are handed across FastAPI's threadpool
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        echo=os.getenv("DEBUG", "false").lower() == "true",
        connect_args=connect_args,
    )


# Database URL from config
DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is empty. "
        "Unset it to use the default SQLite file or provide a valid URL."
    )

engine = create_db_engine(DATABASE_URL)


def init_db(db_engine: Engine = engine) -> None:
    """Create the users table and apply additive column migrations.

    Safe to run repeatedly against an already-migrated store.
    """
    # Import models so their tables are registered on the metadata
    from swim_registry.models.user import User  # noqa: F401

    url = db_engine.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        # The SQLite driver does not create missing directories
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(db_engine)

    existing = {column["name"] for column in inspect(db_engine).get_columns("users")}
    for column_name, column_type in ADDITIVE_COLUMNS.items():
        if column_name in existing:
            continue
        _add_column(db_engine, "users", column_name, column_type)

    logger.info("Database schema ready")


def _add_column(db_engine: Engine, table: str, column: str, column_type: str) -> None:
    """Add a column, ignoring the error raised when it already exists"""
    try:
        with db_engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}"))
        logger.info(f"Added column {table}.{column}")
    except (OperationalError, ProgrammingError) as e:
        message = str(e).lower()
        if not any(marker in message for marker in _DUPLICATE_COLUMN_MARKERS):
            raise
        logger.debug(f"Column {table}.{column} already present")


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session


def get_today() -> date:
    """Reference date used for age derivation in a request"""
    return date.today()
