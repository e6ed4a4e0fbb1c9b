# =======================================================================================
# app/database.py - Database Management
# =======================================================================================
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from contextlib import contextmanager
from typing import Optional
from .config import config

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS members (
        contact_id INTEGER PRIMARY KEY,
        tag_id INTEGER NOT NULL,
        membership_level INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_members_tag_id ON members(tag_id)",
    """
    CREATE TABLE IF NOT EXISTS trainings (
        training_name VARCHAR(255) PRIMARY KEY
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS members_trainings_link (
        tag_id INTEGER NOT NULL,
        training_name VARCHAR(255) NOT NULL,
        FOREIGN KEY (tag_id) REFERENCES members(tag_id),
        FOREIGN KEY (training_name) REFERENCES trainings(training_name),
        UNIQUE (tag_id, training_name)
    )
    """,
)


def _engine_kwargs(db_url: str) -> dict:
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "future": True}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # single shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "poolclass": QueuePool,
        "pool_size": config.DB_POOL_SIZE,
        "max_overflow": config.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "isolation_level": "READ COMMITTED",
        "future": True,
    }


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or config.DB_URL
        self.engine: Engine = create_engine(self.db_url, **_engine_kwargs(self.db_url))

    @contextmanager
    def get_connection(self):
        """Get a database connection inside a transaction, committed on exit."""
        with self.engine.begin() as conn:
            yield conn

    def init_schema(self) -> None:
        """Create the members/trainings/link tables if they do not exist."""
        with self.get_connection() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def fetch_all(self, query: str, params: dict = None):
        """Fetch all results."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().all()

    def dispose(self) -> None:
        self.engine.dispose()

# Global database instance
db_manager = DatabaseManager()
