# =======================================================================================
# qrcheckin/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from .config import Config, config as default_config

class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, settings: Optional[Config] = None, url: Optional[str] = None):
        settings = settings or default_config
        url = url or settings.DB_URL
        if url.startswith("sqlite"):
            # one shared connection so in-memory databases survive between checkouts
            self.engine: Engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                future=True,
            )
        else:
            self.engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                future=True,
            )

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def execute_query(self, query: str, params: dict = None):
        """Execute a query with parameters."""
        with self.get_connection() as conn:
            return conn.execute(text(query), params or {})

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
