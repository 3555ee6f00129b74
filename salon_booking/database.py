"""
Database handle.

A ``Database`` owns one SQLAlchemy engine (and therefore one connection pool)
plus the session factory bound to it. The application factory creates it at
start-up, stores it on ``app.state.database`` and disposes it at shutdown;
request handlers get a session through the ``get_db`` dependency.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from . import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            # Every session must see the same in-memory database
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": config.DB_POOL_RECYCLE,
        "pool_size": config.DB_POOL_SIZE,
        "max_overflow": config.DB_MAX_OVERFLOW,
        "pool_timeout": config.DB_POOL_TIMEOUT,  # Wait for a free connection, then fail
    }


class Database:
    """Engine + session factory with an explicit lifecycle"""

    def __init__(
        self,
        url: str,
        *,
        log_slow_queries: bool = config.DB_LOG_SLOW_QUERIES,
        slow_query_threshold: float = config.DB_SLOW_QUERY_THRESHOLD,
        **engine_options: Any,
    ):
        self.url = url
        options = _engine_options(url)
        options.update(engine_options)

        try:
            self.engine = create_engine(url, echo=False, **options)
        except Exception as e:
            logger.error(f"❌ Failed to create database engine: {e}")
            raise

        if "pool_size" in options:
            logger.info(
                f"📊 Connection pool: size={options['pool_size']}, "
                f"max_overflow={options['max_overflow']}, timeout={options['pool_timeout']}s"
            )

        if log_slow_queries:
            self._install_slow_query_logging(slow_query_threshold)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def _install_slow_query_logging(self, threshold: float) -> None:
        @event.listens_for(self.engine, "before_cursor_execute")
        def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(self.engine, "after_cursor_execute")
        def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > threshold:
                logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_all(self) -> None:
        """Create tables that don't exist yet"""
        # Import models so they're registered with Base
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine, checkfirst=True)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"❌ Database ping failed: {e}")
            return False

    def dispose(self) -> None:
        logger.info("🔄 Closing database connections...")
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialised for this application")
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
