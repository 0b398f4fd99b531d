"""
SQLite Storage Implementation

DESIGN DECISION: SQLite through SQLAlchemy Core is the bundled backend because:
1. No database server is required for a personal ledger
2. Real transactions: a unit of work commits or rolls back as a whole
3. SQLAlchemy gives us parameter binding and error types for free

TRADEOFFS:
- One writer at a time. Every unit of work starts with BEGIN IMMEDIATE,
  so read-modify-write sequences on the same goal are serialized by
  SQLite itself. The services add no locking of their own.
- Calls are blocking. Like any storage client wrapped behind an async
  interface, they run inside the coroutine.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from savings_ledger.config import DatabaseSettings, get_settings
from savings_ledger.errors import ReferenceError, StorageError
from savings_ledger.services.storage.interface import Params, StorageInterface, UnitOfWork
from savings_ledger.services.storage.rows import format_timestamp, to_db_value, utc_now
from savings_ledger.services.storage.schema import (
    DEFAULT_CATEGORIES,
    INSERT_CATEGORY,
    SCHEMA_STATEMENTS,
)

logger = structlog.get_logger(__name__)


def _constraint_error(e: IntegrityError) -> Exception:
    """Foreign key failures name a missing row; any other constraint is a storage fault."""
    if "FOREIGN KEY" in str(e.orig):
        return ReferenceError(f"Constraint violation: {e.orig}")
    return StorageError(f"Constraint violation: {e.orig}")


class SqliteUnitOfWork(UnitOfWork):
    """Unit of work bound to one open SQLAlchemy connection."""

    def __init__(self, connection: Connection):
        self._connection = connection

    def _run(self, statement: str, params: Params):
        bound = {key: to_db_value(value) for key, value in (params or {}).items()}
        try:
            return self._connection.execute(text(statement), bound)
        except IntegrityError as e:
            raise _constraint_error(e) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Statement failed: {e}") from e

    async def execute(self, statement: str, params: Params = None) -> int:
        return self._run(statement, params).rowcount

    async def query_one(self, statement: str, params: Params = None) -> Optional[dict[str, Any]]:
        row = self._run(statement, params).mappings().first()
        return dict(row) if row is not None else None

    async def query_many(self, statement: str, params: Params = None) -> list[dict[str, Any]]:
        return [dict(row) for row in self._run(statement, params).mappings().all()]


class SqliteStorage(StorageInterface):
    """
    SQLite implementation of the storage contract.

    The engine is created by ``initialize`` and disposed by ``close``;
    the process entry point owns both calls.
    """

    def __init__(
        self,
        settings: Optional[DatabaseSettings] = None,
        url: Optional[str] = None,
    ):
        self._settings = settings or get_settings().database
        self._url = url or self._settings.url
        self._engine: Optional[Engine] = None

    @property
    def url(self) -> str:
        return self._url

    def _is_memory_database(self) -> bool:
        database = make_url(self._url).database
        return not database or database == ":memory:"

    def _ensure_directory(self) -> None:
        if self._is_memory_database():
            return
        Path(make_url(self._url).database).parent.mkdir(parents=True, exist_ok=True)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    def connect(self) -> Engine:
        """
        Create the engine and check that the database opens.

        Foreign keys are switched on for every connection, and pysqlite's
        implicit transaction handling is replaced by an explicit
        BEGIN IMMEDIATE.
        """
        if self._engine is None:
            try:
                self._ensure_directory()
                engine_kwargs: dict[str, Any] = {
                    "echo": self._settings.echo,
                    "connect_args": {"check_same_thread": False},
                }
                if self._is_memory_database():
                    # One shared connection, otherwise every checkout is a new empty database
                    engine_kwargs["poolclass"] = StaticPool
                engine = create_engine(self._url, **engine_kwargs)

                @event.listens_for(engine, "connect")
                def _on_connect(dbapi_conn, _):
                    dbapi_conn.isolation_level = None
                    cursor = dbapi_conn.cursor()
                    cursor.execute("PRAGMA foreign_keys = ON")
                    cursor.close()

                @event.listens_for(engine, "begin")
                def _on_begin(conn):
                    conn.exec_driver_sql("BEGIN IMMEDIATE")

                with engine.connect() as conn:
                    conn.exec_driver_sql("SELECT 1")
            except (SQLAlchemyError, OSError) as e:
                logger.warning("database_connect_failed", url=self._url, error=str(e))
                raise StorageError(f"Failed to open database: {e}") from e

            self._engine = engine
            logger.info("database_connected", url=self._url)

        return self._engine

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise StorageError("Storage not initialized. Call initialize() first.")
        return self._engine

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        engine = self._require_engine()
        try:
            with engine.begin() as connection:
                yield SqliteUnitOfWork(connection)
        except IntegrityError as e:
            raise _constraint_error(e) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Transaction failed: {e}") from e

    async def initialize(self) -> None:
        self.connect()
        async with self.transaction() as uow:
            for statement in SCHEMA_STATEMENTS:
                await uow.execute(statement)
        if self._settings.seed_default_categories:
            await self.seed_default_categories()

    async def seed_default_categories(self) -> int:
        """
        Insert the default categories if the table is empty.

        Returns:
            Number of categories inserted
        """
        async with self.transaction() as uow:
            existing = await uow.query_one("SELECT COUNT(*) AS count FROM categories")
            if existing and existing["count"] > 0:
                return 0

            now = format_timestamp(utc_now())
            for category_id, name, kind, color, icon in DEFAULT_CATEGORIES:
                await uow.execute(
                    INSERT_CATEGORY,
                    {
                        "id": category_id,
                        "name": name,
                        "type": kind,
                        "color": color,
                        "icon": icon,
                        "created_at": now,
                        "updated_at": now,
                    },
                )

        logger.info("default_categories_seeded", count=len(DEFAULT_CATEGORIES))
        return len(DEFAULT_CATEGORIES)

    async def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("database_closed", url=self._url)
