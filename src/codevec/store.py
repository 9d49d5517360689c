"""EmbeddingStore — durable SQLite persistence for embedding records."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import Index, event, func
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import select

from codevec.exceptions import StorageError, StoreUnavailableError
from codevec.models.embeddings import EmbeddingRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

logger = logging.getLogger(__name__)

_SIDECAR_SUFFIXES = ("", "-wal", "-shm")


def _set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[union-attr]
    cursor.execute("PRAGMA journal_mode=WAL")
    result = cursor.fetchone()
    if result is not None and result[0].lower() not in ("wal", "memory"):
        logger.warning("WAL mode not active, got: %s", result[0])
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.close()


class EmbeddingStore:
    """Crash-safe table of :class:`EmbeddingRecord` rows keyed by ``key``.

    Either pass *db_path* (a file created on :meth:`open`) or an existing
    async *engine*.  Each public method runs in its own session and commits
    before returning, so a returned call is durable.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        engine: AsyncEngine | None = None,
        load_batch_size: int = 500,
    ) -> None:
        if (db_path is None) == (engine is None):
            msg = "Provide db_path or engine, not both"
            raise ValueError(msg)
        self._db_path = Path(db_path).expanduser() if db_path is not None else None
        self._engine: AsyncEngine | None = engine
        self._owns_engine = engine is None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._load_batch_size = load_batch_size
        self._init_lock = asyncio.Lock()

    @property
    def db_path(self) -> Path | None:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Create or open the database and ensure the schema exists.

        Raises :class:`StoreUnavailableError` if the location cannot be
        created or the database cannot be opened.
        """
        if self._session_factory is not None:
            return
        async with self._init_lock:
            if self._session_factory is not None:
                return
            try:
                if self._engine is None and self._db_path is not None:
                    self._db_path.parent.mkdir(parents=True, exist_ok=True)
                    self._engine = create_async_engine(
                        f"sqlite+aiosqlite:///{self._db_path}",
                        echo=False,
                    )
                    event.listen(self._engine.sync_engine, "connect", _set_sqlite_pragma)
                await self.create_schema_if_missing()
            except (OSError, SQLAlchemyError) as exc:
                await self._dispose()
                msg = f"Cannot open embedding store at {self._db_path or 'engine'}: {exc}"
                raise StoreUnavailableError(msg) from exc

            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

    async def create_schema_if_missing(self) -> None:
        """Create the embeddings table and its ``file_path`` index if absent."""
        if self._engine is None:
            msg = "Store engine not initialised"
            raise StoreUnavailableError(msg)
        table = EmbeddingRecord.__table__  # type: ignore[unresolved-attribute]
        async with self._engine.begin() as conn:
            await conn.run_sync(lambda c: table.create(c, checkfirst=True))
            for index in table.indexes:
                await conn.run_sync(lambda c, ix=index: _create_index(c, ix))

    async def close(self) -> None:
        """Release the engine (only if this store created it)."""
        self._session_factory = None
        await self._dispose()

    async def _dispose(self) -> None:
        if self._engine is not None and self._owns_engine:
            await self._engine.dispose()
            self._engine = None

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            msg = "Embedding store is not open"
            raise StorageError(msg)
        return self._session_factory

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert(self, record: EmbeddingRecord) -> None:
        """Insert or replace *record* by key."""
        try:
            async with self._sessions()() as session, session.begin():
                await session.merge(record)
        except SQLAlchemyError as exc:
            msg = f"Upsert failed for {record.key}: {exc}"
            raise StorageError(msg) from exc

    async def replace_file(self, file_path: str, records: Iterable[EmbeddingRecord]) -> int:
        """Delete every record for *file_path*, insert *records*. Returns count inserted.

        Runs as a single transaction: either all old rows are replaced or
        nothing changes.
        """
        model = EmbeddingRecord
        count = 0
        try:
            async with self._sessions()() as session, session.begin():
                await session.execute(
                    sa_delete(model).where(model.file_path == file_path)  # type: ignore[arg-type]
                )
                for record in records:
                    await session.merge(record)
                    count += 1
        except SQLAlchemyError as exc:
            msg = f"Replacing chunks failed for {file_path}: {exc}"
            raise StorageError(msg) from exc
        return count

    async def delete_by_file_path(self, file_path: str) -> int:
        """Delete all records for *file_path*. Returns count deleted."""
        model = EmbeddingRecord
        try:
            async with self._sessions()() as session, session.begin():
                result = await session.execute(
                    sa_delete(model).where(model.file_path == file_path)  # type: ignore[arg-type]
                )
        except SQLAlchemyError as exc:
            msg = f"Delete failed for {file_path}: {exc}"
            raise StorageError(msg) from exc
        return result.rowcount or 0

    async def clear_all(self) -> int:
        """Delete every record. Returns count deleted."""
        try:
            async with self._sessions()() as session, session.begin():
                result = await session.execute(sa_delete(EmbeddingRecord))
        except SQLAlchemyError as exc:
            msg = f"Clearing embedding store failed: {exc}"
            raise StorageError(msg) from exc
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def file_hash(self, file_path: str) -> str | None:
        """Return the stored hash for *file_path*, or ``None`` if never indexed."""
        model = EmbeddingRecord
        try:
            async with self._sessions()() as session:
                result = await session.execute(
                    select(model.file_hash).where(model.file_path == file_path).limit(1)
                )
                return result.scalars().first()
        except SQLAlchemyError as exc:
            msg = f"Hash lookup failed for {file_path}: {exc}"
            raise StorageError(msg) from exc

    async def get(self, key: str) -> EmbeddingRecord | None:
        """Return the record stored under *key*, if any."""
        try:
            async with self._sessions()() as session:
                return await session.get(EmbeddingRecord, key)
        except SQLAlchemyError as exc:
            msg = f"Lookup failed for {key}: {exc}"
            raise StorageError(msg) from exc

    async def load_all(self) -> AsyncIterator[EmbeddingRecord]:
        """Yield every record, fetched in key order in batches.

        Batches are keyset-paginated so at most ``load_batch_size`` rows are
        materialised at a time on top of what the caller retains.
        """
        model = EmbeddingRecord
        last_key: str | None = None
        while True:
            stmt = select(model).order_by(model.key).limit(self._load_batch_size)
            if last_key is not None:
                stmt = stmt.where(model.key > last_key)
            try:
                async with self._sessions()() as session:
                    result = await session.execute(stmt)
                    batch = list(result.scalars().all())
            except SQLAlchemyError as exc:
                msg = f"Loading embeddings failed: {exc}"
                raise StorageError(msg) from exc
            if not batch:
                return
            for record in batch:
                yield record
            last_key = batch[-1].key

    async def count(self) -> int:
        """Return the number of stored records."""
        try:
            async with self._sessions()() as session:
                result = await session.execute(select(func.count()).select_from(EmbeddingRecord))
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            msg = f"Counting embeddings failed: {exc}"
            raise StorageError(msg) from exc

    async def file_paths(self) -> set[str]:
        """Return every distinct file path with at least one record."""
        model = EmbeddingRecord
        try:
            async with self._sessions()() as session:
                result = await session.execute(select(model.file_path).distinct())
                return set(result.scalars().all())
        except SQLAlchemyError as exc:
            msg = f"Listing indexed files failed: {exc}"
            raise StorageError(msg) from exc

    def size_bytes(self) -> int:
        """On-disk size of the database including WAL/SHM sidecars."""
        if self._db_path is None:
            return 0
        total = 0
        for suffix in _SIDECAR_SUFFIXES:
            try:
                total += os.path.getsize(f"{self._db_path}{suffix}")
            except OSError:
                continue
        return total


def _create_index(connection: object, index: Index) -> None:
    index.create(connection, checkfirst=True)  # type: ignore[arg-type]
