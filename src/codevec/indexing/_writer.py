"""IndexWriter — the only path that mutates the store and the memory index."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from codevec.codec import decode_array

if TYPE_CHECKING:
    from codevec.models.embeddings import EmbeddingRecord
    from codevec.search._index import MemoryIndex
    from codevec.store import EmbeddingStore

logger = logging.getLogger(__name__)


class IndexWriter:
    """Serialises every mutation and applies it to store and mirror together.

    Each method holds the writer lock, writes the durable store first and,
    once that write has committed, applies the same change to the
    :class:`MemoryIndex` without suspending.  If the store write raises,
    the memory index is left untouched, so the two never diverge.
    """

    def __init__(self, store: EmbeddingStore, index: MemoryIndex) -> None:
        self._store = store
        self._index = index
        self._lock = asyncio.Lock()

    async def replace_file(self, file_path: str, records: list[EmbeddingRecord]) -> int:
        """Replace all chunks of *file_path* with *records*. Returns count written.

        Records whose dimension cannot join the index are dropped with a
        warning before anything is written.
        """
        async with self._lock:
            accepted = self._accept(records, replacing=file_path)
            count = await self._store.replace_file(file_path, accepted)
            self._index.apply_delete(file_path)
            for record in accepted:
                self._index.apply_upsert(
                    record.key, decode_array(record.vector, record.dimension), record.chunk_text
                )
            return count

    async def upsert(self, record: EmbeddingRecord) -> bool:
        """Insert or replace a single record. Returns False if it was dropped."""
        async with self._lock:
            if not self._accept([record], replacing=None):
                return False
            await self._store.upsert(record)
            self._index.apply_upsert(
                record.key, decode_array(record.vector, record.dimension), record.chunk_text
            )
            return True

    async def delete_file(self, file_path: str) -> int:
        """Remove every chunk of *file_path*. Returns count deleted from the store."""
        async with self._lock:
            count = await self._store.delete_by_file_path(file_path)
            self._index.apply_delete(file_path)
            return count

    async def clear(self) -> int:
        """Remove everything. Returns count deleted from the store."""
        async with self._lock:
            count = await self._store.clear_all()
            self._index.clear()
            return count

    def _accept(
        self, records: list[EmbeddingRecord], *, replacing: str | None
    ) -> list[EmbeddingRecord]:
        """Filter out records whose dimension cannot join the index.

        When *replacing* names a file that holds every indexed chunk, its
        removal frees the index dimension, so the first incoming record may
        set a new one.
        """
        dimension = self._index.dimension
        if replacing is not None and dimension is not None:
            others = self._index.file_paths() - {replacing}
            if not others:
                dimension = None

        accepted: list[EmbeddingRecord] = []
        for record in records:
            if record.dimension == 0 or (dimension is not None and record.dimension != dimension):
                logger.warning(
                    "Dropping chunk %s: %d dimensions, index has %s",
                    record.key,
                    record.dimension,
                    dimension,
                )
                continue
            if dimension is None:
                dimension = record.dimension
            accepted.append(record)
        return accepted
