"""CodeVecAsync — primary async service object."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from codevec.config import CodeVecConfig
from codevec.events import EventBus, EventType, IndexEvent
from codevec.exceptions import StorageError, StoreUnavailableError
from codevec.indexing._indexer import Indexer
from codevec.indexing._writer import IndexWriter
from codevec.search._engine import SearchEngine
from codevec.search._index import MemoryIndex
from codevec.search.providers.hashing import HashEmbedding
from codevec.search.types import IndexResult, IndexStats
from codevec.store import EmbeddingStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from codevec.search.protocols import EmbeddingProvider
    from codevec.search.types import SearchResult

logger = logging.getLogger(__name__)


class CodeVecAsync:
    """Async service wiring store, memory index, indexer, search, and events.

    One instance owns one durable store and its in-memory mirror.  Indexing
    calls are serialised; searches run concurrently with indexing against a
    snapshot of the memory index.  If the store cannot be opened the service
    keeps running without an index: indexing becomes a no-op and searches
    return no results.

    Usage::

        async with CodeVecAsync(CodeVecConfig(data_dir="/tmp/cv")) as cv:
            await cv.index_directory("/path/to/project")
            results = await cv.search("parse the config file")
    """

    def __init__(
        self,
        config: CodeVecConfig | None = None,
        *,
        embedding_provider: EmbeddingProvider | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._config = config or CodeVecConfig.from_env()
        self._embedding_provider: EmbeddingProvider = embedding_provider or HashEmbedding()

        if engine is not None:
            self._store = EmbeddingStore(engine=engine, load_batch_size=self._config.load_batch_size)
        else:
            self._store = EmbeddingStore(
                self._config.db_path, load_batch_size=self._config.load_batch_size
            )

        self._index = MemoryIndex()
        self._writer = IndexWriter(self._store, self._index)
        self._events = EventBus()
        self._indexer = Indexer(
            self._store,
            self._index,
            self._writer,
            self._embedding_provider,
            max_tokens_per_chunk=self._config.max_tokens_per_chunk,
            extensions=self._config.extensions,
            prune_missing=self._config.prune_missing,
            events=self._events,
        )
        self._search_engine = SearchEngine(self._index, self._embedding_provider)

        self._lock = asyncio.Lock()
        self._open_lock = asyncio.Lock()
        self._opened = False
        self._available = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Open the durable store and rebuild the memory index from it.

        Never raises for an unusable store location; the service degrades
        to running without an index instead.
        """
        async with self._open_lock:
            if self._opened:
                return
            self._opened = True
            try:
                await self._store.open()
                await self._index.rebuild(self._store)
            except (StoreUnavailableError, StorageError) as exc:
                logger.warning("Embedding store unavailable, running without an index: %s", exc)
                self._index.clear()
                await self._store.close()
                return
            self._available = True

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._store.close()
        self._available = False

    async def __aenter__(self) -> CodeVecAsync:
        await self.open()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def index_file(self, path: str | Path) -> bool:
        """(Re)index a single file. Returns True if its chunks were rewritten."""
        await self.open()
        if not self._available:
            logger.warning("Not indexing %s: embedding store unavailable", path)
            return False
        async with self._lock:
            changed = await self._indexer.index_file(path)
            if changed:
                await self._events.emit(
                    IndexEvent(
                        event_type=EventType.FILE_INDEXED,
                        in_progress=self._indexer.in_progress,
                        chunk_count=len(self._index),
                        files_indexed=1,
                        path=str(Path(path).expanduser().resolve()),
                    )
                )
            return changed

    async def index_directory(
        self,
        root: str | Path,
        files: Iterable[str | Path] | None = None,
    ) -> IndexResult:
        """Incrementally index every candidate file under *root*."""
        await self.open()
        if not self._available:
            logger.warning("Not indexing %s: embedding store unavailable", root)
            return IndexResult()
        async with self._lock:
            return await self._indexer.index_directory(root, files)

    async def clear_all_embeddings(self) -> int:
        """Delete every stored embedding and empty the memory index."""
        await self.open()
        if not self._available:
            return 0
        async with self._lock:
            removed = await self._writer.clear()
        logger.info("Cleared %d embeddings", removed)
        await self._events.emit(
            IndexEvent(
                event_type=EventType.INDEX_CLEARED,
                in_progress=self._indexer.in_progress,
                chunk_count=len(self._index),
            )
        )
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Return the *top_k* chunks most similar to *query*."""
        await self.open()
        if not self._available:
            return []
        return await self._search_engine.search(query, top_k)

    async def get_stats(self) -> IndexStats:
        await self.open()
        if not self._available:
            return IndexStats(file_count=0, chunk_count=0, store_size_bytes=0)
        size = await asyncio.to_thread(self._store.size_bytes)
        return IndexStats(
            file_count=self._index.file_count(),
            chunk_count=len(self._index),
            store_size_bytes=size,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        """Whether the durable store opened successfully."""
        return self._available

    @property
    def indexing_in_progress(self) -> bool:
        return self._indexer.in_progress

    @property
    def indexed_chunk_count(self) -> int:
        return len(self._index)

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def config(self) -> CodeVecConfig:
        return self._config

    @property
    def store(self) -> EmbeddingStore:
        return self._store

    @property
    def index(self) -> MemoryIndex:
        return self._index

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embedding_provider
