"""CodeVec — synchronous facade over CodeVecAsync."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

from codevec._codevec_async import CodeVecAsync

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from codevec.config import CodeVecConfig
    from codevec.events import EventBus
    from codevec.search.protocols import EmbeddingProvider
    from codevec.search.types import IndexResult, IndexStats, SearchResult


class CodeVec:
    """Blocking API backed by a private event loop in a background thread.

    The async service lives on that loop, so CodeVec can be used from plain
    sync code, notebooks, or from inside another running event loop.  Event
    handlers registered on :attr:`events` are called on the loop thread.

    Usage::

        with CodeVec(CodeVecConfig(data_dir="/tmp/cv")) as cv:
            cv.index_directory("/path/to/project")
            results = cv.search("open the database")
    """

    def __init__(
        self,
        config: CodeVecConfig | None = None,
        *,
        embedding_provider: EmbeddingProvider | None = None,
    ) -> None:
        self._closed = False

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        self._async: CodeVecAsync = self._run(self._async_init(config, embedding_provider))

    @staticmethod
    async def _async_init(
        config: CodeVecConfig | None,
        embedding_provider: EmbeddingProvider | None,
    ) -> CodeVecAsync:
        service = CodeVecAsync(config, embedding_provider=embedding_provider)
        await service.open()
        return service

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the service, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._async.close())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)

    def __enter__(self) -> CodeVec:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def index_file(self, path: str | Path) -> bool:
        return self._run(self._async.index_file(path))

    def index_directory(
        self,
        root: str | Path,
        files: Iterable[str | Path] | None = None,
    ) -> IndexResult:
        """Incrementally index every candidate file under *root*."""
        return self._run(self._async.index_directory(root, files))

    def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Semantic search over indexed chunks."""
        return self._run(self._async.search(query, top_k))

    def clear_all_embeddings(self) -> int:
        return self._run(self._async.clear_all_embeddings())

    def get_stats(self) -> IndexStats:
        return self._run(self._async.get_stats())

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        return self._async.available

    @property
    def indexing_in_progress(self) -> bool:
        return self._async.indexing_in_progress

    @property
    def indexed_chunk_count(self) -> int:
        return self._async.indexed_chunk_count

    @property
    def events(self) -> EventBus:
        """The event bus of the underlying async service."""
        return self._async.events

    @property
    def service(self) -> CodeVecAsync:
        """The underlying :class:`CodeVecAsync` (for advanced async use)."""
        return self._async
