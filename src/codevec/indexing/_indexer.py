"""Indexer — incremental, file-level (re)indexing."""

from __future__ import annotations

import asyncio
import hashlib
import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from codevec.config import DEFAULT_EXTENSIONS, DEFAULT_MAX_TOKENS
from codevec.events import EventBus, EventType, IndexEvent
from codevec.exceptions import StorageError
from codevec.indexing.chunker import TokenCounter, chunk_text, estimate_tokens
from codevec.indexing.discovery import iter_source_files
from codevec.models.embeddings import EmbeddingRecord
from codevec.search._engine import embed_text
from codevec.search.types import IndexResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from codevec.indexing._writer import IndexWriter
    from codevec.search._index import MemoryIndex
    from codevec.search.protocols import EmbeddingProvider
    from codevec.store import EmbeddingStore

logger = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    """SHA-256 hex digest of a file's full text."""
    return hashlib.sha256(content.encode()).hexdigest()


class FileStatus(Enum):
    """Outcome of indexing one file."""

    INDEXED = "indexed"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class Indexer:
    """Keeps the store and memory index in step with files on disk.

    A file is re-embedded only when the hash of its full content differs
    from the hash stored with its chunks.  Old chunks are evicted and new
    ones inserted in one store transaction, mirrored into memory by the
    :class:`IndexWriter`, so a file that shrinks leaves no stale chunks.
    Failures are contained per chunk (empty embedding) or per file
    (unreadable file, failed write) and never abort a batch.
    """

    def __init__(
        self,
        store: EmbeddingStore,
        index: MemoryIndex,
        writer: IndexWriter,
        embedding_provider: EmbeddingProvider,
        *,
        max_tokens_per_chunk: int = DEFAULT_MAX_TOKENS,
        token_counter: TokenCounter = estimate_tokens,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        prune_missing: bool = True,
        events: EventBus | None = None,
    ) -> None:
        if max_tokens_per_chunk <= 0:
            msg = "max_tokens_per_chunk must be > 0"
            raise ValueError(msg)
        self._store = store
        self._index = index
        self._writer = writer
        self._embedding_provider = embedding_provider
        self._max_tokens = max_tokens_per_chunk
        self._token_counter = token_counter
        self._extensions = frozenset(extensions)
        self._prune_missing = prune_missing
        self._events = events or EventBus()
        self._in_progress = False
        self._files_indexed = 0

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    @property
    def in_progress(self) -> bool:
        """Whether an ``index_directory`` run is active."""
        return self._in_progress

    @property
    def chunk_count(self) -> int:
        return len(self._index)

    @property
    def events(self) -> EventBus:
        return self._events

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    async def index_file(self, path: str | Path) -> bool:
        """(Re)index *path* if its content changed. Returns True if it was re-embedded."""
        status, _ = await self._index_file(path)
        return status is FileStatus.INDEXED

    async def _index_file(self, path: str | Path) -> tuple[FileStatus, int]:
        file_path = str(Path(path).expanduser().resolve())

        try:
            raw = await asyncio.to_thread(Path(file_path).read_bytes)
            content = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable file %s: %s", file_path, exc)
            return FileStatus.FAILED, 0

        file_hash = content_hash(content)
        try:
            stored_hash = await self._store.file_hash(file_path)
        except StorageError:
            logger.warning("Hash lookup failed for %s", file_path, exc_info=True)
            return FileStatus.FAILED, 0
        if stored_hash == file_hash:
            logger.debug("Unchanged: %s", file_path)
            return FileStatus.UNCHANGED, 0

        chunks = chunk_text(content, self._max_tokens, token_counter=self._token_counter)
        if not chunks and stored_hash is None:
            logger.debug("Nothing to index in %s", file_path)
            return FileStatus.UNCHANGED, 0

        records: list[EmbeddingRecord] = []
        for chunk_index, chunk in enumerate(chunks):
            vector = await embed_text(self._embedding_provider, chunk)
            if not vector:
                logger.warning("Empty embedding for %s chunk %d; skipping", file_path, chunk_index)
                continue
            records.append(
                EmbeddingRecord.build(
                    file_path=file_path,
                    chunk_index=chunk_index,
                    vector=vector,
                    chunk_text=chunk,
                    file_hash=file_hash,
                )
            )

        if not records and stored_hash is None:
            logger.warning("No chunks of %s could be embedded", file_path)
            return FileStatus.FAILED, 0

        try:
            written = await self._writer.replace_file(file_path, records)
        except StorageError:
            logger.warning("Writing chunks failed for %s", file_path, exc_info=True)
            return FileStatus.FAILED, 0

        logger.debug("Indexed %s: %d/%d chunks", file_path, written, len(chunks))
        return FileStatus.INDEXED, written

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    async def index_directory(
        self,
        root: str | Path,
        files: Iterable[str | Path] | None = None,
    ) -> IndexResult:
        """Index every candidate file under *root*.

        *files* is the externally enumerated, ordered candidate sequence;
        when omitted the allow-listed files under *root* are enumerated.
        Interrupting the run between files leaves every processed file
        fully indexed and every other file at its previous state.
        """
        base = Path(root).expanduser().resolve()
        if files is None:
            candidates = await asyncio.to_thread(iter_source_files, base, self._extensions)
        else:
            candidates = [str(Path(f).expanduser().resolve()) for f in files]

        seen = indexed = skipped = failed = chunks_written = pruned = 0
        self._in_progress = True
        self._files_indexed = 0
        await self._emit(EventType.INDEXING_STARTED)
        try:
            for candidate in candidates:
                seen += 1
                status, written = await self._index_file(candidate)
                if status is FileStatus.INDEXED:
                    indexed += 1
                    chunks_written += written
                    self._files_indexed = indexed
                    await self._emit(EventType.FILE_INDEXED, path=candidate)
                elif status is FileStatus.UNCHANGED:
                    skipped += 1
                else:
                    failed += 1

            if self._prune_missing:
                pruned = await self._prune(base, set(candidates))
        finally:
            self._in_progress = False
            await self._emit(EventType.INDEXING_FINISHED)

        result = IndexResult(
            files_seen=seen,
            files_indexed=indexed,
            files_skipped=skipped,
            files_failed=failed,
            chunks_written=chunks_written,
            files_pruned=pruned,
        )
        logger.info(
            "Indexed %s: %d files seen, %d indexed, %d unchanged, %d failed, "
            "%d chunks written, %d pruned",
            base,
            seen,
            indexed,
            skipped,
            failed,
            chunks_written,
            pruned,
        )
        return result

    async def _prune(self, root: Path, keep: set[str]) -> int:
        """Evict indexed files under *root* that are not in *keep*."""
        stale = sorted(
            path
            for path in self._index.file_paths()
            if path not in keep and Path(path).is_relative_to(root)
        )
        pruned = 0
        for path in stale:
            try:
                await self._writer.delete_file(path)
            except StorageError:
                logger.warning("Pruning failed for %s", path, exc_info=True)
                continue
            pruned += 1
        if pruned:
            logger.info("Pruned %d vanished files under %s", pruned, root)
        return pruned

    async def _emit(self, event_type: EventType, *, path: str | None = None) -> None:
        await self._events.emit(
            IndexEvent(
                event_type=event_type,
                in_progress=self._in_progress,
                chunk_count=len(self._index),
                files_indexed=self._files_indexed,
                path=path,
            )
        )
