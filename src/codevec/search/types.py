"""Search and indexing value objects."""

from __future__ import annotations

from dataclasses import dataclass

# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A single ranked chunk.

    Attributes:
        key: ``"{file_path}:{chunk_index}"`` of the matched chunk.
        file_path: Absolute path of the source file.
        chunk_index: Position of the chunk within the file.
        score: Cosine similarity in ``[-1, 1]`` (higher is more similar).
        snippet: The stored chunk text.
    """

    key: str
    file_path: str
    chunk_index: int
    score: float
    snippet: str


@dataclass(frozen=True, slots=True)
class IndexResult:
    """Outcome of an ``index_directory`` run.

    Attributes:
        files_seen: Candidate files enumerated.
        files_indexed: Files whose content changed and were re-embedded.
        files_skipped: Files whose stored hash matched (no provider calls).
        files_failed: Files that were unreadable or whose write failed.
        chunks_written: Records persisted during the run.
        files_pruned: Files evicted because they were no longer enumerated.
    """

    files_seen: int = 0
    files_indexed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    chunks_written: int = 0
    files_pruned: int = 0


@dataclass(frozen=True, slots=True)
class IndexStats:
    """Size of the index.

    Attributes:
        file_count: Distinct files represented.
        chunk_count: Indexed chunks.
        store_size_bytes: On-disk size of the durable store.
    """

    file_count: int
    chunk_count: int
    store_size_bytes: int
