"""MemoryIndex — RAM-resident mirror of the embedding store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from codevec.codec import decode_array
from codevec.exceptions import DimensionMismatchError, VectorCodecError
from codevec.models.embeddings import file_path_of

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from codevec.store import EmbeddingStore

logger = logging.getLogger(__name__)


class MemoryIndex:
    """Two-map mirror of the durable store: ``key -> vector`` and ``key -> text``.

    All query-time reads happen here.  Both maps are always updated
    together, and no method suspends, so an asyncio reader never sees a
    key whose vector and text disagree.
    """

    def __init__(self) -> None:
        self._vectors: dict[str, np.ndarray] = {}
        self._texts: dict[str, str] = {}
        self._dimension: int | None = None

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    async def rebuild(self, store: EmbeddingStore) -> int:
        """Clear and repopulate from ``store.load_all()``. Returns entry count."""
        self.clear()
        async for record in store.load_all():
            try:
                vector = decode_array(record.vector, record.dimension)
                self.apply_upsert(record.key, vector, record.chunk_text)
            except (VectorCodecError, DimensionMismatchError):
                logger.warning("Skipping unreadable embedding %s", record.key, exc_info=True)
        logger.info("Rebuilt memory index: %d chunks across %d files", len(self), self.file_count())
        return len(self)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply_upsert(self, key: str, vector: Sequence[float] | np.ndarray, text: str) -> None:
        """Insert or replace *key*.

        The first vector fixes the index dimension; later vectors of a
        different length raise :class:`DimensionMismatchError`.
        """
        arr = np.array(vector, dtype=np.float32).reshape(-1)
        self.check_dimension(arr.shape[0])
        if self._dimension is None:
            self._dimension = int(arr.shape[0])
        arr.setflags(write=False)
        self._vectors[key] = arr
        self._texts[key] = text

    def apply_delete(self, file_path: str) -> int:
        """Remove every chunk of *file_path*. Returns count removed.

        Matches the file-path component of each key exactly, so deleting
        ``/a/b.py`` leaves ``/a/b.py.bak`` untouched.
        """
        doomed = [key for key in self._vectors if file_path_of(key) == file_path]
        for key in doomed:
            del self._vectors[key]
            del self._texts[key]
        if not self._vectors:
            self._dimension = None
        return len(doomed)

    def clear(self) -> None:
        self._vectors.clear()
        self._texts.clear()
        self._dimension = None

    def check_dimension(self, size: int) -> None:
        """Raise :class:`DimensionMismatchError` if *size* cannot join the index."""
        if size == 0:
            msg = "Cannot index an empty vector"
            raise DimensionMismatchError(msg)
        if self._dimension is not None and size != self._dimension:
            msg = f"Vector has {size} dimensions, index has {self._dimension}"
            raise DimensionMismatchError(msg)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def snapshot(self) -> list[tuple[str, np.ndarray, str]]:
        """Return ``(key, vector, text)`` triples for a consistent read."""
        return [(key, vec, self._texts[key]) for key, vec in self._vectors.items()]

    def get(self, key: str) -> tuple[np.ndarray, str] | None:
        vec = self._vectors.get(key)
        if vec is None:
            return None
        return vec, self._texts[key]

    def keys(self) -> set[str]:
        return set(self._vectors)

    def file_paths(self) -> set[str]:
        """Distinct file paths, split from keys on the last separator."""
        return {file_path_of(key) for key in self._vectors}

    def file_count(self) -> int:
        return len(self.file_paths())

    def size(self) -> int:
        return len(self._vectors)

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def __contains__(self, key: object) -> bool:
        return key in self._vectors

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._vectors))

    def __len__(self) -> int:
        return len(self._vectors)
