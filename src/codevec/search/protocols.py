"""Embedding provider protocol."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for text-to-vector embedding.

    ``embed`` may be a plain or an ``async`` method.  It returns a
    fixed-dimension float vector, or an empty list when the text could
    not be embedded.  The dimension must stay stable for the lifetime of
    one index.
    """

    def embed(self, text: str) -> list[float] | Awaitable[list[float]]:
        """Embed a single text string into a vector."""
        ...

