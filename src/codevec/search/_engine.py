"""SearchEngine — embeds a query and ranks the memory index by cosine similarity."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from codevec.search.similarity import rank

if TYPE_CHECKING:
    from codevec.search._index import MemoryIndex
    from codevec.search.protocols import EmbeddingProvider
    from codevec.search.types import SearchResult

logger = logging.getLogger(__name__)


async def embed_text(provider: EmbeddingProvider, text: str) -> list[float]:
    """Embed *text*, handling both sync and async providers.

    A provider exception is logged and reported as an empty vector so
    callers handle every provider failure the same way.
    """
    try:
        result = provider.embed(text)
        if inspect.isawaitable(result):
            result = await result
    except Exception:
        logger.warning("Embedding provider %r failed", provider, exc_info=True)
        return []
    return list(result) if result is not None else []


class SearchEngine:
    """Brute-force nearest-neighbour search over a :class:`MemoryIndex`.

    Every query scores every indexed chunk; there is no approximate
    index.  Reads only the memory mirror, never the durable store.
    """

    def __init__(self, index: MemoryIndex, embedding_provider: EmbeddingProvider) -> None:
        self._index = index
        self._embedding_provider = embedding_provider

    async def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Return up to *top_k* chunks ranked by cosine similarity to *query*."""
        if top_k < 0:
            msg = "top_k must be >= 0"
            raise ValueError(msg)
        if top_k == 0 or len(self._index) == 0:
            return []

        vector = await embed_text(self._embedding_provider, query)
        if not vector:
            logger.debug("Empty query embedding; returning no results")
            return []

        # Snapshot after the await so the ranking sees one consistent state.
        return rank(vector, self._index.snapshot(), top_k)

    @property
    def index(self) -> MemoryIndex:
        return self._index

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embedding_provider
