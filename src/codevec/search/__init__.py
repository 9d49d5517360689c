"""Search layer — memory index, similarity ranking, embedding providers."""

from codevec.search._engine import SearchEngine, embed_text
from codevec.search._index import MemoryIndex
from codevec.search.protocols import EmbeddingProvider
from codevec.search.similarity import cosine_similarity, rank
from codevec.search.types import IndexResult, IndexStats, SearchResult

__all__ = [
    "EmbeddingProvider",
    "IndexResult",
    "IndexStats",
    "MemoryIndex",
    "SearchEngine",
    "SearchResult",
    "cosine_similarity",
    "embed_text",
    "rank",
]
