"""codevec: local semantic code search.

Chunk source files, embed the chunks, persist them in SQLite, and answer
natural-language queries by cosine similarity over an in-memory mirror.
"""

__version__ = "0.1.0"

from codevec._codevec import CodeVec
from codevec._codevec_async import CodeVecAsync
from codevec.config import CodeVecConfig
from codevec.events import EventBus, EventType, IndexEvent
from codevec.exceptions import (
    CodeVecError,
    DimensionMismatchError,
    StorageError,
    StoreUnavailableError,
    VectorCodecError,
)
from codevec.indexing import Indexer, IndexWriter, chunk_text
from codevec.models.embeddings import EmbeddingRecord
from codevec.search import (
    EmbeddingProvider,
    IndexResult,
    IndexStats,
    MemoryIndex,
    SearchEngine,
    SearchResult,
)
from codevec.search.providers import HashEmbedding
from codevec.store import EmbeddingStore

__all__ = [
    "CodeVec",
    "CodeVecAsync",
    "CodeVecConfig",
    "CodeVecError",
    "DimensionMismatchError",
    "EmbeddingProvider",
    "EmbeddingRecord",
    "EmbeddingStore",
    "EventBus",
    "EventType",
    "HashEmbedding",
    "IndexEvent",
    "IndexResult",
    "IndexStats",
    "IndexWriter",
    "Indexer",
    "MemoryIndex",
    "SearchEngine",
    "SearchResult",
    "StorageError",
    "StoreUnavailableError",
    "VectorCodecError",
    "__version__",
    "chunk_text",
]
