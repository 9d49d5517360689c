"""SQLModel database models for codevec."""

from codevec.models.embeddings import EmbeddingRecord, file_path_of, make_key, split_key

__all__ = [
    "EmbeddingRecord",
    "file_path_of",
    "make_key",
    "split_key",
]
