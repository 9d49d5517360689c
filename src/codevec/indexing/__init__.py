"""Indexing layer — chunking, discovery, and the single write path."""

from codevec.indexing._indexer import FileStatus, Indexer, content_hash
from codevec.indexing._writer import IndexWriter
from codevec.indexing.chunker import TokenCounter, chunk_text, estimate_tokens
from codevec.indexing.discovery import MAX_FILE_SIZE, SKIP_DIRS, iter_source_files, should_skip

__all__ = [
    "MAX_FILE_SIZE",
    "SKIP_DIRS",
    "FileStatus",
    "IndexWriter",
    "Indexer",
    "TokenCounter",
    "chunk_text",
    "content_hash",
    "estimate_tokens",
    "iter_source_files",
    "should_skip",
]
