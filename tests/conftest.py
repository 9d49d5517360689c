"""Shared fixtures for codevec tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

import codevec.models  # noqa: F401  (registers EmbeddingRecord on the metadata)
from codevec.indexing import Indexer, IndexWriter
from codevec.search import MemoryIndex
from codevec.search.providers import HashEmbedding
from codevec.store import EmbeddingStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

_DIM = 16


class CountingEmbedding:
    """Deterministic async provider that records every call.

    Texts containing any substring in *empty_on* embed to ``[]``; texts
    containing any substring in *raise_on* raise ``RuntimeError``.
    """

    def __init__(
        self,
        dimensions: int = _DIM,
        *,
        empty_on: tuple[str, ...] = (),
        raise_on: tuple[str, ...] = (),
    ) -> None:
        self._inner = HashEmbedding(dimensions)
        self.empty_on = empty_on
        self.raise_on = raise_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(s in text for s in self.raise_on):
            raise RuntimeError(f"provider failed on {text!r}")
        if any(s in text for s in self.empty_on):
            return []
        return self._inner.embed_sync(text)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def dimensions(self) -> int:
        return self._inner.dimensions


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def store(async_engine: AsyncEngine) -> AsyncIterator[EmbeddingStore]:
    """Opened store on the shared in-memory engine."""
    s = EmbeddingStore(engine=async_engine)
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def index() -> MemoryIndex:
    return MemoryIndex()


@pytest.fixture
def writer(store: EmbeddingStore, index: MemoryIndex) -> IndexWriter:
    return IndexWriter(store, index)


@pytest.fixture
def provider() -> CountingEmbedding:
    return CountingEmbedding()


@pytest.fixture
def make_provider() -> type[CountingEmbedding]:
    """Factory for providers with configured failures."""
    return CountingEmbedding


@pytest.fixture
def indexer(
    store: EmbeddingStore,
    index: MemoryIndex,
    writer: IndexWriter,
    provider: CountingEmbedding,
) -> Indexer:
    """Indexer with a small chunk budget so short files span several chunks."""
    return Indexer(store, index, writer, provider, max_tokens_per_chunk=2)
