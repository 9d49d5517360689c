"""Tests for SearchEngine and the sync/async provider bridge."""

from __future__ import annotations

import pytest

from codevec.search import MemoryIndex, SearchEngine, embed_text

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


class TableEmbedding:
    """Synchronous provider returning fixed vectors from a lookup table."""

    def __init__(self, table: dict[str, list[float]], default: list[float] | None = None) -> None:
        self.table = table
        self.default = default if default is not None else [0.0, 0.0, 1.0]
        self.calls = 0

    def embed(self, text: str) -> list[float]:
        self.calls += 1
        return self.table.get(text, self.default)


class FailingEmbedding:
    async def embed(self, text: str) -> list[float]:
        raise ConnectionError("provider offline")


def _populated_index() -> MemoryIndex:
    index = MemoryIndex()
    index.apply_upsert("/a.py:0", [1.0, 0.0, 0.0], "def f():\n    pass")
    index.apply_upsert("/b.py:0", [0.0, 1.0, 0.0], "import os")
    index.apply_upsert("/b.py:1", [0.6, 0.8, 0.0], "print(os.getcwd())")
    return index


# ==================================================================
# embed_text
# ==================================================================


class TestEmbedText:
    async def test_sync_provider(self) -> None:
        assert await embed_text(TableEmbedding({"q": [1.0, 2.0]}), "q") == [1.0, 2.0]

    async def test_async_provider(self, provider) -> None:
        vector = await embed_text(provider, "hello")
        assert len(vector) == provider.dimensions
        assert provider.calls == ["hello"]

    async def test_provider_error_becomes_empty(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            assert await embed_text(FailingEmbedding(), "q") == []
        assert "failed" in caplog.text


# ==================================================================
# SearchEngine
# ==================================================================


class TestSearch:
    async def test_closest_chunk_first(self) -> None:
        engine = SearchEngine(_populated_index(), TableEmbedding({"pass": [0.9, 0.1, 0.0]}))
        results = await engine.search("pass", top_k=1)
        assert len(results) == 1
        assert results[0].key == "/a.py:0"
        assert results[0].snippet == "def f():\n    pass"

    async def test_results_non_increasing(self) -> None:
        engine = SearchEngine(_populated_index(), TableEmbedding({"q": [0.5, 0.5, 0.1]}))
        results = await engine.search("q", top_k=5)
        assert len(results) == 3
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(-1.0 <= s <= 1.0 for s in scores)

    async def test_default_top_k(self) -> None:
        index = MemoryIndex()
        for i in range(8):
            index.apply_upsert(f"/f{i}.py:0", [1.0, float(i)], "t")
        engine = SearchEngine(index, TableEmbedding({}, default=[1.0, 0.0]))
        assert len(await engine.search("anything")) == 5

    async def test_empty_index_skips_provider(self) -> None:
        provider = TableEmbedding({})
        engine = SearchEngine(MemoryIndex(), provider)
        assert await engine.search("q") == []
        assert provider.calls == 0

    async def test_empty_query_vector(self) -> None:
        engine = SearchEngine(_populated_index(), TableEmbedding({}, default=[]))
        assert await engine.search("q") == []

    async def test_provider_failure(self) -> None:
        engine = SearchEngine(_populated_index(), FailingEmbedding())
        assert await engine.search("q") == []

    async def test_zero_top_k(self) -> None:
        provider = TableEmbedding({})
        engine = SearchEngine(_populated_index(), provider)
        assert await engine.search("q", top_k=0) == []
        assert provider.calls == 0

    async def test_negative_top_k(self) -> None:
        engine = SearchEngine(_populated_index(), TableEmbedding({}))
        with pytest.raises(ValueError, match="top_k"):
            await engine.search("q", top_k=-1)

    async def test_zero_query_vector_scores_zero(self) -> None:
        engine = SearchEngine(_populated_index(), TableEmbedding({}, default=[0.0, 0.0, 0.0]))
        results = await engine.search("q", top_k=3)
        assert [r.score for r in results] == [0.0, 0.0, 0.0]
        assert [r.key for r in results] == ["/a.py:0", "/b.py:0", "/b.py:1"]
