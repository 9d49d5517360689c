"""Tests for MemoryIndex — the RAM mirror of the store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from codevec.exceptions import DimensionMismatchError
from codevec.models import EmbeddingRecord
from codevec.search import MemoryIndex

if TYPE_CHECKING:
    from codevec.store import EmbeddingStore


class TestMutation:
    def test_upsert_and_get(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0, 2.0], "text")
        got = index.get("/a.py:0")
        assert got is not None
        vec, text = got
        assert vec.tolist() == [1.0, 2.0]
        assert text == "text"
        assert len(index) == 1
        assert "/a.py:0" in index
        assert index.dimension == 2

    def test_upsert_replaces(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0, 2.0], "old")
        index.apply_upsert("/a.py:0", [3.0, 4.0], "new")
        assert len(index) == 1
        assert index.get("/a.py:0")[1] == "new"  # type: ignore[index]

    def test_stored_vectors_are_read_only_copies(self, index: MemoryIndex) -> None:
        source = np.array([1.0, 2.0], dtype=np.float32)
        index.apply_upsert("/a.py:0", source, "t")
        source[0] = 99.0
        vec, _ = index.get("/a.py:0")  # type: ignore[misc]
        assert vec[0] == 1.0
        assert not vec.flags.writeable

    def test_dimension_mismatch(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0, 2.0], "t")
        with pytest.raises(DimensionMismatchError):
            index.apply_upsert("/b.py:0", [1.0, 2.0, 3.0], "t")
        assert "/b.py:0" not in index

    def test_empty_vector_rejected(self, index: MemoryIndex) -> None:
        with pytest.raises(DimensionMismatchError):
            index.apply_upsert("/a.py:0", [], "t")

    def test_delete_file(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0], "t")
        index.apply_upsert("/a.py:1", [1.0], "t")
        index.apply_upsert("/b.py:0", [1.0], "t")
        assert index.apply_delete("/a.py") == 2
        assert index.keys() == {"/b.py:0"}

    def test_delete_does_not_match_prefixes(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a/b.py:0", [1.0], "t")
        index.apply_upsert("/a/b.py.bak:0", [1.0], "t")
        index.apply_upsert("/x:1/y.py:0", [1.0], "t")
        index.apply_upsert("/x:1:0", [1.0], "t")
        index.apply_delete("/a/b.py")
        index.apply_delete("/x:1")
        assert index.keys() == {"/a/b.py.bak:0", "/x:1/y.py:0"}

    def test_emptying_frees_dimension(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0, 2.0], "t")
        index.apply_delete("/a.py")
        assert index.dimension is None
        index.apply_upsert("/a.py:0", [1.0, 2.0, 3.0], "t")
        assert index.dimension == 3

    def test_clear(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0], "t")
        index.clear()
        assert len(index) == 0
        assert index.dimension is None


class TestQuery:
    def test_file_paths(self, index: MemoryIndex) -> None:
        index.apply_upsert("/x:1/y.py:0", [1.0], "t")
        index.apply_upsert("/x:1/y.py:1", [1.0], "t")
        index.apply_upsert("/z.py:0", [1.0], "t")
        assert index.file_paths() == {"/x:1/y.py", "/z.py"}
        assert index.file_count() == 2
        assert index.size() == 3

    def test_snapshot_is_independent(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0], "t")
        snap = index.snapshot()
        index.apply_upsert("/b.py:0", [1.0], "u")
        assert [key for key, _, _ in snap] == ["/a.py:0"]

    def test_iteration(self, index: MemoryIndex) -> None:
        index.apply_upsert("/a.py:0", [1.0], "t")
        index.apply_upsert("/b.py:0", [1.0], "t")
        assert sorted(index) == ["/a.py:0", "/b.py:0"]


class TestRebuild:
    async def test_rebuild_mirrors_store(self, store: EmbeddingStore, index: MemoryIndex) -> None:
        for i in range(3):
            await store.upsert(
                EmbeddingRecord.build(
                    file_path="/a.py",
                    chunk_index=i,
                    vector=[float(i), 1.0],
                    chunk_text=f"chunk {i}",
                    file_hash="h",
                )
            )
        assert await index.rebuild(store) == 3
        assert index.get("/a.py:2")[1] == "chunk 2"  # type: ignore[index]
        assert index.get("/a.py:2")[0].tolist() == [2.0, 1.0]  # type: ignore[index]

    async def test_rebuild_skips_corrupt_rows(
        self, store: EmbeddingStore, index: MemoryIndex, caplog: pytest.LogCaptureFixture
    ) -> None:
        await store.upsert(
            EmbeddingRecord.build(
                file_path="/good.py", chunk_index=0, vector=[1.0], chunk_text="ok", file_hash="h"
            )
        )
        await store.upsert(
            EmbeddingRecord(
                key="/bad.py:0",
                file_path="/bad.py",
                chunk_index=0,
                vector=b"\x00\x01\x02",
                dimension=1,
                chunk_text="broken",
                file_hash="h",
            )
        )
        with caplog.at_level("WARNING", logger="codevec.search._index"):
            count = await index.rebuild(store)
        assert count == 1
        assert index.keys() == {"/good.py:0"}
        assert "/bad.py:0" in caplog.text

    async def test_rebuild_replaces_previous_contents(
        self, store: EmbeddingStore, index: MemoryIndex
    ) -> None:
        index.apply_upsert("/stale.py:0", [1.0], "t")
        await index.rebuild(store)
        assert len(index) == 0
