"""Tests for CodeVec — the synchronous facade."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from codevec import CodeVec, CodeVecConfig, EventType, HashEmbedding

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from codevec import IndexEvent


@pytest.fixture
def cv(tmp_path: Path) -> Iterator[CodeVec]:
    config = CodeVecConfig(data_dir=tmp_path / "data")
    with CodeVec(config, embedding_provider=HashEmbedding(16)) as instance:
        yield instance


class TestCodeVec:
    def test_index_and_search(self, cv: CodeVec, tmp_path: Path) -> None:
        root = tmp_path / "proj"
        root.mkdir()
        (root / "a.py").write_text("print('hello world')\n")
        (root / "b.py").write_text("import sys\n")

        result = cv.index_directory(root)
        assert result.files_indexed == 2
        assert cv.indexed_chunk_count == 2
        assert cv.indexing_in_progress is False

        hits = cv.search("print('hello world')", top_k=1)
        assert [h.file_path for h in hits] == [str((root / "a.py").resolve())]

    def test_index_file_and_stats(self, cv: CodeVec, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("x = 1\n")
        assert cv.index_file(path) is True
        stats = cv.get_stats()
        assert stats.file_count == 1
        assert stats.store_size_bytes > 0
        assert cv.clear_all_embeddings() == 1
        assert cv.get_stats().chunk_count == 0

    def test_handlers_run_on_loop_thread(self, cv: CodeVec, tmp_path: Path) -> None:
        threads: list[str] = []

        def _record(event: IndexEvent) -> None:
            threads.append(threading.current_thread().name)

        cv.events.register(EventType.FILE_INDEXED, _record)
        path = tmp_path / "a.py"
        path.write_text("x = 1\n")
        cv.index_file(path)
        assert len(threads) == 1
        assert threads[0] != threading.current_thread().name

    def test_available(self, cv: CodeVec) -> None:
        assert cv.available is True
        assert cv.service.available is True

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        instance = CodeVec(CodeVecConfig(data_dir=tmp_path / "data"))
        instance.close()
        instance.close()
        assert not instance._thread.is_alive()
