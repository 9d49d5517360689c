"""Tests for CodeVecConfig and data-dir resolution."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from codevec.config import (
    DEFAULT_DATA_DIR,
    DEFAULT_EXTENSIONS,
    ENV_DATA_DIR,
    ENV_MAX_TOKENS,
    CodeVecConfig,
    resolve_data_dir,
)


class TestResolveDataDir:
    def test_override_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_DATA_DIR, str(tmp_path / "env"))
        assert resolve_data_dir(tmp_path / "explicit") == (tmp_path / "explicit").resolve()

    def test_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_DATA_DIR, str(tmp_path / "env"))
        assert resolve_data_dir() == (tmp_path / "env").resolve()

    def test_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(ENV_DATA_DIR, raising=False)
        assert resolve_data_dir() == DEFAULT_DATA_DIR.resolve()


class TestCodeVecConfig:
    def test_defaults(self, tmp_path: Path) -> None:
        config = CodeVecConfig(data_dir=tmp_path)
        assert config.max_tokens_per_chunk == 500
        assert config.extensions == DEFAULT_EXTENSIONS
        assert config.prune_missing is True
        assert config.db_path == tmp_path / "embeddings.db"
        assert config.db_url == f"sqlite+aiosqlite:///{tmp_path / 'embeddings.db'}"

    def test_extensions_normalised(self, tmp_path: Path) -> None:
        config = CodeVecConfig(data_dir=tmp_path, extensions=frozenset({"PY", ".Rs"}))
        assert config.extensions == frozenset({".py", ".rs"})

    def test_data_dir_accepts_str(self, tmp_path: Path) -> None:
        config = CodeVecConfig(data_dir=str(tmp_path))  # type: ignore[arg-type]
        assert config.data_dir == tmp_path

    @pytest.mark.parametrize("field", ["max_tokens_per_chunk", "load_batch_size"])
    def test_rejects_non_positive(self, tmp_path: Path, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            CodeVecConfig(data_dir=tmp_path, **{field: 0})

    def test_frozen(self, tmp_path: Path) -> None:
        config = CodeVecConfig(data_dir=tmp_path)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_tokens_per_chunk = 10  # type: ignore[misc]

    def test_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_DATA_DIR, str(tmp_path))
        monkeypatch.setenv(ENV_MAX_TOKENS, "120")
        config = CodeVecConfig.from_env()
        assert config.data_dir == tmp_path.resolve()
        assert config.max_tokens_per_chunk == 120

    def test_from_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_MAX_TOKENS, "120")
        config = CodeVecConfig.from_env(data_dir=tmp_path / "x", max_tokens_per_chunk=64)
        assert config.data_dir == (tmp_path / "x").resolve()
        assert config.max_tokens_per_chunk == 64
