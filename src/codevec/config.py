"""Configuration for the local embedding index."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

ENV_DATA_DIR = "CODEVEC_DATA_DIR"
ENV_MAX_TOKENS = "CODEVEC_MAX_TOKENS"

DEFAULT_DATA_DIR = Path.home() / ".codevec" / "_default"
DEFAULT_DB_FILENAME = "embeddings.db"
DEFAULT_MAX_TOKENS = 500

DEFAULT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".swift", ".ts", ".tsx", ".js", ".jsx", ".py", ".go",
        ".rs", ".java", ".kt", ".cpp", ".c", ".h", ".md",
    }
)


def resolve_data_dir(override: str | Path | None = None) -> Path:
    """Resolve the data directory.

    Precedence:
    1) explicit *override*
    2) ``CODEVEC_DATA_DIR``
    3) ``~/.codevec/_default``
    """
    raw = override or os.getenv(ENV_DATA_DIR) or DEFAULT_DATA_DIR
    return Path(raw).expanduser().resolve()


def _normalize_extensions(extensions: frozenset[str] | set[str] | list[str]) -> frozenset[str]:
    return frozenset(
        ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions
    )


@dataclass(frozen=True, slots=True)
class CodeVecConfig:
    """Settings for one codevec installation.

    Attributes:
        data_dir: Directory holding the durable store.
        db_filename: File name of the SQLite database inside *data_dir*.
        max_tokens_per_chunk: Approximate token budget per chunk.
        extensions: Allow-listed file extensions for directory indexing.
        prune_missing: Evict records of files that vanished from an indexed root.
        load_batch_size: Rows fetched per batch when rebuilding the memory index.
    """

    data_dir: Path = field(default_factory=resolve_data_dir)
    db_filename: str = DEFAULT_DB_FILENAME
    max_tokens_per_chunk: int = DEFAULT_MAX_TOKENS
    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    prune_missing: bool = True
    load_batch_size: int = 500

    def __post_init__(self) -> None:
        if self.max_tokens_per_chunk <= 0:
            msg = "max_tokens_per_chunk must be > 0"
            raise ValueError(msg)
        if self.load_batch_size <= 0:
            msg = "load_batch_size must be > 0"
            raise ValueError(msg)
        object.__setattr__(self, "data_dir", Path(self.data_dir).expanduser())
        object.__setattr__(self, "extensions", _normalize_extensions(self.extensions))

    @classmethod
    def from_env(cls, **overrides: Any) -> CodeVecConfig:
        """Build a config from environment variables, then apply *overrides*."""
        kwargs: dict[str, Any] = {"data_dir": resolve_data_dir(overrides.pop("data_dir", None))}
        raw_tokens = os.getenv(ENV_MAX_TOKENS)
        if raw_tokens:
            kwargs["max_tokens_per_chunk"] = int(raw_tokens)
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @property
    def db_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"
