"""EmbeddingRecord model — one embedded chunk of a source file."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, LargeBinary
from sqlmodel import Field, SQLModel

from codevec.codec import FLOAT_WIDTH, decode_vector, encode_vector

if TYPE_CHECKING:
    from collections.abc import Sequence

KEY_SEPARATOR = ":"


def make_key(file_path: str, chunk_index: int) -> str:
    """Return the canonical ``"{file_path}:{chunk_index}"`` key."""
    return f"{file_path}{KEY_SEPARATOR}{chunk_index}"


def split_key(key: str) -> tuple[str, int]:
    """Split *key* on the last separator into ``(file_path, chunk_index)``.

    File paths may themselves contain the separator, so only the trailing
    component is treated as the chunk index.
    """
    file_path, sep, index = key.rpartition(KEY_SEPARATOR)
    if not sep or not index.isdigit():
        msg = f"Malformed embedding key: {key!r}"
        raise ValueError(msg)
    return file_path, int(index)


def file_path_of(key: str) -> str:
    """Return the file-path component of *key*."""
    return key.rpartition(KEY_SEPARATOR)[0]


class EmbeddingRecord(SQLModel, table=True):
    """A persisted chunk embedding.

    ``file_hash`` is the hash of the *whole* source file, shared by every
    chunk of that file, so a single comparison decides whether the file
    needs re-embedding.  ``vector`` holds the float32 little-endian codec
    output of :mod:`codevec.codec`.
    """

    __tablename__ = "codevec_embeddings"

    key: str = Field(primary_key=True)
    file_path: str = Field(index=True)
    chunk_index: int = Field(default=0)
    vector: bytes = Field(sa_type=LargeBinary)
    dimension: int = Field(default=0)
    chunk_text: str = Field(default="")
    file_hash: str = Field(default="")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )

    @classmethod
    def build(
        cls,
        *,
        file_path: str,
        chunk_index: int,
        vector: Sequence[float],
        chunk_text: str,
        file_hash: str,
    ) -> EmbeddingRecord:
        """Create a record from a float vector, deriving key and blob."""
        blob = encode_vector(vector)
        return cls(
            key=make_key(file_path, chunk_index),
            file_path=file_path,
            chunk_index=chunk_index,
            vector=blob,
            dimension=len(blob) // FLOAT_WIDTH,
            chunk_text=chunk_text,
            file_hash=file_hash,
        )

    def floats(self) -> list[float]:
        """Decode the stored vector."""
        return decode_vector(self.vector, self.dimension)
