"""Binary codec for embedding vectors.

Layout: ``dimension`` IEEE-754 single-precision floats, little-endian,
packed back to back with no header.  A vector of length *n* occupies
exactly ``4 * n`` bytes; the empty vector encodes to ``b""``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from codevec.exceptions import VectorCodecError

if TYPE_CHECKING:
    from collections.abc import Sequence

FLOAT_WIDTH = 4
_DTYPE = np.dtype("<f4")


def encode_vector(vector: Sequence[float] | np.ndarray) -> bytes:
    """Encode *vector* as little-endian float32 bytes."""
    return np.asarray(vector, dtype=_DTYPE).reshape(-1).tobytes()


def decode_array(blob: bytes, dimension: int | None = None) -> np.ndarray:
    """Decode *blob* into a native-endian float32 array.

    Raises :class:`VectorCodecError` if the blob is not a whole number of
    floats or does not hold exactly *dimension* floats.
    """
    if len(blob) % FLOAT_WIDTH != 0:
        msg = f"Vector blob length {len(blob)} is not a multiple of {FLOAT_WIDTH}"
        raise VectorCodecError(msg)
    if dimension is not None and len(blob) != dimension * FLOAT_WIDTH:
        msg = f"Vector blob holds {len(blob) // FLOAT_WIDTH} floats, expected {dimension}"
        raise VectorCodecError(msg)
    return np.frombuffer(blob, dtype=_DTYPE).astype(np.float32)


def decode_vector(blob: bytes, dimension: int | None = None) -> list[float]:
    """Decode *blob* into a list of Python floats."""
    return decode_array(blob, dimension).tolist()
