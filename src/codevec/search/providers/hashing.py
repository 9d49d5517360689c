"""HashEmbedding — deterministic offline embedding provider."""

from __future__ import annotations

_DEFAULT_DIMENSIONS = 64


class HashEmbedding:
    """Bucketed character-code embedding that needs no model or network.

    Each code point adds ``(ord(ch) % 101) / 100`` to bucket
    ``position % dimensions``.  Texts sharing characters in similar
    positions land close together, which is enough to keep search usable
    when no real provider is configured.
    """

    def __init__(self, dimensions: int = _DEFAULT_DIMENSIONS) -> None:
        if dimensions <= 0:
            msg = "dimensions must be > 0"
            raise ValueError(msg)
        self._dimensions = dimensions

    async def embed(self, text: str) -> list[float]:
        """Embed *text*; never fails."""
        return self.embed_sync(text)

    def embed_sync(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        for idx, ch in enumerate(text):
            vector[idx % self._dimensions] += (ord(ch) % 101) / 100.0
        return vector

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return f"hash-{self._dimensions}"
