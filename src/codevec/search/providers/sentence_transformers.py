"""SentenceTransformerEmbedding — local, offline-capable embedding provider."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import numpy as np

try:
    from sentence_transformers import SentenceTransformer

    _HAS_SENTENCE_TRANSFORMERS = True
except ImportError:  # pragma: no cover
    _HAS_SENTENCE_TRANSFORMERS = False

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class SentenceTransformerEmbedding:
    """Embed code chunks with a local ``sentence-transformers`` model.

    The model is loaded on first use, once, even when several worker
    threads ask for it at the same moment.  :meth:`embed` runs inference
    in :func:`asyncio.to_thread`, so searches keep running while a file
    is being embedded.  Vectors are L2-normalised unless *normalize* is
    False; cosine ranking is unaffected either way.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        *,
        device: str | None = None,
        normalize: bool = True,
    ) -> None:
        if not _HAS_SENTENCE_TRANSFORMERS:
            msg = (
                "sentence-transformers is required for SentenceTransformerEmbedding. "
                "Install it with: pip install codevec[search]"
            )
            raise ImportError(msg)
        self._model_name = model_name
        self._device = device
        self._normalize = normalize
        self._model: Any = None
        self._load_lock = threading.Lock()

    def _load_model(self) -> Any:
        with self._load_lock:
            if self._model is None:
                logger.info("Loading sentence-transformers model %s", self._model_name)
                self._model = SentenceTransformer(self._model_name, device=self._device)
            return self._model

    def embed_sync(self, text: str) -> list[float]:
        vector = self._load_model().encode(
            text,
            normalize_embeddings=self._normalize,
            convert_to_numpy=True,
        )
        return np.asarray(vector, dtype=np.float32).ravel().tolist()

    async def embed(self, text: str) -> list[float]:
        return await asyncio.to_thread(self.embed_sync, text)

    @property
    def dimensions(self) -> int:
        dim = self._load_model().get_sentence_embedding_dimension()
        if dim is None:
            msg = f"Model {self._model_name!r} did not report embedding dimensions"
            raise RuntimeError(msg)
        return int(dim)

    @property
    def model_name(self) -> str:
        return self._model_name
