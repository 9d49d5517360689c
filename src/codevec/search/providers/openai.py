"""OpenAIEmbedding — async embedding provider backed by OpenAI's API."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

try:
    from openai import AsyncOpenAI, OpenAIError

    _HAS_OPENAI = True
except ImportError:  # pragma: no cover
    _HAS_OPENAI = False

if TYPE_CHECKING:
    from openai import AsyncOpenAI as AsyncOpenAIType

logger = logging.getLogger(__name__)

ENV_MODEL = "CODEVEC_OPENAI_MODEL"

# Default dimensions per model when the user does not specify.
_MODEL_DEFAULTS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """Embedding provider backed by the OpenAI Embeddings API.

    API failures are logged and reported as an empty vector, which the
    indexer treats as a skipped chunk and search treats as no results.

    Requires the ``openai`` package::

        pip install codevec[openai]
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        dimensions: int | None = None,
        api_key: str | None = None,
        max_retries: int = 2,
        timeout: float = 60.0,
        client: Any | None = None,
    ) -> None:
        if client is None and not _HAS_OPENAI:
            msg = (
                "openai is required for OpenAIEmbedding. "
                "Install it with: pip install codevec[openai]"
            )
            raise ImportError(msg)

        self._model = model or os.environ.get(ENV_MODEL, "text-embedding-3-small")
        self._dimensions = dimensions

        if client is not None:
            self._client: AsyncOpenAIType = client
            return

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_key:
            msg = (
                "No OpenAI API key provided. Pass api_key= or set the "
                "OPENAI_API_KEY environment variable."
            )
            raise ValueError(msg)
        self._client = AsyncOpenAI(
            api_key=resolved_key,
            max_retries=max_retries,
            timeout=timeout,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed *text*; returns ``[]`` if the API call fails."""
        kwargs: dict[str, Any] = {"input": [text], "model": self._model}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions
        try:
            response = await self._client.embeddings.create(**kwargs)
        except OpenAIError:
            logger.warning("OpenAI embedding request failed", exc_info=True)
            return []
        if not response.data:
            return []
        return list(response.data[0].embedding)

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        if self._dimensions is not None:
            return self._dimensions
        default = _MODEL_DEFAULTS.get(self._model)
        if default is not None:
            return default
        msg = f"Unknown default dimensions for model {self._model!r}. Pass dimensions= explicitly."
        raise ValueError(msg)

    @property
    def model_name(self) -> str:
        return self._model

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
