"""Embedding generation with strict shape validation."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

import numpy as np

from feedback_insights.exceptions import ConfigurationError, EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingBackend(Protocol):
    """Minimal protocol for embedding services."""

    def embed(self, text: str, model: Optional[str] = None) -> Sequence[float]:
        ...


class OpenAIEmbeddingBackend:
    """Embedding backend using the OpenAI embeddings API."""

    def __init__(
        self,
        client: Optional["OpenAI"] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url
        self.dimensions = dimensions

    def _get_client(self) -> "OpenAI":
        # Built on first use so commands that never embed need no credentials.
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("OPENAI_API_KEY must be set for OpenAI embeddings")
            from openai import OpenAI  # type: ignore

            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def embed(self, text: str, model: Optional[str] = None) -> Sequence[float]:
        kwargs: dict = {"model": model or "text-embedding-3-small", "input": [text]}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions
        response = self._get_client().embeddings.create(**kwargs)
        return response.data[0].embedding


class EmbeddingGenerator:
    """Turns text into a vector of a fixed, pre-agreed dimensionality."""

    def __init__(
        self,
        backend: EmbeddingBackend,
        dimensions: int = 768,
        model: Optional[str] = None,
    ) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.backend = backend
        self.dimensions = dimensions
        self.model = model

    def embed(self, text: str) -> List[float]:
        logger.debug("Generating embedding for text: %r", (text or "")[:50])
        try:
            raw = self.backend.embed(text, model=self.model)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Failed to generate embedding: {exc}") from exc

        return self._validate(raw)

    def _validate(self, raw: Any) -> List[float]:
        if raw is None or isinstance(raw, (str, bytes, dict)):
            raise EmbeddingError("Invalid embedding response: expected an array")

        try:
            vector = np.asarray(raw, dtype=float)
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(f"Invalid embedding response: {exc}") from exc

        if vector.ndim != 1:
            raise EmbeddingError(f"Invalid embedding shape: {vector.shape}")
        if vector.shape[0] != self.dimensions:
            raise EmbeddingError(
                f"Embedding has {vector.shape[0]} dimensions, expected {self.dimensions}"
            )
        if not np.all(np.isfinite(vector)):
            raise EmbeddingError("Embedding contains non-finite values")
        return vector.tolist()
