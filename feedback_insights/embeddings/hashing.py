"""Offline hashing embedder for local runs and tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sklearn.feature_extraction.text import HashingVectorizer


@dataclass
class HashingEmbeddingBackend:
    """Embedding backend that hashes word n-grams into a fixed-width vector.

    Not semantic, but deterministic and available without network access.
    """

    dimensions: int = 768
    ngram_range: tuple[int, int] = (1, 2)
    analyzer: str = "word"

    def __post_init__(self) -> None:
        self._vectorizer = HashingVectorizer(
            n_features=self.dimensions,
            ngram_range=self.ngram_range,
            analyzer=self.analyzer,
            alternate_sign=False,
            norm="l2",
        )

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        matrix = self._vectorizer.transform([text])
        return matrix.toarray()[0].tolist()
