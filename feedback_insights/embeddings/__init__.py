"""Embedding backends used across the project."""

from .generator import EmbeddingBackend, EmbeddingGenerator, OpenAIEmbeddingBackend
from .hashing import HashingEmbeddingBackend

__all__ = [
    "EmbeddingBackend",
    "EmbeddingGenerator",
    "HashingEmbeddingBackend",
    "OpenAIEmbeddingBackend",
]
