"""Vector indexing and semantic search."""

from .index_client import VectorIndexClient
from .search import SemanticSearch

__all__ = ["SemanticSearch", "VectorIndexClient"]
