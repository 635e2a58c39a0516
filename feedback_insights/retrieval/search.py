"""Semantic indexing and search over stored feedback."""

from __future__ import annotations

import logging
from typing import List, Optional

from feedback_insights.embeddings import EmbeddingGenerator
from feedback_insights.models.analysis import IndexAllResult, SearchMatch
from feedback_insights.storage import FeedbackStore

from .index_client import VectorIndexClient

logger = logging.getLogger(__name__)


class SemanticSearch:
    """Indexes feedback content and answers meaning-based queries."""

    def __init__(
        self,
        store: FeedbackStore,
        generator: EmbeddingGenerator,
        index: VectorIndexClient,
        default_top_k: int = 10,
        max_top_k: int = 50,
    ) -> None:
        self.store = store
        self.generator = generator
        self.index = index
        self.default_top_k = default_top_k
        self.max_top_k = max_top_k

    def index_feedback(self, feedback_id: int, content: str) -> None:
        """Embed one item and upsert it under its id.

        Raises ``EmbeddingError`` or ``VectorIndexError``.
        """

        vector = self.generator.embed(content)
        self.index.upsert(feedback_id, vector, {"id": feedback_id, "content": content})
        logger.info("Indexed feedback %s", feedback_id)

    def index_all(self) -> IndexAllResult:
        items = self.store.all_feedback()
        if not items:
            logger.info("No feedback found to index")
            return IndexAllResult(indexed=0, failed=0, total=0)

        logger.info("Indexing %d feedback items", len(items))
        outcome = self.index.batch_upsert([(item.id, item.content) for item in items])
        logger.info("Batch indexing complete: %d indexed, %d failed", outcome.indexed, outcome.failed)
        return IndexAllResult(indexed=outcome.indexed, failed=outcome.failed, total=len(items))

    def search(self, query: str, k: Optional[int] = None) -> List[SearchMatch]:
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        limit = self.default_top_k if k is None else k
        if limit < 1:
            raise ValueError("k must be at least 1")
        limit = min(limit, self.max_top_k)

        logger.info("Searching for feedback similar to %r", query)
        vector = self.generator.embed(query)
        matches = self.index.query(vector, limit)

        results: List[SearchMatch] = []
        for match in matches:
            metadata = match.metadata or {}
            try:
                feedback_id = int(metadata.get("id", match.id))
            except (TypeError, ValueError):
                logger.warning("Skipping vector %s with non-numeric id", match.id)
                continue
            results.append(
                SearchMatch(
                    id=feedback_id,
                    content=str(metadata.get("content") or ""),
                    similarity=float(match.score),
                )
            )
        return results
