"""Vector index client: chunked upserts and score-ranked queries."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from feedback_insights.embeddings import EmbeddingGenerator
from feedback_insights.exceptions import EmbeddingError, VectorIndexError
from feedback_insights.models.analysis import BatchUpsertResult, IndexMatch
from feedback_insights.vector_store import VectorDatabase, VectorRecord

logger = logging.getLogger(__name__)


class VectorIndexClient:
    """Wraps a vector database for the indexing and search paths."""

    def __init__(
        self,
        database: VectorDatabase,
        generator: Optional[EmbeddingGenerator] = None,
        chunk_size: int = 10,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.database = database
        self.generator = generator
        self.chunk_size = chunk_size

    def upsert(self, record_id: Any, vector: Sequence[float], metadata: Optional[Dict[str, Any]] = None) -> None:
        record = VectorRecord(id=str(record_id), vector=list(vector), metadata=dict(metadata or {}))
        self._write([record])

    def batch_upsert(self, entries: Sequence[Tuple[Any, str]]) -> BatchUpsertResult:
        """Embed and upsert ``(id, content)`` pairs in sequential chunks.

        A chunk is written only when every embedding in it succeeded; any
        embedding or insert failure counts the whole chunk as failed.
        """

        if self.generator is None:
            raise ValueError("batch_upsert requires an embedding generator")

        indexed = 0
        failed = 0
        chunks_inserted = 0
        total_chunks = (len(entries) + self.chunk_size - 1) // self.chunk_size

        for start in range(0, len(entries), self.chunk_size):
            chunk = entries[start : start + self.chunk_size]
            chunk_no = start // self.chunk_size + 1
            logger.info("Processing chunk %d/%d (%d items)", chunk_no, total_chunks, len(chunk))

            records: List[VectorRecord] = []
            try:
                for record_id, content in chunk:
                    vector = self.generator.embed(content)
                    records.append(
                        VectorRecord(
                            id=str(record_id),
                            vector=vector,
                            metadata={"id": record_id, "content": content},
                        )
                    )
            except EmbeddingError as exc:
                logger.error("Chunk %d skipped, embedding failed: %s", chunk_no, exc)
                failed += len(chunk)
                continue

            try:
                self._write(records)
            except VectorIndexError as exc:
                logger.error("Chunk %d insert failed: %s", chunk_no, exc)
                failed += len(chunk)
                continue

            indexed += len(chunk)
            chunks_inserted += 1

        return BatchUpsertResult(indexed=indexed, failed=failed, chunks_inserted=chunks_inserted)

    def query(self, vector: Sequence[float], k: int) -> List[IndexMatch]:
        if k <= 0:
            return []
        try:
            matches = self.database.query(list(vector), top_k=k)
        except Exception as exc:
            raise VectorIndexError(f"Vector query failed: {exc}") from exc

        ranked = sorted(matches, key=lambda match: float(match.score), reverse=True)
        return ranked[:k]

    def _write(self, records: List[VectorRecord]) -> None:
        try:
            self.database.upsert(records)
        except Exception as exc:
            raise VectorIndexError(f"Vector upsert failed: {exc}") from exc
