"""Dataclasses describing classification, batch, indexing and search outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    """Labels produced for a single piece of feedback text."""

    sentiment: str
    score: float
    urgency: str
    themes: List[str] = field(default_factory=list)
    method: str = "rules"


@dataclass(slots=True, frozen=True)
class ItemResult:
    """Outcome of the analyze/persist step for one feedback item."""

    id: int
    success: bool
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = None
    urgency: Optional[str] = None
    themes: List[str] = field(default_factory=list)
    method: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "success": self.success,
            "sentiment": self.sentiment,
            "sentiment_score": self.sentiment_score,
            "urgency": self.urgency,
            "themes": list(self.themes),
            "method": self.method,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemResult":
        return cls(
            id=int(data["id"]),
            success=bool(data["success"]),
            sentiment=data.get("sentiment"),
            sentiment_score=data.get("sentiment_score"),
            urgency=data.get("urgency"),
            themes=list(data.get("themes") or []),
            method=data.get("method"),
            error=data.get("error"),
        )


@dataclass(slots=True)
class BatchResult:
    """Totals for one orchestrator run."""

    run_id: str
    processed: int
    successful: int = 0
    embedded: int = 0
    failed: int = 0
    results: List[ItemResult] = field(default_factory=list)
    embedding_errors: Dict[int, str] = field(default_factory=dict)
    cache_cleared: bool = False
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "processed": self.processed,
            "successful": self.successful,
            "embedded": self.embedded,
            "failed": self.failed,
            "results": [result.to_dict() for result in self.results],
            "embedding_errors": {str(key): value for key, value in self.embedding_errors.items()},
            "cache_cleared": self.cache_cleared,
            "message": self.message,
        }


@dataclass(slots=True, frozen=True)
class BatchUpsertResult:
    """Totals for a chunked batch upsert into the vector index."""

    indexed: int
    failed: int
    chunks_inserted: int


@dataclass(slots=True, frozen=True)
class IndexAllResult:
    """Totals for a full-corpus indexing run."""

    indexed: int
    failed: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {"indexed": self.indexed, "failed": self.failed, "total": self.total}


@dataclass(slots=True, frozen=True)
class IndexMatch:
    """Raw match returned by the vector index client."""

    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SearchMatch:
    """Semantic search hit returned to callers."""

    id: int
    content: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "similarity": self.similarity}
