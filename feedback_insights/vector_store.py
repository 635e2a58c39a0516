"""In-memory vector database with cosine similarity and JSON persistence."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

import numpy as np

from .models.analysis import IndexMatch


@dataclass(slots=True, frozen=True)
class VectorRecord:
    id: str
    vector: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorDatabase(Protocol):
    """Protocol describing the vector database operations used by the index client."""

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        ...

    def query(self, vector: Sequence[float], top_k: int) -> List[IndexMatch]:
        ...


def _cosine_sim(a: np.ndarray, b: np.ndarray) -> float:
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


class InMemoryVectorDatabase:
    """A lightweight vector database for local runs and tests."""

    def __init__(self) -> None:
        self._records: Dict[str, VectorRecord] = {}

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        for record in records:
            self._records[str(record.id)] = VectorRecord(
                id=str(record.id),
                vector=[float(x) for x in record.vector],
                metadata=dict(record.metadata),
            )

    def query(self, vector: Sequence[float], top_k: int) -> List[IndexMatch]:
        if top_k <= 0 or not self._records:
            return []

        query_vec = np.asarray(vector, dtype=float)
        scored = [
            (record, _cosine_sim(np.asarray(record.vector, dtype=float), query_vec))
            for record in self._records.values()
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [
            IndexMatch(id=record.id, score=score, metadata=dict(record.metadata))
            for record, score in scored[:top_k]
        ]

    def get(self, record_id: str) -> Optional[VectorRecord]:
        return self._records.get(str(record_id))

    def ids(self) -> Iterable[str]:
        return list(self._records.keys())

    def __contains__(self, record_id: object) -> bool:
        return str(record_id) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [
            {"id": record.id, "vector": record.vector, "metadata": record.metadata}
            for record in self._records.values()
        ]
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "InMemoryVectorDatabase":
        database = cls()
        if not path.exists():
            return database
        raw = json.loads(path.read_text(encoding="utf-8") or "[]")
        database.upsert(
            [
                VectorRecord(id=item["id"], vector=item["vector"], metadata=item.get("metadata") or {})
                for item in raw
            ]
        )
        return database
