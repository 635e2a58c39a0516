from typing import List, Optional, Sequence

import pytest

from feedback_insights.embeddings import EmbeddingGenerator
from feedback_insights.exceptions import VectorIndexError
from feedback_insights.models.analysis import IndexMatch
from feedback_insights.retrieval import VectorIndexClient
from feedback_insights.vector_store import InMemoryVectorDatabase, VectorRecord


class LengthEmbedder:
    """Two-dimensional vectors; texts listed in ``failing`` raise."""

    def __init__(self, failing: Sequence[str] = ()) -> None:
        self.failing = set(failing)
        self.calls: List[str] = []

    def embed(self, text: str, model: Optional[str] = None) -> Sequence[float]:
        self.calls.append(text)
        if text in self.failing:
            raise RuntimeError(f"cannot embed {text}")
        return [float(len(text)), 1.0]


class ShuffledDatabase:
    """Returns matches in ascending order to check client-side ranking."""

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        pass

    def query(self, vector: Sequence[float], top_k: int) -> List[IndexMatch]:
        return [
            IndexMatch(id="3", score=0.1),
            IndexMatch(id="1", score=0.9),
            IndexMatch(id="2", score=0.5),
        ]


class RejectingDatabase(InMemoryVectorDatabase):
    def __init__(self, reject_ids: Sequence[str]) -> None:
        super().__init__()
        self.reject_ids = set(reject_ids)

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if any(record.id in self.reject_ids for record in records):
            raise IOError("write rejected")
        super().upsert(records)


def make_client(database, embedder: LengthEmbedder, chunk_size: int = 10) -> VectorIndexClient:
    return VectorIndexClient(database, EmbeddingGenerator(embedder, dimensions=2), chunk_size=chunk_size)


def test_upsert_is_last_write_wins() -> None:
    database = InMemoryVectorDatabase()
    client = VectorIndexClient(database)

    client.upsert(7, [1.0, 0.0], {"id": 7, "content": "old"})
    client.upsert(7, [0.0, 1.0], {"id": 7, "content": "new"})

    assert len(database) == 1
    record = database.get("7")
    assert record is not None
    assert record.vector == [0.0, 1.0]
    assert record.metadata["content"] == "new"


def test_query_resorts_backend_results() -> None:
    client = VectorIndexClient(ShuffledDatabase())

    matches = client.query([1.0, 0.0], k=3)

    assert [match.id for match in matches] == ["1", "2", "3"]


def test_query_wraps_backend_errors() -> None:
    class Exploding(ShuffledDatabase):
        def query(self, vector, top_k):
            raise ConnectionError("index offline")

    with pytest.raises(VectorIndexError):
        VectorIndexClient(Exploding()).query([1.0], k=1)


def test_batch_upsert_skips_whole_chunk_on_one_embedding_failure() -> None:
    database = InMemoryVectorDatabase()
    embedder = LengthEmbedder(failing={"item-4"})
    client = make_client(database, embedder, chunk_size=3)
    entries = [(i, f"item-{i}") for i in range(1, 8)]

    result = client.batch_upsert(entries)

    # chunks: [1,2,3] ok, [4,5,6] fails on 4, [7] ok
    assert result.indexed == 4
    assert result.failed == 3
    assert result.chunks_inserted == 2
    assert sorted(database.ids(), key=int) == ["1", "2", "3", "7"]
    for missing in ("4", "5", "6"):
        assert missing not in database


def test_batch_upsert_counts_insert_failures_per_chunk() -> None:
    database = RejectingDatabase(reject_ids={"2"})
    client = make_client(database, LengthEmbedder(), chunk_size=2)

    result = client.batch_upsert([(1, "a"), (2, "bb"), (3, "ccc")])

    assert result.indexed == 1
    assert result.failed == 2
    assert "3" in database
    assert "1" not in database


def test_batch_upsert_requires_generator() -> None:
    with pytest.raises(ValueError):
        VectorIndexClient(InMemoryVectorDatabase()).batch_upsert([(1, "text")])
