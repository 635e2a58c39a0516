from typing import Optional, Sequence

import numpy as np
import pytest

from feedback_insights.embeddings import EmbeddingGenerator, HashingEmbeddingBackend, OpenAIEmbeddingBackend
from feedback_insights.exceptions import EmbeddingError


class FixedBackend:
    def __init__(self, payload) -> None:
        self.payload = payload
        self.models = []

    def embed(self, text: str, model: Optional[str] = None) -> Sequence[float]:
        self.models.append(model)
        return self.payload


class BrokenBackend:
    def embed(self, text: str, model: Optional[str] = None) -> Sequence[float]:
        raise TimeoutError("embedding service timed out")


def test_generator_returns_validated_vector() -> None:
    backend = FixedBackend([0.1, 0.2, 0.3, 0.4])
    generator = EmbeddingGenerator(backend, dimensions=4, model="embed-model")

    vector = generator.embed("hello")

    assert vector == pytest.approx([0.1, 0.2, 0.3, 0.4])
    assert backend.models == ["embed-model"]


def test_generator_accepts_numpy_arrays() -> None:
    generator = EmbeddingGenerator(FixedBackend(np.ones(3)), dimensions=3)

    assert generator.embed("hello") == [1.0, 1.0, 1.0]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "not a vector",
        {"data": [0.1, 0.2, 0.3]},
        [0.1, 0.2],
        [[0.1, 0.2, 0.3]],
        [0.1, float("nan"), 0.3],
        ["a", "b", "c"],
    ],
)
def test_generator_rejects_bad_shapes(payload) -> None:
    generator = EmbeddingGenerator(FixedBackend(payload), dimensions=3)

    with pytest.raises(EmbeddingError):
        generator.embed("hello")


def test_backend_errors_become_embedding_errors() -> None:
    generator = EmbeddingGenerator(BrokenBackend(), dimensions=3)

    with pytest.raises(EmbeddingError, match="timed out"):
        generator.embed("hello")


def test_hashing_backend_is_deterministic_and_fixed_width() -> None:
    backend = HashingEmbeddingBackend(dimensions=64)
    generator = EmbeddingGenerator(backend, dimensions=64)

    first = generator.embed("The dashboard is slow to load")
    second = generator.embed("The dashboard is slow to load")

    assert len(first) == 64
    assert first == second
    assert np.linalg.norm(first) == pytest.approx(1.0)


class FakeEmbeddingsAPI:
    def __init__(self) -> None:
        self.kwargs = {}

    def create(self, **kwargs):
        self.kwargs = kwargs

        class Item:
            embedding = [0.5, 0.5]

        class Response:
            data = [Item()]

        return Response()


class FakeOpenAIClient:
    def __init__(self) -> None:
        self.embeddings = FakeEmbeddingsAPI()


def test_openai_backend_passes_model_and_dimensions() -> None:
    client = FakeOpenAIClient()
    generator = EmbeddingGenerator(OpenAIEmbeddingBackend(client=client, dimensions=2), dimensions=2, model="emb-small")

    assert generator.embed("hello") == [0.5, 0.5]
    assert client.embeddings.kwargs == {"model": "emb-small", "input": ["hello"], "dimensions": 2}


def test_openai_backend_without_key_fails_only_when_used() -> None:
    backend = OpenAIEmbeddingBackend(api_key=None, dimensions=2)
    generator = EmbeddingGenerator(backend, dimensions=2)

    with pytest.raises(EmbeddingError, match="OPENAI_API_KEY"):
        generator.embed("hello")
