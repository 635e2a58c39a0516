from typing import Any, Dict, List, Sequence

import pytest

from feedback_insights.classification import FeedbackClassifier, OpenAIBackend, decode_sentiment_reply
from feedback_insights.exceptions import DecodeError


class ScriptedBackend:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: List[Dict[str, Any]] = []

    def complete(
        self,
        messages: Sequence[Dict[str, Any]],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {"messages": list(messages), "model": model, "temperature": temperature, "max_tokens": max_tokens}
        )
        return self.reply


class FailingBackend:
    def __init__(self) -> None:
        self.calls = 0

    def complete(self, messages, model, temperature, max_tokens) -> str:
        self.calls += 1
        raise ConnectionError("inference service unavailable")


def test_model_reply_is_used_when_valid() -> None:
    backend = ScriptedBackend('Sure! {"sentiment": "positive", "score": 0.8} Hope that helps.')
    classifier = FeedbackClassifier(backend=backend, model="test-model", temperature=0.3, max_tokens=100)

    result = classifier.classify("Support answered in minutes, there is a bug though")

    assert result.method == "model"
    assert result.sentiment == "positive"
    assert result.score == pytest.approx(0.8)
    # urgency and themes stay rule based regardless of the model
    assert result.urgency == "high"
    assert result.themes == ["bugs", "support"]

    call = backend.calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == pytest.approx(0.3)
    assert call["max_tokens"] == 100
    assert "Support answered in minutes" in call["messages"][0]["content"]


def test_model_score_is_clamped_and_unknown_sentiment_forced_neutral() -> None:
    classifier = FeedbackClassifier(backend=ScriptedBackend('{"sentiment": "ecstatic", "score": 4.2}'))

    result = classifier.classify("anything")

    assert result.method == "model"
    assert result.sentiment == "neutral"
    assert result.score == pytest.approx(1.0)


def test_backend_failure_falls_back_to_keywords() -> None:
    backend = FailingBackend()
    classifier = FeedbackClassifier(backend=backend)

    result = classifier.classify("This feature is absolutely broken and the app crashes constantly")

    assert backend.calls == 1
    assert result.method == "rules"
    assert result.sentiment == "negative"
    assert result.urgency == "critical"
    assert "bugs" in result.themes


def test_unparseable_reply_falls_back_to_keywords() -> None:
    classifier = FeedbackClassifier(backend=ScriptedBackend("I think it is mostly positive."))

    result = classifier.classify("Great product, love it")

    assert result.method == "rules"
    assert result.sentiment == "positive"


def test_classifier_without_backend_uses_rules() -> None:
    result = FeedbackClassifier().classify("Pricing is too expensive")

    assert result.method == "rules"
    assert result.themes == ["pricing"]
    assert result.urgency == "medium"


@pytest.mark.parametrize(
    "text",
    ["", "   ", "🙂🙂🙂", "x" * 5000, "not not not no never", "CRASH!!! BROKEN!!! URGENT!!!"],
)
def test_classify_is_total_for_odd_inputs(text: str) -> None:
    result = FeedbackClassifier(backend=FailingBackend()).classify(text)

    assert -1.0 <= result.score <= 1.0
    assert result.sentiment in {"positive", "neutral", "negative"}
    assert result.urgency in {"low", "medium", "high", "critical"}
    assert 1 <= len(result.themes) <= 3
    assert len(set(result.themes)) == len(result.themes)


def test_decode_accepts_single_quoted_reply() -> None:
    assert decode_sentiment_reply("{sentiment: 'negative', score: -0.6}") == ("negative", -0.6)


def test_decode_defaults_missing_score_to_zero() -> None:
    assert decode_sentiment_reply('{"sentiment": "neutral"}') == ("neutral", 0.0)


@pytest.mark.parametrize(
    "reply",
    ["no json here", '{"sentiment": "positive", "score": "very"}', "{sentiment: positive score}"],
)
def test_decode_rejects_malformed_replies(reply: str) -> None:
    with pytest.raises(DecodeError):
        decode_sentiment_reply(reply)


class BytesBackend:
    def complete(self, messages, model, temperature, max_tokens):
        return b'{"sentiment": "positive", "score": 0.5}'


def test_non_text_reply_falls_back_to_keywords() -> None:
    result = FeedbackClassifier(backend=BytesBackend()).classify("great app")

    assert result.method == "rules"
    assert result.sentiment == "positive"


def test_decode_rejects_non_text_reply() -> None:
    with pytest.raises(DecodeError):
        decode_sentiment_reply(b'{"sentiment": "positive", "score": 0.5}')  # type: ignore[arg-type]


def test_openai_backend_uses_configured_base_url() -> None:
    backend = OpenAIBackend(api_key="sk-test", base_url="http://localhost:9999/v1")

    assert "localhost:9999" in str(backend._client.base_url)
