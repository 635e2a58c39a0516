"""Hybrid sentiment classifier: model-backed sentiment with keyword fallback."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ValidationError, field_validator

from feedback_insights.exceptions import CallError, DecodeError
from feedback_insights.models.analysis import ClassificationResult
from feedback_insights.models.feedback import SENTIMENTS

from . import rules

logger = logging.getLogger(__name__)

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*?\}")
_BARE_KEY_PATTERN = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")


class InferenceBackend(Protocol):
    """Minimal interface for pluggable chat-completion providers."""

    def complete(
        self,
        messages: Sequence[Dict[str, Any]],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        ...


class OpenAIBackend:
    """Default backend using the OpenAI chat completions API."""

    def __init__(
        self,
        client: Optional["OpenAI"] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        from openai import OpenAI  # type: ignore

        self._client = client or OpenAI(api_key=api_key, base_url=base_url)

    def complete(
        self,
        messages: Sequence[Dict[str, Any]],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        completion = self._client.chat.completions.create(  # type: ignore[attr-defined]
            model=model,
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens,
        )

        content = completion.choices[0].message.content
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: List[str] = []
            for item in content:
                if isinstance(item, dict) and "text" in item:
                    parts.append(str(item.get("text") or ""))
                elif isinstance(item, str):
                    parts.append(item)
            return "\n".join(parts)
        return str(content or "")


class SentimentReply(BaseModel):
    """Validated shape of the model's sentiment reply."""

    sentiment: str = "neutral"
    score: float = 0.0

    @field_validator("sentiment", mode="before")
    @classmethod
    def coerce_sentiment(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in SENTIMENTS else "neutral"

    @field_validator("score", mode="before")
    @classmethod
    def default_score(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        if math.isnan(value):
            raise ValueError("score is NaN")
        return max(-1.0, min(1.0, value))


def _repair_json(text: str) -> str:
    repaired = _BARE_KEY_PATTERN.sub(r'\1"\2":', text)
    return repaired.replace("'", '"')


def decode_sentiment_reply(text: str) -> Tuple[str, float]:
    """Extract the first JSON object from a model reply and validate it."""

    if text is None:
        text = ""
    if not isinstance(text, str):
        raise DecodeError(f"Model reply is not text: {type(text).__name__}")

    match = _JSON_OBJECT_PATTERN.search(text)
    if not match:
        raise DecodeError("No JSON object found in model reply")

    raw = match.group(0)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        try:
            payload = json.loads(_repair_json(raw))
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Model reply is not valid JSON: {raw!r}") from exc

    if not isinstance(payload, dict):
        raise DecodeError("Model reply JSON is not an object")

    try:
        reply = SentimentReply.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(f"Model reply has unexpected fields: {exc}") from exc
    return reply.sentiment, reply.score


class FeedbackClassifier:
    """Labels feedback text with sentiment, urgency and themes.

    Sentiment comes from the inference backend when one is configured and its
    reply decodes cleanly; otherwise the keyword rules decide. Themes and
    urgency always come from the keyword rules. ``classify`` never raises.
    """

    PROMPT = (
        "Analyze the sentiment of this feedback. Return ONLY a JSON object: "
        '{"sentiment": "positive" | "neutral" | "negative", "score": number between -1 and 1}. '
        "Feedback: "
    )

    def __init__(
        self,
        backend: Optional[InferenceBackend] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 100,
    ) -> None:
        self.backend = backend
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def classify(self, text: str) -> ClassificationResult:
        text = text if isinstance(text, str) else ("" if text is None else str(text))

        method = "rules"
        try:
            if self.backend is None:
                sentiment, score = rules.keyword_sentiment(text)
            else:
                sentiment, score = self._model_sentiment(text)
                method = "model"
        except (CallError, DecodeError) as exc:
            logger.warning("Sentiment model unavailable, using keyword fallback: %s", exc)
            sentiment, score = rules.keyword_sentiment(text)

        return ClassificationResult(
            sentiment=sentiment,
            score=score,
            urgency=rules.classify_urgency(text),
            themes=rules.extract_themes(text),
            method=method,
        )

    def classify_with_rules(self, text: str) -> ClassificationResult:
        sentiment, score = rules.keyword_sentiment(text or "")
        return ClassificationResult(
            sentiment=sentiment,
            score=score,
            urgency=rules.classify_urgency(text or ""),
            themes=rules.extract_themes(text or ""),
            method="rules",
        )

    def _model_sentiment(self, text: str) -> Tuple[str, float]:
        messages = [{"role": "user", "content": f"{self.PROMPT}{text}"}]
        try:
            reply = self.backend.complete(  # type: ignore[union-attr]
                messages,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            raise CallError(f"Inference call failed: {exc}") from exc

        logger.debug("Sentiment model raw output: %s", reply)
        return decode_sentiment_reply(reply)
