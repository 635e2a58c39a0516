"""Feedback classification: model-backed sentiment plus keyword rules."""

from .classifier import (
    FeedbackClassifier,
    InferenceBackend,
    OpenAIBackend,
    decode_sentiment_reply,
)

__all__ = ["FeedbackClassifier", "InferenceBackend", "OpenAIBackend", "decode_sentiment_reply"]
