"""Exception hierarchy for the feedback insights pipeline."""


class FeedbackInsightsError(Exception):
    """Base exception for the feedback insights pipeline."""

    pass


class ConfigurationError(FeedbackInsightsError):
    """Raised when settings are missing or invalid."""

    pass


class DecodeError(FeedbackInsightsError):
    """Raised when a model reply is not the expected JSON payload."""

    pass


class CallError(FeedbackInsightsError):
    """Raised when an inference, embedding or index backend fails."""

    pass


class EmbeddingError(CallError):
    """Raised when an embedding cannot be produced or has the wrong shape."""

    pass


class VectorIndexError(CallError):
    """Raised when the vector database rejects an upsert or query."""

    pass


class PersistenceError(FeedbackInsightsError):
    """Raised when a feedback store write fails."""

    pass


class InvalidationError(FeedbackInsightsError):
    """Raised when the analytics cache entry cannot be deleted."""

    pass
