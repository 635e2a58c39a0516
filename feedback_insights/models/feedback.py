"""Dataclasses describing stored feedback and critical flags."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

SENTIMENTS = ("positive", "neutral", "negative")
URGENCY_LEVELS = ("low", "medium", "high", "critical")


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form stored on records."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class FeedbackItem:
    """Single feedback record owned by the store."""

    id: int
    source: str
    content: str
    author: Optional[str]
    created_at: datetime
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = None
    urgency: Optional[str] = None
    themes: Optional[List[str]] = None
    processed: bool = False
    attachment_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "content": self.content,
            "author": self.author,
            "created_at": self.created_at.isoformat(),
            "sentiment": self.sentiment,
            "sentiment_score": self.sentiment_score,
            "urgency": self.urgency,
            "themes": list(self.themes) if self.themes is not None else None,
            "processed": self.processed,
            "attachment_ref": self.attachment_ref,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedbackItem":
        themes = data.get("themes")
        score = data.get("sentiment_score")
        return cls(
            id=int(data["id"]),
            source=data["source"],
            content=data["content"],
            author=data.get("author"),
            created_at=_parse_datetime(data.get("created_at")) or utc_now(),
            sentiment=data.get("sentiment"),
            sentiment_score=float(score) if score is not None else None,
            urgency=data.get("urgency"),
            themes=list(themes) if themes is not None else None,
            processed=bool(data.get("processed", False)),
            attachment_ref=data.get("attachment_ref"),
        )


@dataclass(frozen=True)
class CriticalFlag:
    """High-priority mirror of a feedback item classified as critical."""

    feedback_id: int
    source: str
    content: str
    author: Optional[str]
    sentiment: Optional[str]
    sentiment_score: Optional[float]
    themes: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    flagged_at: Optional[datetime] = None
    resolved: bool = False

    @classmethod
    def from_item(cls, item: FeedbackItem, flagged_at: Optional[datetime] = None) -> "CriticalFlag":
        return cls(
            feedback_id=item.id,
            source=item.source,
            content=item.content,
            author=item.author,
            sentiment=item.sentiment,
            sentiment_score=item.sentiment_score,
            themes=list(item.themes or []),
            created_at=item.created_at,
            flagged_at=flagged_at or utc_now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedback_id": self.feedback_id,
            "source": self.source,
            "content": self.content,
            "author": self.author,
            "sentiment": self.sentiment,
            "sentiment_score": self.sentiment_score,
            "themes": list(self.themes),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "flagged_at": self.flagged_at.isoformat() if self.flagged_at else None,
            "resolved": self.resolved,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CriticalFlag":
        return cls(
            feedback_id=int(data["feedback_id"]),
            source=data["source"],
            content=data["content"],
            author=data.get("author"),
            sentiment=data.get("sentiment"),
            sentiment_score=data.get("sentiment_score"),
            themes=list(data.get("themes") or []),
            created_at=_parse_datetime(data.get("created_at")),
            flagged_at=_parse_datetime(data.get("flagged_at")),
            resolved=bool(data.get("resolved", False)),
        )
