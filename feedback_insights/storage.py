"""Feedback store port plus in-memory and JSON-file adapters."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .exceptions import PersistenceError
from .models.analysis import ClassificationResult
from .models.feedback import SENTIMENTS, URGENCY_LEVELS, CriticalFlag, FeedbackItem, utc_now

logger = logging.getLogger(__name__)

# items, critical flags and next id, captured before a mutation
_StoreState = Tuple[Dict[int, FeedbackItem], Dict[int, CriticalFlag], int]


class FeedbackStore(Protocol):
    """Structured store operations consumed by the pipeline."""

    def create(
        self,
        source: str,
        content: str,
        author: Optional[str] = None,
        attachment_ref: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> FeedbackItem:
        ...

    def get(self, feedback_id: int) -> Optional[FeedbackItem]:
        ...

    def list_feedback(
        self,
        source: Optional[str] = None,
        sentiment: Optional[str] = None,
        urgency: Optional[str] = None,
        limit: int = 50,
    ) -> List[FeedbackItem]:
        ...

    def fetch_unprocessed(self, limit: int) -> List[FeedbackItem]:
        ...

    def all_feedback(self) -> List[FeedbackItem]:
        ...

    def update_classification(self, feedback_id: int, result: ClassificationResult) -> FeedbackItem:
        ...

    def upsert_critical_flag(self, feedback_id: int) -> CriticalFlag:
        ...

    def critical_flags(self, include_resolved: bool = False) -> List[CriticalFlag]:
        ...

    def replace_all(self, items: Iterable[FeedbackItem]) -> int:
        ...


class InMemoryFeedbackStore:
    """Dictionary-backed store with auto-incrementing integer ids."""

    def __init__(self, items: Optional[Iterable[FeedbackItem]] = None) -> None:
        self._items: Dict[int, FeedbackItem] = {}
        self._flags: Dict[int, CriticalFlag] = {}
        self._next_id = 1
        if items:
            self.replace_all(items)

    def create(
        self,
        source: str,
        content: str,
        author: Optional[str] = None,
        attachment_ref: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> FeedbackItem:
        item = FeedbackItem(
            id=self._next_id,
            source=source,
            content=content,
            author=author,
            created_at=created_at or utc_now(),
            attachment_ref=attachment_ref,
        )
        snapshot = self._snapshot()
        self._items[item.id] = item
        self._next_id += 1
        self._commit_or_restore(snapshot)
        return item

    def get(self, feedback_id: int) -> Optional[FeedbackItem]:
        return self._items.get(int(feedback_id))

    def list_feedback(
        self,
        source: Optional[str] = None,
        sentiment: Optional[str] = None,
        urgency: Optional[str] = None,
        limit: int = 50,
    ) -> List[FeedbackItem]:
        items = [
            item
            for item in self._items.values()
            if (source is None or item.source == source)
            and (sentiment is None or item.sentiment == sentiment)
            and (urgency is None or item.urgency == urgency)
        ]
        items.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return items[: max(limit, 0)]

    def fetch_unprocessed(self, limit: int) -> List[FeedbackItem]:
        pending = sorted(
            (item for item in self._items.values() if not item.processed),
            key=lambda item: item.id,
        )
        return pending[: max(limit, 0)]

    def all_feedback(self) -> List[FeedbackItem]:
        return sorted(self._items.values(), key=lambda item: item.id)

    def update_classification(self, feedback_id: int, result: ClassificationResult) -> FeedbackItem:
        item = self._items.get(int(feedback_id))
        if item is None:
            raise PersistenceError(f"Feedback {feedback_id} does not exist")
        if result.sentiment not in SENTIMENTS:
            raise PersistenceError(f"Invalid sentiment: {result.sentiment}")
        if result.urgency not in URGENCY_LEVELS:
            raise PersistenceError(f"Invalid urgency: {result.urgency}")

        updated = replace(
            item,
            sentiment=result.sentiment,
            sentiment_score=max(-1.0, min(1.0, float(result.score))),
            urgency=result.urgency,
            themes=list(result.themes),
            processed=True,
        )
        snapshot = self._snapshot()
        self._items[item.id] = updated
        self._commit_or_restore(snapshot)
        return updated

    def upsert_critical_flag(self, feedback_id: int) -> CriticalFlag:
        item = self._items.get(int(feedback_id))
        if item is None:
            raise PersistenceError(f"Feedback {feedback_id} does not exist")

        existing = self._flags.get(item.id)
        flag = CriticalFlag.from_item(item)
        if existing is not None:
            flag = replace(flag, flagged_at=existing.flagged_at, resolved=existing.resolved)
        snapshot = self._snapshot()
        self._flags[item.id] = flag
        self._commit_or_restore(snapshot)
        return flag

    def critical_flags(self, include_resolved: bool = False) -> List[CriticalFlag]:
        flags = [flag for flag in self._flags.values() if include_resolved or not flag.resolved]
        flags.sort(key=lambda flag: (flag.flagged_at or datetime.min, flag.feedback_id), reverse=True)
        return flags

    def replace_all(self, items: Iterable[FeedbackItem]) -> int:
        snapshot = self._snapshot()
        self._items = {}
        self._flags = {}
        self._next_id = 1
        for item in items:
            self._items[item.id] = item
            self._next_id = max(self._next_id, item.id + 1)
        self._commit_or_restore(snapshot)
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def _snapshot(self) -> _StoreState:
        return dict(self._items), dict(self._flags), self._next_id

    def _commit_or_restore(self, snapshot: _StoreState) -> None:
        """Persist the mutation, or put the previous state back if that fails."""

        try:
            self._commit()
        except PersistenceError:
            self._items, self._flags, self._next_id = snapshot
            raise

    def _commit(self) -> None:
        """Hook for subclasses that persist state after each mutation."""


class JsonFeedbackStore(InMemoryFeedbackStore):
    """Store persisted to a single JSON document after every write."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._loading = True
        super().__init__()
        self._load()
        self._loading = False

    def _load(self) -> None:
        if not self.path.exists():
            return
        raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        for payload in raw.get("feedback") or []:
            item = FeedbackItem.from_dict(payload)
            self._items[item.id] = item
        for payload in raw.get("critical_feedback") or []:
            flag = CriticalFlag.from_dict(payload)
            self._flags[flag.feedback_id] = flag
        self._next_id = int(raw.get("next_id") or (max(self._items, default=0) + 1))
        logger.debug("Loaded %d feedback items from %s", len(self._items), self.path)

    def _commit(self) -> None:
        if self._loading:
            return
        payload = {
            "next_id": self._next_id,
            "feedback": [item.to_dict() for item in self.all_feedback()],
            "critical_feedback": [flag.to_dict() for flag in self._flags.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc
