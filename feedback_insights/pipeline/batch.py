"""Batch orchestrator tying the store, classifier, index and analytics cache."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from feedback_insights.analytics import AnalyticsService
from feedback_insights.classification import FeedbackClassifier
from feedback_insights.exceptions import CallError, PersistenceError
from feedback_insights.models.analysis import BatchResult, ClassificationResult, ItemResult
from feedback_insights.retrieval import SemanticSearch
from feedback_insights.storage import FeedbackStore

from .journal import DurableRun, InMemoryStepJournal, StepJournal

logger = logging.getLogger(__name__)

FETCH_STEP = "fetch-feedback"
CLEAR_CACHE_STEP = "clear-cache"


def _succeeded(value: Dict[str, Any]) -> bool:
    return bool(value.get("success"))


class AnalysisBatchRunner:
    """Durable driver: fetch -> analyze/persist -> embed -> invalidate.

    Items are processed sequentially in id order. A persistence failure fails
    that item only; an embedding failure is recorded without rolling back the
    persisted labels. Passing the ``run_id`` of an interrupted run resumes it,
    replaying every step the journal already holds.
    """

    def __init__(
        self,
        store: FeedbackStore,
        classifier: FeedbackClassifier,
        search: Optional[SemanticSearch] = None,
        analytics: Optional[AnalyticsService] = None,
        journal: Optional[StepJournal] = None,
        batch_size: int = 10,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.store = store
        self.classifier = classifier
        self.search = search
        self.analytics = analytics
        self.journal = journal or InMemoryStepJournal()
        self.batch_size = batch_size

    def run(self, run_id: Optional[str] = None) -> BatchResult:
        run = DurableRun(run_id or uuid4().hex, self.journal)
        logger.info("Starting analysis batch %s", run.run_id)

        items: List[Dict[str, Any]] = run.do(FETCH_STEP, self._fetch)
        if not items:
            logger.info("No unprocessed feedback found")
            return BatchResult(
                run_id=run.run_id,
                processed=0,
                message="No unprocessed feedback to analyze",
            )

        results: List[ItemResult] = []
        for item in items:
            payload = run.do(
                f"analyze-{item['id']}",
                lambda item=item: self._analyze_and_persist(item["id"], item["content"]).to_dict(),
                should_record=_succeeded,
            )
            results.append(ItemResult.from_dict(payload))

        embedded = 0
        embedding_errors: Dict[int, str] = {}
        contents = {item["id"]: item["content"] for item in items}
        for result in results:
            if not result.success:
                continue
            outcome = run.do(
                f"embed-{result.id}",
                lambda result=result: self._embed(result.id, contents[result.id]),
                should_record=_succeeded,
            )
            if outcome.get("success"):
                embedded += 1
            else:
                embedding_errors[result.id] = str(outcome.get("error"))

        cleared = run.do(CLEAR_CACHE_STEP, self._clear_cache, should_record=lambda value: bool(value.get("cleared")))

        successful = sum(1 for result in results if result.success)
        logger.info(
            "Batch %s completed: %d/%d items processed, %d embedded",
            run.run_id,
            successful,
            len(items),
            embedded,
        )
        return BatchResult(
            run_id=run.run_id,
            processed=len(items),
            successful=successful,
            embedded=embedded,
            failed=len(items) - successful,
            results=results,
            embedding_errors=embedding_errors,
            cache_cleared=bool(cleared.get("cleared")),
            message="Batch completed with semantic indexing",
        )

    def _fetch(self) -> List[Dict[str, Any]]:
        items = self.store.fetch_unprocessed(self.batch_size)
        logger.info("Found %d unprocessed feedback items", len(items))
        return [{"id": item.id, "content": item.content} for item in items]

    def _analyze_and_persist(self, feedback_id: int, content: str) -> ItemResult:
        logger.info("Analyzing feedback %s", feedback_id)
        classification = self.classifier.classify(content)

        try:
            self.store.update_classification(feedback_id, classification)
        except PersistenceError as exc:
            logger.error("Database update failed for feedback %s: %s", feedback_id, exc)
            return ItemResult(id=feedback_id, success=False, error=str(exc))

        self._flag_if_critical(feedback_id, classification)
        logger.info(
            "Feedback %s: %s (%.2f), urgency=%s, themes=%s",
            feedback_id,
            classification.sentiment,
            classification.score,
            classification.urgency,
            ", ".join(classification.themes),
        )
        return ItemResult(
            id=feedback_id,
            success=True,
            sentiment=classification.sentiment,
            sentiment_score=classification.score,
            urgency=classification.urgency,
            themes=list(classification.themes),
            method=classification.method,
        )

    def _flag_if_critical(self, feedback_id: int, classification: ClassificationResult) -> None:
        if classification.urgency != "critical":
            return
        try:
            self.store.upsert_critical_flag(feedback_id)
        except PersistenceError as exc:
            logger.warning("Could not flag critical feedback %s: %s", feedback_id, exc)
            return
        logger.warning("CRITICAL feedback %s flagged", feedback_id)

    def _embed(self, feedback_id: int, content: str) -> Dict[str, Any]:
        if self.search is None:
            return {"id": feedback_id, "success": False, "error": "semantic index not configured"}
        try:
            self.search.index_feedback(feedback_id, content)
        except CallError as exc:
            logger.warning("Failed to embed feedback %s: %s", feedback_id, exc)
            return {"id": feedback_id, "success": False, "error": str(exc)}
        return {"id": feedback_id, "success": True}

    def _clear_cache(self) -> Dict[str, Any]:
        if self.analytics is None:
            return {"cleared": False}
        return {"cleared": self.analytics.invalidate()}


def reanalyze_all(
    store: FeedbackStore,
    classifier: FeedbackClassifier,
    analytics: Optional[AnalyticsService] = None,
    use_model: bool = False,
) -> Dict[str, int]:
    """Reclassify every stored item, processed or not.

    Uses the keyword rules unless ``use_model`` is set. Per-item failures are
    logged and skipped.
    """

    items = store.all_feedback()
    analyzed = 0
    for item in items:
        classification = (
            classifier.classify(item.content) if use_model else classifier.classify_with_rules(item.content)
        )
        try:
            store.update_classification(item.id, classification)
        except PersistenceError as exc:
            logger.error("Error analyzing feedback %s: %s", item.id, exc)
            continue
        if classification.urgency == "critical":
            try:
                store.upsert_critical_flag(item.id)
            except PersistenceError as exc:
                logger.warning("Could not flag critical feedback %s: %s", item.id, exc)
        analyzed += 1

    if analytics is not None:
        analytics.invalidate()
    logger.info("Re-analysis finished: %d/%d items", analyzed, len(items))
    return {"analyzed": analyzed, "total": len(items)}
