"""Service facade wiring the pipeline components from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .analytics import AnalyticsService, CachePort, InMemoryCache
from .classification import FeedbackClassifier, InferenceBackend, OpenAIBackend
from .config import OpenAIConfig, Settings
from .demo.feedback import seed_store
from .embeddings import EmbeddingBackend, EmbeddingGenerator, HashingEmbeddingBackend, OpenAIEmbeddingBackend
from .exceptions import ConfigurationError
from .ingest import FeedbackImporter, ImportResult
from .models.analysis import BatchResult, ClassificationResult, IndexAllResult, SearchMatch
from .models.analytics import AnalyticsSnapshot
from .models.feedback import CriticalFlag, FeedbackItem
from .pipeline import AnalysisBatchRunner, StepJournal, reanalyze_all
from .retrieval import SemanticSearch, VectorIndexClient
from .storage import FeedbackStore, InMemoryFeedbackStore
from .vector_store import InMemoryVectorDatabase, VectorDatabase

logger = logging.getLogger(__name__)


@dataclass
class FeedbackInsights:
    """Entry points exposed to callers (CLI, HTTP layer, scripts)."""

    store: FeedbackStore
    classifier: FeedbackClassifier
    search_service: SemanticSearch
    analytics: AnalyticsService
    runner: AnalysisBatchRunner

    def create_feedback(
        self,
        source: str,
        content: str,
        author: Optional[str] = None,
        attachment_ref: Optional[str] = None,
    ) -> FeedbackItem:
        if not source or not content:
            raise ValueError("source and content are required")
        item = self.store.create(source=source, content=content, author=author, attachment_ref=attachment_ref)
        self.analytics.invalidate()
        return item

    def list_feedback(
        self,
        source: Optional[str] = None,
        sentiment: Optional[str] = None,
        urgency: Optional[str] = None,
        limit: int = 50,
    ) -> List[FeedbackItem]:
        return self.store.list_feedback(source=source, sentiment=sentiment, urgency=urgency, limit=limit)

    def classify(self, text: str) -> ClassificationResult:
        return self.classifier.classify(text)

    def run_analysis_batch(self, run_id: Optional[str] = None) -> BatchResult:
        return self.runner.run(run_id=run_id)

    def reanalyze_all(self, use_model: bool = False) -> Dict[str, int]:
        return reanalyze_all(self.store, self.classifier, self.analytics, use_model=use_model)

    def index_all(self) -> IndexAllResult:
        return self.search_service.index_all()

    def search(self, query: str, k: Optional[int] = None) -> List[SearchMatch]:
        return self.search_service.search(query, k)

    def get_analytics(self) -> AnalyticsSnapshot:
        return self.analytics.get_snapshot()

    def critical_feedback(self, include_resolved: bool = False) -> List[CriticalFlag]:
        return self.store.critical_flags(include_resolved=include_resolved)

    def seed(self, index: bool = False, now: Optional[datetime] = None) -> Dict[str, int]:
        return seed_store(
            self.store,
            analytics=self.analytics,
            search=self.search_service if index else None,
            now=now,
        )

    def import_csv(self, path: Path) -> ImportResult:
        return FeedbackImporter(self.store, self.analytics).ingest_from_csv(path)


def _inference_backend(settings: Settings, offline: bool) -> Optional[InferenceBackend]:
    if offline or settings.llm.provider == "none":
        return None
    config = OpenAIConfig()
    try:
        config.validate()
    except ConfigurationError:
        logger.warning("OPENAI_API_KEY is not set; sentiment uses keyword rules only")
        return None
    return OpenAIBackend(api_key=config.api_key, base_url=config.base_url)


def _embedding_backend(settings: Settings, offline: bool) -> EmbeddingBackend:
    dimensions = settings.embeddings.dimensions
    if offline or settings.embeddings.provider == "hashing":
        return HashingEmbeddingBackend(dimensions=dimensions)
    config = OpenAIConfig()
    if not config.api_key:
        logger.warning("OPENAI_API_KEY is not set; indexing and search are unavailable")
    return OpenAIEmbeddingBackend(api_key=config.api_key or None, base_url=config.base_url, dimensions=dimensions)


def build_services(
    settings: Settings,
    store: Optional[FeedbackStore] = None,
    cache: Optional[CachePort] = None,
    database: Optional[VectorDatabase] = None,
    journal: Optional[StepJournal] = None,
    inference_backend: Optional[InferenceBackend] = None,
    embedding_backend: Optional[EmbeddingBackend] = None,
    offline: bool = False,
) -> FeedbackInsights:
    """Assemble the pipeline. Explicit collaborators override settings."""

    store = store if store is not None else InMemoryFeedbackStore()
    cache = cache if cache is not None else InMemoryCache()
    database = database if database is not None else InMemoryVectorDatabase()

    classifier = FeedbackClassifier(
        backend=inference_backend if inference_backend is not None else _inference_backend(settings, offline),
        model=settings.llm.model_name,
        temperature=settings.llm.temperature,
        max_tokens=settings.llm.max_tokens,
    )
    generator = EmbeddingGenerator(
        embedding_backend if embedding_backend is not None else _embedding_backend(settings, offline),
        dimensions=settings.embeddings.dimensions,
        model=settings.embeddings.model_name,
    )
    index = VectorIndexClient(database, generator, chunk_size=settings.index.chunk_size)
    search = SemanticSearch(
        store,
        generator,
        index,
        default_top_k=settings.index.default_top_k,
        max_top_k=settings.index.max_top_k,
    )
    analytics = AnalyticsService(
        store,
        cache,
        cache_key=settings.analytics.cache_key,
        ttl_seconds=settings.analytics.ttl_seconds,
        top_themes=settings.analytics.top_themes,
        timeline_days=settings.analytics.timeline_days,
    )
    runner = AnalysisBatchRunner(
        store,
        classifier,
        search=search,
        analytics=analytics,
        journal=journal,
        batch_size=settings.pipeline.batch_size,
    )
    return FeedbackInsights(
        store=store,
        classifier=classifier,
        search_service=search,
        analytics=analytics,
        runner=runner,
    )
