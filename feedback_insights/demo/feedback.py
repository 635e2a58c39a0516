"""Mock feedback corpus for demos and local runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from feedback_insights.analytics import AnalyticsService
from feedback_insights.models.feedback import FeedbackItem, utc_now
from feedback_insights.retrieval import SemanticSearch
from feedback_insights.storage import FeedbackStore


@dataclass(frozen=True)
class MockFeedback:
    source: str
    content: str
    author: str
    attachment_ref: Optional[str] = None


MOCK_FEEDBACK: List[MockFeedback] = [
    # performance
    MockFeedback("support_ticket", "Dashboard takes 8+ seconds to load with large datasets. This is affecting our daily operations significantly.", "admin_sarah"),
    MockFeedback("discord", "API response times are terrible during peak hours. Getting 5-10 second delays on simple GET requests.", "dev_mike"),
    MockFeedback("github", "Memory leak in the worker causing it to crash after processing ~1000 requests. Need urgent fix.", "backend_dev"),
    MockFeedback("twitter", "Your CDN is slower than molasses. Images take forever to load. Losing customers because of this.", "angry_user"),
    MockFeedback("discord", "Cold starts are killing us. First request after idle takes 3-5 seconds. This needs to be fixed ASAP.", "performance_nerd"),
    # ui/ux
    MockFeedback("discord", "The new navigation is confusing. Can't find where you moved the API keys section. Please add breadcrumbs.", "confused_user"),
    MockFeedback("github", "Mobile app UI is broken on iPad. Buttons are cut off and text overlaps. Needs responsive design fixes.", "mobile_tester", "attachments/ipad-layout.png"),
    MockFeedback("discord", "Would be great to have keyboard shortcuts for common actions. Currently everything requires clicking.", "power_user"),
    MockFeedback("email", "Error messages are cryptic. Got an invalid binding error with no explanation of how to fix it.", "newbie_dev", "attachments/binding-error.png"),
    # pricing
    MockFeedback("twitter", "Why did you increase prices by 40%? This is going to force us to look at alternatives.", "budget_conscious"),
    MockFeedback("discord", "Pricing page is confusing. What counts as a request? Does a single page load count as 1 or multiple?", "confused_buyer"),
    MockFeedback("email", "Love the product but $20/month is steep for hobby projects. Any chance of a hobbyist tier?", "weekend_hacker"),
    # documentation
    MockFeedback("github", "The AI documentation is incomplete. No examples for streaming responses or error handling.", "ai_enthusiast"),
    MockFeedback("twitter", "Video tutorials would be super helpful. Reading docs is fine but seeing it in action would be better.", "visual_learner"),
    # bugs
    MockFeedback("support_ticket", "Migrations randomly fail with a database locked error. Have to retry 3-4 times before it works.", "database_admin"),
    MockFeedback("discord", "The CLI crashes on Windows when deploying with special characters in file names.", "windows_user", "attachments/cli-crash.txt"),
    MockFeedback("twitter", "Dashboard shows stale metrics. Says I have 0 requests but I've been hammering the API for an hour.", "metrics_watcher"),
    # features
    MockFeedback("github", "Please add WebSocket support. Would enable so many real-time use cases for us.", "realtime_fan"),
    MockFeedback("github", "Built-in monitoring would be killer. Having to integrate third-party tools is extra work.", "sre_engineer"),
    # security
    MockFeedback("support_ticket", "Found a critical bug where user data is exposed in the API response.", "security_researcher"),
    # positive
    MockFeedback("twitter", "Just deployed my first worker and wow, the developer experience is incredible! So much easier than before.", "happy_newbie"),
    MockFeedback("email", "Your support team is amazing. Got a response in 15 minutes and they actually solved my problem.", "grateful_customer"),
    MockFeedback("github", "Edge computing at this scale is mind-blowing. Responses are instant from anywhere in the world.", "performance_obsessed"),
    MockFeedback("support_ticket", "The free tier is more than generous. Perfect for learning and side projects. Thank you!", "student_dev"),
]


def build_mock_items(now: Optional[datetime] = None, days: int = 7) -> List[FeedbackItem]:
    """Materialise the mock corpus with timestamps spread over recent days."""

    now = now or utc_now()
    items: List[FeedbackItem] = []
    for idx, mock in enumerate(MOCK_FEEDBACK, start=1):
        created_at = now - timedelta(days=idx % days, hours=idx)
        items.append(
            FeedbackItem(
                id=idx,
                source=mock.source,
                content=mock.content,
                author=mock.author,
                created_at=created_at,
                attachment_ref=mock.attachment_ref,
            )
        )
    return items


def seed_store(
    store: FeedbackStore,
    analytics: Optional[AnalyticsService] = None,
    search: Optional[SemanticSearch] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Replace the store contents with the mock corpus.

    Clears the analytics cache and, when ``search`` is given, indexes the
    seeded items for semantic search.
    """

    items = build_mock_items(now=now)
    count = store.replace_all(items)
    if analytics is not None:
        analytics.invalidate()

    summary = {
        "total": count,
        "with_attachments": sum(1 for item in items if item.attachment_ref),
    }
    if search is not None:
        indexed = search.index_all()
        summary["indexed"] = indexed.indexed
        summary["failed"] = indexed.failed
    return summary
