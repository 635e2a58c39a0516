"""Deterministic keyword rules for sentiment, themes and urgency.

Keywords match at the start of a word, so stems such as ``frustrat`` or
``integrat`` also cover their inflections. Negation words must match as whole
words.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple

MAX_THEMES = 3
DEFAULT_THEME = "general"
DEFAULT_URGENCY = "medium"

POSITIVE_WORDS: Tuple[str, ...] = (
    "great", "excellent", "love", "amazing", "awesome", "fantastic", "good", "helpful",
    "perfect", "wonderful", "best", "thank", "appreciate", "impressed", "outstanding",
    "brilliant", "superb", "nice", "beautiful", "easy", "smooth", "fast", "efficient",
    "reliable", "solid", "clean", "intuitive", "user-friendly", "works well", "happy",
    "satisfied", "pleased", "delighted", "recommend", "useful", "valuable", "quality",
)

NEGATIVE_WORDS: Tuple[str, ...] = (
    "bad", "terrible", "hate", "awful", "worst", "horrible", "broken", "bug", "crash",
    "error", "issue", "problem", "frustrat", "disappoint", "annoying", "useless", "slow",
    "difficult", "confusing", "complicated", "hard", "poor", "fail", "wrong", "mess",
    "sucks", "waste", "lacking", "missing", "unable", "cannot", "can't", "doesn't work",
    "not working", "stopped", "freezes", "laggy", "buggy", "glitch", "unstable",
)

NEGATION_WORDS: Tuple[str, ...] = (
    "not", "no", "don't", "doesn't", "didn't", "never", "neither", "nor", "nothing",
)

# Evaluated in order; a text may hit several themes.
THEME_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("performance", ("slow", "performance", "speed", "fast", "lag")),
    ("ui_ux", ("ui", "design", "interface", "look", "layout", "ux")),
    ("pricing", ("price", "pricing", "cost", "expensive", "cheap", "payment", "subscription")),
    ("bugs", ("bug", "error", "crash", "broken", "issue", "problem")),
    ("features", ("feature", "request", "add", "need", "want", "wish")),
    ("documentation", ("doc", "documentation", "guide", "tutorial", "help")),
    ("support", ("support", "customer service", "response", "help")),
    ("security", ("security", "privacy", "safe", "data")),
    ("integration", ("integrat", "api", "connect")),
)

CRITICAL_KEYWORDS: Tuple[str, ...] = (
    "crash", "broken", "urgent", "critical", "down", "not working", "can't use", "cannot use",
)
HIGH_KEYWORDS: Tuple[str, ...] = ("bug", "error", "issue", "problem", "fail", "wrong")
LOW_KEYWORDS: Tuple[str, ...] = (
    "nice", "would be", "suggestion", "could", "maybe", "consider", "love to see",
)

URGENCY_LADDER: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("critical", CRITICAL_KEYWORDS),
    ("high", HIGH_KEYWORDS),
    ("low", LOW_KEYWORDS),
)


@lru_cache(maxsize=None)
def _prefix_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"(?<![\w'])" + re.escape(keyword))


@lru_cache(maxsize=None)
def _word_pattern(word: str) -> re.Pattern:
    return re.compile(r"(?<![\w'])" + re.escape(word) + r"(?![\w'])")


def _normalize(text: str) -> str:
    # Curly apostrophes are common in pasted feedback.
    return (text or "").lower().replace("’", "'")


def contains_keyword(text: str, keyword: str) -> bool:
    return _prefix_pattern(keyword).search(text) is not None


def count_matches(text: str, keywords: Iterable[str]) -> int:
    """Count how many distinct keywords occur in already-lowercased text."""

    return sum(1 for keyword in keywords if contains_keyword(text, keyword))


def has_negation(text: str) -> bool:
    return any(_word_pattern(word).search(text) for word in NEGATION_WORDS)


def keyword_sentiment(text: str) -> Tuple[str, float]:
    """Keyword fallback for sentiment polarity and score."""

    content = _normalize(text)
    positive = count_matches(content, POSITIVE_WORDS)
    negative = count_matches(content, NEGATIVE_WORDS)

    if positive > negative:
        sentiment = "positive"
        score = min(0.4 + positive * 0.15, 1.0)
        # "not good" style negation only dampens weak positive signals
        if positive <= 2 and has_negation(content):
            score *= 0.5
            if score < 0.3:
                sentiment, score = "neutral", 0.0
    elif negative > positive:
        sentiment = "negative"
        score = max(-0.4 - negative * 0.15, -1.0)
    elif positive > 0 and negative > 0:
        sentiment = "neutral"
        score = (positive - negative) * 0.1
    else:
        sentiment, score = "neutral", 0.0

    return sentiment, round(score, 4)


def extract_themes(text: str, limit: int = MAX_THEMES) -> List[str]:
    content = _normalize(text)
    themes = [
        theme
        for theme, keywords in THEME_KEYWORDS
        if any(contains_keyword(content, keyword) for keyword in keywords)
    ]
    return themes[:limit] or [DEFAULT_THEME]


def classify_urgency(text: str, ladder: Sequence[Tuple[str, Tuple[str, ...]]] = URGENCY_LADDER) -> str:
    content = _normalize(text)
    for level, keywords in ladder:
        if any(contains_keyword(content, keyword) for keyword in keywords):
            return level
    return DEFAULT_URGENCY


def normalize_themes(themes: Iterable[str], limit: int = MAX_THEMES) -> List[str]:
    """Lowercase, dedupe and cap a theme list, defaulting to ``general``."""

    cleaned: List[str] = []
    for theme in themes:
        tag = str(theme).strip().lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned[:limit] or [DEFAULT_THEME]
