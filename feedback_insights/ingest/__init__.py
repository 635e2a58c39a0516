"""Feedback ingestion helpers."""

from .importer import FeedbackImporter, ImportResult

__all__ = ["FeedbackImporter", "ImportResult"]
