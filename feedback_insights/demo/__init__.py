"""Demo data for local runs."""

from .feedback import MOCK_FEEDBACK, build_mock_items, seed_store

__all__ = ["MOCK_FEEDBACK", "build_mock_items", "seed_store"]
