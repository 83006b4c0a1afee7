"""Recommendation history storage."""

from stockify.storage.store import RecommendationStore

__all__ = ["RecommendationStore"]
