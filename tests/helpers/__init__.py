"""Shared test helpers."""

from .metric_delta import counter_value, histogram_observes, metric_delta
from .pages import CHAPTER_SENTENCE, chapter_page, chapter_text

__all__ = ["CHAPTER_SENTENCE", "chapter_page", "chapter_text", "counter_value", "histogram_observes", "metric_delta"]
