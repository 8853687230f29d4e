"""
Content extraction for novel pages.

- Encoding detection and decoding of raw page bytes
- Selector, chapter-pattern and heuristic extraction cascade
- Rule-based text cleaning with contamination detection
- Post-extraction content gate for known novel domains
"""

from .cleaning import CleaningRule, TextCleaner, count_words, has_chapter_heading, ui_noise_ratio
from .encoding import EncodingDecision, EncodingDetector, decode_content, detect_encoding
from .models import ExtractedDocument, ExtractionCandidate, ExtractionResult
from .novel_extractor import ExtractionStrategy, NovelExtractor, build_default_strategies
from .validator import ContentValidator

__all__ = [
    "CleaningRule",
    "ContentValidator",
    "EncodingDecision",
    "EncodingDetector",
    "ExtractedDocument",
    "ExtractionCandidate",
    "ExtractionResult",
    "ExtractionStrategy",
    "NovelExtractor",
    "TextCleaner",
    "build_default_strategies",
    "count_words",
    "decode_content",
    "detect_encoding",
    "has_chapter_heading",
    "ui_noise_ratio",
]
