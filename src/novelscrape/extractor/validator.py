"""
Post-extraction content gate.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlsplit

import structlog

from novelscrape.config.config import ExtractionSettings
from novelscrape.errors import ContentContaminatedError, ExtractionFailedError

from .cleaning import TextCleaner, has_chapter_heading, ui_noise_ratio
from .models import ExtractedDocument

SHORT_CONTENT_SUGGESTION = "For novel sites like 69shuba, try using a direct chapter URL instead of the main page."
CONTAMINATED_SUGGESTION = "Try using a direct chapter URL, or check if the page structure has changed."


class ContentValidator:
    """
    Rejects documents that are too short or, for known novel domains,
    still carry reader chrome.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        *,
        cleaner: Optional[TextCleaner] = None,
        logger: Any = None,
    ) -> None:
        self.settings = settings or ExtractionSettings()
        self.cleaner = cleaner or TextCleaner()
        self.logger = (logger or structlog.get_logger(__name__)).bind(component="ContentValidator")

    def is_known_domain(self, url: str) -> bool:
        host = urlsplit(url).hostname or ""
        return any(domain in host for domain in self.settings.known_novel_domains)

    def validate(self, document: ExtractedDocument) -> ExtractedDocument:
        """Return ``document`` unchanged or raise a typed extraction failure."""
        content_length = len(document.content)
        if content_length < self.settings.min_content_length:
            self.logger.info("validation.too_short", url=document.url, content_length=content_length)
            raise ExtractionFailedError(
                details={
                    "title": document.title,
                    "contentLength": content_length,
                    "url": document.url,
                    "suggestion": SHORT_CONTENT_SUGGESTION,
                }
            )

        if self.is_known_domain(document.url):
            self._validate_strict(document)

        return document

    def _validate_strict(self, document: ExtractedDocument) -> None:
        contaminated = self.cleaner.is_contaminated(document.content)
        chapter = has_chapter_heading(document.content)
        ratio = ui_noise_ratio(document.content)

        if contaminated or not chapter or ratio > self.settings.quality_ratio_threshold:
            self.logger.info(
                "validation.contaminated",
                url=document.url,
                contaminated=contaminated,
                has_chapter_structure=chapter,
                quality_ratio=round(ratio, 3),
            )
            raise ContentContaminatedError(
                details={
                    "title": document.title,
                    "contentLength": len(document.content),
                    "contaminated": contaminated,
                    "hasChapterStructure": chapter,
                    "contentQualityRatio": round(ratio, 3),
                    "url": document.url,
                    "suggestion": CONTAMINATED_SUGGESTION,
                }
            )

        self.logger.debug("validation.passed", url=document.url, quality_ratio=round(ratio, 3))
