"""
Pipeline orchestration for novelscrape.

Validator -> Fetcher -> Encoding detector -> Decoder -> Extractor -> Content gate.
Each stage may end the request with a typed ScrapeError.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import structlog

from novelscrape.config.config import Config
from novelscrape.crawler.http_client import HttpClient, RawResponse
from novelscrape.errors import ExtractionFailedError, ScrapeError
from novelscrape.extractor.cleaning import TextCleaner, count_words
from novelscrape.extractor.encoding import EncodingDetector, decode_content
from novelscrape.extractor.models import ExtractedDocument
from novelscrape.extractor.novel_extractor import NovelExtractor
from novelscrape.extractor.validator import SHORT_CONTENT_SUGGESTION, ContentValidator
from novelscrape.observability.metrics import increment
from novelscrape.security.validation import UrlValidator


class Fetcher(Protocol):
    async def fetch(self, url: str) -> RawResponse: ...


@dataclass(frozen=True)
class ScrapeResult:
    document: ExtractedDocument
    encoding: str
    processing_time_ms: float
    attempts: int
    strategy: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "data": self.document.to_dict(),
            "meta": {
                "encoding": self.encoding,
                "processingTime": round(self.processing_time_ms, 1),
            },
        }


class ScrapePipeline:
    """Runs one URL through the extraction pipeline per call to ``scrape``."""

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        fetcher: Optional[Fetcher] = None,
        logger: Any = None,
    ) -> None:
        self.config = config or Config()
        self.logger = (logger or structlog.get_logger(__name__)).bind(component="ScrapePipeline")

        self._owns_fetcher = fetcher is None
        self.fetcher: Fetcher = fetcher or HttpClient(self.config.fetcher)

        extraction = self.config.extraction
        cleaner = TextCleaner()
        self.url_validator = UrlValidator()
        self.detector = EncodingDetector(
            extraction.known_novel_domains,
            meta_scan_bytes=extraction.meta_scan_bytes,
            sample_size=extraction.high_byte_sample_size,
            high_byte_ratio=extraction.high_byte_ratio,
        )
        self.extractor = NovelExtractor(extraction, cleaner=cleaner, logger=self.logger)
        self.content_validator = ContentValidator(extraction, cleaner=cleaner, logger=self.logger)

    async def __aenter__(self) -> "ScrapePipeline":
        if self._owns_fetcher and isinstance(self.fetcher, HttpClient):
            await self.fetcher.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_fetcher and isinstance(self.fetcher, HttpClient):
            await self.fetcher.close()

    async def scrape(self, url: Any) -> ScrapeResult:
        start_time = time.monotonic()
        with structlog.contextvars.bound_contextvars(request_url=str(url)):
            try:
                result = await self._scrape(url, start_time)
            except ScrapeError as e:
                increment("scrape_requests_total", labels={"outcome": type(e).__name__})
                self.logger.info("Scrape failed", error=e.error, status_code=e.status_code)
                raise
            except Exception as e:
                increment("scrape_requests_total", labels={"outcome": "unexpected"})
                self.logger.error("Unexpected scrape failure", error=str(e), exc_info=True)
                raise ScrapeError(details={"reason": str(e)}) from e

        increment("scrape_requests_total", labels={"outcome": "success"})
        return result

    async def _scrape(self, url: Any, start_time: float) -> ScrapeResult:
        target = self.url_validator.require(url)

        raw = await self.fetcher.fetch(target)

        decision = self.detector.detect(raw.body, raw.headers, target)
        increment("detected_encoding_total", labels={"encoding": decision.label})
        html = decode_content(raw.body, decision)
        self.logger.info("Decoded page", encoding=decision.label, html_length=len(html))

        extraction = await asyncio.to_thread(self.extractor.extract, html, target)

        if extraction.strategy is None:
            raise ExtractionFailedError(
                details={
                    "title": extraction.title,
                    "contentLength": extraction.page_text_length,
                    "url": target,
                    "encoding": decision.label,
                    "suggestion": SHORT_CONTENT_SUGGESTION,
                }
            )
        increment("extraction_strategy_total", labels={"strategy": extraction.strategy})

        document = ExtractedDocument(
            title=extraction.title,
            content=extraction.content,
            url=target,
            word_count=count_words(extraction.content),
        )
        try:
            self.content_validator.validate(document)
        except ScrapeError as e:
            e.details["encoding"] = decision.label
            raise

        elapsed_ms = (time.monotonic() - start_time) * 1000
        self.logger.info(
            "Scraping completed",
            title=document.title,
            content_length=len(document.content),
            encoding=decision.label,
            strategy=extraction.strategy,
        )
        return ScrapeResult(
            document=document,
            encoding=decision.label,
            processing_time_ms=elapsed_ms,
            attempts=raw.attempts,
            strategy=extraction.strategy,
        )
