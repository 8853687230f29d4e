"""
Chapter text extraction for novel pages.

Strategies are tried in order by a single accept/reject loop:

1. Known content selectors (site-specific first, then generic)
2. Chapter-marker patterns over the whole page text
3. Longest generic container, then leaf text fragments

The first strategy whose cleaned candidate passes its gates wins and no
later strategy runs. The extractor never raises; an empty result is
reported with ``strategy=None`` and judged by the content validator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Iterable, List, Optional, Pattern, Sequence

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag

from novelscrape.config.config import ExtractionSettings

from .cleaning import CHAPTER_MARKER_PATTERNS, TextCleaner, find_chapter_segment, has_chapter_heading
from .models import ExtractionCandidate, ExtractionResult

DEFAULT_TITLE = "Scraped Content"

NOISE_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside", "iframe"]
# Matched anywhere in a class token or id
NOISE_SUBSTRINGS = ("banner", "menu")
# Matched at the start or end of a class/id segment (topnav, leftad, ad-top)
NOISE_SEGMENT_MARKERS = ("ad", "nav")
REGION_MARKERS = ("nav", "header", "footer")
BLOCK_TAGS = ["p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "section", "article", "dd", "dt"]
LEAF_TAGS = ["p", "div", "span", "td", "li"]

TITLE_SELECTORS = [
    ".bookname",
    ".book-name",
    ".title",
    ".chapter-title",
    ".article-title",
    ".post-title",
    "#title",
]

PRIMARY_CONTENT_SELECTORS = [
    ".txtnav",
    "#txtnav",
    ".readcontent",
    "#readcontent",
    ".chapter-content",
    "#chapter-content",
    "#chaptercontent",
    ".read-content",
    "#j_chapterBox",
    ".content",
    "#content",
    ".bookcontent",
    "#bookcontent",
    'div[class*="txt"]',
    'div[id*="txt"]',
    'div[class*="read"]',
    'div[id*="read"]',
]

GENERIC_CONTAINER_SELECTORS = [
    "#wrapper",
    ".wrapper",
    "#container",
    ".container",
    "#main",
    ".main",
    "#page",
    ".page",
    "main",
    "article",
    "#content",
    ".content",
    "#chapter_content",
    ".chapter-content",
    ".chapter_content",
    ".chaptercontent",
    ".txtnav",
    "#txtnav",
    ".readcontent",
    ".read-content",
    "#readcontent",
    ".novel_content",
    "#novel_content",
    ".articlecontent",
    "#articlecontent",
    ".yd_text2",
    ".showtxt",
    ".bookcontent",
    ".book-content",
    ".chapter-text",
    ".chapter_text",
    ".txt",
    ".text",
    "#txt",
    "#text",
    ".main-text",
    ".maintext",
    ".story-content",
    ".story_content",
    ".novel-text",
    ".novel_text",
    "#j_chapterBox",
    ".chapter-content-wrap",
    ".chapter-body",
    ".chapter_body",
    ".text-content",
    ".text_content",
    'div[class*="content"]',
    'div[id*="content"]',
    'div[class*="txt"]',
    'div[class*="text"]',
    'div[class*="read"]',
]


def _tokens(element: Tag) -> List[str]:
    """Lower-cased class tokens and id."""
    attrs = getattr(element, "attrs", None) or {}
    tokens = [str(token).lower() for token in attrs.get("class") or []]
    element_id = attrs.get("id")
    if element_id:
        tokens.append(str(element_id).lower())
    return tokens


def _segments(element: Tag) -> List[str]:
    """Class tokens and id split on hyphens and underscores."""
    segments: List[str] = []
    for token in _tokens(element):
        segments.extend(part for part in re.split(r"[-_\s]+", token) if part)
    return segments


def _has_marker(element: Tag, markers: Sequence[str]) -> bool:
    return any(segment.startswith(markers) for segment in _segments(element))


def _is_noise_element(element: Tag) -> bool:
    if any(marker in token for token in _tokens(element) for marker in NOISE_SUBSTRINGS):
        return True
    return any(
        segment.startswith(NOISE_SEGMENT_MARKERS) or segment.endswith(NOISE_SEGMENT_MARKERS)
        for segment in _segments(element)
    )


@dataclass
class PageContext:
    """Parsed, de-noised page shared by all strategies for one extraction."""

    soup: BeautifulSoup
    cleaner: TextCleaner

    @cached_property
    def body_text(self) -> str:
        root = self.soup.body or self.soup
        return root.get_text().strip()

    def select_outermost(self, selector: str) -> List[Tag]:
        """Elements matching ``selector`` that are not inside another match."""
        elements = self.soup.select(selector)
        matched = {id(element) for element in elements}
        return [element for element in elements if not any(id(parent) in matched for parent in element.parents)]

    def select_text(self, selector: str) -> Optional[str]:
        """Raw text of every element matching ``selector``, blank-line separated."""
        outermost = self.select_outermost(selector)
        if not outermost:
            return None
        texts = [element.get_text().strip() for element in outermost]
        return "\n\n".join(text for text in texts if text)


@dataclass
class ExtractionStrategy:
    """One step of the cascade; ``collect`` returns cleaned text or None."""

    name: str
    tier: int
    min_length: int
    require_clean: bool = False
    require_chapter_heading: bool = False

    def collect(self, page: PageContext) -> Optional[str]:
        raise NotImplementedError


@dataclass
class SelectorStrategy(ExtractionStrategy):
    selector: str = ""

    def collect(self, page: PageContext) -> Optional[str]:
        raw = page.select_text(self.selector)
        if raw is None:
            return None
        return page.cleaner.clean(raw)


@dataclass
class ChapterPatternStrategy(ExtractionStrategy):
    pattern: Pattern[str] = CHAPTER_MARKER_PATTERNS[0]
    min_match_length: int = 0

    def collect(self, page: PageContext) -> Optional[str]:
        segment = find_chapter_segment(page.body_text, self.pattern)
        if len(segment) <= self.min_match_length:
            return None
        return page.cleaner.clean(segment)


@dataclass
class LongestContainerStrategy(ExtractionStrategy):
    selectors: List[str] = field(default_factory=list)

    def collect(self, page: PageContext) -> Optional[str]:
        best: Optional[ExtractionCandidate] = None
        # Each element competes on its own so short siblings never add up
        for selector in self.selectors:
            for element in page.select_outermost(selector):
                candidate = ExtractionCandidate(selector, page.cleaner.clean(element.get_text()))
                if candidate.length > self.min_length and (best is None or candidate.length > best.length):
                    best = candidate
        return best.text if best else None


@dataclass
class LeafFragmentStrategy(ExtractionStrategy):
    tags: List[str] = field(default_factory=lambda: list(LEAF_TAGS))
    max_fragments: int = 20

    def _in_page_region(self, element: Tag) -> bool:
        node: Any = element
        while isinstance(node, Tag):
            if node.name in REGION_MARKERS or _has_marker(node, REGION_MARKERS):
                return True
            node = node.parent
        return False

    def collect(self, page: PageContext) -> Optional[str]:
        fragments: List[str] = []
        for element in page.soup.find_all(self.tags):
            if element.find(self.tags) is not None or self._in_page_region(element):
                continue
            text = page.cleaner.clean(element.get_text())
            if len(text) > self.min_length:
                fragments.append(text)
                if len(fragments) >= self.max_fragments:
                    break
        if not fragments:
            return None
        return "\n\n".join(fragments)


def build_default_strategies(settings: ExtractionSettings) -> List[ExtractionStrategy]:
    strategies: List[ExtractionStrategy] = [
        SelectorStrategy(
            name=f"selector:{selector}",
            tier=1,
            min_length=settings.selector_min_length,
            require_clean=True,
            selector=selector,
        )
        for selector in PRIMARY_CONTENT_SELECTORS
    ]
    strategies.extend(
        ChapterPatternStrategy(
            name=f"chapter_pattern:{index}",
            tier=2,
            min_length=settings.chapter_min_length,
            require_clean=True,
            require_chapter_heading=True,
            pattern=pattern,
            min_match_length=settings.chapter_match_min_length,
        )
        for index, pattern in enumerate(CHAPTER_MARKER_PATTERNS)
    )
    strategies.append(
        LongestContainerStrategy(
            name="longest_container",
            tier=3,
            min_length=settings.candidate_min_length,
            selectors=list(GENERIC_CONTAINER_SELECTORS),
        )
    )
    strategies.append(
        LeafFragmentStrategy(
            name="leaf_fragments",
            tier=3,
            min_length=settings.candidate_min_length,
            max_fragments=settings.max_leaf_fragments,
        )
    )
    return strategies


class NovelExtractor:
    """Extracts a chapter title and body from decoded HTML."""

    name = "novel_cascade"

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        *,
        cleaner: Optional[TextCleaner] = None,
        strategies: Optional[Iterable[ExtractionStrategy]] = None,
        logger: Any = None,
    ) -> None:
        self.settings = settings or ExtractionSettings()
        self.cleaner = cleaner or TextCleaner()
        self.strategies = list(strategies) if strategies is not None else build_default_strategies(self.settings)
        self.logger = (logger or structlog.get_logger(__name__)).bind(component="NovelExtractor")

    def extract(self, html: str, url: str = "") -> ExtractionResult:
        try:
            return self._extract(html, url)
        except Exception as e:
            self.logger.warning("extraction.error", url=url, error=str(e), exc_info=True)
            return ExtractionResult(title=DEFAULT_TITLE, content="", strategy=None)

    def _extract(self, html: str, url: str) -> ExtractionResult:
        soup = BeautifulSoup(html or "", "html.parser")
        self._remove_noise(soup)
        self._normalize_line_breaks(soup)
        page = PageContext(soup=soup, cleaner=self.cleaner)

        title = self.extract_title(soup)

        for strategy in self.strategies:
            self.logger.debug("extraction.strategy_started", strategy=strategy.name, tier=strategy.tier)
            text = strategy.collect(page)
            reason = self._reject_reason(strategy, text)
            if reason is not None:
                self.logger.debug(
                    "extraction.candidate_rejected",
                    strategy=strategy.name,
                    tier=strategy.tier,
                    reason=reason,
                    length=len(text or ""),
                )
                continue

            assert text is not None
            self.logger.info(
                "extraction.candidate_accepted",
                url=url,
                strategy=strategy.name,
                tier=strategy.tier,
                length=len(text),
            )
            return ExtractionResult(title=title, content=text, strategy=strategy.name)

        remaining = self.cleaner.clean(page.body_text)
        self.logger.info("extraction.no_content", url=url, page_text_length=len(remaining))
        return ExtractionResult(title=title, content="", strategy=None, page_text_length=len(remaining))

    def _reject_reason(self, strategy: ExtractionStrategy, text: Optional[str]) -> Optional[str]:
        if text is None:
            return "no_match"
        if len(text) <= strategy.min_length:
            return "too_short"
        if strategy.require_clean and self.cleaner.is_contaminated(text):
            return "contaminated"
        if strategy.require_chapter_heading and not has_chapter_heading(text):
            return "no_chapter_heading"
        return None

    def _remove_noise(self, soup: BeautifulSoup) -> None:
        for tag in soup.find_all(NOISE_TAGS):
            if not tag.decomposed:
                tag.decompose()

        # Known content containers (txtnav, read...) and their ancestors are kept
        protected = set()
        for selector in PRIMARY_CONTENT_SELECTORS:
            for element in soup.select(selector):
                protected.add(id(element))
                protected.update(id(parent) for parent in element.parents)

        for element in soup.find_all(True):
            if element.decomposed or element.name in ("html", "body") or id(element) in protected:
                continue
            if _is_noise_element(element):
                element.decompose()

    def _normalize_line_breaks(self, soup: BeautifulSoup) -> None:
        for br in soup.find_all("br"):
            br.replace_with(NavigableString("\n"))
        for block in soup.find_all(BLOCK_TAGS):
            block.insert(0, NavigableString("\n"))
            block.append(NavigableString("\n"))

    def extract_title(self, soup: BeautifulSoup) -> str:
        candidates: List[Optional[Tag]] = [soup.find("title"), soup.find("h1")]
        candidates.extend(soup.select_one(selector) for selector in TITLE_SELECTORS)

        for element in candidates:
            if element is None:
                continue
            title = re.sub(r"\s+", " ", element.get_text()).strip()
            if len(title) > self.settings.title_min_length:
                return title
        return DEFAULT_TITLE
