"""
Text cleaning rules and contamination checks for extracted chapter text.

Rules are compiled once and applied in order, one pass per candidate.
Phrase patterns target the reader chrome of Chinese novel sites
(navigation, font and background controls, bylines, site footers, ads).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

CHINESE_NUMERALS = "一二三四五六七八九十百千万零〇两"

# Numeric or Chinese-numeral chapter heading such as 第3章 / 第 12 章 / 第三十章
CHAPTER_HEADING_RE = re.compile(rf"第\s*[\d{CHINESE_NUMERALS}]+\s*章")

# Marker -> next marker (or end of text), in the order they are tried
CHAPTER_MARKER_PATTERNS: List[Pattern[str]] = [
    re.compile(r"第\s*\d+\s*章"),
    re.compile(rf"第[{CHINESE_NUMERALS}\d]+章"),
]

UI_NOISE_KEYWORDS_RE = re.compile(r"书页|目录|设置|白天|上一章|下一章|字体|背景")


@dataclass(frozen=True)
class CleaningRule:
    name: str
    pattern: Pattern[str]
    replacement: str = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _rule(name: str, pattern: str, replacement: str = "", flags: int = 0) -> CleaningRule:
    return CleaningRule(name, re.compile(pattern, flags), replacement)


DEFAULT_CLEANING_RULES: List[CleaningRule] = [
    _rule("line_endings", r"\r\n?", "\n"),
    # Navigation bars
    _rule("nav_book_toc_settings", r"书页\s*目录\s*设置\s*白天"),
    _rule("nav_chapter", r"上一章\s*目录\s*下一章"),
    _rule("nav_page", r"上一页\s*目录\s*下一页"),
    _rule("nav_back_to_toc", r"返回目录\s*上一章\s*下一章"),
    # Font and display controls
    _rule("display_close_bg_font", r"关闭\s*背景\s*字体.*$", flags=re.MULTILINE),
    _rule("display_font_faces", r"雅黑\s*苹方\s*等线.*$", flags=re.MULTILINE),
    _rule("display_font_size_line", r"字号.*$", flags=re.MULTILINE),
    _rule("display_font_size", r"字体大小\s*[+-]\s*"),
    _rule("display_bg_color", r"背景颜色\s*"),
    _rule("display_font_color", r"字体颜色\s*"),
    _rule("display_reading_settings", r"阅读设置\s*"),
    _rule("display_eye_care", r"护眼模式\s*"),
    _rule("display_night", r"夜间模式\s*"),
    _rule("display_day", r"日间模式\s*"),
    # Byline and date metadata
    _rule("byline_dated", r"\d{4}-\d{2}-\d{2}\s*作者[：:]\s*[^\n\r]+"),
    _rule("byline", r"作者[：:]\s*[^\n\r]+"),
    # Site footers
    _rule("footer_domain", r"本站域名.*$", flags=re.MULTILINE),
    _rule("footer_bookmark", r"请记住本站.*$", flags=re.MULTILINE),
    _rule("footer_if_you_like", r"如果您喜欢.*$", flags=re.MULTILINE),
    # Advertisements and recommendations
    _rule("ad_line", r"广告.*$", flags=re.MULTILINE),
    _rule("recommendation_line", r"推荐.*小说.*$", flags=re.MULTILINE),
    # Whitespace: collapse runs, trim each line, cap blank lines
    _rule("collapse_spaces", r"[^\S\n]+", " "),
    _rule("trim_line_start", r"\n ", "\n"),
    _rule("trim_line_end", r" \n", "\n"),
    _rule("collapse_newlines", r"\n{3,}", "\n\n"),
]

DEFAULT_CONTAMINATION_PATTERNS: List[Pattern[str]] = [
    re.compile(r"书页.*目录.*设置.*白天"),
    re.compile(r"上一章.*目录.*下一章"),
    re.compile(r"字体大小.*背景颜色"),
    re.compile(r"阅读设置.*护眼模式"),
    re.compile(r"雅黑.*苹方.*等线"),
    re.compile(r"关闭.*背景.*字体"),
]


class TextCleaner:
    """Applies cleaning rules and answers content-quality questions about text."""

    def __init__(
        self,
        rules: Optional[Sequence[CleaningRule]] = None,
        contamination_patterns: Optional[Sequence[Pattern[str]]] = None,
    ) -> None:
        self.rules = list(rules if rules is not None else DEFAULT_CLEANING_RULES)
        self.contamination_patterns = list(
            contamination_patterns if contamination_patterns is not None else DEFAULT_CONTAMINATION_PATTERNS
        )

    def clean(self, text: str) -> str:
        for rule in self.rules:
            text = rule.apply(text)
        return text.strip()

    def contamination_match(self, text: str) -> Optional[str]:
        """Return the first contamination pattern found in ``text``, if any."""
        for pattern in self.contamination_patterns:
            if pattern.search(text):
                return pattern.pattern
        return None

    def is_contaminated(self, text: str) -> bool:
        return self.contamination_match(text) is not None


def has_chapter_heading(text: str) -> bool:
    return CHAPTER_HEADING_RE.search(text) is not None


def ui_noise_ratio(text: str) -> float:
    """Share of characters in ``text`` taken up by UI keywords."""
    if not text:
        return 0.0
    noise_chars = sum(len(match.group(0)) for match in UI_NOISE_KEYWORDS_RE.finditer(text))
    return noise_chars / len(text)


def find_chapter_segment(text: str, pattern: Pattern[str]) -> str:
    """
    Return the longest span running from a chapter marker to the next
    marker of the same pattern, or to the end of the text.
    """
    starts = [match.start() for match in pattern.finditer(text)]
    best = ""
    for index, start in enumerate(starts):
        end = starts[index + 1] if index + 1 < len(starts) else len(text)
        segment = text[start:end]
        if len(segment) > len(best):
            best = segment
    return best


def count_words(text: str) -> int:
    """Whitespace-delimited token count."""
    return len(text.split())
