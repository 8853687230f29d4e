"""
Character encoding detection and decoding for raw page bytes.

Chinese novel sites frequently omit or misdeclare their charset, so
detection layers cheap structural signals (BOM, header, meta tag)
before falling back to domain and byte-statistics heuristics.
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from typing import ClassVar, Iterable, Mapping, Optional
from urllib.parse import urlsplit

import structlog

from novelscrape.config.config import DEFAULT_KNOWN_NOVEL_DOMAINS

logger = structlog.get_logger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"

_HEADER_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(r"""<meta[^>]+charset\s*=\s*['"]*([^'">\s]+)""", re.IGNORECASE)


@dataclass(frozen=True)
class EncodingDecision:
    """Closed set of encodings: utf-8, gbk, gb2312, or another named charset."""

    label: str

    UTF8: ClassVar["EncodingDecision"]
    GBK: ClassVar["EncodingDecision"]
    GB2312: ClassVar["EncodingDecision"]

    @classmethod
    def other(cls, name: str) -> "EncodingDecision":
        return cls(name.strip().lower())

    @classmethod
    def from_declared(cls, charset: str) -> "EncodingDecision":
        """Normalize a declared charset; every gb* family name maps to gbk."""
        name = charset.strip().strip("'\"").strip().lower()
        if "gb" in name:
            return cls.GBK
        if name in ("utf-8", "utf8"):
            return cls.UTF8
        return cls.other(name)

    @property
    def is_double_byte_chinese(self) -> bool:
        return self.label in ("gbk", "gb2312")

    @property
    def codec(self) -> str:
        """Python codec used to decode this decision."""
        if self.is_double_byte_chinese:
            # gb18030 is a superset of both tables
            return "gb18030"
        if self.label == "utf-8":
            return "utf-8-sig"
        try:
            return codecs.lookup(self.label).name
        except LookupError:
            return "utf-8-sig"

    def __str__(self) -> str:
        return self.label


EncodingDecision.UTF8 = EncodingDecision("utf-8")
EncodingDecision.GBK = EncodingDecision("gbk")
EncodingDecision.GB2312 = EncodingDecision("gb2312")


def _header(headers: Mapping[str, str], name: str) -> str:
    for key, value in headers.items():
        if key.lower() == name:
            return value or ""
    return ""


class EncodingDetector:
    """Pure, deterministic encoding detection over raw bytes, headers and URL."""

    def __init__(
        self,
        known_domains: Optional[Iterable[str]] = None,
        *,
        meta_scan_bytes: int = 2048,
        sample_size: int = 1000,
        high_byte_ratio: float = 0.3,
    ) -> None:
        self.known_domains = [d.lower() for d in (known_domains or DEFAULT_KNOWN_NOVEL_DOMAINS)]
        self.meta_scan_bytes = meta_scan_bytes
        self.sample_size = sample_size
        self.high_byte_ratio = high_byte_ratio

    def detect(self, body: bytes, headers: Mapping[str, str], url: str = "") -> EncodingDecision:
        decision, source = self._detect(body, headers, url)
        logger.debug("Encoding detected", encoding=decision.label, source=source)
        return decision

    def _detect(self, body: bytes, headers: Mapping[str, str], url: str) -> tuple[EncodingDecision, str]:
        # A BOM is unambiguous and outranks any declaration
        if body[:3] == UTF8_BOM:
            return EncodingDecision.UTF8, "bom"

        match = _HEADER_CHARSET_RE.search(_header(headers, "content-type"))
        if match and match.group(1).strip().strip("'\""):
            return EncodingDecision.from_declared(match.group(1)), "header"

        head = body[: self.meta_scan_bytes].decode("ascii", errors="ignore")
        match = _META_CHARSET_RE.search(head)
        if match:
            return EncodingDecision.from_declared(match.group(1)), "meta"

        if self.is_known_domain(url):
            return EncodingDecision.GBK, "domain"

        sample = body[: self.sample_size]
        if sample:
            high_bytes = sum(1 for byte in sample if byte > 127)
            if high_bytes / len(sample) > self.high_byte_ratio:
                return EncodingDecision.GBK, "high_byte_ratio"

        return EncodingDecision.UTF8, "default"

    def is_known_domain(self, url: str) -> bool:
        host = (urlsplit(url).hostname or "") if url else ""
        return any(domain in host for domain in self.known_domains)


def detect_encoding(body: bytes, headers: Mapping[str, str], url: str = "") -> EncodingDecision:
    return EncodingDetector().detect(body, headers, url)


def decode_content(body: bytes, decision: EncodingDecision) -> str:
    """Decode raw bytes; malformed sequences become U+FFFD instead of raising."""
    return body.decode(decision.codec, errors="replace")
