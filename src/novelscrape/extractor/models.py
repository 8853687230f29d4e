"""
Data models for extraction results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(slots=True, frozen=True)
class ExtractionCandidate:
    """A cleaned text region produced by one strategy."""

    strategy_id: str
    text: str

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Output of the extraction cascade.

    ``strategy`` is None when no strategy produced viable content; ``content``
    is then empty and ``page_text_length`` tells how much text was left on the
    page after noise removal.
    """

    title: str
    content: str
    strategy: Optional[str]
    page_text_length: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class ExtractedDocument:
    """Terminal success value of the pipeline."""

    title: str
    content: str
    url: str
    word_count: int
    extracted_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "wordCount": self.word_count,
            "extractedAt": self.extracted_at.isoformat().replace("+00:00", "Z"),
        }
