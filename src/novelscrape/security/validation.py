"""
URL validation for scrape requests.

Runs before any network call; has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from novelscrape.errors import InvalidUrlError


class InvalidUrlKind(Enum):
    EMPTY_INPUT = "EmptyInput"
    UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
    MALFORMED_URL = "MalformedUrl"


_ERRORS = {
    InvalidUrlKind.EMPTY_INPUT: (
        "Invalid input: URL is required and cannot be empty",
        "请输入有效的URL (Please enter a valid URL)",
    ),
    InvalidUrlKind.UNSUPPORTED_PROTOCOL: (
        "Invalid protocol: Only HTTP and HTTPS URLs are allowed",
        "仅支持HTTP和HTTPS协议 (Only HTTP and HTTPS protocols are supported)",
    ),
    InvalidUrlKind.MALFORMED_URL: (
        "Invalid URL format",
        "URL格式无效 (Invalid URL format)",
    ),
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    url: Optional[str] = None
    error_kind: Optional[InvalidUrlKind] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, kind: InvalidUrlKind) -> "ValidationResult":
        error, message = _ERRORS[kind]
        return cls(valid=False, error_kind=kind, error=error, message=message)

    def to_error(self) -> InvalidUrlError:
        assert self.error_kind is not None and self.message is not None
        return InvalidUrlError(self.error_kind, self.message, error=self.error)


class URLValidationRules(BaseModel):
    """Rules for URL validation."""

    allowed_schemes: List[str] = Field(default=["http", "https"])
    max_url_length: int = 2048


class UrlValidator:
    """Validates and canonicalizes user supplied URLs."""

    def __init__(self, rules: Optional[URLValidationRules] = None) -> None:
        self.rules = rules or URLValidationRules()

    def validate(self, url: Any) -> ValidationResult:
        if not isinstance(url, str) or not url.strip():
            return ValidationResult.failure(InvalidUrlKind.EMPTY_INPUT)

        candidate = url.strip()
        if len(candidate) > self.rules.max_url_length:
            return ValidationResult.failure(InvalidUrlKind.MALFORMED_URL)

        try:
            parsed = urlsplit(candidate)
            # Accessing port validates it
            parsed.port
        except ValueError:
            return ValidationResult.failure(InvalidUrlKind.MALFORMED_URL)

        if not parsed.scheme:
            return ValidationResult.failure(InvalidUrlKind.MALFORMED_URL)

        if parsed.scheme.lower() not in self.rules.allowed_schemes:
            return ValidationResult.failure(InvalidUrlKind.UNSUPPORTED_PROTOCOL)

        if not parsed.hostname or any(ch.isspace() for ch in candidate):
            return ValidationResult.failure(InvalidUrlKind.MALFORMED_URL)

        return ValidationResult(valid=True, url=candidate)

    def require(self, url: Any) -> str:
        """Return the canonical URL or raise InvalidUrlError."""
        result = self.validate(url)
        if not result.valid:
            raise result.to_error()
        assert result.url is not None
        return result.url


def validate_url(url: Any) -> ValidationResult:
    return UrlValidator().validate(url)
