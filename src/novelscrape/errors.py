"""
Typed failures for the scrape pipeline.

Every failure carries an HTTP status, a short error label, a user-facing
message and optional details, so the web layer can render it without
inspecting the cause.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class NetworkErrorKind(Enum):
    """Classification of the last fetch failure."""

    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    TIMEOUT = "Timeout"
    OFFLINE = "Offline"
    SERVER_ERROR = "ServerError"
    UNKNOWN = "Unknown"


class ScrapeError(Exception):
    """Base class for all pipeline failures."""

    status_code: int = 500
    error: str = "Scraping service error"
    default_message: str = "Unable to scrape the webpage. Please try again later."

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.details: Dict[str, Any] = dict(details or {})
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidUrlError(ScrapeError):
    status_code = 400
    error = "Invalid URL"

    def __init__(self, kind: Any, message: str, *, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        if error:
            self.error = error


_NETWORK_RESPONSES: Dict[NetworkErrorKind, tuple[int, str, str]] = {
    NetworkErrorKind.NOT_FOUND: (
        404,
        "Page not found",
        "The requested page could not be found. Please check the URL and try again.",
    ),
    NetworkErrorKind.FORBIDDEN: (
        403,
        "Access forbidden",
        "The website has blocked access to this content. This might be due to anti-scraping measures "
        "or geographic restrictions.",
    ),
    NetworkErrorKind.TIMEOUT: (
        408,
        "Request timeout",
        "The website took too long to respond. Please try again later.",
    ),
    NetworkErrorKind.OFFLINE: (
        502,
        "Website unreachable",
        "The connection to the website was interrupted. Please try again later.",
    ),
    NetworkErrorKind.SERVER_ERROR: (
        502,
        "Server error",
        "The target website is experiencing server issues. Please try again later.",
    ),
    NetworkErrorKind.UNKNOWN: (
        500,
        "Scraping service error",
        "Unable to scrape the webpage. Please try again later.",
    ),
}


class NetworkError(ScrapeError):
    """Fetch failure after the fetcher's own retries are exhausted."""

    def __init__(
        self,
        kind: NetworkErrorKind,
        message: Optional[str] = None,
        *,
        status: Optional[int] = None,
        attempts: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        status_code, error, default_message = _NETWORK_RESPONSES[kind]
        self.kind = kind
        self.status = status
        self.attempts = attempts
        self.status_code = status_code
        self.error = error
        super().__init__(message or default_message, details=details)


class EmptyUpstreamResponseError(ScrapeError):
    status_code = 502
    error = "Empty response"
    default_message = "The website returned an empty response."


class ExtractionFailedError(ScrapeError):
    status_code = 422
    error = "Content extraction failed"
    default_message = (
        "Unable to extract meaningful content from the webpage. The page might be protected, have a complex "
        "structure, require JavaScript rendering, or be a navigation/index page."
    )


class ContentContaminatedError(ScrapeError):
    status_code = 422
    error = "Content extraction contaminated"
    default_message = (
        "The extracted content contains navigation elements and UI text instead of clean chapter content. "
        "This usually happens when the scraper captures the wrong page elements."
    )
