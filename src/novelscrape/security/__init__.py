"""Input validation for scrape requests."""

from .validation import InvalidUrlKind, URLValidationRules, UrlValidator, ValidationResult, validate_url

__all__ = ["InvalidUrlKind", "URLValidationRules", "UrlValidator", "ValidationResult", "validate_url"]
