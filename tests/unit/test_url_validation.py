"""
Tests for URL validation ahead of any network call.
"""

import pytest

from novelscrape.errors import InvalidUrlError
from novelscrape.security.validation import InvalidUrlKind, URLValidationRules, UrlValidator, validate_url


@pytest.mark.unit
class TestUrlValidator:
    @pytest.mark.parametrize("url", [None, "", "   ", 42])
    def test_missing_or_blank_input(self, url):
        result = validate_url(url)

        assert result.valid is False
        assert result.error_kind is InvalidUrlKind.EMPTY_INPUT
        assert result.error == "Invalid input: URL is required and cannot be empty"
        assert "请输入有效的URL" in result.message

    @pytest.mark.parametrize("url", ["ftp://example.com/file", "file:///etc/passwd", "javascript:alert(1)"])
    def test_non_http_scheme_rejected(self, url):
        result = validate_url(url)

        assert result.valid is False
        assert result.error_kind is InvalidUrlKind.UNSUPPORTED_PROTOCOL
        assert result.error == "Invalid protocol: Only HTTP and HTTPS URLs are allowed"

    @pytest.mark.parametrize(
        "url",
        ["not a url", "www.69shuba.com/txt/1/1", "http://", "http://exa mple.com/", "http://example.com:99999/"],
    )
    def test_malformed_url_rejected(self, url):
        result = validate_url(url)

        assert result.valid is False
        assert result.error_kind is InvalidUrlKind.MALFORMED_URL
        assert result.error == "Invalid URL format"

    def test_accepts_http_and_https(self):
        assert validate_url("http://example.com/a").valid
        assert validate_url("HTTPS://www.69shuba.com/txt/85122/39443144").valid

    def test_surrounding_whitespace_is_stripped(self):
        result = validate_url("  https://example.com/chapter/1  ")

        assert result.valid
        assert result.url == "https://example.com/chapter/1"

    def test_overlong_url_rejected(self):
        validator = UrlValidator(URLValidationRules(max_url_length=30))

        result = validator.validate("https://example.com/" + "a" * 50)

        assert result.error_kind is InvalidUrlKind.MALFORMED_URL

    def test_require_raises_typed_error(self):
        with pytest.raises(InvalidUrlError) as exc_info:
            UrlValidator().require("ftp://example.com")

        error = exc_info.value
        assert error.status_code == 400
        assert error.kind is InvalidUrlKind.UNSUPPORTED_PROTOCOL
        assert error.to_response() == {
            "error": "Invalid protocol: Only HTTP and HTTPS URLs are allowed",
            "message": "仅支持HTTP和HTTPS协议 (Only HTTP and HTTPS protocols are supported)",
        }

    def test_require_returns_canonical_url(self):
        assert UrlValidator().require(" https://example.com/x ") == "https://example.com/x"
