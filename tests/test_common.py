"""Tests for common utilities."""

import pytest

from shortlink.common.headers import build_base_url, extract_forwarded_headers
from shortlink.common.url_builder import build_short_url
from shortlink.common.logging_config import get_logger, setup_logging
from shortlink.common.validators import is_reserved_code, is_valid_short_code, is_valid_url, normalize_url
from shortlink.shortcode import ShortCodeGenerator

ALPHABET = ShortCodeGenerator.BASE62_CHARS


class TestValidators:
    """Test validation utilities."""

    def test_valid_urls(self):
        """Test valid URL validation."""
        valid, _ = is_valid_url("https://example.com")
        assert valid

        valid, _ = is_valid_url("http://example.com/path")
        assert valid

        valid, _ = is_valid_url("https://sub.example.com:8080/path?query=value")
        assert valid

        valid, _ = is_valid_url("example.com")
        assert valid

        valid, _ = is_valid_url("example.com/login?next=http://example.com/home")
        assert valid

    def test_invalid_urls(self):
        """Test invalid URL validation."""
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("ftp://example.com/?next=http://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("https://")
        assert not valid
        assert "host" in error.lower()

        valid, error = is_valid_url("https://example.com:99999")
        assert not valid

        valid, error = is_valid_url("https://example.com/" + "x" * 2048)
        assert not valid
        assert "too long" in error.lower()

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("example.com", "http://example.com"),
            ("example.com/login?next=http://example.com/home", "http://example.com/login?next=http://example.com/home"),
            ("https://example.com/path/", "https://example.com/path"),
            ("https://example.com/", "https://example.com/"),
            ("HTTPS://example.com/a?b=1", "https://example.com/a?b=1"),
            ("  https://example.com/x  ", "https://example.com/x"),
        ],
    )
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    def test_valid_short_codes(self):
        """Test valid short code validation."""
        valid, _ = is_valid_short_code("abc123", ALPHABET)
        assert valid

        valid, _ = is_valid_short_code("ABC", ALPHABET)
        assert valid

        valid, _ = is_valid_short_code("a" * 20, ALPHABET)
        assert valid

    def test_invalid_short_codes(self):
        """Test invalid short code validation."""
        valid, error = is_valid_short_code("ab", ALPHABET)
        assert not valid
        assert "at least" in error

        valid, error = is_valid_short_code("a" * 21, ALPHABET)
        assert not valid
        assert "at most" in error

        valid, error = is_valid_short_code("test-code", ALPHABET)
        assert not valid
        assert "letters and digits" in error

        valid, error = is_valid_short_code("", ALPHABET)
        assert not valid

    @pytest.mark.parametrize("code", ["health", "Health", "API", "stats", "favicon"])
    def test_reserved_short_codes(self, code):
        """Codes that shadow the app's own routes are refused."""
        valid, error = is_valid_short_code(code, ALPHABET)
        assert not valid
        assert "reserved" in error
        assert is_reserved_code(code)

    def test_unreserved_short_code(self):
        assert not is_reserved_code("healthy")


class TestHeaders:
    """Test header parsing utilities."""

    def test_extract_forwarded_headers(self):
        """Test extracting X-Forwarded headers."""
        headers = {
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "example.com",
            "X-Forwarded-For": "192.168.1.1",
        }

        forwarded = extract_forwarded_headers(headers)

        assert forwarded["forwarded_proto"] == "https"
        assert forwarded["forwarded_host"] == "example.com"
        assert forwarded["forwarded_for"] == "192.168.1.1"

    def test_build_base_url_with_forwarded(self):
        """Test building base URL from forwarded headers."""
        headers = {
            "x-forwarded-proto": "https",
            "x-forwarded-host": "sho.rt",
        }

        assert build_base_url(headers, "http://localhost:8080") == "https://sho.rt"

    def test_build_base_url_fallback(self):
        """Test building base URL with fallback."""
        assert build_base_url({}, "http://localhost:8080/") == "http://localhost:8080"
        assert build_base_url({"x-forwarded-host": "sho.rt"}, "http://localhost:8080") == "http://localhost:8080"


class TestURLBuilder:
    """Test URL building utilities."""

    def test_build_short_url(self):
        """Test building short URL."""
        assert build_short_url("abc123", "https://example.com") == "https://example.com/abc123"
        assert build_short_url("abc123", "https://example.com/") == "https://example.com/abc123"

    def test_build_short_url_with_prefix(self):
        """Test building short URL with prefix."""
        assert build_short_url("abc123", "https://example.com", "/s") == "https://example.com/s/abc123"
        assert build_short_url("abc123", "https://example.com", "s/") == "https://example.com/s/abc123"


class TestLogging:
    """Test logging helpers."""

    def test_component_loggers_share_configuration(self):
        """Child loggers propagate to the configured service logger."""
        root = setup_logging(level="WARNING")
        web = get_logger("shortlink.web")

        assert web.parent is root
        assert web.getEffectiveLevel() == root.level
