"""Validation utilities for short links."""

import re
from typing import Tuple
from urllib.parse import urlsplit, urlunsplit

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = ("http", "https")

# Leading "scheme://" only; a URL nested in the query does not count
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")

# Single path segments served by the app itself
RESERVED_WORDS = frozenset({
    "api", "health", "admin", "static", "assets", "favicon",
    "robots", "sitemap", "create", "delete", "list", "stats",
})


def _with_default_scheme(url: str) -> str:
    """Prefix ``http://`` when the URL carries no scheme."""
    if not SCHEME_PATTERN.match(url):
        return f"http://{url}"
    return url


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    A URL without a scheme is validated as if it started with ``http://``.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str) or not url.strip():
        return False, "URL is required"

    url = url.strip()
    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlsplit(_with_default_scheme(url))
        # Accessing port validates it
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return False, "URL must use http or https protocol"

    if not result.hostname:
        return False, "URL must have a valid host"

    return True, ""


def normalize_url(url: str) -> str:
    """Normalize a URL that already passed ``is_valid_url``.

    Adds the default scheme and strips a single trailing slash from a
    non-root path.
    """
    parts = urlsplit(_with_default_scheme(url.strip()))
    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return urlunsplit((parts.scheme.lower(), parts.netloc, path, parts.query, parts.fragment))


def is_valid_short_code(
    short_code: str,
    alphabet: str,
    min_length: int = 3,
    max_length: int = 20,
) -> Tuple[bool, str]:
    """Validate a custom short code.

    Args:
        short_code: The short code to validate
        alphabet: Allowed symbols
        min_length: Minimum length for short code
        max_length: Maximum length for short code

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if len(short_code) < min_length:
        return False, f"Short code must be at least {min_length} characters"

    if len(short_code) > max_length:
        return False, f"Short code must be at most {max_length} characters"

    if any(c not in alphabet for c in short_code):
        return False, "Short code can only contain letters and digits"

    if is_reserved_code(short_code):
        return False, f"'{short_code}' is a reserved word and cannot be used"

    return True, ""


def is_reserved_code(short_code: str) -> bool:
    """True if the code collides with a route or name the app keeps for itself."""
    return short_code.lower() in RESERVED_WORDS
