"""
Input Validators

This module provides validation functions for user inputs and inbound paths.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Shortcodes are restricted to ASCII alphanumerics (no path traversal, no injection)
- Only http/https targets are accepted for redirects
- Length limits prevent DoS attacks
"""

import re
from urllib.parse import urlparse

SHORTCODE_MIN_LENGTH = 6
SHORTCODE_MAX_LENGTH = 8
MAX_URL_LENGTH = 2048

# ASCII only: str.isalnum() would also accept non-ASCII letters and digits
_SHORTCODE_PATTERN = re.compile(
    rf"[A-Za-z0-9]{{{SHORTCODE_MIN_LENGTH},{SHORTCODE_MAX_LENGTH}}}"
)


def is_valid_shortcode(value: object) -> bool:
    """
    Check whether a value has the shape of a shortcode.

    A shortcode is 6 to 8 characters long and made only of ASCII letters
    and digits. The whole value must match, so multi-segment paths such as
    ``abc123/extra`` are rejected.

    Args:
        value: Arbitrary input, typically a path segment or a custom code

    Returns:
        True if the value is a well-formed shortcode, False otherwise
    """
    if not isinstance(value, str):
        return False
    return _SHORTCODE_PATTERN.fullmatch(value) is not None


def validate_url_length(url: str, max_length: int = MAX_URL_LENGTH) -> bool:
    """
    Validate URL length to prevent DoS attacks.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        True if URL length is valid, False otherwise
    """
    return bool(url) and len(url) <= max_length


def is_valid_url(url: str) -> bool:
    """
    Validate a redirect target.

    Checks that the URL uses http/https and names a host. Dangerous schemes
    such as javascript:, data: and file: are rejected by the scheme check.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not isinstance(url, str) or not validate_url_length(url):
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if result.scheme.lower() not in {"http", "https"}:
        return False

    return bool(result.hostname)
