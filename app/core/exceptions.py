"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Benefits:
- More specific error types for different failure scenarios
- Lets the HTTP layer tell "link doesn't exist" apart from "store is degraded"
- Easier error handling and logging
"""


class ShortenerError(Exception):
    """Base exception for the link service."""
    pass


class InvalidURLError(ShortenerError):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidShortcodeError(ShortenerError):
    """Raised when a client-supplied shortcode is malformed."""

    def __init__(self, code: str):
        self.code = code
        super().__init__("Code must be 6-8 alphanumeric characters")


class ReservedShortcodeError(InvalidShortcodeError):
    """Raised when a custom shortcode collides with a reserved route name."""

    def __init__(self, code: str):
        self.code = code
        ShortenerError.__init__(self, f"Code '{code}' is reserved")


class LinkNotFoundError(ShortenerError):
    """Raised when a shortcode is not found in the store."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Link '{code}' not found")


class ShortcodeConflictError(ShortenerError):
    """Raised when a link with the requested shortcode already exists."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Code '{code}' already exists")


class ShortcodeGenerationError(ShortenerError):
    """Raised when no free shortcode was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate unique code after {attempts} attempts")


class StoreUnavailableError(ShortenerError):
    """
    Raised when the link store cannot be reached.

    Covers connection failures, misconfiguration and timeouts. Callers surface
    this as 503 so clients can distinguish a degraded system from a missing link.
    """

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Link store unavailable: {message}")
