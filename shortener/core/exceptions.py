"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Each exception maps to one HTTP status class in the API layer:
- InvalidInputError, InvalidShortCodeError, DuplicateURLError: 400
- ShortURLNotFoundError: 404
- RateLimitExceededError: 429
- DatabaseError: 500
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidInputError(URLShortenerException):
    """Raised when caller input (URL, pagination values) is invalid."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class InvalidShortCodeError(InvalidInputError, ValueError):
    """Raised when a short code contains symbols outside the base62 alphabet."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(
            "short_code",
            f"Invalid short code '{short_code}': only characters [0-9A-Za-z] are allowed",
        )


class DuplicateURLError(URLShortenerException):
    """Raised when the original URL has already been shortened."""

    def __init__(self, url: str):
        self.url = url
        super().__init__("This URL has been registered")


class ShortURLNotFoundError(URLShortenerException):
    """Raised when a short code or identifier matches no record."""

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Short URL '{identifier}' not found")


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class RateLimitExceededError(URLShortenerException):
    """Raised when the admission gate refuses a request."""

    def __init__(self):
        super().__init__("Too many request at a time")
