"""
Custom Exceptions

This module defines custom exceptions for failures that cannot be expressed
as an admission rejection.

Client input, authorization and abuse-control failures are returned by the
creation pipeline as rejection values. Only dependency failures (the link
store) travel as exceptions, so the API layer can map them to 500.
"""


class ShortLinkException(Exception):
    """Base exception for the short-link service."""
    pass


class DatabaseError(ShortLinkException):
    """Raised when the link store cannot be read or written."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
