"""
Exceptions for the troubleshooting submission pipeline.
"""

from typing import Optional

from printdiag.utils.exceptions import (
    SubmissionError,
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
)

from .models import ValidationReason


class ValidationError(SubmissionError):
    """Pre-flight validation failed; the request is never sent."""

    reason: Optional[ValidationReason] = None

    def __init__(self, message: str, reason: Optional[ValidationReason] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class InvalidExtensionError(ValidationError):
    reason = ValidationReason.INVALID_EXTENSION


class FileTooLargeError(ValidationError):
    reason = ValidationReason.TOO_LARGE


class DescriptionTooShortError(ValidationError):
    reason = ValidationReason.DESCRIPTION_TOO_SHORT


class CompressionError(SubmissionError):
    """The artifact could not be compressed."""
    pass


class ServerError(SubmissionError):
    """Non-2xx response, with the message resolved from its body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedSuccessError(SubmissionError):
    """A 2xx response whose body is not valid JSON."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(SubmissionError):
    """Invalid configuration."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


__all__ = [
    "SubmissionError",
    "ValidationError",
    "InvalidExtensionError",
    "FileTooLargeError",
    "DescriptionTooShortError",
    "CompressionError",
    "TransportError",
    "TransportTimeoutError",
    "TransportConnectionError",
    "ServerError",
    "MalformedSuccessError",
    "ConfigurationError",
]
