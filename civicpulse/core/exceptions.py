"""
Error taxonomy for CivicPulse.

User-facing errors carry an HTTP status code and a human-readable message.
AI failures (UpstreamDegradation, AIResponseParseError) never leave the
analyzers: they are logged and replaced by fallback results.
"""

from typing import Optional


class CivicPulseError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CivicPulseError):
    """Bad input shape, length or spam content (user-correctable)."""
    status_code = 400


class ForbiddenError(CivicPulseError):
    status_code = 403


class BannedEmailError(CivicPulseError):
    """Email is on the permanent ban list."""
    status_code = 403


class NotFoundError(CivicPulseError):
    status_code = 404


class ConflictError(CivicPulseError):
    """Duplicate location or an already-applied one-time transition."""
    status_code = 409


class RateLimitError(CivicPulseError):
    status_code = 429

    def __init__(self, message: str, retry_after_minutes: Optional[int] = None):
        super().__init__(message)
        self.retry_after_minutes = retry_after_minutes


class UploadError(CivicPulseError):
    """Image store failure. Fatal to the request."""
    status_code = 500


class UpstreamDegradation(Exception):
    """AI capability unavailable, timed out or returned an error."""


class AIResponseParseError(ValueError):
    """AI reply did not contain a usable JSON object."""
