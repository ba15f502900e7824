"""
Purpose: Error taxonomy for highlight search and resolution.
Constraints: Exception types only.
"""


class HighlightSearchError(Exception):
    """Base class for failures while searching for a goal highlight."""


class TransportError(HighlightSearchError):
    """Connection failure or timeout. Surfaced to the caller, never retried."""


class SoftBlockError(HighlightSearchError):
    """Bot challenge, CAPTCHA or rate-limit page. Retryable after backoff."""


class HardError(HighlightSearchError):
    """Unexpected status code or unparseable non-HTML payload. Not retryable."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class CacheStorageError(Exception):
    """Durable cache storage could not be read or written."""


class ResolutionCancelled(Exception):
    """The caller abandoned the request through its cancellation token."""
