"""Error types raised by the screenshot matching engine.

Transient I/O failures are plain ``OSError`` instances; the retry wrapper
retries those and re-raises the original error once it gives up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from match_screenshot.models.comparison import ComparisonResult


class MatchScreenshotError(Exception):
    """Base class for engine errors that are not test failures."""


class CorruptImageError(MatchScreenshotError):
    """A non-empty image file could not be decoded."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Corrupt image: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class CaptureError(MatchScreenshotError):
    """The capture collaborator failed to produce a screenshot."""


class CaptureTimeoutError(CaptureError):
    """The capture collaborator did not finish within its timeout."""


class ScreenshotMismatchError(AssertionError):
    """Raised when a screenshot differs from its baseline beyond the threshold."""

    def __init__(self, case_key: str, result: ComparisonResult):
        self.case_key = case_key
        self.result = result
        super().__init__(f"Screenshots do not match for '{case_key}': {result.summary()}")
