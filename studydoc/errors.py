"""Exception hierarchy for the study-guide document pipeline.

Catching `StudyDocError` catches every error raised by the pipeline itself.
`CleanupWarning` is not an error: it is logged and recorded, never raised.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class StudyDocError(Exception):
    """Base exception for all studydoc errors."""
    pass


class ValidationError(StudyDocError):
    """Raised when a request is missing required input or carries invalid values."""
    pass


class EncodingError(StudyDocError):
    """Raised when a Document model cannot be serialized to the container format."""
    pass


class RendererError(StudyDocError):
    """A single renderer attempt failed (non-zero exit, timeout, missing output...)."""

    def __init__(self, renderer: str, message: str, returncode: Optional[int] = None):
        self.renderer = renderer
        self.reason = message
        self.returncode = returncode
        super().__init__(f"{renderer}: {message}")


class ConversionExhaustedError(StudyDocError):
    """Raised when every renderer in the chain failed for a job."""

    def __init__(self, attempted: List[str], failures: Optional[Dict[str, str]] = None):
        self.attempted = list(attempted)
        self.failures = dict(failures or {})
        names = ", ".join(self.attempted) if self.attempted else "none"
        super().__init__(f"All renderers failed ({names})")


class CleanupWarning(UserWarning):
    """A temporary file could not be removed after a job."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to clean up temporary file {path}: {reason}")
