"""
Exception hierarchy for relsub.

Single source of the errors raised by loading, validation and emission.
Per-relationship matching failures are not errors and never raise.
"""

import secrets
from typing import Dict, Any, Optional, List
from datetime import datetime

from relsub.core.utils.datetime_utils import utc_now, format_iso


class RelsubError(Exception):
    """
    Base error of the system.

    Features:
    1. Structured serialization
    2. Rich context
    3. Resolution suggestions
    4. Unique id for tracking in the log file
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        self.id: str = secrets.token_hex(16)
        self.timestamp: datetime = utc_now()
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause
        self.suggestions: List[str] = []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize for reports.

        Returns:
            {
                "error_id": "hex32chars",
                "code": "HierarchyError",
                "message": "Stated view has 2 root concepts",
                "timestamp": "2024-01-20T10:30:00Z",
                "context": {...}
            }
        """
        result: Dict[str, Any] = {
            "error_id": self.id,
            "code": self.code,
            "message": self.message,
            "timestamp": format_iso(self.timestamp),
            "context": self.context,
        }

        if self.cause:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}

        if self.suggestions:
            result["suggestions"] = self.suggestions

        return result

    def add_suggestion(self, suggestion: str) -> None:
        """Add a resolution hint, ignoring empties and duplicates."""
        if not suggestion or not isinstance(suggestion, str):
            return

        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)


class ConfigurationError(RelsubError):
    """Invalid or unreadable configuration."""

    pass


class ValidationError(RelsubError):
    """A value or entity violates a model constraint."""

    pass


class NotFoundError(RelsubError):
    """A concept or relationship does not exist in the requested view."""

    pass


class InputFileError(RelsubError):
    """Input file missing, a directory, or unreadable."""

    pass


class OutputFileError(RelsubError):
    """
    Output file could not be written.

    Raised after matching has completed; the matching work is lost.
    """

    pass


class RF2FormatError(ValidationError):
    """A row of an RF2 file has too few fields or a non-numeric identifier."""

    pass


class HierarchyError(RelsubError):
    """
    A view does not have exactly one concept without parents.

    Fatal precondition: raised before any matching starts.
    """

    pass


class EffectiveTimeError(RelsubError):
    """No 8-digit effective time could be extracted from the output path."""

    pass


class ReplacementStateError(RelsubError):
    """An illegal transition was requested on a relationship's replacement state."""

    pass


__all__ = [
    "RelsubError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "InputFileError",
    "OutputFileError",
    "RF2FormatError",
    "HierarchyError",
    "EffectiveTimeError",
    "ReplacementStateError",
]
