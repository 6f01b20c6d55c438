"""
Custom exceptions for the wellness insights library.

Insufficient data is never an error here: the statistics functions return
explicit "not enough data yet" values. Exceptions are reserved for input
that is malformed or structurally invalid, which is a caller bug and should
fail fast. Each exception carries:
- A descriptive message
- An error code for callers that serialize errors
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error payloads."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RECORD_VALIDATION_ERROR = "RECORD_VALIDATION_ERROR"
    INVALID_SERIES = "INVALID_SERIES"
    UNKNOWN_METRIC = "UNKNOWN_METRIC"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class WellnessInsightsError(Exception):
    """
    Root of the library's errors; catch this to handle any bad input.

    ``code`` tells serialized callers which kind of input was wrong, and
    ``details`` names the offending field, setting or record index.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload, as printed by ``wellness --json`` on failure."""
        error: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code.value}: {self.message}>"


class ValidationError(WellnessInsightsError):
    """Raised when an argument fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


class RecordValidationError(ValidationError):
    """Raised when a raw record fails boundary validation."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        errors: Optional[list] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if index is not None:
            details["index"] = index
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details)
        self.code = ErrorCode.RECORD_VALIDATION_ERROR


class UnknownMetricError(ValidationError):
    """Raised when a metric key does not name a daily record field."""

    def __init__(self, metric: str) -> None:
        super().__init__(f"Unknown metric '{metric}'", field="metric")
        self.code = ErrorCode.UNKNOWN_METRIC


class InvalidSeriesError(WellnessInsightsError):
    """Raised when a series is structurally invalid (not a list, duplicate dates)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_SERIES,
            details=details,
        )


class ConfigurationError(WellnessInsightsError):
    """Raised when analysis settings are inconsistent."""

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        details = {"setting": setting} if setting else None
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
        )
