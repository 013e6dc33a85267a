"""
Error taxonomy for the analysis engine.

Only FatalInputError is meant to reach the caller. The other exceptions are
raised inside individual heuristics and caught at the component boundary,
where they become zero-confidence results plus a note.
"""

INSUFFICIENT_DATA = "InsufficientData"
INVALID_LANDMARKS = "InvalidLandmarks"
LOW_CONFIDENCE = "LowConfidence"


class SwingAnalysisError(Exception):
    """Base class for all engine errors."""

    code = "SwingAnalysisError"

    def __str__(self):
        message = super().__str__()
        return f"{self.code}: {message}" if message else self.code


class FatalInputError(SwingAnalysisError):
    """Empty or malformed top-level input."""

    code = "FatalInput"


class InsufficientDataError(SwingAnalysisError):
    """Fewer samples than a component needs."""

    code = INSUFFICIENT_DATA

    def __init__(self, message: str = "", required: int = 0, available: int = 0):
        super().__init__(message)
        self.required = required
        self.available = available


class InvalidLandmarksError(SwingAnalysisError):
    """Required landmarks missing or below visibility threshold."""

    code = INVALID_LANDMARKS


def issue(code: str, message: str) -> str:
    """Format a report string tagged with an issue code."""
    return f"{code}: {message}"
