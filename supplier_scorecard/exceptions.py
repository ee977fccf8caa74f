"""
Supplier Scorecard - Exceptions.

============================================================
CUSTOM EXCEPTIONS
============================================================

All exceptions inherit from ScorecardError.

Bad metric data never raises: it is excluded from the
computation. Only configuration and wiring mistakes surface
as exceptions.

============================================================
"""


class ScorecardError(Exception):
    """Base exception for the Supplier Scorecard module."""
    pass


class ConfigurationError(ScorecardError):
    """Raised when configuration is invalid."""
    pass


class InvalidWeightsError(ConfigurationError):
    """
    Raised when a criteria weights object is malformed.
    
    A missing weight is a wiring bug, not a weight of zero.
    """
    def __init__(self, message: str, field_name: str = ""):
        self.field_name = field_name
        super().__init__(message)


class InvalidTargetError(ConfigurationError):
    """Raised when the risk target is not a finite number in [0, 10]."""
    pass


class InvalidMetricValueError(ScorecardError):
    """Raised when a value submitted for writing cannot be clamped."""
    pass


class EditNotAllowedError(ScorecardError):
    """Base class for rejected metric edits."""
    pass


class FieldNotEditableError(EditNotAllowedError):
    """Raised when a metric is outside the caller's editable fields."""
    def __init__(self, metric):
        self.metric = metric
        super().__init__(f"Metric not editable: {metric}")


class FutureMonthError(EditNotAllowedError):
    """Raised when an edit targets a month that has not started yet."""
    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Cannot edit future month: {year}-{month:02d}")
