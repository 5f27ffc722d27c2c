"""
Exceptions for the property analytics engine.
"""


class InsufficientDataError(ValueError):
    """
    Raised when a series is too short or too degenerate to analyse.

    Callers are expected to catch this and fall back (the simple-trend
    forecast is the documented fallback for per-property forecasting).
    """

    pass
