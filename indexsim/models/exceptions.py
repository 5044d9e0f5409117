"""
Custom exception classes for the backtesting engine.

This module defines domain-specific exceptions that give each failure mode of
a strategy run a distinct type, so callers can decide whether to absorb the
error (a single missing observation), skip a year (a degenerate universe), or
abort the run (invalid configuration, exhausted data).

All exceptions carry a descriptive message and an optional context dictionary
to aid debugging.
"""


class BacktestError(Exception):
    """
    Base class for all backtest errors.

    Attributes:
        message: Human-readable error description.
        context: Optional dictionary with additional error context.

    Examples:
        >>> raise BacktestError("Run failed", context={"strategy": "x"})
        Traceback (most recent call last):
        ...
        BacktestError: Run failed (strategy=x)
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize BacktestError.

        Args:
            message: Error description.
            context: Optional dictionary with error details.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigurationError(BacktestError, ValueError):
    """
    Raised when backtest parameters are invalid.

    Covers non-positive initial investment, a start year that is not before
    the end year, unknown strategy variants, and invalid worker or timeout
    settings. Raised before any simulated year is processed.

    Examples:
        >>> raise ConfigurationError(
        ...     "start_year must be before end_year",
        ...     context={"start_year": 2015, "end_year": 2010},
        ... )
        Traceback (most recent call last):
        ...
        ConfigurationError: start_year must be before end_year (start_year=2015, end_year=2010)
    """


class DataUnavailableError(BacktestError):
    """
    Raised when a single ticker has no observation for a date.

    Absorbed locally by the engines: the holding is dropped or the ticker is
    excluded from that year's allocation. Never aborts a run.
    """

    def __init__(self, ticker: str, as_of: str, reason: str = "no observation"):
        super().__init__(
            f"No data for {ticker}", context={"date": as_of, "reason": reason}
        )
        self.ticker = ticker
        self.as_of = as_of
        self.reason = reason


class FetchFailedError(BacktestError):
    """
    Raised by observation providers when a lookup fails transiently.

    Distinct from "no data": the fetcher converts it into a FETCH_ERROR result
    and retries it, and it is never cached.
    """


class DegenerateUniverseError(BacktestError):
    """
    Raised when a year yields zero priced observations.

    The strategy runner skips the year: no snapshot is recorded and the prior
    portfolio state is carried forward unchanged.
    """


class ExhaustedDataError(BacktestError):
    """
    Raised when every year in the requested range was degenerate.

    A run-level failure. Other strategy runs executing concurrently are not
    affected.
    """
