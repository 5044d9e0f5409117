"""Custom exceptions for portfolio engine operations.

This module defines exception classes for error conditions raised while
computing weights and trading a portfolio state.
"""

from indexsim.models.exceptions import BacktestError


class PortfolioError(BacktestError):
    """Base exception for portfolio engine operations."""


class AllocationError(PortfolioError):
    """Raised when allocation computation fails."""


class InvalidWeightError(PortfolioError):
    """Raised when allocation weights are invalid."""
