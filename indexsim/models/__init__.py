"""Data models and entities."""

from indexsim.models.availability import AvailabilityReport, YearAvailability
from indexsim.models.enums import (
    AvailabilityStatus,
    FetchStatus,
    OutputFormat,
    RebalanceMode,
    TradeAction,
    WeightingScheme,
)
from indexsim.models.performance import ConcentrationStats, PerformanceMetrics
from indexsim.models.portfolio import (
    Holding,
    PortfolioState,
    Snapshot,
    StrategyResult,
    Trade,
)
from indexsim.models.universe import FetchResult, Observation, Stock

__all__ = [
    "AvailabilityReport",
    "AvailabilityStatus",
    "ConcentrationStats",
    "FetchResult",
    "FetchStatus",
    "Holding",
    "Observation",
    "OutputFormat",
    "PerformanceMetrics",
    "PortfolioState",
    "RebalanceMode",
    "Snapshot",
    "Stock",
    "StrategyResult",
    "Trade",
    "TradeAction",
    "WeightingScheme",
    "YearAvailability",
]
