"""Performance and concentration summary models for strategy results."""
from typing import Optional

from pydantic import BaseModel, Field


class PerformanceMetrics(BaseModel):
    """Year-over-year return statistics derived from snapshot values.

    Undefined statistics (fewer than two snapshots, zero volatility) are NaN.

    Attributes:
        yearly_returns: Return between consecutive snapshots
        volatility: Sample standard deviation of yearly returns
        sharpe_ratio: Mean yearly return over volatility (risk-free rate 0)
        max_drawdown: Largest peak-to-trough decline as a fraction of peak
        best_year_return: Highest yearly return
        worst_year_return: Lowest yearly return
    """

    yearly_returns: list[float] = Field(default_factory=list)
    volatility: float
    sharpe_ratio: float
    max_drawdown: float = Field(..., ge=0.0, le=1.0)
    best_year_return: float
    worst_year_return: float


class ConcentrationStats(BaseModel):
    """How concentrated the holdings were across recorded snapshots.

    Attributes:
        average_top5_weight: Mean combined weight of the five largest holdings
        average_top10_weight: Mean combined weight of the ten largest holdings
        max_single_weight: Largest single-holding weight seen in any snapshot
        average_holding_count: Mean number of holdings per snapshot
        largest_holding: Ticker of the largest holding in the final snapshot
    """

    average_top5_weight: float = Field(..., ge=0.0)
    average_top10_weight: float = Field(..., ge=0.0)
    max_single_weight: float = Field(..., ge=0.0)
    average_holding_count: float = Field(..., ge=0.0)
    largest_holding: Optional[str] = None
