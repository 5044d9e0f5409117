"""
Return and performance metrics for strategy runs.

This module turns a strategy's ordered yearly snapshots into headline returns
(total and annualized), year-over-year performance statistics, and holding
concentration statistics.

Undefined statistics (fewer than two snapshots, zero volatility) are NaN,
except max drawdown, which is 0.0 when there is nothing to draw down from.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import numpy as np
from numpy.typing import NDArray

from indexsim.models.performance import ConcentrationStats, PerformanceMetrics
from indexsim.models.portfolio import Snapshot


logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25


def total_return(start_value: float, end_value: float) -> float:
    """
    Return (end - start) / start, or 0.0 when start is not positive.

    Examples:
        >>> total_return(10000.0, 12000.0)
        0.2
        >>> total_return(0.0, 500.0)
        0.0
    """
    if start_value <= 0:
        return 0.0
    return (end_value - start_value) / start_value


def annualized_return(start_value: float, end_value: float, years: float) -> float:
    """
    Return the compound annual growth rate over ``years``.

    Returns 0.0 when start_value or years is not positive.

    Examples:
        >>> round(annualized_return(10000.0, 12100.0, 2.0), 6)
        0.1
    """
    if start_value <= 0 or years <= 0:
        return 0.0
    return float((end_value / start_value) ** (1.0 / years) - 1.0)


def years_between(start: date, end: date) -> float:
    """Return the elapsed time between two dates in years of 365.25 days."""
    return (end - start).days / DAYS_PER_YEAR


@dataclass(frozen=True)
class ReturnSummary:
    """Headline returns between the first and last snapshot."""

    start_value: float
    end_value: float
    total_return: float
    annualized_return: float
    years: float


def summarize(snapshots: Sequence[Snapshot]) -> ReturnSummary:
    """
    Summarize returns over the first and last snapshot.

    Args:
        snapshots: Ordered snapshots (must be non-empty).

    Returns:
        ReturnSummary measured between the first and last snapshot dates.

    Raises:
        ValueError: If snapshots is empty.
    """
    if not snapshots:
        raise ValueError("Cannot summarize returns without snapshots")

    first, last = snapshots[0], snapshots[-1]
    years = years_between(first.date, last.date)
    return ReturnSummary(
        start_value=first.total_value,
        end_value=last.total_value,
        total_return=total_return(first.total_value, last.total_value),
        annualized_return=annualized_return(
            first.total_value, last.total_value, years
        ),
        years=years,
    )


def compute_drawdown(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Compute the drawdown at each point as a fraction of the running peak.

    Args:
        values: Portfolio values in time order.

    Returns:
        Array of drawdown fractions (all >= 0).

    Examples:
        >>> compute_drawdown(np.array([100.0, 120.0, 90.0, 130.0])).tolist()
        [0.0, 0.0, 0.25, 0.0]
    """
    if len(values) == 0:
        return np.array([], dtype=np.float64)

    running_max = np.maximum.accumulate(values)
    drawdown = np.zeros_like(values)
    positive = running_max > 0
    drawdown[positive] = (running_max[positive] - values[positive]) / running_max[
        positive
    ]
    return drawdown


def compute_performance(snapshots: Sequence[Snapshot]) -> PerformanceMetrics:
    """
    Compute year-over-year performance statistics from snapshots.

    Args:
        snapshots: Ordered snapshots.

    Returns:
        PerformanceMetrics; statistics needing two or more yearly returns are
        NaN when there are fewer.
    """
    values = np.array([s.total_value for s in snapshots], dtype=np.float64)

    yearly = [
        total_return(float(previous), float(current))
        for previous, current in zip(values[:-1], values[1:])
    ]
    returns = np.array(yearly, dtype=np.float64)

    if len(returns) >= 2:
        volatility = float(np.std(returns, ddof=1))
    else:
        volatility = np.nan

    sharpe = (
        float(np.mean(returns) / volatility)
        if not np.isnan(volatility) and volatility > 0
        else np.nan
    )

    drawdown = compute_drawdown(values)
    max_drawdown = float(np.clip(np.max(drawdown), 0.0, 1.0)) if len(drawdown) else 0.0

    return PerformanceMetrics(
        yearly_returns=yearly,
        volatility=volatility,
        sharpe_ratio=sharpe,
        max_drawdown=max_drawdown,
        best_year_return=float(np.max(returns)) if len(returns) else np.nan,
        worst_year_return=float(np.min(returns)) if len(returns) else np.nan,
    )


def compute_concentration(snapshots: Sequence[Snapshot]) -> ConcentrationStats:
    """
    Compute how concentrated holdings were across snapshots.

    Args:
        snapshots: Ordered snapshots.

    Returns:
        ConcentrationStats averaged over every snapshot (zeros when empty).
    """
    if not snapshots:
        return ConcentrationStats(
            average_top5_weight=0.0,
            average_top10_weight=0.0,
            max_single_weight=0.0,
            average_holding_count=0.0,
        )

    top5, top10, largest, counts = [], [], [], []
    for snapshot in snapshots:
        weights = np.sort(
            np.array([h.weight for h in snapshot.holdings], dtype=np.float64)
        )[::-1]
        top5.append(float(np.sum(weights[:5])))
        top10.append(float(np.sum(weights[:10])))
        largest.append(float(weights[0]) if len(weights) else 0.0)
        counts.append(len(weights))

    final_holdings = snapshots[-1].holdings
    largest_holding = (
        max(final_holdings, key=lambda h: h.value).ticker if final_holdings else None
    )

    return ConcentrationStats(
        average_top5_weight=float(np.mean(top5)),
        average_top10_weight=float(np.mean(top10)),
        max_single_weight=float(np.max(largest)),
        average_holding_count=float(np.mean(counts)),
        largest_holding=largest_holding,
    )
