"""Unit tests for return, performance and concentration metrics."""
import math
from datetime import date

import numpy as np
import pytest

from indexsim.backtest.metrics import (
    annualized_return,
    compute_concentration,
    compute_drawdown,
    compute_performance,
    summarize,
    total_return,
    years_between,
)
from indexsim.models.portfolio import Holding, Snapshot

pytestmark = pytest.mark.unit


def _snapshot(year, value, weights=()):
    holdings = [
        Holding(ticker=f"T{i}", shares=1, price=value * w, weight=w)
        for i, w in enumerate(weights)
    ]
    return Snapshot(date=date(year, 1, 4), total_value=value, holdings=holdings)


class TestReturns:
    """Test headline return formulas."""

    def test_doubling_over_ten_years(self):
        assert annualized_return(1_000_000.0, 2_000_000.0, 10.0) == pytest.approx(
            2**0.1 - 1
        )
        assert annualized_return(1_000_000.0, 2_000_000.0, 10.0) == pytest.approx(
            0.0718, abs=1e-4
        )

    def test_total_return(self):
        assert total_return(1_000_000.0, 2_000_000.0) == 1.0

    @pytest.mark.parametrize("start", [0.0, -10.0])
    def test_non_positive_start_is_zero(self, start):
        assert total_return(start, 100.0) == 0.0
        assert annualized_return(start, 100.0, 5.0) == 0.0

    def test_non_positive_years_is_zero(self):
        assert annualized_return(100.0, 200.0, 0.0) == 0.0

    def test_years_between_uses_365_25_days(self):
        assert years_between(date(2010, 1, 1), date(2014, 1, 1)) == pytest.approx(
            1461 / 365.25
        )

    def test_summarize_uses_first_and_last_snapshot(self):
        summary = summarize([_snapshot(2010, 100.0), _snapshot(2011, 50.0), _snapshot(2012, 121.0)])
        assert summary.start_value == 100.0
        assert summary.end_value == 121.0
        assert summary.total_return == pytest.approx(0.21)

    def test_summarize_requires_snapshots(self):
        with pytest.raises(ValueError):
            summarize([])


class TestPerformance:
    """Test year-over-year statistics."""

    def test_drawdown_from_peak(self):
        drawdown = compute_drawdown(np.array([100.0, 120.0, 90.0, 130.0]))
        assert drawdown.tolist() == pytest.approx([0.0, 0.0, 0.25, 0.0])

    def test_statistics_over_three_years(self):
        metrics = compute_performance(
            [_snapshot(2010, 100.0), _snapshot(2011, 120.0), _snapshot(2012, 90.0)]
        )
        assert metrics.yearly_returns == pytest.approx([0.2, -0.25])
        assert metrics.best_year_return == pytest.approx(0.2)
        assert metrics.worst_year_return == pytest.approx(-0.25)
        assert metrics.max_drawdown == pytest.approx(0.25)
        assert metrics.volatility == pytest.approx(np.std([0.2, -0.25], ddof=1))

    def test_single_snapshot_statistics_undefined(self):
        metrics = compute_performance([_snapshot(2010, 100.0)])
        assert metrics.yearly_returns == []
        assert math.isnan(metrics.volatility)
        assert math.isnan(metrics.sharpe_ratio)
        assert metrics.max_drawdown == 0.0


class TestConcentration:
    """Test holding concentration statistics."""

    def test_top_weights_averaged(self):
        stats = compute_concentration(
            [
                _snapshot(2010, 100.0, weights=[0.5, 0.3, 0.2]),
                _snapshot(2011, 100.0, weights=[0.25] * 4),
            ]
        )
        assert stats.average_top5_weight == pytest.approx(1.0)
        assert stats.max_single_weight == pytest.approx(0.5)
        assert stats.average_holding_count == pytest.approx(3.5)

    def test_empty_snapshots(self):
        stats = compute_concentration([])
        assert stats.average_holding_count == 0.0
        assert stats.largest_holding is None
