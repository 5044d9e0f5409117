"""Unit tests for report comparison and output formatting."""
import json
from datetime import datetime, timezone

import pytest

from indexsim.backtest.portfolio.results import BacktestReport, ResultsComparison
from indexsim.data_io.formatters import (
    clean_value,
    format_report_json,
    format_report_text,
    generate_output_filename,
)
from indexsim.models.enums import OutputFormat, RebalanceMode, WeightingScheme
from indexsim.models.performance import PerformanceMetrics
from indexsim.models.portfolio import StrategyResult

pytestmark = pytest.mark.unit


def _result(name, total_return, weighting=WeightingScheme.EQUAL):
    return StrategyResult(
        name=name,
        weighting=weighting,
        regime=RebalanceMode.REBALANCED,
        start_value=1000.0,
        end_value=1000.0 * (1 + total_return),
        total_return=total_return,
        annualized_return=total_return / 2,
        performance=PerformanceMetrics(
            yearly_returns=[total_return],
            volatility=float("nan"),
            sharpe_ratio=float("nan"),
            max_drawdown=0.0,
            best_year_return=total_return,
            worst_year_return=total_return,
        ),
    )


@pytest.fixture()
def report():
    return BacktestReport(
        start_year=2010,
        end_year=2012,
        initial_investment=1000.0,
        results=[
            _result("Equal Weight Rebalanced", 0.10),
            _result("Market Cap Rebalanced", 0.30, WeightingScheme.MARKET_CAP),
            _result("Equal Weight Buy & Hold", 0.05),
        ],
        failures={"Market Cap Buy & Hold": "No year produced a snapshot"},
        benchmark=_result("SPY Benchmark", 0.08),
        execution_time=1.5,
    )


class TestResultsComparison:
    """Test ranking and benchmark comparison."""

    def test_best_worst_and_outperformers(self, report):
        comparison = ResultsComparison(report)

        assert comparison.best().name == "Market Cap Rebalanced"
        assert comparison.worst().name == "Equal Weight Buy & Hold"
        assert [r.name for r in comparison.outperformers()] == [
            "Market Cap Rebalanced",
            "Equal Weight Rebalanced",
        ]

    def test_aggregate_summary(self, report):
        summary = ResultsComparison(report).get_aggregate_summary()

        assert summary["total_strategies"] == 4
        assert summary["successful"] == 3
        assert summary["failed"] == 1
        assert summary["benchmark_return"] == 0.08

    def test_no_benchmark_means_no_outperformers(self, report):
        report.benchmark = None
        assert ResultsComparison(report).outperformers() == []

    def test_empty_report(self):
        empty = BacktestReport(start_year=2010, end_year=2011, initial_investment=1.0)
        comparison = ResultsComparison(empty)
        assert empty.all_failed
        assert comparison.best() is None
        assert "STRATEGY COMPARISON SUMMARY" in comparison.format_summary_text()

    def test_summary_text(self, report):
        text = ResultsComparison(report).format_summary_text()

        assert "Period: 2010-2012" in text
        assert "Market Cap Buy & Hold: FAILED" in text
        assert "Beat benchmark: Market Cap Rebalanced, Equal Weight Rebalanced" in text

    def test_get_by_name(self, report):
        assert report.get("Market Cap Rebalanced").total_return == 0.30
        assert report.get("missing") is None


class TestFormatters:
    """Test text and JSON report output."""

    def test_clean_value(self):
        cleaned = clean_value({"a": float("nan"), "b": [1.0, float("inf")], "c": "x"})
        assert cleaned == {"a": None, "b": [1.0, None], "c": "x"}

    def test_json_is_standards_compliant(self, report):
        text = format_report_json(report)

        data = json.loads(text)
        assert "NaN" not in text
        assert data["results"][0]["performance"]["volatility"] is None
        assert data["comparison"]["best_strategy"] == "Market Cap Rebalanced"

    def test_json_without_snapshots(self, report):
        data = json.loads(format_report_json(report, include_snapshots=False))
        assert "snapshots" not in data["results"][0]
        assert "snapshots" not in data["benchmark"]

    def test_text_shows_undefined_statistics(self, report):
        text = format_report_text(report)
        assert "RISK AND CONCENTRATION" in text
        assert "volatility=n/a" in text

    def test_output_filename(self):
        ts = datetime(2025, 1, 15, 14, 30, 45, tzinfo=timezone.utc)
        assert generate_output_filename("backtest", OutputFormat.TEXT, ts) == (
            "backtest_20250115_143045.txt"
        )
