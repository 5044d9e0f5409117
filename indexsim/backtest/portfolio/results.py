"""Results aggregation for multi-strategy backtests.

This module holds the report produced by a backtest over several strategy
variants and utilities for comparing them against each other and against
the benchmark.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from indexsim.models.portfolio import StrategyResult

logger = logging.getLogger(__name__)


class BacktestReport(BaseModel):
    """Outcome of a backtest over several strategy variants.

    Attributes:
        start_year: First simulated year
        end_year: Last simulated year
        initial_investment: Starting capital of every strategy
        results: Successful strategy results in configured order
        failures: Strategy name -> error message for failed runs
        benchmark: Benchmark result, if one was configured and succeeded
        execution_time: Wall-clock seconds spent running
    """

    start_year: int
    end_year: int
    initial_investment: float
    results: list[StrategyResult] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)
    benchmark: Optional[StrategyResult] = None
    execution_time: float = 0.0

    @property
    def all_failed(self) -> bool:
        """Return True when no strategy produced a result."""
        return not self.results

    def get(self, name: str) -> Optional[StrategyResult]:
        """Return the result of the strategy called ``name``."""
        for result in self.results:
            if result.name == name:
                return result
        return None


class ResultsComparison:
    """Compares strategy results within a report.

    Ranks strategies by total return and identifies which beat the
    benchmark.
    """

    def __init__(self, report: BacktestReport):
        """Initialize comparison.

        Args:
            report: Backtest report to compare
        """
        self.report = report
        self.results = report.results

    def ranking(self) -> list[StrategyResult]:
        """Return results ordered by total return, best first."""
        return sorted(self.results, key=lambda r: r.total_return, reverse=True)

    def best(self) -> Optional[StrategyResult]:
        """Return the strategy with the highest total return."""
        ranked = self.ranking()
        return ranked[0] if ranked else None

    def worst(self) -> Optional[StrategyResult]:
        """Return the strategy with the lowest total return."""
        ranked = self.ranking()
        return ranked[-1] if ranked else None

    def outperformers(self) -> list[StrategyResult]:
        """Return strategies whose total return beat the benchmark.

        Empty when the report has no benchmark.
        """
        benchmark = self.report.benchmark
        if benchmark is None:
            return []
        return [r for r in self.ranking() if r.total_return > benchmark.total_return]

    def get_aggregate_summary(self) -> dict:
        """Get summary across all strategies.

        Returns:
            Dictionary with aggregate statistics
        """
        best = self.best()
        worst = self.worst()
        benchmark = self.report.benchmark
        return {
            "total_strategies": len(self.results) + len(self.report.failures),
            "successful": len(self.results),
            "failed": len(self.report.failures),
            "best_strategy": best.name if best else None,
            "worst_strategy": worst.name if worst else None,
            "benchmark_return": benchmark.total_return if benchmark else None,
            "outperformers": [r.name for r in self.outperformers()],
        }

    def format_summary_text(self) -> str:
        """Format the comparison as human-readable text.

        Returns:
            Formatted text summary
        """
        report = self.report
        summary = self.get_aggregate_summary()
        lines = []

        lines.append("=" * 60)
        lines.append("STRATEGY COMPARISON SUMMARY")
        lines.append("=" * 60)
        lines.append("")

        lines.append(f"Period: {report.start_year}-{report.end_year}")
        lines.append(f"Initial Investment: ${report.initial_investment:,.2f}")
        lines.append(
            f"Strategies: {summary['successful']} succeeded, {summary['failed']} failed"
        )
        lines.append(f"Execution Time: {report.execution_time:.2f}s")
        lines.append("")

        lines.append("PER-STRATEGY BREAKDOWN")
        lines.append("-" * 60)
        for result in self.ranking():
            lines.append(
                f"{result.name}: ${result.end_value:,.2f} final, "
                f"{result.total_return * 100:.2f}% total, "
                f"{result.annualized_return * 100:.2f}% annualized"
            )
        for name, error in sorted(report.failures.items()):
            lines.append(f"{name}: FAILED ({error})")

        if report.benchmark is not None:
            lines.append("")
            lines.append(
                f"Benchmark {report.benchmark.name}: "
                f"{report.benchmark.total_return * 100:.2f}% total, "
                f"{report.benchmark.annualized_return * 100:.2f}% annualized"
            )
            outperformers = summary["outperformers"]
            lines.append(
                "Beat benchmark: " + (", ".join(outperformers) if outperformers else "none")
            )

        best = self.best()
        worst = self.worst()
        if best is not None and worst is not None:
            lines.append("")
            lines.append(f"Best: {best.name} ({best.total_return * 100:.2f}%)")
            lines.append(f"Worst: {worst.name} ({worst.total_return * 100:.2f}%)")

        lines.append("=" * 60)
        return "\n".join(lines)
