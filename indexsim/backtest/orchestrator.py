"""Backtest orchestrator.

Runs every configured strategy variant, plus an optional benchmark, over the
same year range and collects them into a ``BacktestReport``. Runs execute
concurrently and in isolation: a failed run is recorded against its
strategy name and never affects the others.
"""
import logging
import threading
import time
from datetime import date
from typing import Optional

from indexsim.backtest.parallel import run_in_parallel
from indexsim.backtest.portfolio.results import BacktestReport
from indexsim.backtest.portfolio.snapshot_logger import SnapshotLogger
from indexsim.backtest.runner import ProgressCallback, StrategyRunner
from indexsim.config.parameters import BacktestParameters, StrategyConfig
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.data_io.universe import StaticUniverse, StockUniverse
from indexsim.models.enums import RebalanceMode, WeightingScheme
from indexsim.models.exceptions import BacktestError
from indexsim.models.portfolio import StrategyResult
from indexsim.models.universe import Stock

logger = logging.getLogger(__name__)

BENCHMARK_VARIANT = "benchmark"
# Benchmark membership starts before any simulated year so it is never an entrant
BENCHMARK_START = date(1900, 1, 1)


def benchmark_config(ticker: str) -> StrategyConfig:
    """Return the buy-and-hold configuration for a benchmark instrument."""
    return StrategyConfig(
        variant=BENCHMARK_VARIANT,
        name=f"{ticker} Benchmark",
        weighting=WeightingScheme.EQUAL,
        regime=RebalanceMode.BUY_HOLD,
    )


class BacktestOrchestrator:
    """Coordinates the strategy runs of one backtest.

    Attributes:
        params: Backtest parameters
        universe: Stock universe shared (read-only) by every run
        fetcher: Observation fetcher shared by every run
        cancel_event: Event that cancels every run at its next year boundary
        progress_callback: Optional per-year progress hook passed to runners
    """

    def __init__(
        self,
        params: BacktestParameters,
        universe: StockUniverse,
        fetcher: ObservationFetcher,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.params = params
        self.universe = universe
        self.fetcher = fetcher
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback

        logger.info(
            "Initialized BacktestOrchestrator: %d strategies, %d-%d, benchmark=%s",
            len(params.strategies),
            params.start_year,
            params.end_year,
            params.benchmark_ticker or "none",
        )

    def cancel(self) -> None:
        """Request cancellation of every run at its next year boundary."""
        self.cancel_event.set()

    def _build_runner(
        self, config: StrategyConfig, universe: StockUniverse
    ) -> StrategyRunner:
        return StrategyRunner(
            config=config,
            params=self.params,
            universe=universe,
            fetcher=self.fetcher,
            cancel_event=self.cancel_event,
            progress_callback=self.progress_callback,
        )

    def _run_isolated(
        self, runner: StrategyRunner
    ) -> tuple[str, Optional[StrategyResult], Optional[str]]:
        """Run one strategy, converting a run-level failure into a message."""
        name = runner.config.name
        try:
            if self.params.snapshots_dir is None:
                return name, runner.run(), None

            path = self.params.snapshots_dir / f"{runner.config.variant}.jsonl"
            with SnapshotLogger(path, strategy=name) as snapshot_logger:
                runner.snapshot_logger = snapshot_logger
                return name, runner.run(), None
        except BacktestError as exc:
            logger.warning("Strategy %s failed: %s", name, exc)
            return name, None, str(exc)

    def run(self) -> BacktestReport:
        """Run every configured strategy and the benchmark.

        Returns:
            BacktestReport with results, failures and the benchmark
        """
        started = time.perf_counter()

        runners = [
            self._build_runner(config, self.universe)
            for config in self.params.strategy_configs()
        ]
        benchmark_runner = None
        if self.params.benchmark_ticker:
            ticker = self.params.benchmark_ticker
            benchmark_runner = self._build_runner(
                benchmark_config(ticker),
                StaticUniverse([Stock(ticker=ticker, start_date=BENCHMARK_START)]),
            )

        all_runners = runners + ([benchmark_runner] if benchmark_runner else [])
        outcomes = run_in_parallel(
            [(self._run_isolated, runner) for runner in all_runners],
            max_workers=self.params.max_parallel_strategies,
        )

        report = BacktestReport(
            start_year=self.params.start_year,
            end_year=self.params.end_year,
            initial_investment=self.params.initial_investment,
        )
        for runner, (name, result, error) in zip(all_runners, outcomes):
            if runner is benchmark_runner:
                if result is None:
                    logger.warning("Benchmark %s produced no result: %s", name, error)
                report.benchmark = result
            elif result is None:
                report.failures[name] = error or "unknown error"
            else:
                report.results.append(result)

        report.execution_time = time.perf_counter() - started
        logger.info(
            "Backtest complete: %d successful, %d failed in %.2fs",
            len(report.results),
            len(report.failures),
            report.execution_time,
        )
        return report
