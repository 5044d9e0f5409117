"""Strategy runner: drives one strategy variant through the year range.

Years are processed strictly in order because each year's portfolio depends
on the previous year's outcome. For every year the runner fetches
observations for the eligible universe plus any held tickers, hands them to
the variant's engine, and records a snapshot when the year succeeds. A
degenerate year is skipped with the prior state carried forward; the run
only fails when no year at all produced a snapshot.
"""
import logging
import threading
from datetime import date
from typing import Callable, Optional

from indexsim.backtest.metrics import (
    compute_concentration,
    compute_performance,
    summarize,
)
from indexsim.backtest.portfolio.buy_hold_engine import BuyHoldEngine
from indexsim.backtest.portfolio.outcome import YearOutcome
from indexsim.backtest.portfolio.rebalance_engine import RebalanceEngine
from indexsim.backtest.portfolio.snapshot_logger import SnapshotLogger
from indexsim.config.parameters import BacktestParameters, StrategyConfig
from indexsim.data_io.calendar import year_start_date
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.data_io.universe import StockUniverse
from indexsim.models.enums import RebalanceMode
from indexsim.models.exceptions import DegenerateUniverseError, ExhaustedDataError
from indexsim.models.portfolio import PortfolioState, Snapshot, StrategyResult
from indexsim.models.universe import Observation, Stock

logger = logging.getLogger(__name__)

# (strategy name, years processed, total years)
ProgressCallback = Callable[[str, int, int], None]


class StrategyRunner:
    """Runs one strategy variant from start_year to end_year inclusive.

    Attributes:
        config: Strategy variant (weighting scheme and regime)
        params: Backtest parameters (year range and initial investment)
        universe: Source of eligible stocks per date
        fetcher: Observation fetcher, possibly sharing a store with other runs
        cancel_event: Optional event checked at every year boundary
        progress_callback: Optional callable invoked after every year
        snapshot_logger: Optional JSONL logger receiving each snapshot
    """

    def __init__(
        self,
        config: StrategyConfig,
        params: BacktestParameters,
        universe: StockUniverse,
        fetcher: ObservationFetcher,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
        snapshot_logger: Optional[SnapshotLogger] = None,
    ):
        self.config = config
        self.params = params
        self.universe = universe
        self.fetcher = fetcher
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback
        self.snapshot_logger = snapshot_logger

        if config.regime is RebalanceMode.REBALANCED:
            self.engine: RebalanceEngine | BuyHoldEngine = RebalanceEngine(
                config.weighting
            )
        else:
            self.engine = BuyHoldEngine(config.weighting)

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _step(
        self,
        state: Optional[PortfolioState],
        observations: dict[str, Observation],
        eligible_stocks: list[Stock],
        as_of: date,
    ) -> YearOutcome:
        """Apply the variant's engine to one year."""
        eligible = [stock.ticker for stock in eligible_stocks]
        if isinstance(self.engine, RebalanceEngine):
            if state is None:
                state = PortfolioState(cash=self.params.initial_investment)
            return self.engine.rebalance(state, observations, eligible, as_of)

        if state is None:
            return self.engine.initialize(
                self.params.initial_investment, observations, eligible, as_of
            )
        return self.engine.advance(state, observations, eligible_stocks, as_of)

    def run(self) -> StrategyResult:
        """Run the strategy over every configured year.

        Returns:
            StrategyResult with snapshots, returns and diagnostics

        Raises:
            ExhaustedDataError: If no year produced a snapshot and the run was
                not cancelled
        """
        name = self.config.name
        years = self.params.years
        logger.info(
            "Starting %s: %d-%d, investment=%.2f",
            name,
            years[0],
            years[-1],
            self.params.initial_investment,
        )

        state: Optional[PortfolioState] = None
        snapshots: list[Snapshot] = []
        skipped_years: list[int] = []
        dropped_tickers: dict[str, int] = {}
        fetch_errors: dict[int, list[str]] = {}
        cancelled = False

        for index, year in enumerate(years):
            if self._cancelled():
                cancelled = True
                logger.warning("%s cancelled before %d", name, year)
                break

            as_of = year_start_date(year)
            eligible_stocks = self.universe.list_eligible_stocks(as_of)
            wanted = {stock.ticker for stock in eligible_stocks}
            if state is not None:
                wanted |= state.tickers()

            results = self.fetcher.fetch_many(wanted, as_of)
            observations = {
                ticker: result.observation
                for ticker, result in results.items()
                if result.is_found
            }
            errors = sorted(
                ticker for ticker, result in results.items() if result.is_error
            )
            if errors:
                fetch_errors[year] = errors

            try:
                outcome = self._step(state, observations, eligible_stocks, as_of)
            except DegenerateUniverseError as exc:
                logger.warning("%s: skipping %d: %s", name, year, exc)
                skipped_years.append(year)
            else:
                state = outcome.state
                for ticker in outcome.dropped:
                    dropped_tickers[ticker] = year
                for ticker in outcome.added:
                    dropped_tickers.pop(ticker, None)

                snapshot = Snapshot.from_state(as_of, state)
                snapshots.append(snapshot)
                if self.snapshot_logger is not None:
                    self.snapshot_logger.record(snapshot)
                logger.debug(
                    "%s %d: value=%.2f, holdings=%d, trades=%d",
                    name,
                    year,
                    snapshot.total_value,
                    len(snapshot.holdings),
                    len(outcome.trades),
                )

            if self.progress_callback is not None:
                self.progress_callback(name, index + 1, len(years))

        if not snapshots:
            if cancelled:
                return StrategyResult(
                    name=name,
                    weighting=self.config.weighting,
                    regime=self.config.regime,
                    start_value=self.params.initial_investment,
                    end_value=self.params.initial_investment,
                    total_return=0.0,
                    annualized_return=0.0,
                    skipped_years=skipped_years,
                    fetch_errors=fetch_errors,
                    cancelled=True,
                )
            raise ExhaustedDataError(
                f"No year produced a snapshot for {name}",
                context={
                    "start_year": years[0],
                    "end_year": years[-1],
                    "skipped": len(skipped_years),
                },
            )

        summary = summarize(snapshots)
        result = StrategyResult(
            name=name,
            weighting=self.config.weighting,
            regime=self.config.regime,
            start_value=summary.start_value,
            end_value=summary.end_value,
            total_return=summary.total_return,
            annualized_return=summary.annualized_return,
            snapshots=snapshots,
            skipped_years=skipped_years,
            dropped_tickers=dropped_tickers,
            fetch_errors=fetch_errors,
            cancelled=cancelled,
            performance=compute_performance(snapshots),
            concentration=compute_concentration(snapshots),
        )
        logger.info(
            "Finished %s: %.2f -> %.2f (total=%.2f%%, annualized=%.2f%%, skipped=%d)",
            name,
            result.start_value,
            result.end_value,
            result.total_return * 100,
            result.annualized_return * 100,
            len(skipped_years),
        )
        return result
