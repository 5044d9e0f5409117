"""Full annual rebalance.

Each year the whole portfolio is liquidated at the year's adjusted prices and
the proceeds are reallocated across the year's priced universe under the
configured weighting scheme. A held ticker without a usable observation
cannot be sold; it is dropped and its value is lost.

The engine works on a copy of the incoming state, so a degenerate year leaves
the caller's state untouched.
"""
import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Optional

from indexsim.backtest.portfolio.allocation_engine import AllocationEngine
from indexsim.backtest.portfolio.outcome import YearOutcome, priced_observation
from indexsim.models.enums import TradeAction, WeightingScheme
from indexsim.models.exceptions import DataUnavailableError, DegenerateUniverseError
from indexsim.models.portfolio import Holding, PortfolioState, Trade
from indexsim.models.universe import Observation

logger = logging.getLogger(__name__)


class RebalanceEngine:
    """Liquidates and reallocates a portfolio once per year.

    Attributes:
        scheme: Weighting scheme used for reallocation
        allocation_engine: Engine computing weights and share counts
    """

    def __init__(
        self,
        scheme: WeightingScheme,
        allocation_engine: Optional[AllocationEngine] = None,
    ):
        self.scheme = scheme
        self.allocation_engine = allocation_engine or AllocationEngine(scheme)

    def rebalance(
        self,
        state: PortfolioState,
        observations: Mapping[str, Observation],
        eligible: Iterable[str],
        as_of: date,
    ) -> YearOutcome:
        """Liquidate ``state`` and reallocate across the eligible universe.

        Args:
            state: Portfolio entering the year (not mutated)
            observations: FOUND observations keyed by ticker, covering the
                eligible tickers and every held ticker
            eligible: Tickers in the universe on ``as_of``
            as_of: Observation date of the year

        Returns:
            YearOutcome with the fully replaced holdings

        Raises:
            DegenerateUniverseError: If no eligible ticker has a priced
                observation
        """
        candidates = self.allocation_engine.select_candidates(
            [observations[ticker] for ticker in eligible if ticker in observations]
        )
        if not candidates:
            raise DegenerateUniverseError(
                "No priced observations for rebalance",
                context={"date": as_of.isoformat(), "scheme": self.scheme.value},
            )

        new_state = state.copy_state()
        outcome = YearOutcome(state=new_state)

        for ticker in sorted(new_state.holdings):
            holding = new_state.remove(ticker)
            try:
                observation = priced_observation(observations, ticker, as_of)
            except DataUnavailableError as exc:
                logger.warning(
                    "Dropping %s on %s: %s, %.2f of value lost",
                    ticker,
                    as_of,
                    exc.reason,
                    holding.value,
                )
                outcome.dropped.append(ticker)
                continue

            price = observation.adjusted_price
            new_state.deposit(holding.shares * price)
            outcome.trades.append(
                Trade.record(ticker, TradeAction.SELL, holding.shares, price, as_of)
            )

        capital = new_state.cash
        for allocation in self.allocation_engine.allocate(candidates, capital):
            if allocation.shares == 0:
                logger.debug(
                    "Skipping %s: target %.2f below price %.2f",
                    allocation.ticker,
                    allocation.target_value,
                    allocation.price,
                )
                continue
            new_state.withdraw(allocation.cost)
            new_state.set_holding(
                Holding(
                    ticker=allocation.ticker,
                    shares=allocation.shares,
                    price=allocation.price,
                    market_cap=allocation.market_cap,
                )
            )
            outcome.trades.append(
                Trade.record(
                    allocation.ticker,
                    TradeAction.BUY,
                    allocation.shares,
                    allocation.price,
                    as_of,
                )
            )
            outcome.added.append(allocation.ticker)

        new_state.reweight()
        logger.info(
            "Rebalanced on %s: %d holdings, value=%.2f, cash=%.2f, dropped=%d",
            as_of,
            len(new_state.holdings),
            new_state.total_value(),
            new_state.cash,
            len(outcome.dropped),
        )
        return outcome
