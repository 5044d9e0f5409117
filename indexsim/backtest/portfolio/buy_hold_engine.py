"""Buy-and-hold with entries.

Initial capital is allocated once. In later years existing holdings keep
their shares (repriced at the year's observation) unless new tickers are
admitted, in which case existing positions are diluted to fund them.

A ticker is admitted only if it is not already held and its eligibility
window began in the current or the immediately preceding year. Under
market-cap weighting an entrant must also carry a positive market cap.
"""
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Optional

from indexsim.backtest.portfolio.allocation_engine import (
    AllocationEngine,
    calculate_shares,
)
from indexsim.backtest.portfolio.outcome import YearOutcome, priced_observation
from indexsim.models.enums import TradeAction, WeightingScheme
from indexsim.models.exceptions import DataUnavailableError, DegenerateUniverseError
from indexsim.models.portfolio import Holding, PortfolioState, Trade
from indexsim.models.universe import Observation, Stock

logger = logging.getLogger(__name__)

# Tolerance for floor() of shares x reduction landing just under an integer
SHARE_EPSILON = 1e-9


class BuyHoldEngine:
    """Runs the buy-and-hold-with-entries regime.

    Attributes:
        scheme: Weighting scheme for the initial allocation and for entrants
        allocation_engine: Engine computing weights and share counts
    """

    def __init__(
        self,
        scheme: WeightingScheme,
        allocation_engine: Optional[AllocationEngine] = None,
    ):
        self.scheme = scheme
        self.allocation_engine = allocation_engine or AllocationEngine(scheme)

    def initialize(
        self,
        cash: float,
        observations: Mapping[str, Observation],
        eligible: Iterable[str],
        as_of: date,
    ) -> YearOutcome:
        """Allocate ``cash`` across the first year's priced universe.

        Per-ticker rounding leftovers stay in cash.

        Args:
            cash: Initial investment
            observations: FOUND observations keyed by ticker
            eligible: Tickers in the universe on ``as_of``
            as_of: Observation date of the first year

        Returns:
            YearOutcome with the initial holdings

        Raises:
            DegenerateUniverseError: If no eligible ticker has a priced
                observation
        """
        candidates = self.allocation_engine.select_candidates(
            [observations[ticker] for ticker in eligible if ticker in observations]
        )
        if not candidates:
            raise DegenerateUniverseError(
                "No priced observations for initial allocation",
                context={"date": as_of.isoformat(), "scheme": self.scheme.value},
            )

        state = PortfolioState(cash=cash)
        outcome = YearOutcome(state=state)
        for allocation in self.allocation_engine.allocate(candidates, cash):
            if allocation.shares == 0:
                continue
            state.withdraw(allocation.cost)
            state.set_holding(
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

        state.reweight()
        logger.info(
            "Initialized buy-hold portfolio on %s: %d holdings, leftover cash=%.2f",
            as_of,
            len(state.holdings),
            state.cash,
        )
        return outcome

    def select_entrants(
        self,
        state: PortfolioState,
        observations: Mapping[str, Observation],
        eligible_stocks: Sequence[Stock],
        as_of: date,
    ) -> list[Observation]:
        """Return observations of the tickers admitted on ``as_of``.

        Args:
            state: Current portfolio (held tickers are never admitted)
            observations: FOUND observations keyed by ticker
            eligible_stocks: Universe members on ``as_of``
            as_of: Observation date of the year

        Returns:
            Entrant observations sorted by ticker
        """
        year = as_of.year
        entrants = []
        for stock in eligible_stocks:
            if stock.ticker in state.holdings:
                continue
            if stock.start_date.year not in (year, year - 1):
                continue
            observation = observations.get(stock.ticker)
            if observation is None or not observation.is_priced:
                continue
            if self.scheme is WeightingScheme.MARKET_CAP and not observation.has_market_cap:
                logger.debug(
                    "Not admitting %s on %s: no market cap", stock.ticker, as_of
                )
                continue
            entrants.append(observation)
        return sorted(entrants, key=lambda obs: obs.ticker)

    def entrant_weights(
        self, state: PortfolioState, entrants: Sequence[Observation]
    ) -> dict[str, float]:
        """Return the target weight of each entrant.

        Equal weighting gives each entrant ``1 / (m + k)`` for ``m`` holdings
        and ``k`` entrants. Market-cap weighting gives each entrant its share
        of the combined market cap of holdings and entrants, falling back to
        equal targets when that total is zero.
        """
        count = len(state.holdings) + len(entrants)
        equal_target = 1.0 / count

        if self.scheme is not WeightingScheme.MARKET_CAP:
            return {obs.ticker: equal_target for obs in entrants}

        existing_cap = sum(
            holding.market_cap or 0.0 for holding in state.holdings.values()
        )
        entrant_cap = sum(obs.market_cap or 0.0 for obs in entrants)
        total_cap = existing_cap + entrant_cap
        if total_cap <= 0:
            logger.warning(
                "Combined market cap is zero; admitting %d entrants at equal weight",
                len(entrants),
            )
            return {obs.ticker: equal_target for obs in entrants}
        return {obs.ticker: (obs.market_cap or 0.0) / total_cap for obs in entrants}

    def advance(
        self,
        state: PortfolioState,
        observations: Mapping[str, Observation],
        eligible_stocks: Sequence[Stock],
        as_of: date,
    ) -> YearOutcome:
        """Carry holdings into a new year and admit entrants.

        Args:
            state: Portfolio entering the year (not mutated)
            observations: FOUND observations keyed by ticker, covering the
                eligible tickers and every held ticker
            eligible_stocks: Universe members on ``as_of``
            as_of: Observation date of the year

        Returns:
            YearOutcome with repriced, diluted and newly bought holdings

        Raises:
            DegenerateUniverseError: If no observation for the year is priced
        """
        if not any(obs.is_priced for obs in observations.values()):
            raise DegenerateUniverseError(
                "No priced observations for buy-hold year",
                context={"date": as_of.isoformat(), "scheme": self.scheme.value},
            )

        new_state = state.copy_state()
        outcome = YearOutcome(state=new_state)

        for ticker in sorted(new_state.holdings):
            holding = new_state.holdings[ticker]
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
                new_state.remove(ticker)
                outcome.dropped.append(ticker)
                continue
            holding.price = observation.adjusted_price
            if observation.market_cap is not None:
                holding.market_cap = observation.market_cap

        entrants = self.select_entrants(new_state, observations, eligible_stocks, as_of)
        if entrants:
            self._admit(new_state, entrants, as_of, outcome)

        new_state.reweight()
        logger.info(
            "Advanced buy-hold on %s: %d holdings, value=%.2f, added=%d, dropped=%d",
            as_of,
            len(new_state.holdings),
            new_state.total_value(),
            len(outcome.added),
            len(outcome.dropped),
        )
        return outcome

    def _admit(
        self,
        state: PortfolioState,
        entrants: Sequence[Observation],
        as_of: date,
        outcome: YearOutcome,
    ) -> None:
        """Dilute existing holdings and buy ``entrants`` in place."""
        weights = self.entrant_weights(state, entrants)
        reduction = max(1.0 - sum(weights.values()), 0.0)
        total_value = state.total_value()

        for ticker in sorted(state.holdings):
            holding = state.holdings[ticker]
            kept = min(math.floor(holding.shares * reduction + SHARE_EPSILON), holding.shares)
            sold = holding.shares - kept
            if sold <= 0:
                continue
            state.deposit(sold * holding.price)
            outcome.trades.append(
                Trade.record(ticker, TradeAction.SELL, sold, holding.price, as_of)
            )
            state.set_holding(holding.model_copy(update={"shares": kept}))

        for observation in entrants:
            price = observation.adjusted_price
            budget = min(total_value * weights[observation.ticker], state.cash)
            shares = calculate_shares(budget, price)
            if shares == 0:
                logger.debug(
                    "Entrant %s on %s: budget %.2f below price %.2f",
                    observation.ticker,
                    as_of,
                    budget,
                    price,
                )
                continue
            state.withdraw(shares * price)
            state.set_holding(
                Holding(
                    ticker=observation.ticker,
                    shares=shares,
                    price=price,
                    market_cap=observation.market_cap,
                )
            )
            outcome.trades.append(
                Trade.record(observation.ticker, TradeAction.BUY, shares, price, as_of)
            )
            outcome.added.append(observation.ticker)
