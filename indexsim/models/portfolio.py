"""Portfolio state, snapshot, trade, and strategy result models.

``PortfolioState`` is the only mutable model: it is owned by exactly one
strategy run and mutated only by that run's rebalance or buy-hold engine.
Snapshots hold deep copies of holdings so later mutation never rewrites
recorded history.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from indexsim.models.enums import RebalanceMode, TradeAction, WeightingScheme
from indexsim.models.performance import ConcentrationStats, PerformanceMetrics


class Holding(BaseModel):
    """A position in a single ticker.

    Attributes:
        ticker: Ticker symbol
        shares: Whole shares held (non-negative)
        price: Adjusted price the position is currently valued at
        weight: Fraction of total portfolio value, recomputed after trades
        market_cap: Last observed market cap, if any
    """

    ticker: str
    shares: int = Field(..., ge=0)
    price: float = Field(..., ge=0.0)
    weight: float = Field(default=0.0, ge=0.0, le=1.0)
    market_cap: Optional[float] = Field(default=None, ge=0.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> float:
        """Market value of the position (shares x price)."""
        return self.shares * self.price


class PortfolioState(BaseModel):
    """Current holdings and cash of one strategy run.

    Attributes:
        holdings: Positions keyed by ticker; only positions with shares > 0
        cash: Uninvested cash (never negative)
    """

    holdings: dict[str, Holding] = Field(default_factory=dict)
    cash: float = Field(default=0.0, ge=0.0)

    def holdings_value(self) -> float:
        """Return the summed market value of all positions."""
        return sum(holding.value for holding in self.holdings.values())

    def total_value(self) -> float:
        """Return holdings value plus cash."""
        return self.holdings_value() + self.cash

    def tickers(self) -> set[str]:
        """Return the set of held tickers."""
        return set(self.holdings)

    def get(self, ticker: str) -> Optional[Holding]:
        """Return the holding for ``ticker`` if held."""
        return self.holdings.get(ticker)

    def set_holding(self, holding: Holding) -> None:
        """Insert or replace a holding; a zero-share holding removes the ticker."""
        if holding.shares == 0:
            self.holdings.pop(holding.ticker, None)
            return
        self.holdings[holding.ticker] = holding

    def remove(self, ticker: str) -> Optional[Holding]:
        """Remove and return the holding for ``ticker``."""
        return self.holdings.pop(ticker, None)

    def deposit(self, amount: float) -> None:
        """Add sale proceeds or leftover allocation to cash."""
        if amount < 0:
            raise ValueError(f"deposit amount must be non-negative, got {amount}")
        self.cash += amount

    def withdraw(self, amount: float) -> None:
        """Pay for a purchase out of cash.

        Raises:
            ValueError: If the withdrawal would make cash negative
        """
        if amount < 0:
            raise ValueError(f"withdraw amount must be non-negative, got {amount}")
        if amount > self.cash:
            raise ValueError(
                f"Insufficient cash: need {amount:.2f}, have {self.cash:.2f}"
            )
        self.cash -= amount

    def reweight(self) -> None:
        """Recompute every holding's weight from realized values."""
        total = self.total_value()
        for holding in self.holdings.values():
            holding.weight = min(holding.value / total, 1.0) if total > 0 else 0.0

    def copy_state(self) -> "PortfolioState":
        """Return an independent deep copy."""
        return self.model_copy(deep=True)


class Snapshot(BaseModel):
    """Recorded portfolio state for one successfully processed year.

    Attributes:
        date: Observation date of the year
        total_value: Holdings value plus cash
        holdings: Copies of the holdings, ordered by ticker
        cash: Cash balance
    """

    date: date
    total_value: float
    holdings: list[Holding] = Field(default_factory=list)
    cash: float = Field(default=0.0, ge=0.0)

    @classmethod
    def from_state(cls, as_of: date, state: PortfolioState) -> "Snapshot":
        """Capture ``state`` without sharing any mutable holding objects."""
        holdings = [
            state.holdings[ticker].model_copy() for ticker in sorted(state.holdings)
        ]
        return cls(
            date=as_of,
            total_value=state.total_value(),
            holdings=holdings,
            cash=state.cash,
        )

    @property
    def tickers(self) -> list[str]:
        """Return held tickers in snapshot order."""
        return [holding.ticker for holding in self.holdings]

    def holding(self, ticker: str) -> Optional[Holding]:
        """Return the recorded holding for ``ticker``."""
        for holding in self.holdings:
            if holding.ticker == ticker:
                return holding
        return None


class Trade(BaseModel):
    """Audit record of a simulated buy or sell. Never part of portfolio state."""

    ticker: str
    action: TradeAction
    shares: int = Field(..., gt=0)
    price: float = Field(..., gt=0.0)
    value: float = Field(..., ge=0.0)
    date: date

    @classmethod
    def record(
        cls, ticker: str, action: TradeAction, shares: int, price: float, as_of: date
    ) -> "Trade":
        """Build a trade, deriving value from shares and price."""
        return cls(
            ticker=ticker,
            action=action,
            shares=shares,
            price=price,
            value=shares * price,
            date=as_of,
        )


class StrategyResult(BaseModel):
    """Outcome of one strategy run.

    Attributes:
        name: Display name of the strategy
        weighting: Weighting scheme used
        regime: Rebalancing regime used
        start_value: Total value of the first snapshot
        end_value: Total value of the last snapshot
        total_return: (end - start) / start
        annualized_return: Compound annual growth rate between first and last
            snapshot dates
        snapshots: Ordered yearly snapshots
        skipped_years: Years skipped because no priced observation existed
        dropped_tickers: Ticker -> year it was dropped without recovery
        fetch_errors: Year -> tickers whose lookup failed (not cached, not
            treated as confirmed delistings)
        cancelled: True if the run stopped early at a year boundary
        performance: Yearly return statistics
        concentration: Holding concentration statistics
    """

    name: str
    weighting: WeightingScheme
    regime: RebalanceMode
    start_value: float
    end_value: float
    total_return: float
    annualized_return: float
    snapshots: list[Snapshot] = Field(default_factory=list)
    skipped_years: list[int] = Field(default_factory=list)
    dropped_tickers: dict[str, int] = Field(default_factory=dict)
    fetch_errors: dict[int, list[str]] = Field(default_factory=dict)
    cancelled: bool = False
    performance: Optional[PerformanceMetrics] = None
    concentration: Optional[ConcentrationStats] = None
