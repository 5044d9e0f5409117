"""Result record and observation lookup shared by the rebalance and buy-hold engines."""
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from indexsim.models.exceptions import DataUnavailableError
from indexsim.models.portfolio import PortfolioState, Trade
from indexsim.models.universe import Observation


@dataclass
class YearOutcome:
    """State and audit trail produced by processing one year.

    Attributes:
        state: New portfolio state (a copy; the input state is never mutated)
        trades: Simulated trades in execution order
        dropped: Held tickers removed without an observation (value lost)
        added: Tickers bought this year
    """

    state: PortfolioState
    trades: list[Trade] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)


def priced_observation(
    observations: Mapping[str, Observation], ticker: str, as_of: date
) -> Observation:
    """Return the observation a held ticker can be traded at.

    Raises:
        DataUnavailableError: If there is no observation or its adjusted
            price is missing or zero
    """
    observation = observations.get(ticker)
    if observation is None:
        raise DataUnavailableError(ticker, as_of.isoformat())
    if not observation.is_priced:
        raise DataUnavailableError(ticker, as_of.isoformat(), reason="no usable price")
    return observation
