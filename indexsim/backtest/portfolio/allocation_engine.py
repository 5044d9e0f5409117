"""Portfolio weight allocation engine.

This module implements the two weighting policies (equal weight and
market-cap weight) and integer-share capital allocation. Purchased share
counts are always floored, so the cost of an allocation never exceeds the
capital it was given and cash never goes negative.
"""
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from indexsim.backtest.portfolio.errors import AllocationError, InvalidWeightError
from indexsim.models.enums import WeightingScheme
from indexsim.models.universe import Observation

logger = logging.getLogger(__name__)

WEIGHT_SUM_TOLERANCE = 1e-6


def equal_weights(n: int) -> list[float]:
    """Return ``n`` equal fractions summing to 1.

    Args:
        n: Number of tickers (must be positive)

    Returns:
        List of ``n`` weights of ``1 / n``

    Raises:
        AllocationError: If n <= 0
    """
    if n <= 0:
        raise AllocationError(f"Cannot compute equal weights for {n} tickers")
    weight = 1.0 / n
    return [weight] * n


def market_cap_weights(observations: Sequence[Observation]) -> list[float]:
    """Return market-cap proportional weights for ``observations``.

    A missing market cap counts as zero. When the total market cap is zero
    the weights fall back to equal weighting.

    Args:
        observations: Observations to weight (must be non-empty)

    Returns:
        Weights in the order of ``observations``

    Raises:
        AllocationError: If observations is empty
    """
    if not observations:
        raise AllocationError("Cannot compute market cap weights for no tickers")

    caps = [obs.market_cap if obs.market_cap is not None else 0.0 for obs in observations]
    total_cap = sum(caps)
    if total_cap <= 0:
        logger.warning(
            "Total market cap is zero across %d tickers; falling back to equal weights",
            len(observations),
        )
        return equal_weights(len(observations))

    return [cap / total_cap for cap in caps]


def calculate_shares(amount: float, price: float) -> int:
    """Return the whole shares ``amount`` buys at ``price``.

    Guarantees ``shares * price <= amount``.

    Args:
        amount: Cash available for the purchase
        price: Price per share

    Returns:
        Non-negative share count (0 when price or amount is not positive)
    """
    if price <= 0 or amount <= 0:
        return 0
    shares = math.floor(amount / price)
    # amount / price can round up across an integer boundary
    while shares > 0 and shares * price > amount:
        shares -= 1
    return int(shares)


@dataclass
class Allocation:
    """Planned purchase for one ticker.

    Attributes:
        ticker: Ticker symbol
        weight: Target weight
        target_value: Capital earmarked for the ticker
        price: Adjusted purchase price
        shares: Floored share count
        market_cap: Market cap at purchase, if known
    """

    ticker: str
    weight: float
    target_value: float
    price: float
    shares: int
    market_cap: float | None = None

    @property
    def cost(self) -> float:
        """Cash spent on the purchase."""
        return self.shares * self.price

    @property
    def leftover(self) -> float:
        """Earmarked capital not spent because of share flooring."""
        return max(self.target_value - self.cost, 0.0)


class AllocationEngine:
    """Computes weights and integer-share allocations for a weighting scheme.

    Attributes:
        scheme: Weighting scheme (equal or market cap)
    """

    def __init__(self, scheme: WeightingScheme = WeightingScheme.EQUAL):
        """Initialize allocation engine.

        Args:
            scheme: Weighting scheme to apply
        """
        self.scheme = scheme

    def select_candidates(self, observations: Sequence[Observation]) -> list[Observation]:
        """Return the observations eligible for allocation, sorted by ticker.

        Unpriced observations are never eligible. Under market-cap weighting
        only tickers with a positive market cap are eligible, unless none has
        one, in which case every priced ticker is kept and the weights fall
        back to equal weighting.

        Args:
            observations: Candidate observations for the year

        Returns:
            Eligible observations
        """
        priced = sorted(
            (obs for obs in observations if obs.is_priced), key=lambda obs: obs.ticker
        )
        if self.scheme is not WeightingScheme.MARKET_CAP:
            return priced

        capped = [obs for obs in priced if obs.has_market_cap]
        excluded = len(priced) - len(capped)
        if capped and excluded:
            logger.info(
                "Excluding %d priced tickers without market cap data", excluded
            )
            return capped
        return priced

    def weights(self, observations: Sequence[Observation]) -> dict[str, float]:
        """Compute target weights for ``observations``.

        Args:
            observations: Observations to weight (must be non-empty)

        Returns:
            Dictionary mapping ticker to weight

        Raises:
            AllocationError: If observations is empty
            InvalidWeightError: If the computed weights are invalid
        """
        if self.scheme is WeightingScheme.MARKET_CAP:
            raw = market_cap_weights(observations)
        else:
            raw = equal_weights(len(observations))

        weights = {obs.ticker: weight for obs, weight in zip(observations, raw)}
        self._validate_weights(weights)
        return weights

    def _validate_weights(self, weights: dict[str, float]) -> None:
        """Validate weights are non-negative and sum to ~1.0.

        Raises:
            InvalidWeightError: If any weight is negative or the sum is off
        """
        for ticker, weight in weights.items():
            if weight < 0:
                raise InvalidWeightError(
                    f"Weight must be non-negative for ticker {ticker}, got {weight}"
                )

        total = sum(weights.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise InvalidWeightError(
                f"Weights must sum to 1.0, got {total:.8f}"
            )

    def allocate(
        self, observations: Sequence[Observation], capital: float
    ) -> list[Allocation]:
        """Split ``capital`` across ``observations`` in whole shares.

        Each ticker's target value is ``capital * weight``; its share count is
        the floor of target over price, capped by the capital still unspent.

        Args:
            observations: Priced observations to allocate across
            capital: Total capital to allocate

        Returns:
            One Allocation per observation (shares may be zero)

        Raises:
            AllocationError: If observations is empty or capital is negative
        """
        if capital < 0:
            raise AllocationError(f"Capital must be non-negative, got {capital}")

        weights = self.weights(observations)
        remaining = capital
        allocations = []

        for obs in observations:
            weight = weights[obs.ticker]
            target_value = capital * weight
            budget = min(target_value, remaining)
            shares = calculate_shares(budget, obs.adjusted_price)
            allocation = Allocation(
                ticker=obs.ticker,
                weight=weight,
                target_value=target_value,
                price=obs.adjusted_price,
                shares=shares,
                market_cap=obs.market_cap,
            )
            remaining -= allocation.cost
            allocations.append(allocation)

        logger.debug(
            "Allocated %.2f of %.2f across %d tickers (%s)",
            capital - remaining,
            capital,
            len(allocations),
            self.scheme.value,
        )
        return allocations
