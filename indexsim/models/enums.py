"""
Enumerations for strategy configuration and simulation bookkeeping.

This module defines type-safe enumerations used to select weighting and
rebalancing policies, to tag observation fetch outcomes, and to classify
year-over-year ticker availability.
"""

from enum import Enum


class WeightingScheme(str, Enum):
    """
    Allocation policy used to split capital across tickers.

    Inherits from str to enable seamless CLI argument parsing and JSON
    serialization.

    Attributes:
        EQUAL: Every priced ticker receives the same fraction of capital.
        MARKET_CAP: Each ticker receives its share of total market cap.

    Examples:
        >>> WeightingScheme.EQUAL.value
        'equal_weight'
        >>> WeightingScheme.MARKET_CAP == "market_cap"
        True
    """

    EQUAL = "equal_weight"
    MARKET_CAP = "market_cap"


class RebalanceMode(str, Enum):
    """
    Rebalancing regime applied between years.

    Attributes:
        BUY_HOLD: Positions drift with price; only entries and delistings
            change the portfolio.
        REBALANCED: Full liquidation and reallocation every year.
    """

    BUY_HOLD = "buy_hold"
    REBALANCED = "rebalanced"


class TradeAction(str, Enum):
    """Direction of a simulated trade."""

    BUY = "buy"
    SELL = "sell"


class FetchStatus(str, Enum):
    """
    Outcome of a single (ticker, date) observation lookup.

    Attributes:
        FOUND: Trading data exists for the ticker on the date.
        NOT_FOUND: The provider has no data (delisted or not yet listed).
        FETCH_ERROR: The lookup itself failed (timeout, outage, bad payload);
            says nothing about whether the ticker traded.
    """

    FOUND = "found"
    NOT_FOUND = "not_found"
    FETCH_ERROR = "fetch_error"


class AvailabilityStatus(str, Enum):
    """Year-over-year availability classification of a ticker."""

    ENTERING = "entering"
    EXITING = "exiting"
    CONTINUING = "continuing"


class OutputFormat(str, Enum):
    """
    CLI output format enumeration.

    Attributes:
        TEXT: Human-readable tabular text output (default).
        JSON: Machine-readable JSON output for programmatic analysis.

    Examples:
        >>> OutputFormat.JSON.value
        'json'
        >>> OutputFormat.TEXT == "text"
        True
    """

    TEXT = "text"
    JSON = "json"
