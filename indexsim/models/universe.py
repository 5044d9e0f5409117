"""Reference and market data models: stocks, observations, fetch results.

Numeric observation fields are explicit optionals. Absence is checked with
``is None``; a legitimately zero price or share count is data, not a missing
value.
"""
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from indexsim.models.enums import FetchStatus


class Stock(BaseModel):
    """A ticker and the window during which it belongs to the universe.

    Attributes:
        ticker: Unique upper-case symbol
        start_date: First date the ticker is eligible
        end_date: Last eligible date (inclusive), None while still a member
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        """Strip whitespace and upper-case the ticker."""
        value = value.strip().upper()
        if not value:
            raise ValueError("ticker must not be blank")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "Stock":
        """Validate the eligibility window is not inverted."""
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} precedes start_date {self.start_date} "
                f"for {self.ticker}"
            )
        return self

    def is_eligible(self, as_of: date) -> bool:
        """Return True if the ticker is a universe member on ``as_of``."""
        if as_of < self.start_date:
            return False
        return self.end_date is None or as_of <= self.end_date


class Observation(BaseModel):
    """Price and size data for one ticker on one date.

    Attributes:
        ticker: Ticker symbol
        date: Observation date
        price: Raw close price
        adjusted_price: Split/dividend adjusted price used for share math
        shares_outstanding: Shares outstanding on the date
        market_cap: Market capitalization; derived from price and shares
            outstanding when not supplied
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    date: date
    price: Optional[float] = Field(default=None, ge=0.0)
    adjusted_price: Optional[float] = Field(default=None, ge=0.0)
    shares_outstanding: Optional[float] = Field(default=None, ge=0.0)
    market_cap: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        """Upper-case the ticker."""
        return value.strip().upper()

    @model_validator(mode="before")
    @classmethod
    def derive_market_cap(cls, data: Any) -> Any:
        """Fill market_cap from price x shares outstanding when absent."""
        if not isinstance(data, dict) or data.get("market_cap") is not None:
            return data
        shares = data.get("shares_outstanding")
        price = data.get("price")
        if price is None:
            price = data.get("adjusted_price")
        if shares is not None and price is not None:
            data = {**data, "market_cap": float(price) * float(shares)}
        return data

    @property
    def is_priced(self) -> bool:
        """Return True if the adjusted price can be used for share math."""
        return self.adjusted_price is not None and self.adjusted_price > 0

    @property
    def has_market_cap(self) -> bool:
        """Return True if a strictly positive market cap is present."""
        return self.market_cap is not None and self.market_cap > 0


class FetchResult(BaseModel):
    """Tagged outcome of an observation lookup.

    Attributes:
        ticker: Requested ticker
        date: Requested date
        status: FOUND, NOT_FOUND, or FETCH_ERROR
        observation: The observation when status is FOUND
        error: Failure description when status is FETCH_ERROR
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    date: date
    status: FetchStatus
    observation: Optional[Observation] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def validate_payload(self) -> "FetchResult":
        """Validate that only FOUND results carry an observation."""
        if self.status is FetchStatus.FOUND and self.observation is None:
            raise ValueError("FOUND result requires an observation")
        if self.status is not FetchStatus.FOUND and self.observation is not None:
            raise ValueError(f"{self.status.value} result must not carry an observation")
        return self

    @classmethod
    def found(cls, observation: Observation) -> "FetchResult":
        """Build a FOUND result for ``observation``."""
        return cls(
            ticker=observation.ticker,
            date=observation.date,
            status=FetchStatus.FOUND,
            observation=observation,
        )

    @classmethod
    def not_found(cls, ticker: str, as_of: date) -> "FetchResult":
        """Build a NOT_FOUND result."""
        return cls(ticker=ticker, date=as_of, status=FetchStatus.NOT_FOUND)

    @classmethod
    def failed(cls, ticker: str, as_of: date, error: str) -> "FetchResult":
        """Build a FETCH_ERROR result."""
        return cls(
            ticker=ticker, date=as_of, status=FetchStatus.FETCH_ERROR, error=error
        )

    @property
    def is_found(self) -> bool:
        """Return True for FOUND results."""
        return self.status is FetchStatus.FOUND

    @property
    def is_error(self) -> bool:
        """Return True for FETCH_ERROR results."""
        return self.status is FetchStatus.FETCH_ERROR
