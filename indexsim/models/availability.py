"""Year-over-year ticker availability report models."""
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field

from indexsim.models.enums import AvailabilityStatus


class YearAvailability(BaseModel):
    """Availability classification for a single year.

    Attributes:
        year: Calendar year
        available: Tickers with valid data this year
        entering: Available this year but not the previous processed year
        exiting: Available the previous processed year but not this year
        continuing: Available in both years
    """

    year: int
    available: list[str] = Field(default_factory=list)
    entering: list[str] = Field(default_factory=list)
    exiting: list[str] = Field(default_factory=list)
    continuing: list[str] = Field(default_factory=list)

    def status(self, ticker: str) -> Optional[AvailabilityStatus]:
        """Return the classification of ``ticker`` in this year, if any."""
        if ticker in self.entering:
            return AvailabilityStatus.ENTERING
        if ticker in self.continuing:
            return AvailabilityStatus.CONTINUING
        if ticker in self.exiting:
            return AvailabilityStatus.EXITING
        return None


class AvailabilityReport(BaseModel):
    """Per-year availability classification over a year range."""

    tickers: list[str] = Field(default_factory=list)
    years: list[YearAvailability] = Field(default_factory=list)

    def for_year(self, year: int) -> Optional[YearAvailability]:
        """Return the entry for ``year``."""
        for entry in self.years:
            if entry.year == year:
                return entry
        return None

    def status(self, ticker: str, year: int) -> Optional[AvailabilityStatus]:
        """Return the classification of ``ticker`` in ``year``."""
        entry = self.for_year(year)
        return entry.status(ticker) if entry else None

    def first_available_year(self, ticker: str) -> Optional[int]:
        """Return the first year ``ticker`` had valid data."""
        for entry in self.years:
            if ticker in entry.available:
                return entry.year
        return None

    def never_available(self) -> list[str]:
        """Return requested tickers that never had valid data."""
        seen = {ticker for entry in self.years for ticker in entry.available}
        return [ticker for ticker in self.tickers if ticker not in seen]

    def to_frame(self) -> pd.DataFrame:
        """Flatten the report into one row per (year, ticker, status)."""
        rows = []
        for entry in self.years:
            for status, tickers in (
                (AvailabilityStatus.ENTERING, entry.entering),
                (AvailabilityStatus.CONTINUING, entry.continuing),
                (AvailabilityStatus.EXITING, entry.exiting),
            ):
                rows.extend(
                    {"year": entry.year, "ticker": ticker, "status": status.value}
                    for ticker in tickers
                )
        return pd.DataFrame(rows, columns=["year", "ticker", "status"])
