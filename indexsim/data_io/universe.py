"""
Stock universe definitions.

The universe answers ``list_eligible_stocks(as_of)``: which tickers are
members on a date. ``StaticUniverse`` serves a fixed list of ``Stock``
records, typically loaded from a CSV with ``ticker,start_date,end_date``
columns (blank ``end_date`` = still a member).
"""

import logging
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Optional, Protocol

import pandas as pd

from indexsim.models.exceptions import ConfigurationError
from indexsim.models.universe import Stock


logger = logging.getLogger(__name__)

UNIVERSE_COLUMNS = ("ticker", "start_date", "end_date")


class StockUniverse(Protocol):
    """Anything that can list the eligible stocks for a date."""

    def list_eligible_stocks(self, as_of: date) -> list[Stock]:
        """Return stocks whose eligibility window contains ``as_of``."""


class StaticUniverse:
    """
    Universe backed by an in-memory list of stocks.

    Attributes:
        stocks: Stocks keyed by ticker.

    Examples:
        >>> universe = StaticUniverse([Stock(ticker="AAA", start_date=date(2000, 1, 1))])
        >>> [s.ticker for s in universe.list_eligible_stocks(date(2010, 1, 5))]
        ['AAA']
    """

    def __init__(self, stocks: Iterable[Stock]):
        """
        Initialize universe.

        Args:
            stocks: Stock records; tickers must be unique.

        Raises:
            ConfigurationError: If a ticker appears more than once.
        """
        self.stocks: dict[str, Stock] = {}
        for stock in stocks:
            if stock.ticker in self.stocks:
                raise ConfigurationError(
                    f"Duplicate ticker in universe: {stock.ticker}"
                )
            self.stocks[stock.ticker] = stock

    def __len__(self) -> int:
        return len(self.stocks)

    def __contains__(self, ticker: str) -> bool:
        return ticker in self.stocks

    def get(self, ticker: str) -> Optional[Stock]:
        """Return the stock record for ``ticker``."""
        return self.stocks.get(ticker)

    def tickers(self) -> list[str]:
        """Return all tickers in sorted order."""
        return sorted(self.stocks)

    def list_eligible_stocks(self, as_of: date) -> list[Stock]:
        """Return stocks eligible on ``as_of``, sorted by ticker."""
        return [
            self.stocks[ticker]
            for ticker in sorted(self.stocks)
            if self.stocks[ticker].is_eligible(as_of)
        ]


def load_universe_csv(csv_path: str | Path) -> StaticUniverse:
    """
    Load a universe from CSV.

    Args:
        csv_path: File with ``ticker``, ``start_date`` and optional ``end_date``
            columns. Dates are ISO formatted.

    Returns:
        StaticUniverse with one Stock per row.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If required columns are missing or rows are invalid.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Universe file not found: {path}")

    frame = pd.read_csv(path, dtype={"ticker": str})
    frame.columns = [column.strip().lower() for column in frame.columns]

    missing = [column for column in ("ticker", "start_date") if column not in frame]
    if missing:
        raise ConfigurationError(
            f"Universe file missing required columns: {missing}",
            context={"path": str(path)},
        )
    if "end_date" not in frame:
        frame["end_date"] = None

    try:
        frame["start_date"] = pd.to_datetime(frame["start_date"]).dt.date
        frame["end_date"] = pd.to_datetime(frame["end_date"]).dt.date
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            f"Invalid date in universe file: {exc}", context={"path": str(path)}
        ) from exc

    stocks = []
    for row in frame[list(UNIVERSE_COLUMNS)].itertuples(index=False):
        end_date = None if pd.isna(row.end_date) else row.end_date
        try:
            stocks.append(
                Stock(ticker=row.ticker, start_date=row.start_date, end_date=end_date)
            )
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid universe row for {row.ticker}: {exc}",
                context={"path": str(path)},
            ) from exc

    logger.info("Loaded universe of %d stocks from %s", len(stocks), path)
    return StaticUniverse(stocks)
