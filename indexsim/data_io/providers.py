"""
Observation providers.

A provider answers ``fetch(ticker, as_of)`` with a tagged ``FetchResult``:
FOUND with an observation, NOT_FOUND when the ticker has no trading data on
that date, or FETCH_ERROR when the lookup itself failed. Providers must be
idempotent; repeated lookups of the same (ticker, date) are expected.
"""

import logging
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any, Optional, Protocol

import pandas as pd

from indexsim.models.exceptions import ConfigurationError
from indexsim.models.universe import FetchResult, Observation


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("ticker", "date")
NUMERIC_COLUMNS = ("price", "adjusted_price", "shares_outstanding", "market_cap")


class ObservationProvider(Protocol):
    """Source of per-ticker, per-date observations."""

    def fetch(self, ticker: str, as_of: date) -> FetchResult:
        """Return the tagged lookup result for ``ticker`` on ``as_of``."""


class InMemoryObservationProvider:
    """
    Provider serving a fixed set of observations by exact date match.

    Attributes:
        observations: Observations keyed by (ticker, date).
    """

    def __init__(self, observations: Iterable[Observation] = ()):
        self.observations: dict[tuple[str, date], Observation] = {}
        for observation in observations:
            self.add(observation)

    def __len__(self) -> int:
        return len(self.observations)

    def add(self, observation: Observation) -> None:
        """Add or replace the observation for its (ticker, date)."""
        self.observations[(observation.ticker, observation.date)] = observation

    def fetch(self, ticker: str, as_of: date) -> FetchResult:
        observation = self.observations.get((ticker, as_of))
        if observation is None:
            return FetchResult.not_found(ticker, as_of)
        return FetchResult.found(observation)

    def tickers(self) -> list[str]:
        """Return every ticker with at least one observation."""
        return sorted({ticker for ticker, _ in self.observations})


def _optional_float(value: Any) -> Optional[float]:
    """Convert a CSV cell to float, keeping blanks as None (never 0)."""
    if value is None or pd.isna(value):
        return None
    return float(value)


def load_observations_csv(csv_path: str | Path) -> list[Observation]:
    """
    Load observations from CSV.

    Args:
        csv_path: File with ``ticker`` and ``date`` columns plus any of
            ``price``, ``adjusted_price``, ``shares_outstanding``,
            ``market_cap``. Blank cells are treated as absent values.

    Returns:
        List of Observation records in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If required columns are missing or a row is invalid.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Observation file not found: {path}")

    frame = pd.read_csv(path, dtype={"ticker": str})
    frame.columns = [column.strip().lower() for column in frame.columns]

    missing = [column for column in REQUIRED_COLUMNS if column not in frame]
    if missing:
        raise ConfigurationError(
            f"Observation file missing required columns: {missing}",
            context={"path": str(path)},
        )
    for column in NUMERIC_COLUMNS:
        if column not in frame:
            frame[column] = None
    try:
        frame["date"] = pd.to_datetime(frame["date"]).dt.date
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            f"Invalid date in observation file: {exc}", context={"path": str(path)}
        ) from exc

    observations = []
    for row in frame[list(REQUIRED_COLUMNS + NUMERIC_COLUMNS)].itertuples(index=False):
        try:
            observations.append(
                Observation(
                    ticker=row.ticker,
                    date=row.date,
                    price=_optional_float(row.price),
                    adjusted_price=_optional_float(row.adjusted_price),
                    shares_outstanding=_optional_float(row.shares_outstanding),
                    market_cap=_optional_float(row.market_cap),
                )
            )
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid observation row for {row.ticker} on {row.date}: {exc}",
                context={"path": str(path)},
            ) from exc

    logger.info("Loaded %d observations from %s", len(observations), path)
    return observations


class CsvObservationProvider(InMemoryObservationProvider):
    """In-memory provider populated from an observation CSV."""

    def __init__(self, csv_path: str | Path):
        super().__init__(load_observations_csv(csv_path))
        self.csv_path = Path(csv_path)
