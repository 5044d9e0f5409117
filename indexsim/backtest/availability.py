"""
Year-over-year ticker availability analysis.

A ticker is available in a year when its observation has a positive price
and, unless it is an index instrument, a positive market cap. Comparing
consecutive processed years classifies each ticker as ENTERING, EXITING or
CONTINUING. The classification is diagnostic only; it never drives the
engines.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from indexsim.data_io.calendar import year_start_date
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.models.availability import AvailabilityReport, YearAvailability
from indexsim.models.exceptions import ConfigurationError
from indexsim.models.universe import Observation


logger = logging.getLogger(__name__)

# Index and ETF instruments that are valid without a market cap
DEFAULT_INDEX_TICKERS = frozenset(
    {"SPY", "QQQ", "IWM", "VTI", "VOO", "VEA", "VWO", "BND", "VNQ"}
)


def is_available(
    observation: Optional[Observation], index_tickers: Iterable[str] = DEFAULT_INDEX_TICKERS
) -> bool:
    """
    Return True if ``observation`` counts as valid data.

    Args:
        observation: Observation or None when the lookup found nothing.
        index_tickers: Tickers exempt from the market cap requirement.
    """
    if observation is None:
        return False
    price = observation.adjusted_price
    if price is None:
        price = observation.price
    if price is None or price <= 0:
        return False
    if observation.ticker in index_tickers:
        return True
    return observation.has_market_cap


def analyze_availability(
    tickers: Iterable[str],
    years: Iterable[int],
    observations_by_year: Mapping[int, Mapping[str, Observation]],
    index_tickers: Iterable[str] = DEFAULT_INDEX_TICKERS,
) -> AvailabilityReport:
    """
    Classify each ticker's availability across years.

    Years are processed in increasing order; in the first year every
    available ticker is ENTERING.

    Args:
        tickers: Tickers to classify.
        years: Years to process.
        observations_by_year: Year -> {ticker: observation}; a ticker missing
            from a year's mapping is unavailable that year.
        index_tickers: Tickers exempt from the market cap requirement.

    Returns:
        AvailabilityReport with one YearAvailability per year.
    """
    requested = sorted(set(tickers))
    exempt = frozenset(index_tickers)
    entries = []
    previous: Optional[set[str]] = None

    for year in sorted(set(years)):
        observations = observations_by_year.get(year, {})
        current = {
            ticker
            for ticker in requested
            if is_available(observations.get(ticker), exempt)
        }

        if previous is None:
            entering, exiting, continuing = current, set(), set()
        else:
            entering = current - previous
            exiting = previous - current
            continuing = current & previous

        entries.append(
            YearAvailability(
                year=year,
                available=sorted(current),
                entering=sorted(entering),
                exiting=sorted(exiting),
                continuing=sorted(continuing),
            )
        )
        logger.debug(
            "Availability %d: %d available, +%d entering, -%d exiting",
            year,
            len(current),
            len(entering),
            len(exiting),
        )
        previous = current

    return AvailabilityReport(tickers=requested, years=entries)


class AvailabilityAnalyzer:
    """
    Fetches a year range of observations and classifies availability.

    Attributes:
        fetcher: Observation fetcher (shares its store with backtest runs).
        index_tickers: Tickers exempt from the market cap requirement.
    """

    def __init__(
        self,
        fetcher: ObservationFetcher,
        index_tickers: Iterable[str] = DEFAULT_INDEX_TICKERS,
    ):
        self.fetcher = fetcher
        self.index_tickers = frozenset(index_tickers)

    def analyze(
        self, tickers: Iterable[str], start_year: int, end_year: int
    ) -> AvailabilityReport:
        """
        Analyze availability of ``tickers`` from start_year to end_year.

        Raises:
            ConfigurationError: If start_year is after end_year.
        """
        if start_year > end_year:
            raise ConfigurationError(
                "start_year must not be after end_year",
                context={"start_year": start_year, "end_year": end_year},
            )

        requested = sorted(set(tickers))
        observations_by_year: dict[int, dict[str, Observation]] = {}
        for year in range(start_year, end_year + 1):
            results = self.fetcher.fetch_many(requested, year_start_date(year))
            observations_by_year[year] = {
                ticker: result.observation
                for ticker, result in results.items()
                if result.is_found
            }
            failed = [ticker for ticker, result in results.items() if result.is_error]
            if failed:
                logger.warning(
                    "Availability %d: %d tickers failed to fetch and count as unavailable",
                    year,
                    len(failed),
                )

        report = analyze_availability(
            requested,
            range(start_year, end_year + 1),
            observations_by_year,
            self.index_tickers,
        )
        logger.info(
            "Analyzed availability of %d tickers over %d years",
            len(requested),
            len(report.years),
        )
        return report
