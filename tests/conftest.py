"""
Pytest configuration and global fixtures.

This module provides shared test fixtures used across the test suite:
observation and universe builders, in-memory providers, fetchers and
backtest parameters.
"""

import random
from datetime import date

import numpy as np
import pytest

from indexsim.config.parameters import BacktestParameters
from indexsim.data_io.calendar import year_start_date
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.data_io.providers import InMemoryObservationProvider
from indexsim.data_io.store import ObservationStore
from indexsim.data_io.universe import StaticUniverse
from indexsim.models.universe import Observation, Stock


SEED = 42


def _apply_global_seed():
    """Apply global deterministic seed for tests."""
    random.seed(SEED)
    np.random.seed(SEED)


_apply_global_seed()


@pytest.fixture()
def make_observation():
    """
    Provide an observation factory keyed by year.

    Examples:
        >>> def test_price(make_observation):
        ...     obs = make_observation("AAA", 2010, 100.0, market_cap=1e9)
        ...     assert obs.adjusted_price == 100.0
    """

    def _make(ticker, year, price, market_cap=None):
        return Observation(
            ticker=ticker,
            date=year_start_date(year),
            price=price,
            adjusted_price=price,
            market_cap=market_cap,
        )

    return _make


@pytest.fixture()
def make_universe():
    """
    Provide a universe factory from {ticker: start year or (start, end) dates}.
    """

    def _make(windows):
        stocks = []
        for ticker, window in windows.items():
            if isinstance(window, int):
                stocks.append(Stock(ticker=ticker, start_date=date(window, 1, 1)))
            else:
                start, end = window
                stocks.append(Stock(ticker=ticker, start_date=start, end_date=end))
        return StaticUniverse(stocks)

    return _make


@pytest.fixture()
def flat_prices(make_observation):
    """
    Provide a factory of constant-price observations over a year range.

    Returns:
        Callable (ticker, first_year, last_year, price, market_cap=None) ->
        list of Observation.
    """

    def _make(ticker, first_year, last_year, price, market_cap=None):
        return [
            make_observation(ticker, year, price, market_cap=market_cap)
            for year in range(first_year, last_year + 1)
        ]

    return _make


@pytest.fixture()
def make_fetcher():
    """
    Provide a fetcher factory over an in-memory provider and a fresh store.
    """

    def _make(observations, max_workers=4, timeout_sec=5.0, retries=1):
        return ObservationFetcher(
            InMemoryObservationProvider(observations),
            store=ObservationStore(),
            max_workers=max_workers,
            timeout_sec=timeout_sec,
            retries=retries,
        )

    return _make


@pytest.fixture()
def custom_parameters():
    """
    Provide customizable backtest parameters factory.

    Examples:
        >>> def test_custom(custom_parameters):
        ...     params = custom_parameters(start_year=2012)
        ...     assert params.start_year == 2012
    """

    def _create_params(**overrides):
        values = {
            "start_year": 2010,
            "end_year": 2015,
            "initial_investment": 1_000_000.0,
        }
        values.update(overrides)
        return BacktestParameters(**values)

    return _create_params
