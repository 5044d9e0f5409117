"""Market data access: universe, providers, observation store, fetching."""

from indexsim.data_io.calendar import year_start_date
from indexsim.data_io.fetcher import ObservationFetcher
from indexsim.data_io.providers import (
    CsvObservationProvider,
    InMemoryObservationProvider,
    ObservationProvider,
    load_observations_csv,
)
from indexsim.data_io.store import ObservationStore
from indexsim.data_io.universe import StaticUniverse, StockUniverse, load_universe_csv

__all__ = [
    "CsvObservationProvider",
    "InMemoryObservationProvider",
    "ObservationFetcher",
    "ObservationProvider",
    "ObservationStore",
    "StaticUniverse",
    "StockUniverse",
    "load_observations_csv",
    "load_universe_csv",
    "year_start_date",
]
