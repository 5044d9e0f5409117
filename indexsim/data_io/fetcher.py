"""
Bounded-concurrency observation fetching.

Fetching a year's observations is embarrassingly parallel across tickers, but
upstream providers are rate limited, so the fan-out runs through a thread pool
capped at ``max_workers``. Every lookup goes through the optional
``ObservationStore`` first. Provider exceptions of any type and timeouts
become FETCH_ERROR results, which are retried and never cached; they are
kept distinct from NOT_FOUND so outages are not mistaken for delistings.
"""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date
from typing import Optional

from indexsim.data_io.providers import ObservationProvider
from indexsim.data_io.store import ObservationStore
from indexsim.models.exceptions import ConfigurationError, FetchFailedError
from indexsim.models.universe import FetchResult


logger = logging.getLogger(__name__)


class ObservationFetcher:
    """
    Fetches observations through a store with bounded parallelism.

    Attributes:
        provider: Upstream observation provider.
        store: Optional cache shared by every caller of this fetcher.
        max_workers: Maximum concurrent provider calls per fan-out.
        timeout_sec: Maximum wait for a single lookup.
        retries: Extra attempts after a FETCH_ERROR.
    """

    def __init__(
        self,
        provider: ObservationProvider,
        store: Optional[ObservationStore] = None,
        max_workers: int = 8,
        timeout_sec: float = 30.0,
        retries: int = 1,
    ):
        """
        Initialize fetcher.

        Raises:
            ConfigurationError: If max_workers < 1, timeout_sec <= 0 or
                retries < 0
        """
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        if timeout_sec <= 0:
            raise ConfigurationError(f"timeout_sec must be > 0, got {timeout_sec}")
        if retries < 0:
            raise ConfigurationError(f"retries must be >= 0, got {retries}")

        self.provider = provider
        self.store = store
        self.max_workers = max_workers
        self.timeout_sec = timeout_sec
        self.retries = retries

    def _fetch_from_provider(self, ticker: str, as_of: date) -> FetchResult:
        """Call the provider, retrying FETCH_ERROR outcomes."""
        result = FetchResult.failed(ticker, as_of, "not attempted")
        for attempt in range(self.retries + 1):
            try:
                result = self.provider.fetch(ticker, as_of)
            except FetchFailedError as exc:
                result = FetchResult.failed(ticker, as_of, str(exc))
            except Exception as exc:  # pylint: disable=broad-except
                result = FetchResult.failed(
                    ticker, as_of, f"{type(exc).__name__}: {exc}"
                )

            if not result.is_error:
                return result
            logger.debug(
                "Fetch attempt %d/%d failed for %s on %s: %s",
                attempt + 1,
                self.retries + 1,
                ticker,
                as_of,
                result.error,
            )
        return result

    def fetch_one(self, ticker: str, as_of: date) -> FetchResult:
        """
        Fetch a single observation, consulting the store first.

        Args:
            ticker: Ticker symbol.
            as_of: Observation date.

        Returns:
            Tagged FetchResult.
        """
        if self.store is None:
            return self._fetch_from_provider(ticker, as_of)
        return self.store.get_or_fetch(ticker, as_of, self._fetch_from_provider)

    def fetch_many(self, tickers: Iterable[str], as_of: date) -> dict[str, FetchResult]:
        """
        Fetch observations for many tickers on one date in parallel.

        Args:
            tickers: Tickers to fetch; duplicates are fetched once.
            as_of: Observation date.

        Returns:
            Dictionary mapping each ticker to its FetchResult, in sorted
            ticker order.
        """
        unique = sorted(set(tickers))
        if not unique:
            return {}

        results: dict[str, FetchResult] = {}
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(unique)),
            thread_name_prefix="observation-fetch",
        )
        try:
            futures = {
                ticker: executor.submit(self.fetch_one, ticker, as_of)
                for ticker in unique
            }
            for ticker, future in futures.items():
                try:
                    results[ticker] = future.result(timeout=self.timeout_sec)
                except FutureTimeoutError:
                    future.cancel()
                    results[ticker] = FetchResult.failed(
                        ticker, as_of, f"timed out after {self.timeout_sec:.1f}s"
                    )
        finally:
            # Timed-out provider calls keep running in their threads; do not
            # block the year on them.
            executor.shutdown(wait=False, cancel_futures=True)

        errors = [ticker for ticker, result in results.items() if result.is_error]
        if errors:
            logger.warning(
                "Fetch errors for %d/%d tickers on %s: %s",
                len(errors),
                len(unique),
                as_of,
                ", ".join(errors),
            )
        return results
