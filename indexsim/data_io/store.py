"""
Observation store: an explicitly constructed cache of fetch outcomes.

The store caches FOUND and NOT_FOUND results keyed by (ticker, date).
FETCH_ERROR results are never cached, so a transient outage cannot be
remembered as a delisting. The store is created by the caller and passed by
reference into fetchers and runners; there is no module-level instance.

Persistence uses a JSON file holding one record per cached lookup.
"""

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from indexsim.models.enums import FetchStatus
from indexsim.models.universe import FetchResult


logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = "1.0.0"


class ObservationStore:
    """
    Thread-safe cache of observation lookups.

    Attributes:
        hits: Number of lookups answered from the cache.
        misses: Number of lookups that fell through to a fetcher.

    Examples:
        >>> store = ObservationStore()
        >>> store.put(FetchResult.not_found("ZZZ", date(2010, 1, 5)))
        >>> store.get("ZZZ", date(2010, 1, 5)).status.value
        'not_found'
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, date], FetchResult] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, ticker: str, as_of: date) -> Optional[FetchResult]:
        """Return the cached result for (ticker, as_of), if any."""
        with self._lock:
            return self._records.get((ticker, as_of))

    def has(self, ticker: str, as_of: date) -> bool:
        """Return True if (ticker, as_of) is cached."""
        with self._lock:
            return (ticker, as_of) in self._records

    def put(
        self, result: FetchResult, key: Optional[tuple[str, date]] = None
    ) -> bool:
        """
        Cache a lookup result.

        Args:
            result: Result to cache.
            key: Requested (ticker, date) the result answers; defaults to the
                result's own ticker and date. A provider may answer with an
                observation from an earlier trading day.

        Returns:
            True if cached, False for FETCH_ERROR results (never cached).
        """
        if result.status is FetchStatus.FETCH_ERROR:
            return False
        with self._lock:
            self._records[key or (result.ticker, result.date)] = result
        return True

    def get_or_fetch(
        self,
        ticker: str,
        as_of: date,
        fetcher: Callable[[str, date], FetchResult],
    ) -> FetchResult:
        """
        Return the cached result or fetch, cache, and return a fresh one.

        Args:
            ticker: Ticker symbol.
            as_of: Observation date.
            fetcher: Callable performing the lookup on a cache miss.

        Returns:
            Cached or freshly fetched FetchResult.
        """
        cached = self.get(ticker, as_of)
        if cached is not None:
            with self._lock:
                self.hits += 1
            logger.debug("Cache hit: %s on %s", ticker, as_of)
            return cached

        with self._lock:
            self.misses += 1
        logger.debug("Cache miss: fetching %s on %s", ticker, as_of)
        result = fetcher(ticker, as_of)
        self.put(result, key=(ticker, as_of))
        return result

    def clear(self) -> None:
        """Drop every cached record and reset counters."""
        with self._lock:
            self._records.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        """
        Summarize the cache contents.

        Returns:
            Dictionary with total_records, unique_tickers, earliest/latest
            dates, not_found_count, hits and misses.
        """
        with self._lock:
            records = list(self._records.values())
            hits, misses = self.hits, self.misses
        dates = sorted(record.date for record in records)
        return {
            "total_records": len(records),
            "unique_tickers": len({record.ticker for record in records}),
            "earliest": dates[0].isoformat() if dates else None,
            "latest": dates[-1].isoformat() if dates else None,
            "not_found_count": sum(
                1 for record in records if record.status is FetchStatus.NOT_FOUND
            ),
            "hits": hits,
            "misses": misses,
        }

    def save(self, path: Path) -> None:
        """
        Write the cache to a JSON file.

        Creates parent directories if needed.
        """
        with self._lock:
            records = [
                {"as_of": as_of.isoformat(), **record.model_dump(mode="json")}
                for (_, as_of), record in self._records.items()
            ]
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": STORE_FORMAT_VERSION, "records": records}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False)
        logger.info("Saved %d cached observations to %s", len(records), path)

    @classmethod
    def load(cls, path: Path) -> "ObservationStore":
        """
        Read a cache previously written by ``save``.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file format version is not supported.
        """
        if not path.exists():
            raise FileNotFoundError(f"Observation store not found: {path}")

        with open(path, encoding="utf-8") as f:
            payload = json.load(f)

        version = payload.get("version")
        if version != STORE_FORMAT_VERSION:
            raise ValueError(
                f"Unsupported observation store version {version!r} in {path}"
            )

        store = cls()
        for record in payload.get("records", []):
            result = FetchResult.model_validate(record)
            as_of = record.get("as_of")
            key = (result.ticker, date.fromisoformat(as_of)) if as_of else None
            store.put(result, key=key)
        logger.info("Loaded %d cached observations from %s", len(store), path)
        return store
