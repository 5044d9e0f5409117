"""Unit tests for the observation store."""
import json
from datetime import date

import pytest

from indexsim.data_io.store import ObservationStore
from indexsim.models.enums import FetchStatus
from indexsim.models.universe import FetchResult

pytestmark = pytest.mark.unit

AS_OF = date(2010, 1, 5)


class TestObservationStore:
    """Test caching semantics of the observation store."""

    def test_found_and_not_found_are_cached(self, make_observation):
        store = ObservationStore()
        assert store.put(FetchResult.found(make_observation("AAA", 2010, 10.0)))
        assert store.put(FetchResult.not_found("ZZZ", AS_OF))

        assert store.get("AAA", AS_OF).is_found
        assert store.get("ZZZ", AS_OF).status is FetchStatus.NOT_FOUND
        assert len(store) == 2

    def test_fetch_errors_never_cached(self):
        store = ObservationStore()
        assert store.put(FetchResult.failed("AAA", AS_OF, "timeout")) is False
        assert not store.has("AAA", AS_OF)

    def test_get_or_fetch_counts_hits_and_misses(self):
        store = ObservationStore()
        calls = []

        def fetcher(ticker, as_of):
            calls.append(ticker)
            return FetchResult.not_found(ticker, as_of)

        store.get_or_fetch("AAA", AS_OF, fetcher)
        store.get_or_fetch("AAA", AS_OF, fetcher)

        assert calls == ["AAA"]
        assert store.hits == 1
        assert store.misses == 1

    def test_get_or_fetch_retries_after_error(self):
        store = ObservationStore()
        calls = []

        def fetcher(ticker, as_of):
            calls.append(ticker)
            return FetchResult.failed(ticker, as_of, "boom")

        store.get_or_fetch("AAA", AS_OF, fetcher)
        store.get_or_fetch("AAA", AS_OF, fetcher)

        assert len(calls) == 2

    def test_stats(self, make_observation):
        store = ObservationStore()
        store.put(FetchResult.found(make_observation("AAA", 2010, 10.0)))
        store.put(FetchResult.found(make_observation("AAA", 2012, 11.0)))
        store.put(FetchResult.not_found("BBB", AS_OF))

        stats = store.stats()

        assert stats["total_records"] == 3
        assert stats["unique_tickers"] == 2
        assert stats["earliest"] == "2010-01-05"
        assert stats["latest"] == "2012-01-03"
        assert stats["not_found_count"] == 1

    def test_clear(self):
        store = ObservationStore()
        store.put(FetchResult.not_found("BBB", AS_OF))
        store.clear()
        assert len(store) == 0
        assert store.stats()["earliest"] is None

    def test_save_and_load(self, tmp_path, make_observation):
        store = ObservationStore()
        store.put(FetchResult.found(make_observation("AAA", 2010, 10.0, market_cap=5e9)))
        store.put(FetchResult.not_found("BBB", AS_OF))
        path = tmp_path / "cache" / "observations.json"

        store.save(path)
        loaded = ObservationStore.load(path)

        assert len(loaded) == 2
        assert loaded.get("AAA", AS_OF).observation.market_cap == 5e9
        assert loaded.get("BBB", AS_OF).status is FetchStatus.NOT_FOUND

    def test_load_rejects_unknown_version(self, tmp_path):
        path = tmp_path / "observations.json"
        path.write_text(json.dumps({"version": "0.1", "records": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            ObservationStore.load(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ObservationStore.load(tmp_path / "missing.json")

    def test_result_cached_under_requested_date(self, make_observation):
        # Provider answers with the previous trading day's observation
        earlier = make_observation("AAA", 2010, 10.0).model_copy(
            update={"date": date(2010, 1, 4)}
        )
        store = ObservationStore()
        calls = []

        def fetcher(ticker, as_of):
            calls.append(ticker)
            return FetchResult.found(earlier)

        first = store.get_or_fetch("AAA", AS_OF, fetcher)
        second = store.get_or_fetch("AAA", AS_OF, fetcher)

        assert calls == ["AAA"]
        assert first == second
        assert second.observation.date == date(2010, 1, 4)
        assert store.has("AAA", AS_OF)
        assert store.hits == 1

    def test_requested_date_survives_save_and_load(self, tmp_path, make_observation):
        earlier = make_observation("AAA", 2010, 10.0).model_copy(
            update={"date": date(2010, 1, 4)}
        )
        store = ObservationStore()
        store.get_or_fetch("AAA", AS_OF, lambda ticker, as_of: FetchResult.found(earlier))
        path = tmp_path / "observations.json"

        store.save(path)
        loaded = ObservationStore.load(path)

        assert loaded.has("AAA", AS_OF)
        assert not loaded.has("AAA", date(2010, 1, 4))
