"""Unit tests for JSONL snapshot logging."""
import json
from datetime import date

import pytest

from indexsim.backtest.portfolio.snapshot_logger import SnapshotLogger, read_snapshots
from indexsim.models.portfolio import Holding, PortfolioState, Snapshot

pytestmark = pytest.mark.unit


def _snapshot(year, shares):
    state = PortfolioState(
        holdings={"AAA": Holding(ticker="AAA", shares=shares, price=10.0, weight=1.0)},
        cash=5.0,
    )
    return Snapshot.from_state(date(year, 1, 4), state)


class TestSnapshotLogger:
    """Test snapshot persistence."""

    def test_writes_one_line_per_snapshot(self, tmp_path):
        path = tmp_path / "snapshots" / "ew.jsonl"

        with SnapshotLogger(path, strategy="Equal Weight Rebalanced") as snapshot_logger:
            snapshot_logger.record(_snapshot(2010, 100))
            snapshot_logger.record(_snapshot(2011, 90))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["strategy"] == "Equal Weight Rebalanced"
        assert first["date"] == "2010-01-04"
        assert first["total_value"] == 1005.0
        assert snapshot_logger.record_count == 2
        assert snapshot_logger.file_handle is None

    def test_record_without_open_is_ignored(self, tmp_path):
        snapshot_logger = SnapshotLogger(tmp_path / "unused.jsonl")
        snapshot_logger.record(_snapshot(2010, 1))
        assert snapshot_logger.record_count == 0
        assert not (tmp_path / "unused.jsonl").exists()

    def test_read_snapshots(self, tmp_path):
        path = tmp_path / "mc.jsonl"
        with SnapshotLogger(path, strategy="x") as snapshot_logger:
            snapshot_logger.record(_snapshot(2010, 100))
            snapshot_logger.record(_snapshot(2011, 90))

        snapshots = read_snapshots(path)

        assert [s.date.year for s in snapshots] == [2010, 2011]
        assert snapshots[1].holding("AAA").shares == 90
        assert snapshots[1].cash == 5.0
