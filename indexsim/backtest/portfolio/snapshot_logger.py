"""Yearly snapshot logger.

Writes each recorded portfolio snapshot of a strategy run as one JSON line
so a run can be inspected while it is still in progress.
"""
import json
import logging
from pathlib import Path
from typing import Optional, TextIO

from indexsim.models.portfolio import Snapshot

logger = logging.getLogger(__name__)


class SnapshotLogger:
    """Logs strategy snapshots to a JSONL file.

    Attributes:
        output_path: Path to JSONL output file
        strategy: Strategy name stamped on every record
        file_handle: Open file handle for writing
        record_count: Number of snapshots written
    """

    def __init__(self, output_path: Path, strategy: str = ""):
        """Initialize snapshot logger.

        Args:
            output_path: Path to JSONL output file
            strategy: Strategy name stamped on every record
        """
        self.output_path = output_path
        self.strategy = strategy
        self.file_handle: Optional[TextIO] = None
        self.record_count = 0

    def open(self) -> None:
        """Open snapshot file for writing.

        Creates parent directories if needed.
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        # pylint: disable=consider-using-with,R1732
        self.file_handle = open(self.output_path, "w", encoding="utf-8")
        logger.info("Opened snapshot log: %s", self.output_path)

    def close(self) -> None:
        """Close snapshot file."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None
            logger.info(
                "Closed snapshot log: %s (%d records)",
                self.output_path,
                self.record_count,
            )

    def record(self, snapshot: Snapshot) -> None:
        """Write ``snapshot`` as one JSON line.

        Args:
            snapshot: Snapshot to log
        """
        if not self.file_handle:
            logger.warning("Attempted to write snapshot with closed file handle")
            return

        payload = {"strategy": self.strategy, **snapshot.model_dump(mode="json")}
        self.file_handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
        self.file_handle.flush()
        self.record_count += 1

        logger.debug(
            "Wrote snapshot %s: value=%.2f, holdings=%d",
            snapshot.date.isoformat(),
            snapshot.total_value,
            len(snapshot.holdings),
        )

    def __enter__(self):
        """Context manager entry - opens snapshot file."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes snapshot file."""
        self.close()
        return False


def read_snapshots(path: Path) -> list[Snapshot]:
    """Load snapshots previously written by ``SnapshotLogger``.

    Args:
        path: JSONL file path

    Returns:
        Snapshots in file order
    """
    snapshots = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            record = json.loads(line)
            record.pop("strategy", None)
            snapshots.append(Snapshot.model_validate(record))
    return snapshots
