"""Parallel execution utilities for independent strategy runs.

Strategy runs share nothing mutable except the thread-safe observation
store, so they execute on joblib's threading backend: the store and its
cache are visible to every run, and per-year fetches are I/O bound.
"""

import logging
import multiprocessing
from typing import Any, Callable, Optional, Sequence

from joblib import Parallel, delayed

logger = logging.getLogger(__name__)


def get_worker_count(requested: Optional[int] = None, task_count: Optional[int] = None) -> int:
    """Determine worker count with logical core cap.

    Args:
        requested: Requested number of workers, or None for auto-detection.
        task_count: Number of tasks; the worker count never exceeds it.

    Returns:
        Validated worker count (capped to logical cores).
    """
    logical_cores = multiprocessing.cpu_count()

    if requested is None:
        workers = max(1, logical_cores - 1)  # Leave one core free
    elif requested > logical_cores:
        logger.warning(
            "Requested workers (%d) exceeds logical cores (%d); capping to %d",
            requested,
            logical_cores,
            logical_cores,
        )
        workers = logical_cores
    else:
        workers = max(1, requested)

    if task_count is not None:
        workers = max(1, min(workers, task_count))
    return workers


def run_in_parallel(
    tasks: Sequence[tuple[Callable[..., Any], ...]],
    max_workers: Optional[int] = None,
) -> list[Any]:
    """Run tasks concurrently on threads.

    Args:
        tasks: Tuples of (function, *args).
        max_workers: Maximum number of concurrent tasks.

    Returns:
        Results in the same order as tasks.
    """
    if not tasks:
        return []

    n_jobs = get_worker_count(max_workers, len(tasks))
    logger.debug("Running %d tasks on %d threads", len(tasks), n_jobs)
    return Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(func)(*args) for func, *args in tasks
    )
