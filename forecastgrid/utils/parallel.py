"""Worker-pool execution for independent (horizon, window) units."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_units(func: Callable[[T], R], units: Sequence[T], n_jobs: int = 1) -> List[R]:
    """
    Apply ``func`` to every unit and return the results in input order.

    With ``n_jobs == 1`` units run inline. Otherwise they are submitted to a
    thread pool and collected in submission order; the first failure cancels
    every unit that has not started and is re-raised unchanged.

    Args:
        func: Callable applied to each unit
        units: Ordered units of work
        n_jobs: Maximum number of concurrent workers

    Returns:
        List of results aligned with ``units``
    """
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")

    if n_jobs == 1 or len(units) <= 1:
        return [func(unit) for unit in units]

    workers = min(n_jobs, len(units))
    logger.debug(f"Running {len(units)} units on {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(func, unit) for unit in units]
        results: List[R] = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    return results
