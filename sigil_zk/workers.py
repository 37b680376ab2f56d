"""
Bounded worker pool for independent analysis and proving jobs.

Jobs are plain synchronous callables. They run on trio worker threads
behind a CapacityLimiter; results come back in submission order once every
job has finished. If any job raises, the remaining jobs are cancelled and
the error propagates out of the nursery.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, TypeVar

import trio

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WORKERS = 4


def _check_workers(max_workers: int) -> None:
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")


async def run_jobs(
    jobs: Sequence[Callable[[], T]], max_workers: int = DEFAULT_WORKERS
) -> List[T]:
    """
    Run every job on the pool and join.

    Args:
        jobs: Zero-argument callables
        max_workers: Largest number of jobs running at once

    Returns:
        One result per job, in the order the jobs were given
    """
    _check_workers(max_workers)
    limiter = trio.CapacityLimiter(max_workers)
    results: List[Optional[Any]] = [None] * len(jobs)

    async def _run(index: int, job: Callable[[], T]) -> None:
        results[index] = await trio.to_thread.run_sync(job, limiter=limiter)

    async with trio.open_nursery() as nursery:
        for index, job in enumerate(jobs):
            nursery.start_soon(_run, index, job)

    logger.debug("Worker pool joined: %d jobs, %d workers", len(jobs), max_workers)
    return results  # type: ignore[return-value]


async def map_jobs(
    func: Callable[[Any], T], items: Sequence[Any], max_workers: int = DEFAULT_WORKERS
) -> List[T]:
    """func(item) for every item on the pool, in item order."""
    return await run_jobs([lambda item=item: func(item) for item in items], max_workers)


def run_jobs_blocking(
    jobs: Sequence[Callable[[], T]], max_workers: int = DEFAULT_WORKERS
) -> List[T]:
    """Synchronous entry point: start a trio run for the pool and wait."""
    _check_workers(max_workers)
    return trio.run(run_jobs, list(jobs), max_workers)
