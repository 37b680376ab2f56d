"""
Tests for the bounded worker pool.
"""

import threading
import time

import pytest

from ..workers import map_jobs, run_jobs, run_jobs_blocking


def _leaves(exc):
    if hasattr(exc, "exceptions"):
        for inner in exc.exceptions:
            yield from _leaves(inner)
    else:
        yield exc


class TestRunJobs:
    """Tests for run_jobs and map_jobs."""

    @pytest.mark.trio
    async def test_results_in_submission_order(self):
        def job(i):
            time.sleep(0.01 * (5 - i))
            return i * i

        results = await map_jobs(job, range(5), max_workers=5)
        assert results == [0, 1, 4, 9, 16]

    @pytest.mark.trio
    async def test_concurrency_bounded(self):
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}

        def job():
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            time.sleep(0.02)
            with lock:
                state["running"] -= 1

        await run_jobs([job] * 8, max_workers=2)
        assert state["peak"] <= 2

    @pytest.mark.trio
    async def test_empty_job_list(self):
        assert await run_jobs([]) == []

    @pytest.mark.trio
    async def test_job_error_propagates(self):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(BaseException) as excinfo:
            await run_jobs([lambda: 1, boom], max_workers=2)
        assert any(
            isinstance(e, RuntimeError) and str(e) == "boom" for e in _leaves(excinfo.value)
        )

    @pytest.mark.trio
    async def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            await run_jobs([lambda: 1], max_workers=0)


def test_blocking_entry_point():
    assert run_jobs_blocking([lambda: "a", lambda: "b"], max_workers=1) == ["a", "b"]


def test_blocking_rejects_zero_workers():
    with pytest.raises(ValueError):
        run_jobs_blocking([lambda: 1], max_workers=0)
