"""Tests for the bounded worker pool and its job cursor."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from avif_convertor.config.common import (
    JOB_STATUS_CANCELLED,
    JOB_STATUS_SUCCEEDED,
    MAX_CONCURRENCY,
)
from avif_convertor.domain.cancellation import CancellationToken
from avif_convertor.domain.models import ConversionJob, JobOutcome
from avif_convertor.pipeline.worker_pool import JobCursor, WorkerPool, compute_concurrency


def make_jobs(count: int) -> list[ConversionJob]:
    return [ConversionJob(Path(f"/photos/{i:03}.png")) for i in range(count)]


def outcome_for(job: ConversionJob, status: str = JOB_STATUS_SUCCEEDED) -> JobOutcome:
    return JobOutcome(status=status, message=job.input_path.name, input_path=job.input_path)


class TestComputeConcurrency:
    @pytest.mark.parametrize(
        "jobs, cpus, expected",
        [
            (10, 8, MAX_CONCURRENCY),
            (10, 2, 2),
            (3, 16, 3),
            (1, 1, 1),
            (0, 8, 1),
            (5, 0, 1),
        ],
    )
    def test_bounds(self, jobs, cpus, expected):
        assert compute_concurrency(jobs, cpu_count=cpus) == expected


class TestJobCursor:
    def test_claims_in_order_then_none(self):
        cursor = JobCursor(3)
        assert [cursor.claim() for _ in range(5)] == [0, 1, 2, None, None]
        assert cursor.claimed == 3

    def test_each_index_claimed_exactly_once_under_contention(self):
        cursor = JobCursor(5000)
        claimed = []
        lock = threading.Lock()

        def drain():
            local = []
            while (index := cursor.claim()) is not None:
                local.append(index)
            with lock:
                claimed.extend(local)

        threads = [threading.Thread(target=drain) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(claimed) == list(range(5000))


class TestWorkerPool:
    def test_every_job_runs_once(self):
        jobs = make_jobs(25)
        seen = []
        lock = threading.Lock()

        def run_job(index, job):
            with lock:
                seen.append(index)
            return outcome_for(job)

        claimed = WorkerPool(jobs, run_job, CancellationToken(), concurrency=4).run()

        assert claimed == 25
        assert sorted(seen) == list(range(25))

    def test_concurrency_is_bounded(self):
        jobs = make_jobs(12)
        active = 0
        peak = 0
        lock = threading.Lock()

        def run_job(index, job):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with lock:
                active -= 1
            return outcome_for(job)

        WorkerPool(jobs, run_job, CancellationToken(), concurrency=3).run()
        assert 1 <= peak <= 3

    def test_empty_job_list(self):
        run_job = lambda index, job: pytest.fail("no job should run")  # noqa: E731
        assert WorkerPool([], run_job, CancellationToken(), concurrency=2).run() == 0

    def test_cancelled_token_stops_claiming(self):
        token = CancellationToken()
        jobs = make_jobs(20)
        ran = []

        def run_job(index, job):
            ran.append(index)
            if index == 2:
                token.cancel()
            return outcome_for(job)

        claimed = WorkerPool(jobs, run_job, token, concurrency=1).run()
        assert ran == [0, 1, 2]
        assert claimed == 3

    def test_cancelled_outcome_fires_token(self):
        token = CancellationToken()
        jobs = make_jobs(10)

        def run_job(index, job):
            status = JOB_STATUS_CANCELLED if index == 1 else JOB_STATUS_SUCCEEDED
            return outcome_for(job, status)

        claimed = WorkerPool(jobs, run_job, token, concurrency=1).run()
        assert token.is_cancelled
        assert claimed == 2

    def test_pre_cancelled_token_runs_nothing(self):
        token = CancellationToken()
        token.cancel()
        run_job = lambda index, job: pytest.fail("no job should run")  # noqa: E731
        assert WorkerPool(make_jobs(5), run_job, token, concurrency=2).run() == 0

    def test_unexpected_error_is_re_raised_after_workers_stop(self):
        def run_job(index, job):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            WorkerPool(make_jobs(3), run_job, CancellationToken(), concurrency=1).run()

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            WorkerPool(make_jobs(1), lambda i, j: outcome_for(j), CancellationToken(), concurrency=0)
