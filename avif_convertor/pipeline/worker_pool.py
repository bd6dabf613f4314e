"""
A bounded pool of workers pulling jobs from a shared cursor.

Each worker loops: stop if the run was cancelled, otherwise claim the next job
index, stop if none is left, otherwise run the job. A worker that sees a job
resolve as cancelled fires the shared token and stops; its siblings notice the
token before their next claim. Jobs already in flight finish on their own terms
(their encoder processes are terminated through the token's observers).
"""
import concurrent.futures
import os
import threading
from typing import Callable, List, Optional, Sequence

from loguru import logger

from ..config.common import JOB_STATUS_CANCELLED, MAX_CONCURRENCY
from ..domain.cancellation import CancellationToken
from ..domain.models import ConversionJob, JobOutcome

RunJob = Callable[[int, ConversionJob], JobOutcome]


def compute_concurrency(job_count: int, cpu_count: Optional[int] = None, cap: int = MAX_CONCURRENCY) -> int:
    """
    Number of workers for a run: min(CPUs, cap, jobs), never below 1.

    Args:
        job_count: Number of jobs in the run.
        cpu_count: Available parallelism; defaults to `os.cpu_count()`.
        cap: Fixed upper bound.
    """
    cpus = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(1, min(max(1, cpus), cap, job_count))


class JobCursor:
    """
    Hands out job indices 0..total-1, each exactly once, in increasing order.

    `claim()` only holds a lock for the increment, so it never blocks on work.
    """

    def __init__(self, total: int):
        self.total = total
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> Optional[int]:
        with self._lock:
            if self._next >= self.total:
                return None
            index = self._next
            self._next += 1
            return index

    @property
    def claimed(self) -> int:
        with self._lock:
            return self._next


class WorkerPool:
    """
    Runs jobs with a fixed number of concurrent workers.

    Args:
        jobs: The ordered jobs of the run.
        run_job: Called as `run_job(index, job)` by a worker; returns the outcome.
        cancel_token: The run's shared cancellation signal.
        concurrency: Number of workers. Defaults to `compute_concurrency(len(jobs))`.
    """

    def __init__(
        self,
        jobs: Sequence[ConversionJob],
        run_job: RunJob,
        cancel_token: CancellationToken,
        concurrency: Optional[int] = None,
    ):
        self.jobs = list(jobs)
        self.run_job = run_job
        self.cancel_token = cancel_token
        self.concurrency = concurrency if concurrency is not None else compute_concurrency(len(self.jobs))
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        self.cursor = JobCursor(len(self.jobs))

    def run(self) -> int:
        """
        Runs the pool to completion and returns the number of claimed jobs.

        Returns only after every worker has stopped. A Ctrl+C while waiting
        cancels the run and then waits for the workers to drain. An unexpected
        exception raised by `run_job` is re-raised after all workers stopped.
        """
        if not self.jobs:
            return 0

        worker_count = min(self.concurrency, len(self.jobs))
        logger.debug(f"Starting {worker_count} worker(s) for {len(self.jobs)} job(s).")
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="avif-worker"
        )
        futures: List[concurrent.futures.Future] = []
        try:
            futures = [executor.submit(self._worker_loop, n) for n in range(worker_count)]
            try:
                concurrent.futures.wait(futures)
            except KeyboardInterrupt:
                logger.warning("Interrupted by user. Cancelling running conversions...")
                self.cancel_token.cancel()
                concurrent.futures.wait(futures)
        finally:
            executor.shutdown(wait=True)

        for future in futures:
            future.result()
        return self.cursor.claimed

    def _worker_loop(self, worker_number: int):
        handled = 0
        while True:
            if self.cancel_token.is_cancelled:
                logger.debug(f"Worker {worker_number}: cancellation observed, stopping.")
                break
            index = self.cursor.claim()
            if index is None:
                break
            outcome = self.run_job(index, self.jobs[index])
            handled += 1
            if outcome.status == JOB_STATUS_CANCELLED:
                self.cancel_token.cancel()
                break
        logger.debug(f"Worker {worker_number} finished after {handled} job(s).")
