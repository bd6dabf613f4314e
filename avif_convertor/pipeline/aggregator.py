"""
Collects job outcomes into the run summary.
"""
import collections
import threading

from ..config.common import (
    JOB_STATUS_CANCELLED,
    JOB_STATUS_FAILED,
    JOB_STATUS_SKIPPED,
    JOB_STATUS_SUCCEEDED,
)
from ..domain.models import ConversionJob, JobOutcome, RunSummary
from ..services.logging_service import ReportSink


class RunAggregator:
    """
    Counts outcomes from concurrent workers and forwards progress to a sink.

    Outcomes arrive in any order. Counting happens under a lock, so no outcome
    is lost or counted twice.
    """

    def __init__(self, total: int, sink: ReportSink):
        self.total = total
        self.sink = sink
        self._counts = collections.Counter()
        self._lock = threading.Lock()

    def report_progress(self, index: int, job: ConversionJob):
        self.sink.report_progress(index + 1, self.total, job.input_path.name)

    def record(self, outcome: JobOutcome):
        with self._lock:
            self._counts[outcome.status] += 1
        self.sink.append_line(outcome.message)

    @property
    def recorded(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def summary(self, cancelled: bool) -> RunSummary:
        with self._lock:
            counts = dict(self._counts)
        return RunSummary(
            total=self.total,
            succeeded=counts.get(JOB_STATUS_SUCCEEDED, 0),
            skipped=counts.get(JOB_STATUS_SKIPPED, 0),
            failed=counts.get(JOB_STATUS_FAILED, 0),
            cancelled_jobs=counts.get(JOB_STATUS_CANCELLED, 0),
            cancelled=cancelled or counts.get(JOB_STATUS_CANCELLED, 0) > 0,
        )
