"""Tests for collecting outcomes into a run summary."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

from avif_convertor.config.common import (
    JOB_STATUS_CANCELLED,
    JOB_STATUS_FAILED,
    JOB_STATUS_SKIPPED,
    JOB_STATUS_SUCCEEDED,
)
from avif_convertor.domain.models import ConversionJob, JobOutcome
from avif_convertor.pipeline.aggregator import RunAggregator


def outcome(status: str, name: str = "a.png") -> JobOutcome:
    return JobOutcome(status=status, message=f"{status}: {name}", input_path=Path(name))


class TestRunAggregator:
    def test_counts_and_forwards_lines(self):
        sink = MagicMock()
        aggregator = RunAggregator(4, sink)
        for status in (JOB_STATUS_SUCCEEDED, JOB_STATUS_SUCCEEDED, JOB_STATUS_SKIPPED, JOB_STATUS_FAILED):
            aggregator.record(outcome(status))

        summary = aggregator.summary(cancelled=False)

        assert (summary.total, summary.succeeded, summary.skipped, summary.failed) == (4, 2, 1, 1)
        assert not summary.cancelled
        assert sink.append_line.call_count == 4
        sink.append_line.assert_any_call("skipped: a.png")

    def test_progress_is_one_based(self):
        sink = MagicMock()
        aggregator = RunAggregator(7, sink)
        aggregator.report_progress(0, ConversionJob(Path("/photos/a.png")))
        sink.report_progress.assert_called_once_with(1, 7, "a.png")

    def test_cancelled_outcome_marks_run_cancelled(self):
        aggregator = RunAggregator(3, MagicMock())
        aggregator.record(outcome(JOB_STATUS_SUCCEEDED))
        aggregator.record(outcome(JOB_STATUS_CANCELLED))
        summary = aggregator.summary(cancelled=False)
        assert summary.cancelled
        assert summary.cancelled_jobs == 1

    def test_concurrent_records_are_all_counted(self):
        aggregator = RunAggregator(800, MagicMock())

        def record_many():
            for _ in range(100):
                aggregator.record(outcome(JOB_STATUS_SUCCEEDED))

        threads = [threading.Thread(target=record_many) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert aggregator.recorded == 800
        assert aggregator.summary(cancelled=False).succeeded == 800
