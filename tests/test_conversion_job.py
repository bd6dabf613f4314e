"""Tests for the single-file conversion state machine."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from avif_convertor.config.common import (
    JOB_STATUS_CANCELLED,
    JOB_STATUS_FAILED,
    JOB_STATUS_SKIPPED,
    JOB_STATUS_SUCCEEDED,
    LAUNCH_FAILURE_EXIT_CODE,
)
from avif_convertor.config.settings import ConversionSettings
from avif_convertor.domain.cancellation import CancellationToken
from avif_convertor.domain.models import ConversionJob
from avif_convertor.services.conversion_job import ConversionTask, file_size
from avif_convertor.services.encoder_invoker import EncoderResult
from avif_convertor.services.logging_service import ErrorLog, ReportSink


class FakeTask:
    """Stands in for EncoderTask; `on_result` runs while the job waits for the process."""

    def __init__(self, result: EncoderResult, launched: bool = True, write_output: Path | None = None,
                 on_result=None):
        self.cmd = ["avifenc", "in", "out"]
        self.launched = launched
        self._result = result
        self._write_output = write_output
        self._on_result = on_result
        self.terminated = False

    def result(self) -> EncoderResult:
        if self._write_output is not None:
            self._write_output.write_bytes(b"a" * 400)
        if self._on_result is not None:
            self._on_result()
        return self._result

    def terminate(self) -> bool:
        self.terminated = True
        return True


class RecordingSink(ReportSink):
    def __init__(self):
        self.lines = []

    def append_line(self, text: str):
        self.lines.append(text)


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "photos" / "a.png"
    path.parent.mkdir()
    path.write_bytes(b"p" * 1000)
    return path


def make_task(source, task_or_none, settings=None, token=None, sink=None, error_log=None,
              preserve_root=None):
    invoker = MagicMock()
    invoker.launch.return_value = task_or_none
    conversion = ConversionTask(
        ConversionJob(source, preserve_root),
        settings or ConversionSettings(),
        token or CancellationToken(),
        invoker,
        sink=sink,
        error_log=error_log,
    )
    return conversion, invoker


class TestConversionTaskSuccess:
    def test_success_reports_sizes(self, source):
        out = source.with_suffix(".avif")
        conversion, invoker = make_task(source, FakeTask(EncoderResult(0), write_output=out))
        outcome = conversion.run()

        assert outcome.status == JOB_STATUS_SUCCEEDED
        assert outcome.output_path == out
        assert outcome.before_size == 1000
        assert outcome.after_size == 400
        assert outcome.reduction == "-60.0%"
        assert outcome.message == "a.png -> a.avif  (1000 B -> 400 B -60.0%)"
        invoker.launch.assert_called_once_with(source, out, conversion.settings)

    def test_output_directory_is_created(self, source, tmp_path):
        out_root = tmp_path / "out"
        expected = out_root / "nested" / "a.avif"
        settings = ConversionSettings(out_dir=out_root)
        nested_source = source.parent / "nested" / "a.png"
        nested_source.parent.mkdir()
        nested_source.write_bytes(b"x" * 10)

        conversion, _ = make_task(
            nested_source,
            FakeTask(EncoderResult(0), write_output=expected),
            settings=settings,
            preserve_root=source.parent,
        )
        assert conversion.out_file == expected
        assert conversion.run().status == JOB_STATUS_SUCCEEDED
        assert expected.parent.is_dir()

    def test_observer_removed_after_run(self, source):
        token = CancellationToken()
        out = source.with_suffix(".avif")
        seen_during_run = []
        fake = FakeTask(
            EncoderResult(0), write_output=out,
            on_result=lambda: seen_during_run.append(token.observer_count),
        )
        conversion, _ = make_task(source, fake, token=token)
        conversion.run()
        assert seen_during_run == [1]
        assert token.observer_count == 0


class TestConversionTaskSkip:
    def test_existing_output_is_skipped_without_encoding(self, source):
        out = source.with_suffix(".avif")
        out.write_bytes(b"old")
        conversion, invoker = make_task(source, FakeTask(EncoderResult(0)))

        outcome = conversion.run()

        assert outcome.status == JOB_STATUS_SKIPPED
        assert outcome.message == f"Skip (exists): {out}"
        invoker.launch.assert_not_called()
        assert out.read_bytes() == b"old"

    def test_overwrite_re_encodes(self, source):
        out = source.with_suffix(".avif")
        out.write_bytes(b"old")
        conversion, invoker = make_task(
            source,
            FakeTask(EncoderResult(0), write_output=out),
            settings=ConversionSettings(overwrite=True),
        )
        assert conversion.run().status == JOB_STATUS_SUCCEEDED
        invoker.launch.assert_called_once()
        assert out.stat().st_size == 400


class TestConversionTaskFailure:
    def test_non_zero_exit_fails_with_diagnostics(self, source, tmp_path):
        sink = RecordingSink()
        error_log = ErrorLog(tmp_path / "logs")
        fake = FakeTask(EncoderResult(1, stdout="", stderr="ERROR: bad header"))
        conversion, _ = make_task(source, fake, sink=sink, error_log=error_log)

        outcome = conversion.run()

        assert outcome.status == JOB_STATUS_FAILED
        assert outcome.message.startswith(f"Failed: {source} (")
        assert "exit code 1" in outcome.message
        assert sink.lines == [f"[avifenc] {source}", "ERROR: bad header"]
        log_text = error_log.log_file_path.read_text(encoding="utf-8")
        assert "ERROR: bad header" in log_text
        assert ErrorLog.linesep_marker in log_text

    def test_launch_failure(self, source):
        sink = RecordingSink()
        fake = FakeTask(
            EncoderResult(LAUNCH_FAILURE_EXIT_CODE, "", "No such file or directory"),
            launched=False,
        )
        conversion, _ = make_task(source, fake, sink=sink)
        outcome = conversion.run()
        assert outcome.status == JOB_STATUS_FAILED
        assert "could not be launched" in outcome.message
        assert "No such file or directory" in sink.lines

    def test_zero_exit_without_output_fails(self, source):
        conversion, _ = make_task(source, FakeTask(EncoderResult(0)))
        outcome = conversion.run()
        assert outcome.status == JOB_STATUS_FAILED
        assert "missing" in outcome.message

    def test_uncreatable_output_directory(self, source, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        conversion, invoker = make_task(
            source, FakeTask(EncoderResult(0)), settings=ConversionSettings(out_dir=blocker / "out")
        )
        outcome = conversion.run()
        assert outcome.status == JOB_STATUS_FAILED
        invoker.launch.assert_not_called()


class TestConversionTaskCancellation:
    def test_cancel_while_running_terminates_and_cleans_up(self, source):
        token = CancellationToken()
        out = source.with_suffix(".avif")
        fake = FakeTask(EncoderResult(-15), write_output=out, on_result=token.cancel)
        conversion, _ = make_task(source, fake, token=token)

        outcome = conversion.run()

        assert outcome.status == JOB_STATUS_CANCELLED
        assert fake.terminated
        assert not out.exists()
        assert token.observer_count == 0

    def test_cancelled_before_launch_does_not_start_encoder(self, source):
        token = CancellationToken()
        token.cancel()
        conversion, invoker = make_task(source, FakeTask(EncoderResult(0)), token=token)

        outcome = conversion.run()

        assert outcome.status == JOB_STATUS_CANCELLED
        invoker.launch.assert_not_called()


class TestFileSize:
    def test_missing_file_is_zero(self, tmp_path):
        assert file_size(tmp_path / "nope") == 0
