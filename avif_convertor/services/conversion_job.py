"""
Converts one image to AVIF.

`ConversionTask` drives a single `ConversionJob` through its life:

    pending -> skipped                          (output exists, overwrite off)
    pending -> preparing -> running -> succeeded | failed | cancelled

Preparing creates the output directory and records the source size. Running
starts the encoder and, for as long as the process lives, keeps a cancellation
observer registered on the run's shared token so that a cancel request
terminates the process. The observer is removed on every exit path.

Every path ends in a `JobOutcome`; per-file problems never raise out of `run()`.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import (
    ENCODER_BINARY,
    JOB_STATUS_CANCELLED,
    JOB_STATUS_FAILED,
    JOB_STATUS_SKIPPED,
    JOB_STATUS_SUCCEEDED,
)
from ..config.settings import ConversionSettings
from ..domain.cancellation import CancellationToken
from ..domain.exceptions import EncoderExitException, EncoderLaunchException, EncodingException
from ..domain.models import ConversionJob, JobOutcome
from ..utils.format_utils import formatted_size, size_reduction_text
from ..utils.process_utils import display_command
from .encoder_invoker import EncoderInvoker, EncoderResult, EncoderTask
from .logging_service import ErrorLog, ReportSink
from .path_resolver import resolve_output_path


def file_size(path: Path) -> int:
    """Size of `path` in bytes, or 0 when it cannot be read."""
    try:
        return path.stat().st_size
    except OSError:
        return 0


class ConversionTask:
    """
    Handles the end-to-end conversion of a single image.

    Attributes:
        job: The file to convert and its preserve root.
        settings: The run's settings snapshot.
        cancel_token: The run's shared cancellation signal.
        invoker: Starts the encoder process.
        sink: Receives encoder diagnostics of failed runs.
        error_log: Optional file collecting the same diagnostics.
        out_file: The resolved output path.
        out_dir: The directory created before encoding.
    """

    def __init__(
        self,
        job: ConversionJob,
        settings: ConversionSettings,
        cancel_token: CancellationToken,
        invoker: EncoderInvoker,
        sink: Optional[ReportSink] = None,
        error_log: Optional[ErrorLog] = None,
    ):
        self.job = job
        self.settings = settings
        self.cancel_token = cancel_token
        self.invoker = invoker
        self.sink = sink or ReportSink()
        self.error_log = error_log

        resolved = resolve_output_path(job.input_path, settings.out_dir, job.preserve_root)
        self.out_file = resolved.out_file
        self.out_dir = resolved.out_dir

    @property
    def input_file(self) -> Path:
        return self.job.input_path

    def run(self) -> JobOutcome:
        if not self.settings.overwrite and self.out_file.exists():
            logger.debug(f"Output exists, skipping: {self.out_file}")
            return self._outcome(JOB_STATUS_SKIPPED, f"Skip (exists): {self.out_file}")

        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create output directory {self.out_dir}: {e}")
            return self._outcome(
                JOB_STATUS_FAILED, f"Failed: {self.input_file} (cannot create {self.out_dir}: {e})"
            )

        before_size = file_size(self.input_file)

        # Claimed just before the user cancelled: do not start an encoder at all.
        if self.cancel_token.is_cancelled:
            return self._outcome(JOB_STATUS_CANCELLED, f"Cancelled: {self.input_file}")

        task = self.invoker.launch(self.input_file, self.out_file, self.settings)
        handle = self.cancel_token.register(task.terminate)
        try:
            result = task.result()
        finally:
            self.cancel_token.unregister(handle)

        if self.cancel_token.is_cancelled:
            self._remove_partial_output()
            return self._outcome(
                JOB_STATUS_CANCELLED, f"Cancelled: {self.input_file}", before_size=before_size
            )

        try:
            self._check_result(task, result)
        except EncodingException as enc_ex:
            self._report_failure(task, enc_ex)
            return self._outcome(
                JOB_STATUS_FAILED,
                f"Failed: {self.input_file} ({enc_ex})",
                before_size=before_size,
            )

        after_size = file_size(self.out_file)
        reduction = size_reduction_text(before_size, after_size)
        sizes = f"{formatted_size(before_size)} -> {formatted_size(after_size)}"
        if reduction:
            sizes = f"{sizes} {reduction}"
        return self._outcome(
            JOB_STATUS_SUCCEEDED,
            f"{self.input_file.name} -> {self.out_file.name}  ({sizes})",
            before_size=before_size,
            after_size=after_size,
            reduction=reduction,
        )

    def _check_result(self, task: EncoderTask, result: EncoderResult):
        if not task.launched:
            raise EncoderLaunchException(
                f"{ENCODER_BINARY} could not be launched, exit code {result.exit_code}", result
            )
        if result.exit_code != 0:
            raise EncoderExitException(f"exit code {result.exit_code}", result)
        if not self.out_file.exists():
            raise EncoderExitException(
                f"{ENCODER_BINARY} reported success but {self.out_file.name} is missing", result
            )

    def _report_failure(self, task: EncoderTask, enc_ex: EncodingException):
        result: EncoderResult = enc_ex.result
        logger.warning(f"Encoding failed for {self.input_file.name}: {enc_ex}")

        self.sink.append_line(f"[{ENCODER_BINARY}] {self.input_file}")
        diagnostics = result.diagnostics.rstrip() if result is not None else ""
        if diagnostics:
            self.sink.append_line(diagnostics)

        if self.error_log is not None:
            self.error_log.write(
                f"Failed command: {display_command(task.cmd)}",
                f"Original file: {self.input_file}",
                f"Output file: {self.out_file}",
                f"Error: {enc_ex}",
                f"Stdout: {result.stdout if result is not None else ''}",
                f"Stderr: {result.stderr if result is not None else ''}",
            )

    def _remove_partial_output(self):
        try:
            self.out_file.unlink(missing_ok=True)
            logger.debug(f"Removed partial output: {self.out_file}")
        except OSError as e:
            logger.warning(f"Could not remove partial output {self.out_file}: {e}")

    def _outcome(self, status: str, message: str, **sizes) -> JobOutcome:
        return JobOutcome(
            status=status,
            message=message,
            input_path=self.input_file,
            output_path=self.out_file,
            **sizes,
        )
