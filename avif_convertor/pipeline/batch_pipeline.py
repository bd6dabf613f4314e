"""
The batch conversion pipeline.

`BatchConversionPipeline.run()` takes a selection of files and directories and
drives it through one run:

1. Make sure the encoder can run (optionally installing it on macOS).
2. Expand the selection into an ordered list of unique jobs.
3. Run the jobs on a bounded worker pool, counting each outcome.
4. Report the summary.

Steps 1 and 2 are pre-run: their failures raise and no job is started. From
step 3 on, per-file problems become failed outcomes and never abort the batch.
"""
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger

from ..config.common import JOB_STATUS_FAILED
from ..config.settings import ConversionSettings
from ..domain.cancellation import CancellationToken
from ..domain.models import ConversionJob, JobOutcome, RunSummary
from ..services.conversion_job import ConversionTask
from ..services.encoder_invoker import EncoderInvoker
from ..services.file_discovery import discover_files
from ..services.logging_service import ErrorLog, LoguruReportSink, ReportSink
from ..utils.encoder_setup import EncoderSetup
from ..utils.format_utils import format_timedelta
from .aggregator import RunAggregator
from .worker_pool import WorkerPool, compute_concurrency


class BatchConversionPipeline:
    """
    Orchestrates one batch conversion over a user selection.

    The settings are a snapshot taken before the run; the pipeline passes them
    to every job and never re-reads configuration.

    Args:
        settings: The run's settings snapshot.
        invoker: Starts encoder processes. Defaults to `EncoderInvoker()`.
        sink: Receives job lines, progress and the summary. Defaults to
              `LoguruReportSink()`.
        cancel_token: The run's cancellation signal. A fresh token is created
                      when omitted; `cancel()` fires it.
        error_log: Optional file collecting full failure diagnostics.
        encoder_setup: Verifies (and installs) the encoder before the run.
                       Defaults to `EncoderSetup(invoker)`.
    """

    def __init__(
        self,
        settings: ConversionSettings,
        invoker: Optional[EncoderInvoker] = None,
        sink: Optional[ReportSink] = None,
        cancel_token: Optional[CancellationToken] = None,
        error_log: Optional[ErrorLog] = None,
        encoder_setup: Optional[EncoderSetup] = None,
    ):
        self.settings = settings
        self.invoker = invoker or EncoderInvoker()
        self.sink = sink or LoguruReportSink()
        self.cancel_token = cancel_token or CancellationToken()
        self.error_log = error_log
        self.encoder_setup = encoder_setup or EncoderSetup(self.invoker)

    def cancel(self):
        """Requests cancellation of the run. Safe to call from any thread, more than once."""
        if not self.cancel_token.is_cancelled:
            logger.info("Cancellation requested.")
        self.cancel_token.cancel()

    def run(self, selection: Iterable[Union[str, Path]]) -> RunSummary:
        """
        Converts every supported image in the selection.

        Args:
            selection: Files and directories chosen by the user.

        Returns:
            The summary of the run.

        Raises:
            EncoderUnavailableException: If the encoder cannot be made to run.
            DiscoveryException: If an entry of the selection cannot be read.
        """
        start_time = datetime.now()

        self.encoder_setup.ensure_available(self.settings.auto_install)

        jobs = discover_files(selection, self.settings.recursive)
        if not jobs:
            summary = RunSummary(total=0, cancelled=self.cancel_token.is_cancelled)
            self.sink.show_summary(summary)
            return summary

        concurrency = compute_concurrency(len(jobs))
        logger.info(f"Converting {len(jobs)} file(s) to AVIF with {concurrency} worker(s).")
        logger.debug(f"Settings: {self.settings}")

        aggregator = RunAggregator(len(jobs), self.sink)
        pool = WorkerPool(
            jobs,
            partial(self._process_job, aggregator),
            self.cancel_token,
            concurrency,
        )
        claimed = pool.run()

        summary = aggregator.summary(cancelled=self.cancel_token.is_cancelled)
        elapsed = format_timedelta(datetime.now() - start_time)
        logger.debug(f"{claimed} of {len(jobs)} job(s) claimed, {aggregator.recorded} recorded.")
        logger.info(f"Processed {summary.processed} of {summary.total} file(s) in {elapsed}.")
        self.sink.show_summary(summary)
        return summary

    def _process_job(self, aggregator: RunAggregator, index: int, job: ConversionJob) -> JobOutcome:
        aggregator.report_progress(index, job)
        try:
            task = ConversionTask(
                job,
                self.settings,
                self.cancel_token,
                self.invoker,
                sink=self.sink,
                error_log=self.error_log,
            )
            outcome = task.run()
        except Exception as e:
            logger.exception(f"Unexpected error while converting {job.input_path.name}")
            outcome = JobOutcome(
                status=JOB_STATUS_FAILED,
                message=f"Failed: {job.input_path} ({type(e).__name__}: {e})",
                input_path=job.input_path,
            )
        aggregator.record(outcome)
        return outcome
