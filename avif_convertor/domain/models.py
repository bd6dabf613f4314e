"""
Data models for a conversion run.

A run moves three kinds of value objects around:

- `ConversionJob`: one discovered input file, created during discovery and
  consumed exactly once by a worker.
- `JobOutcome`: the terminal result of one job, created by the conversion task
  and consumed by the run aggregator.
- `RunSummary`: the aggregated counts of a finished (or cancelled) run.

All three are immutable once created.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.common import (
    DIAGNOSTICS_HINT,
    EXIT_CODE_CANCELLED,
    EXIT_CODE_CLEAN,
    EXIT_CODE_PARTIAL_FAILURE,
    JOB_STATUSES,
    SUPPORTED_EXTENSIONS,
)


@dataclass(frozen=True)
class ConversionJob:
    """
    A single file scheduled for conversion.

    Attributes:
        input_path: Absolute path of the source image.
        preserve_root: The directory from the original selection under which the
                       file was discovered, or None when the file was selected
                       directly. Used to replicate folder structure under a custom
                       output root.
    """

    input_path: Path
    preserve_root: Optional[Path] = None


@dataclass(frozen=True)
class JobOutcome:
    """
    The terminal result of one conversion job.

    Attributes:
        status: One of the `JOB_STATUS_*` constants.
        message: A human-readable line for the reporting sink.
        input_path: The source image of the job.
        output_path: The resolved output path, when it was computed.
        before_size: Size of the source in bytes (0 when unknown).
        after_size: Size of the written output in bytes, for succeeded jobs.
        reduction: The signed size change text (e.g. "-60.0%"), empty when the
                   source size was unknown.
    """

    status: str
    message: str
    input_path: Path
    output_path: Optional[Path] = None
    before_size: Optional[int] = None
    after_size: Optional[int] = None
    reduction: str = ""

    def __post_init__(self):
        if self.status not in JOB_STATUSES:
            raise ValueError(f"Unknown job status: {self.status!r}")


@dataclass(frozen=True)
class RunSummary:
    """
    Aggregated outcome counts of one run.

    `cancelled` is the run-level flag; `cancelled_jobs` counts the jobs that
    themselves resolved as cancelled (usually the ones in flight when the user
    cancelled).
    """

    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled_jobs: int = 0
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + self.failed + self.cancelled_jobs

    @property
    def level(self) -> str:
        """'warning' for a completed run with failures, 'info' otherwise."""
        if not self.cancelled and self.failed > 0:
            return "warning"
        return "info"

    @property
    def message(self) -> str:
        if self.total == 0 and not self.cancelled:
            names = "/".join(ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS)
            return f"No supported images found ({names})."
        if self.cancelled:
            text = f"AVIF conversion cancelled. {self.succeeded} ok, {self.skipped} skipped"
            if self.failed:
                text += f", {self.failed} failed"
            return text + " before cancel."
        if self.failed > 0:
            return (
                f"AVIF conversion done: {self.succeeded} ok, {self.skipped} skipped, "
                f"{self.failed} failed. {DIAGNOSTICS_HINT}"
            )
        return f"AVIF conversion done: {self.succeeded} ok, {self.skipped} skipped."

    @property
    def exit_code(self) -> int:
        if self.cancelled:
            return EXIT_CODE_CANCELLED
        if self.failed > 0:
            return EXIT_CODE_PARTIAL_FAILURE
        return EXIT_CODE_CLEAN
