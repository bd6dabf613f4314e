"""
Defines custom exception types for the AVIF Convertor.

These exceptions allow the pipeline to tell apart the two granularities of
failure it cares about:

- Pre-run errors (`DiscoveryException`, `EncoderUnavailableException`,
  `InvalidSettingsException`) abort the whole run before any job starts.
- Per-job errors (`EncodingException` and its subclasses) are raised inside a
  single conversion task and converted into a failed outcome there. They never
  stop sibling jobs.

Skipping an existing output and user cancellation are not errors and have no
exception type; they are reported as job outcomes.

All custom exceptions inherit from the base `AvifConvertorException`.
"""
from pathlib import Path
from typing import Optional


class AvifConvertorException(Exception):
    """Base class for all custom exceptions in the AVIF Convertor."""

    pass


class InvalidSettingsException(AvifConvertorException):
    """
    Raised when a configuration value is outside its allowed range.

    For example a quality of 70 (the encoder accepts 0-63) or a negative
    thread count. Settings are validated once, when the snapshot is built.
    """

    pass


# --- Pre-run Exceptions ---
class DiscoveryException(AvifConvertorException):
    """
    Raised when a selected entry, or a directory below it, cannot be inspected.

    Discovery is fail-fast: one unreadable entry aborts the whole batch before
    any conversion work begins, so the user never gets a partial run over a
    selection they did not fully see.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read '{path}': {reason}")


class EncoderUnavailableException(AvifConvertorException):
    """
    Raised when the encoder binary cannot be run and cannot be installed.

    This covers a missing binary on platforms without an install path, a
    declined install prompt, a failed install, and a binary that still does
    not run after installing.
    """

    pass


# --- Per-job Encoding Exceptions ---
class EncodingException(AvifConvertorException):
    """
    Base class for failures of a single encoder invocation.

    Carries the `EncoderResult` of the failed run so that the captured output
    can be forwarded to the diagnostics sink.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class EncoderLaunchException(EncodingException):
    """Raised when the encoder process could not be started at all."""

    pass


class EncoderExitException(EncodingException):
    """Raised when the encoder ran but exited with a non-zero status."""

    @property
    def exit_code(self) -> Optional[int]:
        return self.result.exit_code if self.result is not None else None
