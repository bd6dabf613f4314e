"""
Launches the external `avifenc` encoder.

The invoker is the only place that knows the encoder's command line. It builds
the argument list from the settings snapshot, looks the binary up on an
augmented search path, and starts one subprocess per file. Each started process
is wrapped in an `EncoderTask`, a cancellable handle with a blocking `result()`
and an idempotent `terminate()`.
"""
import os
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..config.common import (
    ENCODER_BINARY,
    ENCODER_DIR,
    EXTRA_SEARCH_DIRS,
    LAUNCH_FAILURE_EXIT_CODE,
)
from ..config.settings import ConversionSettings
from ..utils.process_utils import display_command, run_cmd


@dataclass(frozen=True)
class EncoderResult:
    """Exit status and captured output streams of one encoder run."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def diagnostics(self) -> str:
        """The error stream, or the output stream when the error stream is empty."""
        return self.stderr or self.stdout


def build_search_path(existing: str, extra_dirs: Sequence[str], prepend: Sequence[str] = ()) -> str:
    """
    Extends a PATH string with extra directories.

    Entries already present are kept in place and never duplicated; nothing is
    removed. `prepend` directories go in front (searched first), `extra_dirs`
    are appended.

    Args:
        existing: The current PATH value (may be empty).
        extra_dirs: Directories to append when missing.
        prepend: Directories to put in front when missing.

    Returns:
        The combined search path, joined with `os.pathsep`.
    """
    parts = existing.split(os.pathsep) if existing else []
    front = [d for d in prepend if d and d not in parts]
    parts = front + parts
    for directory in extra_dirs:
        if directory not in parts:
            parts.append(directory)
    return os.pathsep.join(parts)


class EncoderTask:
    """
    A handle on one running encoder process.

    The process is started by the constructor. A failure to start (missing
    binary, permission denied) is not raised; `result()` reports it with the
    reserved launch-failure exit code and the error text on the error stream.
    """

    def __init__(self, cmd: List[str], env: Optional[Dict[str, str]] = None):
        self.cmd = cmd
        self._process: Optional[subprocess.Popen] = None
        self._launch_error: Optional[OSError] = None
        self._result: Optional[EncoderResult] = None
        self._result_lock = threading.Lock()

        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
                shell=False,
            )
            logger.debug(f"Started encoder (pid {self._process.pid}): {display_command(cmd)}")
        except OSError as e:
            self._launch_error = e
            logger.debug(f"Could not launch encoder '{cmd[0]}': {e}")

    @property
    def launched(self) -> bool:
        return self._process is not None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    def result(self) -> EncoderResult:
        """Blocks until the process exits and returns its result. Safe to call repeatedly."""
        with self._result_lock:
            if self._result is None:
                if self._process is None:
                    self._result = EncoderResult(
                        LAUNCH_FAILURE_EXIT_CODE, "", str(self._launch_error)
                    )
                else:
                    stdout, stderr = self._process.communicate()
                    self._result = EncoderResult(
                        self._process.returncode, stdout or "", stderr or ""
                    )
            return self._result

    def terminate(self) -> bool:
        """
        Asks the process to exit with SIGTERM (TerminateProcess on Windows).

        Returns:
            True if a signal was sent, False if there was nothing to terminate
            (never launched, or already exited).
        """
        process = self._process
        if process is None or process.poll() is not None:
            return False
        try:
            process.terminate()
        except OSError as e:
            # The process exited between poll() and terminate().
            logger.debug(f"Encoder pid {process.pid} already gone: {e}")
            return False
        logger.debug(f"Sent terminate to encoder pid {process.pid}")
        return True


class EncoderInvoker:
    """
    Builds encoder command lines and starts encoder processes.

    Args:
        binary: Name or path of the encoder executable.
        encoder_dir: A directory searched before everything else, typically from
                     `paths.encoder_dir` in the user config.
        extra_search_dirs: Package-manager locations appended to PATH.
    """

    def __init__(
        self,
        binary: str = ENCODER_BINARY,
        encoder_dir: Optional[Path] = ENCODER_DIR,
        extra_search_dirs: Sequence[str] = EXTRA_SEARCH_DIRS,
    ):
        self.binary = binary
        self.encoder_dir = encoder_dir
        self.extra_search_dirs = tuple(extra_search_dirs)

    def search_path(self) -> str:
        prepend = (str(self.encoder_dir),) if self.encoder_dir else ()
        return build_search_path(os.environ.get("PATH", ""), self.extra_search_dirs, prepend)

    def environment(self) -> Dict[str, str]:
        """A copy of the current environment with the augmented PATH."""
        env = os.environ.copy()
        env["PATH"] = self.search_path()
        return env

    def resolve_binary(self) -> str:
        """The full path of the encoder when found on the search path, else its bare name."""
        return shutil.which(self.binary, path=self.search_path()) or self.binary

    @staticmethod
    def build_args(input_file: Path, output_file: Path, settings: ConversionSettings) -> List[str]:
        """
        Builds the avifenc argument list for one file.

        Lossless mode emits `--lossless`; otherwise the quantizer range is pinned
        to the configured quality (`--min Q --max Q`). Speed is always emitted,
        the thread count only when it is set. The input and output paths come
        last, in that order.
        """
        args: List[str] = []
        if settings.lossless:
            args.append("--lossless")
        else:
            args.extend(["--min", str(settings.quality), "--max", str(settings.quality)])
        args.extend(["--speed", str(settings.speed)])
        if settings.jobs > 0:
            args.extend(["-j", str(settings.jobs)])
        args.extend([str(input_file), str(output_file)])
        return args

    def launch(self, input_file: Path, output_file: Path, settings: ConversionSettings) -> EncoderTask:
        cmd = [self.resolve_binary()] + self.build_args(input_file, output_file, settings)
        return EncoderTask(cmd, env=self.environment())

    def check_version(self) -> EncoderResult:
        """Runs `avifenc --version`. A missing binary yields the launch-failure exit code."""
        res = run_cmd([self.resolve_binary(), "--version"], env=self.environment(), show_cmd=True)
        if res is None:
            return EncoderResult(
                LAUNCH_FAILURE_EXIT_CODE, "", f"{self.binary}: command not found"
            )
        return EncoderResult(res.returncode, res.stdout or "", res.stderr or "")
