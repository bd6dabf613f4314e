"""
This module provides the EncoderSetup class to verify, and on macOS optionally
install, the external `avifenc` encoder before a batch run starts.
"""
import sys
from typing import Callable, Optional

from loguru import logger

from ..config.common import ENCODER_BINARY, INSTALL_COMMAND, INSTALL_HINT
from ..domain.exceptions import EncoderUnavailableException
from ..services.encoder_invoker import EncoderInvoker
from .process_utils import display_command, run_cmd


def ask_on_console(question: str) -> bool:
    """Asks a yes/no question on stdin. Anything but y/yes (or EOF) means no."""
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


class EncoderSetup:
    """
    Makes sure the encoder can run before any file is dispatched.

    The flow is a one-shot sequence: detect, and when the encoder is missing on
    macOS with auto-install enabled, prompt, install with Homebrew, and detect
    again. Every dead end raises `EncoderUnavailableException`, which aborts the
    run before any job starts.

    Args:
        invoker: The invoker whose binary and search path are checked.
        confirm: Called with the install question; returns True to install.
                 Defaults to a console prompt.
        platform: Overrides `sys.platform`, for tests.
    """

    def __init__(
        self,
        invoker: EncoderInvoker,
        confirm: Optional[Callable[[str], bool]] = None,
        platform: Optional[str] = None,
    ):
        self.invoker = invoker
        self.confirm = confirm or ask_on_console
        self.platform = platform or sys.platform

    @property
    def is_mac(self) -> bool:
        return self.platform == "darwin"

    def is_available(self) -> bool:
        """Runs `avifenc --version` and logs the first line of its output on success."""
        check = self.invoker.check_version()
        if check.ok:
            first_line = (check.stdout or check.stderr).strip().splitlines()
            logger.info(
                f"{ENCODER_BINARY} version check successful: {first_line[0] if first_line else 'OK'}"
            )
            return True
        logger.debug(f"{ENCODER_BINARY} version check failed (rc={check.exit_code}): {check.diagnostics}")
        return False

    def install(self) -> bool:
        """Installs libavif with Homebrew, streaming the installer output to the log."""
        cmd = list(INSTALL_COMMAND)
        logger.info(f"Installing libavif via Homebrew: {display_command(cmd)}")
        res = run_cmd(cmd, env=self.invoker.environment(), show_cmd=True)
        if res is None:
            logger.error("Homebrew not found. Install it from https://brew.sh or install libavif manually.")
            return False
        for line in (res.stdout + res.stderr).splitlines():
            logger.info(f"[brew] {line}")
        if res.returncode != 0:
            logger.error(f"Homebrew install failed (return code {res.returncode}).")
            return False
        return True

    def ensure_available(self, auto_install: bool):
        """
        Verifies the encoder, installing it when allowed.

        Args:
            auto_install: Whether the Homebrew install may be offered on macOS.

        Raises:
            EncoderUnavailableException: If the encoder cannot be made to run.
        """
        if self.is_available():
            return

        if not self.is_mac or not auto_install:
            raise EncoderUnavailableException(f"Could not find '{ENCODER_BINARY}' (libavif). {INSTALL_HINT}")

        question = f"Could not find '{ENCODER_BINARY}'. Install via Homebrew now? ({display_command(list(INSTALL_COMMAND))})"
        if not self.confirm(question):
            raise EncoderUnavailableException(f"'{ENCODER_BINARY}' is not installed and the install was declined.")

        if not self.install():
            raise EncoderUnavailableException("Homebrew install failed. See the log for details.")

        if not self.is_available():
            raise EncoderUnavailableException(
                f"Installed libavif but still can't run '{ENCODER_BINARY}'. See the log for details."
            )
