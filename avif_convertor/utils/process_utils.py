"""
This module provides a helper for running short external commands.

It is used for one-shot commands whose output is needed in full before moving
on, such as the encoder version check and the package-manager install. The
long-running, cancellable encoder invocations of a batch run go through
`services.encoder_invoker` instead.
"""

import os
import shlex
import subprocess
from typing import List, Mapping, Optional

from loguru import logger


def display_command(cmd_list: List[str]) -> str:
    """Quotes a command list into a single string suitable for logs."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def run_cmd(
    cmd_list: List[str],
    env: Optional[Mapping[str, str]] = None,
    show_cmd: bool = False,
) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    This is a wrapper around Python's `subprocess.run` that adds logging and
    turns "executable not found" into a `None` result instead of an exception.

    Args:
        cmd_list: The command to execute as a list of arguments. The command is
                  never run through a shell.
        env: The environment for the child process. Defaults to the current
             environment.
        show_cmd: If True, the command is logged at DEBUG level before execution.

    Returns:
        A `subprocess.CompletedProcess` object containing the return code,
        stdout, and stderr. Returns `None` if the command fails to start (e.g.,
        the executable does not exist).
    """
    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    display_cmd_str = display_command(cmd_list)
    if show_cmd:
        logger.debug(f"Executing command: {display_cmd_str}")

    try:
        result = subprocess.run(
            cmd_list,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=dict(env) if env is not None else None,
            shell=False,
        )
    except FileNotFoundError:
        logger.debug(f"Command not found: '{cmd_list[0]}'")
        return None
    except OSError as e:
        logger.error(f"Could not execute '{display_cmd_str}': {e}")
        return None

    if result.stdout:
        logger.trace(f"Command stdout: {result.stdout[:500]}")
    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (rc={result.returncode}): {result.stderr}")
    return result
