"""
Common configuration settings used throughout the application.

This module contains the constants shared across the AVIF Convertor: logging
format, supported file types, encoder defaults and limits, and job status
values. It also loads the optional user configuration from an external YAML
file, so that the location of the encoder and the conversion defaults can be
customized without modifying the source code.
"""
from pathlib import Path
from typing import Any, Dict

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads user-specific settings from a 'config.user.yaml' file located
# at the project root. The file is optional. Recognized sections:
#
#   paths:
#     encoder_dir: /opt/libavif/bin   # searched first for the encoder binary
#   conversion:
#     quality: 20
#     speed: 6
#     ...                             # see config.settings.ConversionSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The raw content of the user configuration file, or an empty dict when the file
# is absent or cannot be parsed.
USER_CONFIG: Dict[str, Any] = {}

# The directory containing the `avifenc` executable. If not provided, the
# encoder is looked up on the (augmented) system PATH.
ENCODER_DIR: Path | None = None

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            loaded_config = yaml.safe_load(f)
        if isinstance(loaded_config, dict):
            USER_CONFIG = loaded_config
            paths_config = USER_CONFIG.get("paths") or {}
            encoder_dir_str = paths_config.get("encoder_dir")
            if encoder_dir_str:
                ENCODER_DIR = Path(encoder_dir_str)
    except Exception as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Using built-in defaults.")


# --- Logging Configuration ---

# The format string for the Loguru logger. Worker threads log concurrently, so
# the thread name is part of every line.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{thread.name} - <level>{message}</level>"
)

# Where the failure summary points the user for encoder diagnostics.
DIAGNOSTICS_HINT = "See the [avifenc] lines above (or error.txt with --error-log-dir) for details."


# --- File Types ---

# Input extensions accepted for conversion. Matching is case-insensitive.
SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".apng")

# The extension of every file written by the encoder.
TARGET_EXTENSION = ".avif"


# --- External Encoder ---

# The name of the external single-file encoder from libavif.
ENCODER_BINARY = "avifenc"

# Conventional package-manager install locations appended to the search path.
# Processes started from a desktop host frequently do not inherit the PATH of an
# interactive shell, which is where Homebrew normally adds itself.
EXTRA_SEARCH_DIRS = (
    "/opt/homebrew/bin",  # Apple Silicon Homebrew
    "/usr/local/bin",  # Intel Homebrew / common
    "/usr/bin",
    "/bin",
)

# The exit code reported when the encoder cannot be launched at all. Shells use
# the same value for "command not found", and avifenc never returns it.
LAUNCH_FAILURE_EXIT_CODE = 127

# Package-manager command used by the optional auto-install step (macOS only).
INSTALL_COMMAND = ("brew", "install", "libavif")
INSTALL_HINT = "Install libavif and try again. macOS: brew install libavif"


# --- Encoding Parameters ---

# avifenc quantizer range: 0 is lossless quality, 63 is the worst quality.
QUALITY_MIN = 0
QUALITY_MAX = 63
DEFAULT_QUALITY = 20

# avifenc speed range: 0 is the slowest/best, 10 is the fastest.
SPEED_MIN = 0
SPEED_MAX = 10
DEFAULT_SPEED = 6


# --- Scheduling ---

# Upper bound on concurrently running encoder processes. avifenc is already
# multi-threaded, so a handful of parallel files saturates most machines.
MAX_CONCURRENCY = 4


# --- Job Status Constants ---
# The four terminal states of a conversion job.

JOB_STATUS_SUCCEEDED = "succeeded"  # The encoder exited 0 and the output was written.
JOB_STATUS_SKIPPED = "skipped"  # The output already existed and overwrite is off.
JOB_STATUS_FAILED = "failed"  # The encoder could not run or exited non-zero.
JOB_STATUS_CANCELLED = "cancelled"  # The run was cancelled while the job was active.

JOB_STATUSES = (
    JOB_STATUS_SUCCEEDED,
    JOB_STATUS_SKIPPED,
    JOB_STATUS_FAILED,
    JOB_STATUS_CANCELLED,
)

# Process exit codes used by the command-line host for each summary shape.
EXIT_CODE_CLEAN = 0
EXIT_CODE_PARTIAL_FAILURE = 1
EXIT_CODE_CANCELLED = 2
EXIT_CODE_PRE_RUN_ERROR = 3
