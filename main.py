"""
Main entry point for the AVIF Convertor.

This script configures logging, parses command-line arguments, builds the
settings snapshot and runs the batch conversion pipeline over the given files
and directories. The process exit status reflects the run's summary.
"""

import sys

from loguru import logger

from avif_convertor.cli import build_settings, get_args
from avif_convertor.config.common import (
    EXIT_CODE_CANCELLED,
    EXIT_CODE_PRE_RUN_ERROR,
    LOGGER_FORMAT,
)
from avif_convertor.domain.exceptions import AvifConvertorException
from avif_convertor.pipeline.batch_pipeline import BatchConversionPipeline
from avif_convertor.services.logging_service import ErrorLog


# Configure the logger for initial setup.
# The level is overridden once the command-line arguments are parsed.
logger.remove()
logger.add(sys.stderr, level="INFO", format=LOGGER_FORMAT)


def main() -> int:
    """
    Runs one batch conversion and returns the process exit status.

    This function performs the following steps:
    1. Parses command-line arguments and re-configures the logger.
    2. Builds the settings snapshot from the settings file and the flags.
    3. Runs the pipeline over the selected paths.
    4. Maps the run summary to an exit status (0 clean, 1 some failures,
       2 cancelled, 3 the run could not start).
    """
    args = get_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    try:
        settings = build_settings(args)
        error_log = ErrorLog(args.error_log_dir) if args.error_log_dir else None
        pipeline = BatchConversionPipeline(settings, error_log=error_log)
        summary = pipeline.run(args.paths)
    except AvifConvertorException as e:
        logger.error(str(e))
        return EXIT_CODE_PRE_RUN_ERROR
    except OSError as e:
        logger.error(f"Could not start the conversion: {e}")
        return EXIT_CODE_PRE_RUN_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted before the conversion started.")
        return EXIT_CODE_CANCELLED

    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
