"""
Command-Line Interface (CLI) setup for the AVIF Convertor.

This module uses Python's `argparse` to define and parse the command-line
arguments, and layers them over the settings file to build the run's
settings snapshot.
"""
import argparse
from pathlib import Path
from typing import List, Optional

from .config.common import (
    QUALITY_MAX,
    QUALITY_MIN,
    SPEED_MAX,
    SPEED_MIN,
    SUPPORTED_EXTENSIONS,
)
from .config.settings import ConversionSettings, load_settings


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the AVIF Convertor.

    Every conversion option defaults to None so that only flags given on the
    command line override the settings file.

    Args:
        argv: The argument list to parse. Defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments. `paths` holds absolute paths;
                            it defaults to the current working directory.
    """
    parser = argparse.ArgumentParser(
        description=f"Batch convert images ({', '.join(SUPPORTED_EXTENSIONS)}) to AVIF with avifenc."
    )
    parser.add_argument(
        "paths", nargs="*", type=Path,
        help="Files and/or directories to convert. Defaults to the current directory."
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="YAML settings file with a 'conversion' section. Defaults to config.user.yaml."
    )
    parser.add_argument(
        "--quality", type=int, default=None,
        help=f"Quantizer passed as --min/--max ({QUALITY_MIN}-{QUALITY_MAX}, lower is better)."
    )
    parser.add_argument(
        "--speed", type=int, default=None,
        help=f"Encoder speed ({SPEED_MIN}-{SPEED_MAX}, higher is faster)."
    )
    parser.add_argument(
        "--lossless", action="store_true", help="Encode losslessly (ignores --quality)."
    )
    parser.add_argument(
        "--no-recursive", action="store_true", help="Do not descend into subdirectories."
    )
    parser.add_argument(
        "--out-dir", type=Path, default=None,
        help="Output root. Folder structure below selected directories is replicated. "
             "Defaults to writing next to each source image."
    )
    parser.add_argument(
        "--overwrite", action="store_true", help="Re-encode even when the .avif file already exists."
    )
    parser.add_argument(
        "--jobs", type=int, default=None,
        help="Threads per encoder process (avifenc -j). 0 lets avifenc decide."
    )
    parser.add_argument(
        "--no-auto-install", action="store_true",
        help="Never offer to install libavif with Homebrew when avifenc is missing."
    )
    parser.add_argument(
        "--error-log-dir", type=Path, default=None,
        help="Write full diagnostics of failed conversions to error.txt in this directory."
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )

    args = parser.parse_args(argv)

    args.paths = [p.expanduser().resolve() for p in args.paths] or [Path.cwd().resolve()]
    if args.out_dir is not None:
        args.out_dir = args.out_dir.expanduser().resolve()
    return args


def build_settings(args: argparse.Namespace) -> ConversionSettings:
    """
    Builds the settings snapshot: the settings file with command-line overrides.

    Raises:
        InvalidSettingsException: If the file or a flag holds an invalid value.
    """
    base = load_settings(args.config)
    return base.replace(
        quality=args.quality,
        speed=args.speed,
        lossless=True if args.lossless else None,
        recursive=False if args.no_recursive else None,
        out_dir=args.out_dir,
        overwrite=True if args.overwrite else None,
        jobs=args.jobs,
        auto_install=False if args.no_auto_install else None,
    )
