"""
Computes where the AVIF file for an input image is written.

Three layouts are supported:

- No output root: the AVIF file is written next to its source (in place).
- Output root, file selected directly: written flat into the output root.
- Output root, file found under a selected directory: written under the output
  root at the same relative location it had under that directory.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config.common import TARGET_EXTENSION


@dataclass(frozen=True)
class ResolvedOutput:
    out_file: Path
    out_dir: Path  # must exist before the encoder writes out_file


def resolve_output_path(
    input_file: Path,
    out_dir: Optional[Path],
    preserve_root: Optional[Path],
) -> ResolvedOutput:
    """
    Maps an input file to its output file and the directory to create.

    Pure computation: the filesystem is not touched and nothing is validated.
    Unrepresentable paths surface later as filesystem errors of the job.

    Args:
        input_file: The source image.
        out_dir: The output root, or None for in-place output.
        preserve_root: The selected directory the file was discovered under, or
                       None for a directly selected file.

    Returns:
        The output file and its parent directory.
    """
    base_name = input_file.stem + TARGET_EXTENSION

    if not out_dir:
        target_dir = input_file.parent
    elif preserve_root is None:
        target_dir = Path(out_dir)
    else:
        relative = os.path.relpath(input_file.parent, preserve_root)
        target_dir = Path(os.path.normpath(Path(out_dir) / relative))

    return ResolvedOutput(out_file=target_dir / base_name, out_dir=target_dir)
