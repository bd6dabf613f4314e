"""
Turns a selection of files and directories into a flat list of conversion jobs.

Selected files are taken as-is when their extension is supported. Selected
directories are scanned (recursively when enabled) for supported files, and
every file found under a directory remembers that directory as its preserve
root so the folder structure can be replicated under an output root.

Discovery is fail-fast: any selected entry, or directory below it, that cannot
be read raises `DiscoveryException` and no job is produced for the batch.
"""

import os
import stat
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple, Union

from loguru import logger

from ..config.common import SUPPORTED_EXTENSIONS
from ..domain.exceptions import DiscoveryException
from ..domain.models import ConversionJob
from ..utils.format_utils import contains_any_extensions

PathLike = Union[str, os.PathLike]


def is_supported_file(path: Path) -> bool:
    """True if the file has one of the supported image extensions (case-insensitive)."""
    return contains_any_extensions(path, SUPPORTED_EXTENSIONS)


def _absolute(path: PathLike) -> Path:
    # abspath normalizes "..", but unlike resolve() it keeps symlinked names intact.
    return Path(os.path.abspath(os.fspath(path)))


def _reason(error: OSError) -> str:
    return error.strerror or str(error)


def _walk_directory(directory: Path, recursive: bool) -> Iterator[Path]:
    """
    Yields supported regular files inside `directory` in sorted name order.

    Symbolic links inside the directory are neither followed nor returned, which
    also keeps recursion from looping through a link to an ancestor.
    """
    try:
        with os.scandir(directory) as scanner:
            entries = sorted(scanner, key=lambda e: e.name)
    except OSError as e:
        raise DiscoveryException(directory, _reason(e)) from e

    for entry in entries:
        try:
            if entry.is_symlink():
                logger.trace(f"Not following symlink {entry.path}")
                continue
            if entry.is_dir(follow_symlinks=False):
                if recursive:
                    yield from _walk_directory(Path(entry.path), recursive)
                continue
            if entry.is_file(follow_symlinks=False) and is_supported_file(Path(entry.name)):
                yield Path(entry.path)
        except OSError as e:
            raise DiscoveryException(Path(entry.path), _reason(e)) from e


def iter_discovered_files(selection: Iterable[PathLike], recursive: bool) -> Iterator[ConversionJob]:
    """
    Lazily expands a selection into conversion jobs.

    Args:
        selection: Files and/or directories, in the order the user selected them.
                   Relative paths are made absolute against the working directory.
        recursive: Whether to descend into subdirectories of selected directories.

    Yields:
        One `ConversionJob` per unique file. A file reachable through several
        selected entries (e.g. selected directly and via its folder) is yielded
        once, with the preserve root of the first entry that reached it.

    Raises:
        DiscoveryException: If a selected entry cannot be stat'ed or a directory
                            cannot be listed.
    """
    seen: Set[Path] = set()
    for entry in selection:
        path = _absolute(entry)
        try:
            st = path.stat()
        except OSError as e:
            raise DiscoveryException(path, _reason(e)) from e

        candidates: Iterable[Tuple[Path, Optional[Path]]]
        if stat.S_ISDIR(st.st_mode):
            candidates = ((file_path, path) for file_path in _walk_directory(path, recursive))
        elif stat.S_ISREG(st.st_mode):
            if not is_supported_file(path):
                logger.debug(f"Skipping unsupported file: {path.name}")
                continue
            candidates = ((path, None),)
        else:
            logger.debug(f"Skipping {path}: neither a regular file nor a directory.")
            continue

        for file_path, preserve_root in candidates:
            if file_path in seen:
                logger.trace(f"Already discovered: {file_path}")
                continue
            seen.add(file_path)
            yield ConversionJob(input_path=file_path, preserve_root=preserve_root)


def discover_files(selection: Iterable[PathLike], recursive: bool) -> List[ConversionJob]:
    """
    Expands a selection into a list of conversion jobs.

    The whole selection is walked before returning, so that a discovery error
    surfaces before any conversion work starts.
    """
    jobs = list(iter_discovered_files(selection, recursive))
    logger.debug(f"Discovered {len(jobs)} convertible file(s).")
    return jobs
