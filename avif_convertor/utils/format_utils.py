"""
This module contains helper functions for formatting data into human-readable strings.
These functions are used throughout the application, particularly in per-file
result lines and logging, to present sizes, size changes and durations in a
clear and consistent way.
"""

from datetime import timedelta
from pathlib import Path
from typing import Iterable


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Args:
        td_object: The timedelta object to format.

    Returns:
        A string representing the timedelta in HH:MM:SS format.
        For example, a timedelta of 7261 seconds becomes "02:01:01".
        Returns "00:00:00" if the input is not a valid timedelta object.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    Args:
        size_bytes: The size of the file in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 1536 becomes "1.50 KB", and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{size_bytes} {unit}"
            else:
                # Clean up ".00" for whole numbers (e.g., "2.00 MB" -> "2 MB").
                return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")


def size_reduction_text(before: int, after: int) -> str:
    """
    Describes the size change from `before` to `after` as a signed percentage.

    The percentage is `(before - after) / before * 100`. A smaller output is an
    improvement and is shown with a minus sign (the file lost that share of its
    size); a larger output is shown with a plus sign.

    Examples:
        size_reduction_text(1000, 400)  -> "-60.0%"
        size_reduction_text(1000, 1200) -> "+20.0%"
        size_reduction_text(0, 400)     -> ""

    Args:
        before: Source size in bytes. Zero or negative means "unknown".
        after: Output size in bytes.

    Returns:
        The signed percentage with one decimal, or an empty string when the
        source size is unknown.
    """
    if not before or before <= 0:
        return ""
    pct = (before - after) / before * 100
    sign = "-" if pct >= 0 else "+"
    return f"{sign}{abs(pct):.1f}%"


def contains_any_extensions(file_path_obj: Path, extensions_to_check: Iterable[str]) -> bool:
    """
    Checks if a file's extension is present in a given list (case-insensitive).

    Args:
        file_path_obj: A `pathlib.Path` object for the file to check.
        extensions_to_check: File extensions, with or without the leading dot
                             (e.g., [".png", "jpg"]).

    Returns:
        True if the file's extension is in the list, False otherwise.
    """
    normalized_extensions = {
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in extensions_to_check
    }
    if not normalized_extensions:
        return False
    return file_path_obj.suffix.lower() in normalized_extensions
