"""
The per-run settings snapshot.

`ConversionSettings` is read once when a run starts and passed explicitly to
every job. Nothing in the pipeline reads configuration from global state after
that point, so editing the settings file mid-run never affects queued or
in-flight jobs.
"""
import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from loguru import logger

from ..domain.exceptions import InvalidSettingsException
from .common import (
    DEFAULT_QUALITY,
    DEFAULT_SPEED,
    QUALITY_MAX,
    QUALITY_MIN,
    SPEED_MAX,
    SPEED_MIN,
    USER_CONFIG,
)

# Name of the YAML section holding conversion defaults.
SETTINGS_SECTION = "conversion"

_INT_FIELDS = ("quality", "speed", "jobs")
_BOOL_FIELDS = ("lossless", "recursive", "overwrite", "auto_install")

# Spellings accepted for flags coming from a settings store as text.
_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0")


def _parse_int(key: str, value: Any) -> int:
    """Reads a whole number. Bools and fractional floats are rejected, not truncated."""
    if isinstance(value, bool):
        raise InvalidSettingsException(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidSettingsException(f"{key} must be an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidSettingsException(f"{key} must be an integer, got {value!r}")


def _parse_bool(key: str, value: Any) -> bool:
    """Reads a flag: a real bool, 0/1, or one of the true/false words (any case)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise InvalidSettingsException(f"{key} must be true or false, got {value!r}")


@dataclass(frozen=True)
class ConversionSettings:
    """
    Immutable conversion options for one run.

    Attributes:
        quality: Constant quantizer passed as both `--min` and `--max` (0-63,
                 lower is better).
        speed: Encoder speed preset (0-10, higher is faster).
        lossless: Emit `--lossless` instead of a quantizer range.
        recursive: Descend into subdirectories of selected folders.
        out_dir: Output root. None converts in place, next to each source.
        overwrite: Re-encode even when the output file already exists.
        jobs: Thread count passed to the encoder with `-j`; 0 leaves it to the
              encoder's own default.
        auto_install: Offer to install libavif with Homebrew on macOS when the
                      encoder is missing.
    """

    quality: int = DEFAULT_QUALITY
    speed: int = DEFAULT_SPEED
    lossless: bool = False
    recursive: bool = True
    out_dir: Optional[Path] = None
    overwrite: bool = False
    jobs: int = 0
    auto_install: bool = True

    def __post_init__(self):
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSettingsException(f"{name} must be an integer, got {value!r}")
        for name in _BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise InvalidSettingsException(f"{name} must be true or false, got {value!r}")
        if not QUALITY_MIN <= self.quality <= QUALITY_MAX:
            raise InvalidSettingsException(
                f"quality must be between {QUALITY_MIN} and {QUALITY_MAX}, got {self.quality}"
            )
        if not SPEED_MIN <= self.speed <= SPEED_MAX:
            raise InvalidSettingsException(
                f"speed must be between {SPEED_MIN} and {SPEED_MAX}, got {self.speed}"
            )
        if self.jobs < 0:
            raise InvalidSettingsException(f"jobs must be >= 0, got {self.jobs}")
        # An empty string from a settings store means "convert in place".
        if self.out_dir is not None and not isinstance(self.out_dir, Path):
            object.__setattr__(self, "out_dir", Path(self.out_dir) if str(self.out_dir) else None)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "ConversionSettings":
        """
        Builds settings from a plain mapping such as a parsed YAML section.

        Missing keys fall back to the defaults and unknown keys are ignored
        (with a debug message), so older or newer settings files still load.

        Raises:
            InvalidSettingsException: If a value has the wrong type or is out
                                      of range.
        """
        if not mapping:
            return cls()
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            logger.debug(f"Ignoring unknown settings keys: {unknown}")

        values = {}
        for key in _INT_FIELDS:
            if mapping.get(key) is not None:
                values[key] = _parse_int(key, mapping[key])
        for key in _BOOL_FIELDS:
            if mapping.get(key) is not None:
                values[key] = _parse_bool(key, mapping[key])
        out_dir = mapping.get("out_dir")
        if out_dir:
            values["out_dir"] = Path(str(out_dir)).expanduser()
        return cls(**values)

    def replace(self, **overrides: Any) -> "ConversionSettings":
        """Returns a copy with the given fields replaced. None values are ignored."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)


def load_settings(config_path: Optional[Path] = None) -> ConversionSettings:
    """
    Loads the settings snapshot from a YAML settings file.

    Args:
        config_path: A YAML file with a `conversion` section. When None, the
                     `conversion` section of the project's `config.user.yaml`
                     (already loaded by `config.common`) is used.

    Returns:
        The validated `ConversionSettings`.

    Raises:
        InvalidSettingsException: If the file cannot be read or parsed, or a
                                  value is invalid.
    """
    if config_path is None:
        return ConversionSettings.from_mapping(USER_CONFIG.get(SETTINGS_SECTION))

    try:
        with config_path.open("r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidSettingsException(f"Could not load settings from '{config_path}': {e}") from e

    if loaded is None:
        return ConversionSettings()
    if not isinstance(loaded, dict):
        raise InvalidSettingsException(f"Settings file '{config_path}' must contain a mapping.")
    section = loaded.get(SETTINGS_SECTION)
    if section is not None and not isinstance(section, dict):
        raise InvalidSettingsException(f"'{SETTINGS_SECTION}' in '{config_path}' must be a mapping.")
    logger.debug(f"Loaded settings from {config_path}")
    return ConversionSettings.from_mapping(section)
