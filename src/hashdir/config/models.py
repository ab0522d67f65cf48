"""Configuration models describing hashdir settings."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")
_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "kb": 1000,
    "mb": 1000**2,
    "gb": 1000**3,
    "tb": 1000**4,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
}


def parse_size(value: Any) -> Optional[int]:
    """Convert a byte count or human-readable size such as ``"10MB"`` into bytes.

    Raises:
        ValueError: If the value cannot be interpreted as a size.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("Size must be a number of bytes or a string such as '10MB'.")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _SIZE_PATTERN.match(str(value))
    if match is None:
        raise ValueError(f"Unrecognized size value: {value!r}")
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"Unknown size unit: {unit!r}")
    return int(float(number) * multiplier)


class HashdirBaseModel(BaseModel):
    """Shared configuration for hashdir Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class IndexSettings(HashdirBaseModel):
    """Options governing how storage directories are scanned.

    Attributes:
        follow_symlinks: Whether to descend into symlinked directories.
        variant_pattern: Regular expression identifying disambiguated copies;
            the built-in timestamp pattern is used when unset.
    """

    follow_symlinks: bool = False
    variant_pattern: Optional[str] = None

    @field_validator("variant_pattern")
    @classmethod
    def _compile_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"Invalid variant pattern: {exc}") from exc
        return value


class DedupeSettings(HashdirBaseModel):
    """Duplicate detection settings.

    Attributes:
        enabled: Whether incoming files are matched against stored content.
    """

    enabled: bool = True


class QuotaSettings(HashdirBaseModel):
    """Storage quota settings.

    Attributes:
        max_size: Maximum aggregate size in bytes; None disables the check.
    """

    max_size: Optional[int] = Field(default=None, ge=0)

    @field_validator("max_size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> Optional[int]:
        return parse_size(value)


class LoggingSettings(HashdirBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown logging level: {value!r}")
        return normalized


class CLIOptions(HashdirBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        json_default: Whether commands emit JSON by default.
    """

    quiet_default: bool = False
    json_default: bool = False


class HashdirConfig(HashdirBaseModel):
    """Top-level configuration struct for hashdir.

    Attributes:
        index: Directory scanning settings.
        dedupe: Duplicate detection settings.
        quota: Storage quota settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    index: IndexSettings = Field(default_factory=IndexSettings)
    dedupe: DedupeSettings = Field(default_factory=DedupeSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "HashdirBaseModel",
    "IndexSettings",
    "DedupeSettings",
    "QuotaSettings",
    "LoggingSettings",
    "CLIOptions",
    "HashdirConfig",
    "parse_size",
]
