"""Configuration management for hashdir."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from .exceptions import ConfigError
from .models import HashdirConfig, parse_size
from .resolver import ENV_PREFIX, assign_nested, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.hashdir/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # hashdir configuration file
    # Manage via `hashdir config edit` or `hashdir config set KEY --value VALUE`.
    # Environment variables such as HASHDIR__QUOTA__MAX_SIZE override these values.
    """
)


class ConfigManager:
    """Load and persist the YAML configuration file, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> HashdirConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``HASHDIR__*`` variables are applied.
            ensure_file: Whether to create a default file when none exists.

        Raises:
            ConfigError: If the file cannot be parsed or values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_overrides = self._extract_env(self._env) if include_env else None
        return resolve_with_precedence(
            defaults=HashdirConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_overrides or None,
            cli_overrides=cli_overrides,
        )

    def save(self, config: HashdirConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, HashdirConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def set_value(self, key: Sequence[str], value: Any) -> HashdirConfig:
        """Assign ``value`` at the dotted ``key`` path and persist the file.

        Returns:
            HashdirConfig: Configuration resolved from the updated file.

        Raises:
            ConfigError: If the path conflicts with a scalar or the result is invalid.
        """
        file_data = self._read_file()
        assign_nested(file_data, list(key), value, source_name="file")
        resolved = resolve_with_precedence(defaults=HashdirConfig(), file_overrides=file_data)
        self._write_file(file_data)
        return resolved

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(HashdirConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                parsed_value = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                parsed_value = raw_value
            assign_nested(overrides, path, parsed_value, source_name="environment")
        return overrides


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "HashdirConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "parse_size",
    "ConfigError",
]
