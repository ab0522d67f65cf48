"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import HashdirConfig

ENV_PREFIX = "HASHDIR__"


def resolve_with_precedence(
    *,
    defaults: HashdirConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> HashdirConfig:
    """Merge configuration sources; later sources win (file, environment, cli).

    Raises:
        ConfigError: If a source is malformed or the merged values fail validation.
    """
    merged = defaults.model_dump(mode="python")
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        merged = _deep_merge(merged, _normalize_mapping(source, source_name=name))

    try:
        return HashdirConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: HashdirConfig) -> Dict[str, str]:
    """Render ``config`` as ``HASHDIR__SECTION__KEY`` environment assignments."""
    flat: Dict[str, str] = {}

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif isinstance(value, bool):
            flat[env_key] = "true" if value else "false"
        else:
            flat[env_key] = "null" if value is None else str(value)

    for key, value in config.model_dump(mode="python").items():
        _recurse([str(key)], value)
    return flat


def assign_nested(
    target: dict[str, Any],
    path: list[str],
    value: Any,
    *,
    source_name: str,
) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating mappings as needed.

    Raises:
        ConfigError: If an intermediate segment already holds a non-mapping value.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} conflicts with "
                f"existing value at '{segment}'."
            )
        node = existing

    leaf = path[-1]
    if isinstance(value, MappingABC):
        nested = _normalize_mapping(value, source_name=source_name)
        existing_leaf = node.get(leaf)
        node[leaf] = _deep_merge(existing_leaf if isinstance(existing_leaf, dict) else {}, nested)
    else:
        node[leaf] = value


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        assign_nested(result, key.split("."), value, source_name=source_name)
    return result


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "assign_nested", "resolve_with_precedence", "flatten_for_env"]
