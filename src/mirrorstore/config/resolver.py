"""Layered resolution of `section.field` settings.

Every source (config file, `MIRRORSTORE__SECTION__FIELD` variables, command
line overrides) is normalized into a two-level layer before merging. Keys are
checked against the settings schema at that point, so an error names the
source that introduced the bad key.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import MirrorStoreConfig

ENV_PREFIX = "MIRRORSTORE__"

Layer = Dict[str, Dict[str, Any]]

_SCHEMA: dict[str, frozenset[str]] = {
    section: frozenset(values) for section, values in MirrorStoreConfig().model_dump().items()
}


def split_key(key: str, *, source: str) -> tuple[str, str]:
    """Return `(section, field)` for a dotted key known to the schema.

    Raises:
        ConfigError: If the key is not `section.field` or names an unknown setting.
    """
    parts = [part.strip().lower() for part in key.split(".")]
    if len(parts) != 2 or not all(parts):
        raise ConfigError(f"{source}: '{key}' is not a 'section.field' key")
    section, field = parts
    if section not in _SCHEMA:
        raise ConfigError(f"{source}: unknown section '{section}'")
    if field not in _SCHEMA[section]:
        raise ConfigError(f"{source}: unknown setting '{section}.{field}'")
    return section, field


def layer_from_mapping(data: Mapping[str, Any], *, source: str) -> Layer:
    """Normalize nested `{section: {field: v}}` and dotted `{"section.field": v}` data."""
    layer: Layer = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source}: keys must be strings, got {key!r}")
        if "." in key:
            section, field = split_key(key, source=source)
            layer.setdefault(section, {})[field] = value
            continue
        if value is None:
            continue
        if not isinstance(value, Mapping):
            raise ConfigError(f"{source}: section '{key}' must be a mapping")
        for name, field_value in value.items():
            section, field = split_key(f"{key}.{name}", source=source)
            layer.setdefault(section, {})[field] = field_value
    return layer


def layer_from_env(env: Mapping[str, str]) -> Layer:
    """Collect `MIRRORSTORE__SECTION__FIELD` variables; values are parsed as YAML."""
    layer: Layer = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        key = name[len(ENV_PREFIX) :].replace("__", ".")
        section, field = split_key(key, source=f"environment variable {name}")
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        layer.setdefault(section, {})[field] = value
    return layer


def resolve(layers: Iterable[Optional[Layer]]) -> MirrorStoreConfig:
    """Apply layers over the defaults, later layers winning field by field.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    merged = MirrorStoreConfig().model_dump()
    for layer in layers:
        for section, values in (layer or {}).items():
            merged[section].update(values)
    try:
        return MirrorStoreConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: MirrorStoreConfig) -> Dict[str, str]:
    """Render `config` as the environment variables that would reproduce it."""
    flat: Dict[str, str] = {}
    for section, values in config.model_dump().items():
        for field, value in values.items():
            if value is None:
                rendered = "null"
            elif isinstance(value, list):
                rendered = "[" + ", ".join(str(item) for item in value) + "]"
            else:
                rendered = str(value)
            flat[f"{ENV_PREFIX}{section.upper()}__{field.upper()}"] = rendered
    return flat


__all__ = [
    "ENV_PREFIX",
    "Layer",
    "flatten_for_env",
    "layer_from_env",
    "layer_from_mapping",
    "resolve",
    "split_key",
]
