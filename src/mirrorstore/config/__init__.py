"""Configuration management for mirrorstore."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import MirrorStoreConfig
from .resolver import (
    ENV_PREFIX,
    flatten_for_env,
    layer_from_env,
    layer_from_mapping,
    resolve,
    split_key,
)

DEFAULT_CONFIG_PATH = Path("~/.mirrorstore/config.yaml")
_CONFIG_HEADER = (
    "# mirrorstore configuration; change values with `mirrorstore config set`.\n"
    "# MIRRORSTORE__<SECTION>__<FIELD> variables override this file.\n"
)


class ConfigManager:
    """Read and write `config.yaml` and resolve it against the environment."""

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

    @property
    def config_dir(self) -> Path:
        """Return the directory holding the configuration file."""
        return self._config_path.parent

    def ensure_exists(self) -> Path:
        """Write the defaults to `config_path` if no file is there yet."""
        if not self._config_path.exists():
            self.save(MirrorStoreConfig())
        return self._config_path

    def load(
        self,
        *,
        overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> MirrorStoreConfig:
        """Resolve defaults < file < environment < `overrides` into a config.

        Args:
            overrides: Dotted-key values with the highest precedence.
            include_env: Whether `MIRRORSTORE__` variables are applied.

        Returns:
            MirrorStoreConfig: The validated, merged configuration.

        Raises:
            ConfigError: If a source cannot be parsed or the result is invalid.
        """
        self.ensure_exists()
        layers = [layer_from_mapping(self._read(), source=str(self._config_path))]
        if include_env:
            layers.append(layer_from_env(self._env))
        if overrides:
            layers.append(layer_from_mapping(overrides, source="command line"))
        return resolve(layers)

    def set_value(self, key: str, raw_value: str) -> Any:
        """Store `raw_value` (parsed as YAML) under `key` and return the validated value.

        The file is left untouched when the key is unknown or the value is invalid.
        """
        section, field = split_key(key, source="config set")
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value for {section}.{field}: {exc}") from exc

        data = self._read()
        if data.get(section) is None:
            data[section] = {}
        stored = data[section]
        if not isinstance(stored, dict):
            raise ConfigError(f"{self._config_path}: section '{section}' must be a mapping")
        stored[field] = value
        config = resolve([layer_from_mapping(data, source=str(self._config_path))])
        self._write(data)
        return getattr(getattr(config, section), field)

    def save(self, config: MirrorStoreConfig) -> None:
        """Persist every setting of `config`."""
        self._write(config.model_dump(mode="json"))

    def _read(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write(self, data: Mapping[str, Any]) -> None:
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            body = yaml.safe_dump(dict(data), sort_keys=False)
            self._config_path.write_text(_CONFIG_HEADER + body, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to write configuration file: {exc}") from exc


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "MirrorStoreConfig",
    "flatten_for_env",
    "resolve",
    "ConfigError",
]
