"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from mirrorstore.config import ConfigError, ConfigManager, MirrorStoreConfig, flatten_for_env


def _manager(tmp_path: Path, env: dict[str, str] | None = None) -> ConfigManager:
    return ConfigManager(tmp_path / ".mirrorstore" / "config.yaml", env=env or {})


def test_default_path_lives_under_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    path = ConfigManager().ensure_exists()

    assert path == tmp_path / ".mirrorstore" / "config.yaml"
    assert "mirrorstore config set" in path.read_text(encoding="utf-8")


def test_fresh_file_loads_defaults(tmp_path: Path) -> None:
    config = _manager(tmp_path).load()

    assert config == MirrorStoreConfig()
    assert config.mirror.cache_dir is None
    assert config.checksum.algorithms == ["sha256"]


def test_cli_beats_environment_beats_file(tmp_path: Path) -> None:
    """Ensure each layer overrides only the fields it names."""
    cache = tmp_path / "cache"
    cache.mkdir()
    manager = _manager(
        tmp_path,
        env={
            "MIRRORSTORE__MIRROR__WORKERS": "4",
            "MIRRORSTORE__CHECKSUM__ALGORITHMS": "[md5, sha1]",
            "UNRELATED__MIRROR__WORKERS": "9",
        },
    )
    manager.set_value("mirror.cache_dir", str(cache))
    manager.set_value("mirror.workers", "2")

    config = manager.load(overrides={"mirror.workers": 8})

    assert config.mirror.cache_dir == str(cache)
    assert config.checksum.algorithms == ["md5", "sha1"]
    assert config.mirror.workers == 8
    assert manager.load().mirror.workers == 4
    assert manager.load(include_env=False).mirror.workers == 2


def test_cache_dir_expands_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    manager = _manager(tmp_path, env={"MIRRORSTORE__MIRROR__CACHE_DIR": "~/cache"})

    assert manager.load().mirror.cache_dir == str(tmp_path / "cache")


def test_cache_dir_that_is_a_file_is_rejected(tmp_path: Path) -> None:
    """Ensure a misconfigured cache fails at load time, not mid-scan."""
    not_a_dir = tmp_path / "cache.txt"
    not_a_dir.write_text("x", encoding="utf-8")
    manager = _manager(tmp_path, env={"MIRRORSTORE__MIRROR__CACHE_DIR": str(not_a_dir)})

    with pytest.raises(ConfigError, match="cache_dir is not a directory"):
        manager.load()
    with pytest.raises(ConfigError):
        _manager(tmp_path).set_value("mirror.cache_dir", str(not_a_dir))


@pytest.mark.parametrize(
    "env",
    [
        {"MIRRORSTORE__MIRROR__CACHE": "/typo"},
        {"MIRRORSTORE__STORE__CACHE_DIR": "/x"},
        {"MIRRORSTORE__WORKERS": "2"},
    ],
)
def test_unknown_environment_keys_name_the_variable(tmp_path: Path, env: dict[str, str]) -> None:
    (name,) = env

    with pytest.raises(ConfigError, match=name):
        _manager(tmp_path, env=env).load()


def test_unknown_file_key_is_rejected(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.ensure_exists()
    manager.config_path.write_text("mirror:\n  cache: /typo\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="unknown setting 'mirror.cache'"):
        manager.load()


def test_invalid_yaml_and_non_mapping_raise(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")
    with pytest.raises(ConfigError):
        manager.load()

    manager.config_path.write_text("mirror: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        manager.load()


def test_set_value_validates_before_writing(tmp_path: Path) -> None:
    """Ensure a rejected value leaves the file as it was."""
    manager = _manager(tmp_path)
    assert manager.set_value("mirror.workers", "3") == 3
    before = manager.config_path.read_text(encoding="utf-8")

    for key, value in [
        ("mirror.workers", "0"),
        ("checksum.algorithms", "[md4]"),
        ("mirror.nope", "1"),
        ("workers", "1"),
    ]:
        with pytest.raises(ConfigError):
            manager.set_value(key, value)

    assert manager.config_path.read_text(encoding="utf-8") == before
    assert manager.load().mirror.workers == 3


def test_flatten_for_env_reproduces_config(tmp_path: Path) -> None:
    """Ensure the flattened variables load back into the same settings."""
    config = MirrorStoreConfig.model_validate(
        {"mirror": {"workers": 3}, "checksum": {"algorithms": ["md5", "sha512"]}}
    )

    flat = flatten_for_env(config)

    assert flat["MIRRORSTORE__MIRROR__WORKERS"] == "3"
    assert flat["MIRRORSTORE__MIRROR__CACHE_DIR"] == "null"
    assert flat["MIRRORSTORE__CHECKSUM__ALGORITHMS"] == "[md5, sha512]"
    assert _manager(tmp_path, env=flat).load() == config
