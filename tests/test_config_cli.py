"""CLI tests for configuration commands."""

import os
from pathlib import Path

from click.testing import CliRunner

from mirrorstore.cli import cli
from mirrorstore.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("MIRRORSTORE__")}
    env["HOME"] = str(tmp_path)
    return env


def _manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(tmp_path / ".mirrorstore" / "config.yaml", env={})


def test_config_view_shows_environment_unless_disabled(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["MIRRORSTORE__MIRROR__WORKERS"] = "6"

    shown = runner.invoke(cli, ["config", "view"], env=env)
    ignored = runner.invoke(cli, ["config", "view", "--no-env"], env=env)

    assert shown.exit_code == 0, shown.output
    assert "workers: 6" in shown.stdout
    assert "workers: 1" in ignored.stdout
    assert _manager(tmp_path).config_path.exists()


def test_config_set_stores_cache_dir_used_by_scan(tmp_path: Path) -> None:
    """Ensure a cache set through the CLI is picked up by `mirror scan`."""
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    cache = tmp_path / "cache"
    cache.mkdir()
    data = tmp_path / "file.txt"
    data.write_bytes(b"payload")

    result = runner.invoke(cli, ["config", "set", "mirror.cache_dir", str(cache)], env=env)
    scan = runner.invoke(cli, ["mirror", "scan", "--summary", str(data)], env=env)

    assert result.exit_code == 0, result.output
    assert "mirror.cache_dir =" in result.stdout
    assert _manager(tmp_path).load().mirror.cache_dir == str(cache)
    assert scan.exit_code == 0, scan.output
    assert "created=1" in scan.stdout


def test_config_set_rejects_file_as_cache_dir(tmp_path: Path) -> None:
    runner = CliRunner()
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    result = runner.invoke(
        cli, ["config", "set", "mirror.cache_dir", str(blocker)], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 1
    assert "cache_dir is not a directory" in result.output
    assert _manager(tmp_path).load().mirror.cache_dir is None


def test_config_set_rejects_unknown_key_and_bad_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    unknown = runner.invoke(cli, ["config", "set", "mirror.cache", "/x"], env=env)
    invalid = runner.invoke(cli, ["config", "set", "mirror.workers", "0"], env=env)

    assert unknown.exit_code == 1
    assert "unknown setting 'mirror.cache'" in unknown.output
    assert invalid.exit_code == 1
    assert _manager(tmp_path).load().mirror.workers == 1


def test_invalid_environment_value_fails_commands(tmp_path: Path) -> None:
    env = _env_with_home(tmp_path)
    env["MIRRORSTORE__MIRROR__WORKERS"] = "zero"

    result = CliRunner().invoke(cli, ["mirror", "scan", "--json", str(tmp_path)], env=env)

    assert result.exit_code == 1
    assert '"config_error"' in result.stdout
