"""Command line interface for mirrorstore."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mirrorstore.config import ConfigError, ConfigManager, MirrorStoreConfig
from mirrorstore.errors import (
    ConflictError,
    FilesystemError,
    HashValidationError,
    ManifestSyntaxError,
    MissingContentError,
    UnsupportedAlgorithmError,
)
from mirrorstore.hashing.checksums import create_checksums
from mirrorstore.logs import configure_logging
from mirrorstore.store import RENAME_PREFIXES, MirrorEngine, rename_by_hash

console = Console()

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ManifestSyntaxError, "syntax_error"),
    (HashValidationError, "validation_error"),
    (MissingContentError, "missing_content"),
    (ConflictError, "conflict_error"),
    (FilesystemError, "filesystem_error"),
    (UnsupportedAlgorithmError, "unsupported_algorithm"),
    (ConfigError, "config_error"),
    (click.ClickException, "cli_error"),
)


def _error_payload(exc: Exception, action: str) -> dict[str, Any]:
    """Describe `exc` as `{"code", "message"[, "details"]}`."""
    for error_type, code in _ERROR_CODES:
        if isinstance(exc, error_type):
            break
    else:
        return {
            "code": "internal_error",
            "message": f"Unexpected error while {action}: {exc}",
            "details": {"exception": type(exc).__name__},
        }
    message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
    payload: dict[str, Any] = {"code": code, "message": message}
    if isinstance(exc, MissingContentError):
        payload["details"] = {"missing": exc.hashes}
    elif isinstance(exc, (FilesystemError, ConflictError)):
        payload["details"] = {"path": exc.path}
    return payload


def _fail(exc: Exception, *, action: str, json_output: bool) -> NoReturn:
    """End the command for `exc`: a JSON error object, or a click error message."""
    payload = _error_payload(exc, action)
    if json_output:
        console.print_json(data={"error": payload})
        raise SystemExit(1)
    if isinstance(exc, click.ClickException):
        raise exc
    raise click.ClickException(payload["message"]) from exc


@dataclass
class Reporter:
    """Route command output according to `--json`, `--quiet`, and `--summary`."""

    json_output: bool = False
    quiet: bool = False
    summary_only: bool = False

    @classmethod
    def for_command(
        cls,
        ctx: click.Context,
        config: MirrorStoreConfig,
        *,
        json_output: bool,
        quiet: bool,
        summary_mode: bool,
    ) -> "Reporter":
        """Combine the output flags with `cli.*_default` settings.

        Flags given on the command line win over the configured defaults.

        Raises:
            click.ClickException: If the resulting modes are incompatible.
        """
        explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
        explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
        if json_output:
            if explicit_quiet and quiet:
                raise click.ClickException("--json cannot be combined with --quiet.")
            if explicit_summary and summary_mode:
                raise click.ClickException("--json cannot be combined with --summary.")
            return cls(json_output=True)

        quiet = quiet if explicit_quiet else config.cli.quiet_default
        summary_only = summary_mode if explicit_summary else config.cli.summary_default
        if quiet and summary_only:
            raise click.ClickException(
                "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
            )
        return cls(quiet=quiet, summary_only=summary_only)

    @property
    def details_visible(self) -> bool:
        return not (self.json_output or self.quiet or self.summary_only)

    def detail(self, message: Any) -> None:
        if self.details_visible:
            console.print(message)

    def summary(self, command: str, target: Path | str, **counts: Any) -> None:
        """Print `<command> <target>: key=value ...` unless quiet or in JSON mode."""
        if self.json_output or self.quiet:
            return
        metrics = " ".join(f"{key}={value}" for key, value in counts.items())
        console.print(f"[green]{command}[/green] {target}: {metrics}")

    def result(self, data: dict[str, Any]) -> None:
        if self.json_output:
            console.print_json(data=data)


def _load_config() -> MirrorStoreConfig:
    """Load configuration and install logging handlers for a command run."""
    manager = ConfigManager()
    config = manager.load()
    configure_logging(config.logging, manager.config_dir)
    return config


def _resolve_cache_dir(cache: str | None, config: MirrorStoreConfig) -> Path:
    """Return the cache directory from `--cache` or the configured default."""
    value = cache or config.mirror.cache_dir
    if not value:
        raise click.ClickException(
            "No cache directory given. Pass --cache or set mirror.cache_dir."
        )
    return Path(value).expanduser()


def output_options(func: Any) -> Any:
    """Attach the shared `--json/--summary/--quiet` options to a command."""
    func = click.option("--quiet", is_flag=True, help="Suppress non-error output.")(func)
    func = click.option(
        "--summary", "summary_mode", is_flag=True, help="Only emit summary lines."
    )(func)
    return click.option("--json", "json_output", is_flag=True, help="Emit a JSON result.")(func)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mirrorstore")
def cli() -> None:
    """mirrorstore keeps a content-addressed cache of files and rebuilds trees from it."""


@cli.group()
def mirror() -> None:
    """Populate the hardlink cache and export trees from checksum files."""


@mirror.command("scan")
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=str))
@click.option(
    "--cache",
    type=click.Path(file_okay=False, path_type=str),
    help="Cache directory (defaults to mirror.cache_dir).",
)
@click.option(
    "-i",
    "--inputs",
    "inputs",
    multiple=True,
    type=click.Path(exists=True, path_type=str),
    help="File or directory to scan; repeatable.",
)
@output_options
@click.pass_context
def mirror_scan(
    ctx: click.Context,
    paths: Sequence[str],
    cache: str | None,
    inputs: Sequence[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Hash INPUTS and PATHS and hardlink new content into the cache."""

    try:
        config = _load_config()
        report = Reporter.for_command(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        cache_dir = _resolve_cache_dir(cache, config)
        all_inputs = [*inputs, *paths]
        if not all_inputs:
            raise click.ClickException("Nothing to scan. Pass --inputs or PATHS.")

        engine = MirrorEngine(
            workers=config.mirror.workers,
            skip_cache_dir=config.mirror.skip_cache_dir,
        )
        result = engine.scan(cache_dir, all_inputs)
        counts = {
            "hashed": len(result.entries),
            "created": len(result.created),
            "skipped": len(result.skipped),
        }

        report.result(
            {
                "command": "scan",
                "cache_dir": str(result.cache_dir),
                "journal": str(result.journal_path),
                "entries": [
                    {"source": entry.source, "hash": entry.hash} for entry in result.entries
                ],
                "created": [str(path) for path in result.created],
                "skipped": [str(path) for path in result.skipped],
                "counts": counts,
            }
        )
        for path in result.created:
            report.detail(f"[cyan]Cached[/cyan] {path.name}")
        report.detail(f"Rollback journal: {result.journal_path}")
        report.summary("scan", cache_dir, **counts)
    except Exception as exc:
        _fail(exc, action="scanning into the cache", json_output=json_output)


@mirror.command("export")
@click.option(
    "--cache",
    type=click.Path(file_okay=False, path_type=str),
    help="Cache directory (defaults to mirror.cache_dir).",
)
@click.option(
    "--checksum",
    "checksum_path",
    required=True,
    type=click.Path(path_type=str),
    help="SHA-256 checksum file describing the tree.",
)
@click.option(
    "--root",
    type=click.Path(path_type=str),
    help="Root for relative paths (defaults to the checksum file's directory).",
)
@output_options
@click.pass_context
def mirror_export(
    ctx: click.Context,
    cache: str | None,
    checksum_path: str,
    root: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rebuild the tree listed in a checksum file by hardlinking cache entries."""

    try:
        config = _load_config()
        report = Reporter.for_command(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        cache_dir = _resolve_cache_dir(cache, config)

        result = MirrorEngine().export(cache_dir, Path(checksum_path), root)

        report.result(
            {
                "command": "export",
                "cache_dir": str(result.cache_dir),
                "checksum": str(result.manifest_path),
                "root": str(result.target_root),
                "linked": [str(path) for path in result.linked],
                "unchanged": [str(path) for path in result.unchanged],
                "counts": {"linked": len(result.linked), "unchanged": len(result.unchanged)},
            }
        )
        if result.linked and report.details_visible:
            table = Table(title="Exported files")
            table.add_column("Destination", overflow="fold")
            for path in result.linked:
                table.add_row(str(path))
            console.print(table)
        report.summary(
            "export", result.target_root, linked=len(result.linked), unchanged=len(result.unchanged)
        )
    except Exception as exc:
        _fail(exc, action="exporting from the cache", json_output=json_output)


@cli.group()
def checksum() -> None:
    """Create checksum files."""


@checksum.command("create")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@click.option(
    "-a",
    "--algo",
    "algorithms",
    multiple=True,
    help="Hash algorithm; repeatable (defaults to checksum.algorithms).",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=str),
    help="Output path; its extension is replaced by the algorithm name.",
)
@click.option(
    "--binary/--text",
    "binary_mode",
    default=None,
    help="Mark lines with '*' (defaults to checksum.binary_mode).",
)
@output_options
@click.pass_context
def checksum_create(
    ctx: click.Context,
    paths: Sequence[str],
    algorithms: Sequence[str],
    output: str | None,
    binary_mode: bool | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Write one checksum file per algorithm covering every file under PATHS."""

    try:
        config = _load_config()
        report = Reporter.for_command(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        written = create_checksums(
            list(paths),
            output or config.checksum.output,
            list(algorithms) or list(config.checksum.algorithms),
            binary_mode=config.checksum.binary_mode if binary_mode is None else binary_mode,
        )

        report.result(
            {"command": "checksum", "files": {name: str(path) for name, path in written.items()}}
        )
        for name, path in written.items():
            report.detail(f"[cyan]{name}[/cyan] -> {path}")
        report.summary("checksum", ", ".join(paths), algorithms=",".join(written))
    except Exception as exc:
        _fail(exc, action="creating checksum files", json_output=json_output)


@cli.group("file")
def file_group() -> None:
    """Batch operations on individual files."""


@file_group.command("rename")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str))
@click.option(
    "--preset",
    required=True,
    type=click.Choice(sorted(RENAME_PREFIXES)),
    help="Digest that names the files, e.g. sha256 -> 736861323536_<hex><ext>.",
)
@click.option(
    "--journal-dir",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    help="Directory receiving rename-<ms>.json (defaults to the working directory).",
)
@output_options
@click.pass_context
def file_rename(
    ctx: click.Context,
    paths: Sequence[str],
    preset: str,
    journal_dir: Path | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rename the files in PATHS after the digest of their content.

    Directories are ignored. Existing files are never overwritten.
    """

    try:
        config = _load_config()
        report = Reporter.for_command(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        result = rename_by_hash(list(paths), preset, journal_dir=journal_dir)

        report.result(
            {
                "command": "rename",
                "journal": str(result.journal_path) if result.journal_path else None,
                "renamed": [
                    {"source": entry.source, "target": entry.target} for entry in result.renamed
                ],
                "unchanged": [str(path) for path in result.unchanged],
                "skipped": [str(path) for path in result.skipped],
                "failed": [str(path) for path in result.failed],
            }
        )
        for entry in result.renamed:
            report.detail(f"[cyan]{entry.source}[/cyan] -> {entry.target}")
        if result.journal_path:
            report.detail(f"Rollback journal: {result.journal_path}")
        report.summary(
            "rename",
            preset,
            renamed=len(result.renamed),
            unchanged=len(result.unchanged),
            skipped=len(result.skipped),
            failed=len(result.failed),
        )
    except Exception as exc:
        _fail(exc, action="renaming files", json_output=json_output)


@cli.group()
def config() -> None:
    """Show or change settings in ~/.mirrorstore/config.yaml."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore MIRRORSTORE__ environment variables.")
def config_view(no_env: bool) -> None:
    """Print the effective settings as YAML."""
    try:
        loaded = ConfigManager().load(include_env=not no_env)
    except ConfigError as exc:
        _fail(exc, action="loading configuration", json_output=False)

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store VALUE (a YAML literal) under KEY, e.g. `mirror.cache_dir ~/cache`."""
    try:
        stored = ConfigManager().set_value(key, value)
    except ConfigError as exc:
        _fail(exc, action="updating configuration", json_output=False)

    console.print(f"{key.strip().lower()} = {stored!r}")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
