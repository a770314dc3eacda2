"""Configuration models describing mirrorstore settings."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mirrorstore.hashing import ALGORITHMS


class MirrorStoreBaseModel(BaseModel):
    """Shared configuration for mirrorstore Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class MirrorOptions(MirrorStoreBaseModel):
    """Settings for `mirror scan` and `mirror export`.

    Attributes:
        cache_dir: Cache directory used when `--cache` is omitted.
        workers: Number of threads hashing files during a scan.
        skip_cache_dir: Whether scans ignore files inside the cache directory.
    """

    cache_dir: Optional[str] = None
    workers: int = Field(default=1, ge=1)
    skip_cache_dir: bool = True

    @field_validator("cache_dir")
    @classmethod
    def _cache_dir_is_directory(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        path = Path(value).expanduser()
        if path.exists() and not path.is_dir():
            raise ValueError(f"cache_dir is not a directory: {path}")
        return str(path)


class ChecksumOptions(MirrorStoreBaseModel):
    """Defaults for `checksum create`.

    Attributes:
        algorithms: Digest algorithms computed when `--algo` is omitted.
        binary_mode: Whether written lines carry the `*` marker.
        output: Output stem used when `--output` is omitted.
    """

    algorithms: List[str] = Field(default_factory=lambda: ["sha256"])
    binary_mode: bool = True
    output: str = "checksum"

    @field_validator("algorithms")
    @classmethod
    def _known_algorithms(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in ALGORITHMS]
        if unknown:
            raise ValueError(f"unsupported hash algorithm(s): {', '.join(unknown)}")
        return value


class LoggingSettings(MirrorStoreBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file_output: Whether records are also written to a log file.
        directory: Log directory; defaults to `logs/` beside the config file.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_output: bool = False
    directory: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class CLIOptions(MirrorStoreBaseModel):
    """CLI presentation defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MirrorStoreConfig(MirrorStoreBaseModel):
    """Top-level configuration struct for mirrorstore.

    Attributes:
        mirror: Cache scan/export settings.
        checksum: Checksum file generation settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    mirror: MirrorOptions = Field(default_factory=MirrorOptions)
    checksum: ChecksumOptions = Field(default_factory=ChecksumOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MirrorStoreBaseModel",
    "MirrorOptions",
    "ChecksumOptions",
    "LoggingSettings",
    "CLIOptions",
    "MirrorStoreConfig",
]
