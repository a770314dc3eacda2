"""Custom exceptions for configuration management."""

from mirrorstore.errors import MirrorStoreError


class ConfigError(MirrorStoreError):
    """Raised when configuration data cannot be processed."""
