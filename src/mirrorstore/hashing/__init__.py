"""File hashing and checksum-file generation."""

from .hasher import ALGORITHMS, HashResult, buffer_size, hash_file, hash_sha256

__all__ = ["ALGORITHMS", "HashResult", "buffer_size", "hash_file", "hash_sha256"]
