"""Streaming file digests."""

from __future__ import annotations

import hashlib

from fileinventory.errors import HashOpenError, HashReadError

DEFAULT_ALGORITHM = "md5"
DEFAULT_CHUNK_SIZE = 1 << 20


def ensure_algorithm(algorithm: str) -> str:
    """Validate a hashlib algorithm name and return it normalized."""
    name = algorithm.lower()
    try:
        hashlib.new(name)
    except ValueError as exc:
        raise ValueError(f"Unsupported digest algorithm: {algorithm}") from exc
    return name


def hash_file(path: str, algorithm: str = DEFAULT_ALGORITHM, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the hex digest of a file, reading it in fixed-size chunks.

    Raises:
        HashOpenError: the file could not be opened.
        HashReadError: reading failed part way through.
    """
    digest = hashlib.new(algorithm)
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise HashOpenError(path, f"cannot open {path}: {exc}") from exc

    with handle:
        try:
            for chunk in iter(lambda: handle.read(chunk_size), b""):
                digest.update(chunk)
        except OSError as exc:
            raise HashReadError(path, f"cannot read {path}: {exc}") from exc
    return digest.hexdigest()
