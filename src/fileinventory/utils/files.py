"""Utility helpers for working with file paths and timestamps."""

from __future__ import annotations

import os
from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def split_path(path: str) -> tuple[str, str]:
    """Split a path into (containing directory, base name)."""
    directory, name = os.path.split(path)
    return directory, name


def format_utc_timestamp(mtime: float) -> str:
    """Format a POSIX timestamp as second-precision UTC text."""
    return datetime.fromtimestamp(mtime, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def normalize_prefix(prefix: str) -> str:
    """Strip trailing separators so prefixes compare on path components."""
    stripped = prefix.rstrip("/\\")
    return stripped or prefix


def is_under_prefix(path: str, prefix: str) -> bool:
    """Return True when ``path`` is ``prefix`` itself or lies beneath it."""
    if path == prefix:
        return True
    if prefix.endswith(("/", "\\")):
        return path.startswith(prefix)
    return path.startswith(prefix + os.sep) or path.startswith(prefix + "/")
