"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from fileinventory.scan.classifier import SkipRules
from fileinventory.scan.hasher import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE

DEFAULT_SKIP_NAMES = (
    ".git",
    ".svn",
    ".hg",
    ".bzr",
    ".Trash",
    ".Trashes",
    "$RECYCLE.BIN",
    "System Volume Information",
    ".Spotlight-V100",
    ".fseventsd",
)


def _get_default_skip_prefixes() -> tuple[str, ...]:
    """Virtual filesystems that must never be hashed."""
    if sys.platform == "win32":
        return ()
    return ("/proc", "/sys", "/dev")


def default_worker_count() -> int:
    """Hashing is I/O bound, so oversubscribe the CPUs within sane bounds."""
    cpus = os.cpu_count() or 1
    return min(max(cpus * 2, 4), 32)


@dataclass(slots=True)
class AppConfig:
    output_path: Path = Path("file_inventory.json")
    output_format: str = "json"
    workers: int = field(default_factory=default_worker_count)
    algorithm: str = DEFAULT_ALGORITHM
    chunk_size: int = DEFAULT_CHUNK_SIZE
    queue_factor: int = 2
    special_policy: str = "log"
    skip_names: tuple[str, ...] = DEFAULT_SKIP_NAMES
    skip_prefixes: tuple[str, ...] = field(default_factory=_get_default_skip_prefixes)

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    def skip_rules(self) -> SkipRules:
        return SkipRules.build(self.skip_names, self.skip_prefixes)

    def resolve_output_path(self, base_dir: Path | None = None) -> Path:
        if Path(self.output_path).is_absolute() or base_dir is None:
            return Path(self.output_path)
        return base_dir / self.output_path
