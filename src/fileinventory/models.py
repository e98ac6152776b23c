"""Core FileInventory data models."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from fileinventory.utils.files import format_utc_timestamp, split_path


class ErrorPhase(str, Enum):
    """Stage of the pipeline in which a processing error occurred."""

    WALK_ACCESS = "walk-access"
    WALK_SPECIAL = "walk-special"
    HASH_OPEN = "hash-open"
    HASH_READ = "hash-read"


@dataclass(frozen=True, slots=True)
class Candidate:
    """A discovered file queued for hashing.

    The metadata is the ``lstat`` snapshot taken when the walker listed the
    entry, so workers never query the filesystem for it again.
    """

    path: str
    size: int
    mode: int
    mtime: float

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> "Candidate":
        return cls(path=path, size=st.st_size, mode=st.st_mode, mtime=st.st_mtime)


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Inventory entry for one successfully hashed file."""

    name: str
    directory: str
    modified: str
    algorithm: str
    digest: str

    @classmethod
    def from_candidate(cls, candidate: Candidate, *, algorithm: str, digest: str) -> "FileRecord":
        directory, name = split_path(candidate.path)
        return cls(
            name=name,
            directory=directory,
            modified=format_utc_timestamp(candidate.mtime),
            algorithm=algorithm,
            digest=digest,
        )

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.directory,
            "modified_date": self.modified,
            "algorithm": self.algorithm,
            "digest": self.digest,
        }


@dataclass(frozen=True, slots=True)
class ProcessingError:
    """A per-entry failure, recorded instead of aborting the scan."""

    path: str
    cause: BaseException
    phase: ErrorPhase

    def describe(self) -> str:
        return f"{self.phase.value}: {self.path}: {self.cause}"


@dataclass(slots=True)
class ScanStats:
    """Walk-side counters. Only the walker thread writes them."""

    directories: int = 0
    candidates: int = 0
    skipped: int = 0
    pruned: int = 0


@dataclass(slots=True)
class ScanResult:
    """Everything a finished scan hands to the serializer."""

    root: str
    records: List[FileRecord] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    error_count: int = 0
    stats: ScanStats = field(default_factory=ScanStats)
    fatal_error: BaseException | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.fatal_error is None
