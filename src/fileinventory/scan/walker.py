"""Single-threaded depth-first traversal producing hash candidates."""

from __future__ import annotations

import logging
import os
import stat
from typing import Callable, List

from fileinventory.errors import FatalWalkError, WalkAccessError
from fileinventory.models import Candidate, ErrorPhase, ProcessingError, ScanStats
from fileinventory.scan.classifier import (
    Decision,
    SkipRules,
    SpecialEntryPolicy,
    classify,
    is_special,
)

LOGGER = logging.getLogger(__name__)

Emit = Callable[[Candidate], None]
Report = Callable[[ProcessingError], None]


def _access_error(path: str, exc: OSError) -> ProcessingError:
    cause = WalkAccessError(path, f"cannot access {path}: {exc}")
    cause.__cause__ = exc
    return ProcessingError(path=path, cause=cause, phase=ErrorPhase.WALK_ACCESS)


class TreeWalker:
    """Walks a directory tree and hands every hashable file to ``emit``.

    ``emit`` may block (it is a bounded queue ``put`` inside the pipeline);
    that is how hashing throughput throttles the walk.
    """

    def __init__(
        self,
        rules: SkipRules,
        *,
        special_policy: SpecialEntryPolicy = SpecialEntryPolicy.LOG,
    ) -> None:
        self.rules = rules
        self.special_policy = SpecialEntryPolicy(special_policy)
        self.stats = ScanStats()

    def walk(self, root: str, emit: Emit, report: Report) -> ScanStats:
        """Traverse ``root``. Raises FatalWalkError only for the root itself."""
        root = os.path.abspath(root)
        try:
            root_stat = os.stat(root)
        except OSError as exc:
            raise FatalWalkError(root, f"cannot access scan root {root}: {exc}") from exc

        name = os.path.basename(root) or root
        decision = classify(name, root, root_stat.st_mode, self.rules, is_root=True)
        if decision is Decision.HASH:
            self._emit(Candidate.from_stat(root, root_stat), emit)
            return self.stats
        if decision is not Decision.DESCEND:
            self._skip(root, root_stat.st_mode, report)
            return self.stats

        pending: List[str] = [root]
        while pending:
            directory = pending.pop()
            entries = self._list(directory, report, is_root=directory == root)
            if entries is None:
                continue
            self.stats.directories += 1

            subdirs: List[str] = []
            for entry in entries:
                try:
                    entry_stat = entry.stat(follow_symlinks=False)
                except PermissionError as exc:
                    LOGGER.warning("Permission denied, skipping %s: %s", entry.path, exc)
                    self.stats.skipped += 1
                    continue
                except FileNotFoundError:
                    LOGGER.debug("Entry vanished during walk: %s", entry.path)
                    continue
                except OSError as exc:
                    report(_access_error(entry.path, exc))
                    continue

                decision = classify(entry.name, entry.path, entry_stat.st_mode, self.rules)
                if decision is Decision.HASH:
                    self._emit(Candidate.from_stat(entry.path, entry_stat), emit)
                elif decision is Decision.DESCEND:
                    subdirs.append(entry.path)
                elif decision is Decision.PRUNE_SUBTREE:
                    LOGGER.debug("Pruning excluded directory %s", entry.path)
                    self.stats.pruned += 1
                else:
                    self._skip(entry.path, entry_stat.st_mode, report)

            # Reversed so the lexically first subdirectory is visited next.
            pending.extend(reversed(subdirs))
        return self.stats

    def _list(self, directory: str, report: Report, *, is_root: bool) -> list[os.DirEntry] | None:
        try:
            with os.scandir(directory) as iterator:
                return sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            if is_root:
                raise FatalWalkError(directory, f"cannot list scan root {directory}: {exc}") from exc
            if isinstance(exc, PermissionError):
                LOGGER.warning("Permission denied, pruning %s", directory)
                self.stats.pruned += 1
            elif isinstance(exc, FileNotFoundError):
                LOGGER.debug("Directory vanished during walk: %s", directory)
            else:
                report(_access_error(directory, exc))
            return None

    def _emit(self, candidate: Candidate, emit: Emit) -> None:
        self.stats.candidates += 1
        emit(candidate)

    def _skip(self, path: str, mode: int, report: Report) -> None:
        self.stats.skipped += 1
        if not is_special(mode):
            LOGGER.debug("Skipping excluded entry %s", path)
            return
        kind = _describe_mode(mode)
        if self.special_policy is SpecialEntryPolicy.LOG:
            LOGGER.info("Skipping %s %s", kind, path)
        elif self.special_policy is SpecialEntryPolicy.REPORT:
            cause = WalkAccessError(path, f"{kind} not hashed: {path}")
            report(ProcessingError(path=path, cause=cause, phase=ErrorPhase.WALK_SPECIAL))


def _describe_mode(mode: int) -> str:
    if stat.S_ISLNK(mode):
        return "symbolic link"
    if stat.S_ISFIFO(mode):
        return "named pipe"
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        return "device file"
    return "special file"


def count_files(root: str, rules: SkipRules) -> int:
    """Count the files a scan of ``root`` would hash."""
    total = 0

    def _count(_: Candidate) -> None:
        nonlocal total
        total += 1

    TreeWalker(rules, special_policy=SpecialEntryPolicy.IGNORE).walk(root, _count, lambda _: None)
    return total
