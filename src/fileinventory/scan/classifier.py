"""Decide what the walker does with each filesystem entry."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from fileinventory.utils.files import is_under_prefix, normalize_prefix


class Decision(Enum):
    HASH = "hash"
    SKIP_ENTRY = "skip"
    PRUNE_SUBTREE = "prune"
    DESCEND = "descend"


class SpecialEntryPolicy(str, Enum):
    """How symbolic links, sockets, FIFOs and devices are treated.

    None of them is ever hashed. ``log`` writes an INFO line, ``ignore``
    skips silently and ``report`` records a ProcessingError.
    """

    LOG = "log"
    IGNORE = "ignore"
    REPORT = "report"


@dataclass(frozen=True, slots=True)
class SkipRules:
    """Read-only exclusion configuration consulted by :func:`classify`."""

    names: frozenset[str] = frozenset()
    prefixes: tuple[str, ...] = ()

    @classmethod
    def build(cls, names: Iterable[str] = (), prefixes: Iterable[str] = ()) -> "SkipRules":
        return cls(
            names=frozenset(names),
            prefixes=tuple(normalize_prefix(prefix) for prefix in prefixes if prefix),
        )

    def excludes(self, name: str, path: str) -> bool:
        if name in self.names:
            return True
        return any(is_under_prefix(path, prefix) for prefix in self.prefixes)


def is_special(mode: int) -> bool:
    """True for anything that is neither a regular file nor a directory."""
    return not (stat.S_ISREG(mode) or stat.S_ISDIR(mode))


def classify(name: str, path: str, mode: int, rules: SkipRules, *, is_root: bool = False) -> Decision:
    """Classify an entry from the metadata already gathered by the walker.

    The root is never excluded by name or prefix; only its type matters.
    """
    if stat.S_ISDIR(mode):
        if not is_root and rules.excludes(name, path):
            return Decision.PRUNE_SUBTREE
        return Decision.DESCEND
    if not stat.S_ISREG(mode):
        return Decision.SKIP_ENTRY
    if not is_root and rules.excludes(name, path):
        return Decision.SKIP_ENTRY
    return Decision.HASH
