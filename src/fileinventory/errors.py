"""Exception taxonomy for inventory scans."""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for errors raised while building an inventory."""

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or path)


class WalkAccessError(InventoryError):
    """An entry could not be stat'ed or listed during traversal."""


class FatalWalkError(InventoryError):
    """The traversal cannot proceed at all, e.g. the root is inaccessible."""


class HashError(InventoryError):
    """Base class for failures while digesting a file."""


class HashOpenError(HashError):
    """The file could not be opened for reading."""


class HashReadError(HashError):
    """The file was opened but its bytes could not be fully read."""
