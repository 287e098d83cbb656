"""Storage exceptions."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for resource storage operations."""


class ResourceNotFoundError(StorageError):
    """Raised when a path is absent from both cache tiers.

    Maps to an HTTP 404 at the request-handling layer.
    """

    status_code = 404

    def __init__(self, path: str) -> None:
        super().__init__(f"Resource not found: {path}")
        self.path = path


class StorageFailureError(StorageError):
    """Raised for I/O-level failures reading or writing a tier."""


class ReadOnlyTierError(StorageFailureError):
    """Raised when writing to or deleting from a read-only tier."""
