"""
Storage tiers behind the resource cache.

Both tiers implement ResourceTierBackend and address resources by cache
path ("/V40/Customers.xml"):

- MemoryTier: mutable, process-local, lost on restart.
- BundledTier: read-only reference fixtures, either a directory on disk or
  package data located through importlib.resources.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING

from fitstore.storage.errors import ReadOnlyTierError, ResourceNotFoundError, StorageFailureError

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

# Package data directory holding the bundled fixtures
BUNDLED_PACKAGE = "fitstore"
BUNDLED_DIR = "resources"


class ResourceTier(str, Enum):
    """Cache tier a resource was resolved from."""

    MEMORY = "memory"
    BACKING = "backing"


def split_path(path: str) -> list[str]:
    """Split a cache path into segments.

    Raises:
        ValueError: If the path contains empty, "." or ".." segments.
    """
    stripped = path.strip("/")
    if not stripped:
        return []
    segments = stripped.split("/")
    for segment in segments:
        if segment in ("", ".", ".."):
            raise ValueError(f"Invalid cache path: {path!r}")
    return segments


def normalize_path(path: str) -> str:
    """Return the canonical form of a cache path ("/a/b", root is "/")."""
    return "/" + "/".join(split_path(path))


def _directory_prefix(path: str) -> str:
    normalized = normalize_path(path)
    return normalized if normalized == "/" else normalized + "/"


class ResourceTierBackend(ABC):
    """Capability interface shared by the cache tiers."""

    @property
    @abstractmethod
    def tier(self) -> ResourceTier:
        """Which tier this backend implements."""
        ...

    @property
    def read_only(self) -> bool:
        """True when write and delete are not supported."""
        return False

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read file content.

        Raises:
            ResourceNotFoundError: If no file exists at path.
            StorageFailureError: On I/O failure.
        """
        ...

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Create or replace the file at path."""
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete the file at path. Returns False when it did not exist."""
        ...

    @abstractmethod
    def is_file(self, path: str) -> bool:
        """True when a file exists at path."""
        ...

    @abstractmethod
    def is_directory(self, path: str) -> bool:
        """True when path is a directory (has files below it)."""
        ...

    @abstractmethod
    def list_files(self, path: str) -> list[str]:
        """Recursively list file paths below a directory path."""
        ...

    def exists(self, path: str) -> bool:
        """True when path is a file or a directory."""
        return self.is_file(path) or self.is_directory(path)

    def size(self, path: str) -> int | None:
        """Size of the file at path in bytes (None when absent)."""
        if not self.is_file(path):
            return None
        return len(self.read(path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tier={self.tier.value!r})"


class MemoryTier(ResourceTierBackend):
    """
    In-memory tier.

    Content is stored as immutable bytes and swapped under a lock, so a
    reader sees either the previous or the new content of a path.
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._lock = threading.Lock()

    @property
    def tier(self) -> ResourceTier:
        return ResourceTier.MEMORY

    def read(self, path: str) -> bytes:
        key = normalize_path(path)
        with self._lock:
            data = self._files.get(key)
        if data is None:
            raise ResourceNotFoundError(key)
        return data

    def write(self, path: str, data: bytes) -> None:
        key = normalize_path(path)
        content = bytes(data)
        with self._lock:
            self._files[key] = content

    def delete(self, path: str) -> bool:
        key = normalize_path(path)
        with self._lock:
            return self._files.pop(key, None) is not None

    def is_file(self, path: str) -> bool:
        key = normalize_path(path)
        with self._lock:
            return key in self._files

    def is_directory(self, path: str) -> bool:
        prefix = _directory_prefix(path)
        with self._lock:
            return any(key.startswith(prefix) for key in self._files)

    def list_files(self, path: str) -> list[str]:
        prefix = _directory_prefix(path)
        with self._lock:
            return sorted(key for key in self._files if key.startswith(prefix))

    def size(self, path: str) -> int | None:
        key = normalize_path(path)
        with self._lock:
            data = self._files.get(key)
        return None if data is None else len(data)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._files.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)


class BundledTier(ResourceTierBackend):
    """
    Read-only tier over a fixture tree.

    Cache path "/V40/Customers.xml" maps to <root>/V40/Customers.xml.
    """

    def __init__(self, root: Traversable | Path) -> None:
        self._root = root

    @classmethod
    def from_package(cls) -> BundledTier:
        """Tier over the fixtures shipped inside the fitstore package."""
        return cls(resources.files(BUNDLED_PACKAGE) / BUNDLED_DIR)

    @property
    def tier(self) -> ResourceTier:
        return ResourceTier.BACKING

    @property
    def read_only(self) -> bool:
        return True

    @property
    def root(self) -> Traversable | Path:
        """Root of the fixture tree."""
        return self._root

    def _locate(self, path: str) -> Traversable | Path:
        segments = split_path(path)
        return self._root.joinpath(*segments) if segments else self._root

    def read(self, path: str) -> bytes:
        node = self._locate(path)
        try:
            if not node.is_file():
                raise ResourceNotFoundError(normalize_path(path))
            return node.read_bytes()
        except OSError as exc:
            raise StorageFailureError(f"Cannot read bundled resource {path}: {exc}") from exc

    def write(self, path: str, data: bytes) -> None:
        raise ReadOnlyTierError(f"Bundled tier is read-only, cannot write {path}")

    def delete(self, path: str) -> bool:
        raise ReadOnlyTierError(f"Bundled tier is read-only, cannot delete {path}")

    def is_file(self, path: str) -> bool:
        try:
            return self._locate(path).is_file()
        except OSError:
            return False

    def is_directory(self, path: str) -> bool:
        try:
            return self._locate(path).is_dir()
        except OSError:
            return False

    def list_files(self, path: str) -> list[str]:
        base = normalize_path(path)
        node = self._locate(path)
        if not self.is_directory(path):
            return []
        found: list[str] = []
        self._walk(node, base.rstrip("/"), found)
        return sorted(found)

    def _walk(self, node: Traversable | Path, base: str, found: list[str]) -> None:
        try:
            children = list(node.iterdir())
        except OSError as exc:
            raise StorageFailureError(f"Cannot list bundled resources under {base}: {exc}") from exc
        for child in children:
            child_path = f"{base}/{child.name}"
            if child.is_dir():
                self._walk(child, child_path, found)
            elif child.is_file():
                found.append(child_path)

    def __repr__(self) -> str:
        return f"BundledTier(root={str(self._root)!r})"
