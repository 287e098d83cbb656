"""
Two-tier resource cache for one protocol version.

Lookups go to the memory tier first. A miss falls through to the read-only
backing tier; a backing hit is copied into memory (promotion) so later reads
of the same path are served from memory alone.

Cache paths follow /<version>/<relative path><format suffix>, e.g.
/V40/Customers.full.json.
"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO

from fitstore.codec.formats import FormatKind, derived_suffix
from fitstore.storage.errors import ResourceNotFoundError, StorageError
from fitstore.storage.tiers import (
    BundledTier,
    MemoryTier,
    ResourceTier,
    ResourceTierBackend,
    normalize_path,
)

if TYPE_CHECKING:
    from fitstore.versions import ProtocolVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceHandle:
    """Metadata handle for a cached resource.

    Attributes:
        path: Canonical cache path.
        tier: Tier the handle was resolved from.
        is_directory: True for directory-like paths.
        size_bytes: Content size for files (None for directories).
    """

    path: str
    tier: ResourceTier
    is_directory: bool = False
    size_bytes: int | None = None

    @property
    def name(self) -> str:
        """Last path segment."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def format_kind(self) -> FormatKind | None:
        """Format derived from the path suffix."""
        return None if self.is_directory else FormatKind.from_path(self.path)


@dataclass
class DeleteResult:
    """Outcome of deleting every format variant of a logical resource.

    Attributes:
        relative_path: Logical resource that was deleted.
        removed: Variants that existed in memory and were removed.
        missing: Variants that were not in memory.
        failed: Variants whose removal raised, with the error message.
    """

    relative_path: str
    removed: list[FormatKind] = field(default_factory=list)
    missing: list[FormatKind] = field(default_factory=list)
    failed: dict[FormatKind, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        """True when no variant failed."""
        return not self.failed


@dataclass
class CacheMetrics:
    """Cache counters."""

    memory_hits: int = 0
    promotions: int = 0
    misses: int = 0
    writes: int = 0
    deletes: int = 0
    delete_failures: int = 0


class ResourceCache:
    """
    Tiered resource cache for one protocol version.

    Usage:
        cache = ResourceCache(ProtocolVersion.V40)
        path = cache.absolute_path("Customers", FormatKind.ATOM)
        cache.put(path, payload)
        data = cache.get(path).read()
    """

    def __init__(
        self,
        version: ProtocolVersion,
        *,
        memory: ResourceTierBackend | None = None,
        backing: ResourceTierBackend | None = None,
    ) -> None:
        """
        Initialize the cache.

        Args:
            version: Protocol version; first segment of every path.
            memory: Mutable tier (default: a fresh MemoryTier).
            backing: Read-only tier (default: fixtures bundled with the package).
        """
        self._version = version
        self._memory = memory if memory is not None else MemoryTier()
        self._backing = backing if backing is not None else BundledTier.from_package()
        self._metrics = CacheMetrics()
        self._metrics_lock = threading.Lock()

    @property
    def version(self) -> ProtocolVersion:
        """Protocol version served by this cache."""
        return self._version

    @property
    def metrics(self) -> CacheMetrics:
        """Current cache counters."""
        return self._metrics

    @property
    def memory(self) -> ResourceTierBackend:
        """Mutable tier."""
        return self._memory

    @property
    def backing(self) -> ResourceTierBackend:
        """Read-only tier."""
        return self._backing

    def absolute_path(self, relative_path: str, format_kind: FormatKind | None = None) -> str:
        """Derive the cache path of a logical resource.

        Args:
            relative_path: Resource path relative to the version root.
            format_kind: Format whose suffix is appended (None for
                directory-like lookups).

        Returns:
            Cache path, e.g. "/V40/Customers.xml".
        """
        suffix = "" if format_kind is None else format_kind.suffix
        return f"/{self._version.value}/{relative_path.strip('/')}{suffix}"

    def put(self, path: str, data: bytes | bytearray | BinaryIO) -> ResourceHandle:
        """
        Write or overwrite the memory entry for path.

        Args:
            path: Cache path.
            data: Content bytes, or a binary stream read to its end.

        Returns:
            Handle of the memory entry.
        """
        content = data.read() if hasattr(data, "read") else bytes(data)
        key = normalize_path(path)
        self._memory.write(key, content)
        self._count("writes")
        logger.info("Stored resource", extra={"path": key, "size_bytes": len(content)})
        return ResourceHandle(path=key, tier=ResourceTier.MEMORY, size_bytes=len(content))

    def get(self, path: str) -> BinaryIO:
        """
        Open the content of path, promoting backing hits into memory.

        Returns:
            Binary stream over the memory entry.

        Raises:
            ResourceNotFoundError: If path is in neither tier.
        """
        return io.BytesIO(self.read(path))

    def read(self, path: str) -> bytes:
        """Read the content of path; same lookup and promotion as get()."""
        key = normalize_path(path)
        logger.debug("Read resource", extra={"path": key})

        if self._memory.is_file(key):
            try:
                data = self._memory.read(key)
            except ResourceNotFoundError:
                # Deleted between the check and the read
                pass
            else:
                self._count("memory_hits")
                return data

        logger.info("Memory miss, trying backing tier", extra={"path": key})
        if not self._backing.is_file(key):
            self._count("misses")
            logger.warning("Resource not found in any tier", extra={"path": key})
            raise ResourceNotFoundError(key)

        content = self._backing.read(key)
        self._memory.write(key, content)
        self._count("promotions")
        logger.info("Promoted resource", extra={"path": key, "size_bytes": len(content)})
        # Serve the promoted memory entry, not the backing bytes
        return self._memory.read(key)

    def read_file(self, relative_path: str, format_kind: FormatKind | None = None) -> BinaryIO:
        """Open a logical resource in the given format."""
        return self.get(self.absolute_path(relative_path, format_kind))

    def exists(self, path: str) -> bool:
        """True when path is a file or directory in either tier."""
        return self._memory.exists(path) or self._backing.exists(path)

    def resolve(self, path: str) -> ResourceHandle:
        """
        Resolve path to a handle without reading or promoting content.

        Directory-like paths resolve too.

        Raises:
            ResourceNotFoundError: If path is in neither tier.
        """
        key = normalize_path(path)
        for backend in (self._memory, self._backing):
            if backend.is_file(key):
                return ResourceHandle(path=key, tier=backend.tier, size_bytes=backend.size(key))
            if backend.is_directory(key):
                return ResourceHandle(path=key, tier=backend.tier, is_directory=True)
        raise ResourceNotFoundError(key)

    def delete(self, relative_path: str) -> DeleteResult:
        """
        Remove every format variant of a logical resource from memory.

        Backing fixtures are never touched and reappear on the next read.
        A failure on one variant is logged and recorded; the remaining
        variants are still attempted and nothing is raised.

        Raises:
            ValueError: If relative_path has empty, "." or ".." segments.
                Checked before any variant is touched.
        """
        normalize_path(self.absolute_path(relative_path))
        result = DeleteResult(relative_path=relative_path)
        for format_kind in FormatKind:
            path = self.absolute_path(relative_path, format_kind)
            logger.info("Delete resource", extra={"path": path})
            try:
                removed = self._memory.delete(path)
            except (StorageError, OSError) as exc:
                logger.warning(
                    "Failed to delete resource variant",
                    extra={"path": path, "format": format_kind.value},
                    exc_info=True,
                )
                result.failed[format_kind] = str(exc)
                self._count("delete_failures")
                continue
            if removed:
                result.removed.append(format_kind)
                self._count("deletes")
            else:
                result.missing.append(format_kind)
        return result

    def find_by_extension(self, root: ResourceHandle, ext: str) -> list[ResourceHandle]:
        """
        Recursively find resources below root whose format suffix is ext.

        The search runs over the tier root was resolved from. The suffix of a
        path is its longest FormatKind suffix, so ".json" does not match
        "Customers.full.json".

        Args:
            root: Handle from resolve(), usually a directory.
            ext: Suffix to match, with or without the leading dot.

        Returns:
            Matching handles sorted by path.
        """
        wanted = ext if ext.startswith(".") else f".{ext}"
        backend = self._memory if root.tier is ResourceTier.MEMORY else self._backing

        if not root.is_directory:
            return [root] if derived_suffix(root.path) == wanted else []

        return [
            ResourceHandle(path=path, tier=backend.tier, size_bytes=backend.size(path))
            for path in backend.list_files(root.path)
            if derived_suffix(path) == wanted
        ]

    def _count(self, counter: str) -> None:
        with self._metrics_lock:
            setattr(self._metrics, counter, getattr(self._metrics, counter) + 1)

    def __repr__(self) -> str:
        return f"ResourceCache(version={self._version.value!r}, backing={self._backing!r})"
