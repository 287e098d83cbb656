"""
Tiered resource storage.

ResourceCache resolves cache paths against a mutable memory tier backed by
read-only bundled fixtures; VersionRegistry keeps one cache per protocol
version.
"""

from fitstore.storage.cache import CacheMetrics, DeleteResult, ResourceCache, ResourceHandle
from fitstore.storage.errors import (
    ReadOnlyTierError,
    ResourceNotFoundError,
    StorageError,
    StorageFailureError,
)
from fitstore.storage.registry import VersionRegistry, default_registry, get_cache
from fitstore.storage.tiers import (
    BundledTier,
    MemoryTier,
    ResourceTier,
    ResourceTierBackend,
    normalize_path,
)

__all__ = [
    "BundledTier",
    "CacheMetrics",
    "DeleteResult",
    "MemoryTier",
    "ReadOnlyTierError",
    "ResourceCache",
    "ResourceHandle",
    "ResourceNotFoundError",
    "ResourceTier",
    "ResourceTierBackend",
    "StorageError",
    "StorageFailureError",
    "VersionRegistry",
    "default_registry",
    "get_cache",
    "normalize_path",
]
