"""
Per-version cache registry.

One ResourceCache exists per protocol version. It is created on first use,
lives for the rest of the process and is never torn down. Creation is
guarded by a lock so concurrent first requests for a version all receive
the same instance.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from fitstore.config import FitStoreConfig
from fitstore.storage.cache import ResourceCache
from fitstore.storage.tiers import BundledTier, MemoryTier, ResourceTierBackend
from fitstore.versions import ProtocolVersion

logger = logging.getLogger(__name__)

TierFactory = Callable[[], ResourceTierBackend]


class VersionRegistry:
    """Registry holding one ResourceCache per protocol version."""

    def __init__(
        self,
        config: FitStoreConfig | None = None,
        *,
        memory_factory: TierFactory = MemoryTier,
        backing_factory: TierFactory | None = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            config: Runtime configuration (default: FitStoreConfig()).
            memory_factory: Builds the memory tier of each new cache.
            backing_factory: Builds the backing tier of each new cache
                (default: config.resource_root, else the bundled fixtures).
        """
        self._config = config or FitStoreConfig()
        self._memory_factory = memory_factory
        self._backing_factory = backing_factory or self._default_backing
        self._caches: dict[ProtocolVersion, ResourceCache] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> FitStoreConfig:
        """Runtime configuration."""
        return self._config

    def _default_backing(self) -> ResourceTierBackend:
        if self._config.resource_root is not None:
            return BundledTier(self._config.resource_root)
        return BundledTier.from_package()

    def instance(self, version: ProtocolVersion | str | None = None) -> ResourceCache:
        """
        Get the cache for a version, creating it on first request.

        Args:
            version: Protocol version (default: config.default_version).

        Returns:
            The single ResourceCache registered for the version.
        """
        key = ProtocolVersion.parse(version or self._config.default_version)
        cache = self._caches.get(key)
        if cache is not None:
            return cache

        with self._lock:
            # Re-check: another thread may have created it while we waited
            cache = self._caches.get(key)
            if cache is None:
                cache = ResourceCache(
                    key,
                    memory=self._memory_factory(),
                    backing=self._backing_factory(),
                )
                self._caches[key] = cache
                logger.info("Created resource cache", extra={"version": key.value})
        return cache

    def versions(self) -> list[ProtocolVersion]:
        """Versions with a cache, in creation order."""
        with self._lock:
            return list(self._caches)

    def __contains__(self, version: object) -> bool:
        try:
            key = ProtocolVersion.parse(version)  # type: ignore[arg-type]
        except ValueError:
            return False
        return key in self._caches


_default_registry: VersionRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> VersionRegistry:
    """Process-wide registry, configured from the environment on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = VersionRegistry(FitStoreConfig.from_env())
    return _default_registry


def get_cache(version: ProtocolVersion | str | None = None) -> ResourceCache:
    """Cache for a version from the process-wide registry."""
    return default_registry().instance(version)
