"""
Prometheus metrics exporter for the resource caches.

Exports low-cardinality counters only: the sole label is the protocol
version. Cache paths and resource names never become labels.

Usage:
    registry = CollectorRegistry()
    exporter = CacheMetricsExporter(registry=registry)
    exporter.update(cache)
    # generate_latest(registry) -> bytes for a /metrics endpoint
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter
from prometheus_client.registry import CollectorRegistry

if TYPE_CHECKING:
    from fitstore.storage import ResourceCache

# Labels that would explode cardinality
FORBIDDEN_LABELS = frozenset({"path", "resource", "relative_path", "format"})

# CacheMetrics field -> (metric name, help text)
METRIC_DEFINITIONS: dict[str, tuple[str, str]] = {
    "memory_hits": ("fitstore_cache_memory_hits", "Reads served from the memory tier"),
    "promotions": ("fitstore_cache_promotions", "Backing tier hits copied into memory"),
    "misses": ("fitstore_cache_misses", "Reads absent from both tiers"),
    "writes": ("fitstore_cache_writes", "Memory tier writes"),
    "deletes": ("fitstore_cache_deletes", "Memory tier entries removed"),
    "delete_failures": ("fitstore_cache_delete_failures", "Variant deletions that failed"),
}

REQUIRED_METRIC_NAMES = frozenset(name for name, _ in METRIC_DEFINITIONS.values())


class CacheMetricsExporter:
    """
    Mirrors ResourceCache counters into Prometheus counters.

    CacheMetrics are cumulative, so update() increments each Prometheus
    counter by the delta since the previous update of the same version.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Args:
            registry: Prometheus CollectorRegistry. If None, a private one is created.
        """
        self._registry = registry or CollectorRegistry()
        self._counters: dict[str, Counter] = {
            field_name: Counter(name, help_text, ["version"], registry=self._registry)
            for field_name, (name, help_text) in METRIC_DEFINITIONS.items()
        }
        self._last: dict[tuple[str, str], int] = {}

    @property
    def registry(self) -> CollectorRegistry:
        """Registry the counters are registered in."""
        return self._registry

    def update(self, cache: ResourceCache) -> None:
        """Publish the counters of one cache."""
        version = cache.version.value
        metrics = cache.metrics
        for field_name, counter in self._counters.items():
            current = getattr(metrics, field_name)
            previous = self._last.get((version, field_name), 0)
            if current > previous:
                counter.labels(version=version).inc(current - previous)
            self._last[(version, field_name)] = current
