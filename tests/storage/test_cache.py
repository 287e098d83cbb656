"""Tests for the two-tier resource cache."""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import pytest

from fitstore.codec import FormatKind
from fitstore.storage import (
    BundledTier,
    MemoryTier,
    ResourceCache,
    ResourceHandle,
    ResourceNotFoundError,
    ResourceTier,
    StorageFailureError,
)
from fitstore.versions import ProtocolVersion

if TYPE_CHECKING:
    from pathlib import Path


class FailingMemoryTier(MemoryTier):
    """Memory tier whose deletes fail for paths with a given suffix."""

    def __init__(self, failing_suffix: str) -> None:
        super().__init__()
        self._failing_suffix = failing_suffix

    def delete(self, path: str) -> bool:
        if path.endswith(self._failing_suffix):
            raise StorageFailureError(f"disk on fire: {path}")
        return super().delete(path)


@pytest.fixture
def fixture_root(tmp_path: Path) -> Path:
    v40 = tmp_path / "V40"
    (v40 / "nested").mkdir(parents=True)
    (v40 / "Customers.xml").write_bytes(b"<feed>backing</feed>")
    (v40 / "Customers.full.json").write_bytes(b'{"value": []}')
    (v40 / "Customers.json").write_bytes(b'{"value": []}')
    (v40 / "nested" / "Orders.json").write_bytes(b'{"value": []}')
    (v40 / "README").write_bytes(b"fixtures")
    return tmp_path


@pytest.fixture
def cache(fixture_root: Path) -> ResourceCache:
    return ResourceCache(ProtocolVersion.V40, backing=BundledTier(fixture_root))


class TestAbsolutePath:
    """Tests for cache path derivation."""

    def test_with_format(self, cache: ResourceCache) -> None:
        assert cache.absolute_path("Customers", FormatKind.ATOM) == "/V40/Customers.xml"
        assert (
            cache.absolute_path("/Customers/", FormatKind.JSON_FULL_METADATA)
            == "/V40/Customers.full.json"
        )

    def test_without_format(self, cache: ResourceCache) -> None:
        assert cache.absolute_path("nested") == "/V40/nested"

    def test_distinct_paths_per_format(self, cache: ResourceCache) -> None:
        paths = {cache.absolute_path("Customers", kind) for kind in FormatKind}
        assert len(paths) == len(FormatKind)


class TestPutGet:
    """Writes are visible to subsequent reads."""

    def test_put_then_get(self, cache: ResourceCache) -> None:
        handle = cache.put("/V40/New.xml", b"<entry/>")
        assert handle == ResourceHandle(
            path="/V40/New.xml", tier=ResourceTier.MEMORY, size_bytes=8
        )
        assert cache.get("/V40/New.xml").read() == b"<entry/>"

    def test_put_from_stream(self, cache: ResourceCache) -> None:
        cache.put("/V40/New.json", io.BytesIO(b"{}"))
        assert cache.read("/V40/New.json") == b"{}"

    def test_put_overrides_backing(self, cache: ResourceCache) -> None:
        cache.put("/V40/Customers.xml", b"<feed>memory</feed>")
        assert cache.read("/V40/Customers.xml") == b"<feed>memory</feed>"

    def test_latest_write_wins(self, cache: ResourceCache) -> None:
        cache.put("/V40/New.xml", b"one")
        cache.put("/V40/New.xml", b"two")
        assert cache.read("/V40/New.xml") == b"two"
        assert cache.metrics.writes == 2

    def test_read_file_by_format(self, cache: ResourceCache) -> None:
        with cache.read_file("Customers", FormatKind.ATOM) as stream:
            assert stream.read() == b"<feed>backing</feed>"


class TestPromotion:
    """Backing hits are copied into memory on first read."""

    def test_first_read_promotes(self, cache: ResourceCache) -> None:
        assert not cache.memory.is_file("/V40/Customers.xml")
        assert cache.read("/V40/Customers.xml") == b"<feed>backing</feed>"
        assert cache.memory.is_file("/V40/Customers.xml")
        assert cache.metrics.promotions == 1

    def test_second_read_served_from_memory(self, cache: ResourceCache) -> None:
        cache.read("/V40/Customers.xml")
        cache.read("/V40/Customers.xml")
        assert cache.metrics.promotions == 1
        assert cache.metrics.memory_hits == 1

    def test_promoted_copy_survives_backing_removal(
        self, cache: ResourceCache, fixture_root: Path
    ) -> None:
        cache.read("/V40/Customers.xml")
        (fixture_root / "V40" / "Customers.xml").unlink()
        assert cache.read("/V40/Customers.xml") == b"<feed>backing</feed>"

    def test_promoted_copy_detached_from_backing_changes(
        self, cache: ResourceCache, fixture_root: Path
    ) -> None:
        cache.read("/V40/Customers.xml")
        (fixture_root / "V40" / "Customers.xml").write_bytes(b"<feed>changed</feed>")
        assert cache.read("/V40/Customers.xml") == b"<feed>backing</feed>"

    def test_promotion_logged(self, cache: ResourceCache, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="fitstore.storage.cache"):
            cache.read("/V40/Customers.xml")
        assert "Promoted resource" in caplog.messages


class TestNotFound:
    """Paths absent from both tiers."""

    def test_read_missing_raises(self, cache: ResourceCache) -> None:
        with pytest.raises(ResourceNotFoundError) as exc_info:
            cache.get("/V40/Missing.xml")
        assert exc_info.value.path == "/V40/Missing.xml"
        assert cache.metrics.misses == 1

    def test_missing_logged_as_warning(
        self, cache: ResourceCache, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="fitstore.storage.cache"):
            with pytest.raises(ResourceNotFoundError):
                cache.read("/V40/Missing.xml")
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_miss_does_not_populate_memory(self, cache: ResourceCache) -> None:
        with pytest.raises(ResourceNotFoundError):
            cache.read("/V40/Missing.xml")
        assert len(cache.memory) == 0  # type: ignore[arg-type]

    def test_exists(self, cache: ResourceCache) -> None:
        assert cache.exists("/V40/Customers.xml")
        assert cache.exists("/V40/nested")
        assert not cache.exists("/V40/Missing.xml")


class TestDelete:
    """delete() removes every format variant from memory."""

    def test_removes_all_variants(self, cache: ResourceCache) -> None:
        cache.put(cache.absolute_path("Orders", FormatKind.ATOM), b"<feed/>")
        cache.put(cache.absolute_path("Orders", FormatKind.JSON_FULL_METADATA), b"{}")

        result = cache.delete("Orders")

        assert result.complete
        assert set(result.removed) == {FormatKind.ATOM, FormatKind.JSON_FULL_METADATA}
        assert set(result.missing) == {
            FormatKind.JSON_MINIMAL_METADATA,
            FormatKind.JSON_NO_METADATA,
        }
        for kind in FormatKind:
            assert not cache.memory.is_file(cache.absolute_path("Orders", kind))
        assert cache.metrics.deletes == 2

    def test_deleted_resource_not_found(self, cache: ResourceCache) -> None:
        cache.put(cache.absolute_path("Orders", FormatKind.ATOM), b"<feed/>")
        cache.delete("Orders")
        with pytest.raises(ResourceNotFoundError):
            cache.read_file("Orders", FormatKind.ATOM)

    def test_backing_fixture_reappears(self, cache: ResourceCache, fixture_root: Path) -> None:
        cache.put("/V40/Customers.xml", b"<feed>memory</feed>")
        cache.delete("Customers")
        assert cache.read("/V40/Customers.xml") == b"<feed>backing</feed>"
        assert (fixture_root / "V40" / "Customers.xml").exists()

    def test_nothing_to_delete(self, cache: ResourceCache) -> None:
        result = cache.delete("Nothing")
        assert result.removed == []
        assert set(result.missing) == set(FormatKind)

    @pytest.mark.parametrize("relative_path", ["../Orders", "a/./Orders", "a//Orders"])
    def test_invalid_path_rejected_before_any_variant(
        self, cache: ResourceCache, relative_path: str
    ) -> None:
        cache.put(cache.absolute_path("Orders", FormatKind.ATOM), b"<feed/>")
        with pytest.raises(ValueError, match="Invalid cache path"):
            cache.delete(relative_path)
        assert cache.memory.is_file(cache.absolute_path("Orders", FormatKind.ATOM))
        assert cache.metrics.delete_failures == 0

    def test_failure_recorded_and_rest_attempted(
        self, fixture_root: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        cache = ResourceCache(
            ProtocolVersion.V40,
            memory=FailingMemoryTier(".full.json"),
            backing=BundledTier(fixture_root),
        )
        for kind in FormatKind:
            cache.put(cache.absolute_path("Orders", kind), b"x")

        with caplog.at_level(logging.WARNING, logger="fitstore.storage.cache"):
            result = cache.delete("Orders")

        assert not result.complete
        assert list(result.failed) == [FormatKind.JSON_FULL_METADATA]
        assert "disk on fire" in result.failed[FormatKind.JSON_FULL_METADATA]
        assert len(result.removed) == len(FormatKind) - 1
        assert cache.metrics.delete_failures == 1
        assert "Failed to delete resource variant" in caplog.messages


class TestResolve:
    """resolve() returns handles without promoting."""

    def test_backing_file(self, cache: ResourceCache) -> None:
        handle = cache.resolve("/V40/Customers.xml")
        assert handle.tier is ResourceTier.BACKING
        assert handle.size_bytes == len(b"<feed>backing</feed>")
        assert handle.format_kind is FormatKind.ATOM
        assert handle.name == "Customers.xml"
        assert not cache.memory.is_file("/V40/Customers.xml")

    def test_memory_file_preferred(self, cache: ResourceCache) -> None:
        cache.put("/V40/Customers.xml", b"<x/>")
        assert cache.resolve("/V40/Customers.xml").tier is ResourceTier.MEMORY

    def test_directory(self, cache: ResourceCache) -> None:
        handle = cache.resolve("/V40")
        assert handle.is_directory
        assert handle.size_bytes is None
        assert handle.format_kind is None

    def test_missing(self, cache: ResourceCache) -> None:
        with pytest.raises(ResourceNotFoundError):
            cache.resolve("/V40/Missing")


class TestFindByExtension:
    """Recursive search by derived suffix."""

    def test_json_excludes_full_json(self, cache: ResourceCache) -> None:
        found = cache.find_by_extension(cache.resolve("/V40"), ".json")
        assert [h.path for h in found] == ["/V40/Customers.json", "/V40/nested/Orders.json"]

    def test_full_json(self, cache: ResourceCache) -> None:
        found = cache.find_by_extension(cache.resolve("/V40"), "full.json")
        assert [h.path for h in found] == ["/V40/Customers.full.json"]

    def test_no_matches(self, cache: ResourceCache) -> None:
        assert cache.find_by_extension(cache.resolve("/V40"), ".nometa.json") == []

    def test_file_root(self, cache: ResourceCache) -> None:
        root = cache.resolve("/V40/Customers.xml")
        assert cache.find_by_extension(root, ".xml") == [root]
        assert cache.find_by_extension(root, ".json") == []

    def test_memory_root(self, cache: ResourceCache) -> None:
        cache.put("/V40/mem/a.xml", b"<x/>")
        cache.put("/V40/mem/b.json", b"{}")
        found = cache.find_by_extension(cache.resolve("/V40/mem"), ".xml")
        assert [(h.path, h.tier) for h in found] == [("/V40/mem/a.xml", ResourceTier.MEMORY)]


class TestBundledFixtures:
    """Default cache over the fixtures shipped with the package."""

    def test_reads_bundled_customers(self) -> None:
        cache = ResourceCache(ProtocolVersion.V40)
        data = cache.read_file("Customers", FormatKind.ATOM).read()
        assert b"<feed" in data
        assert cache.resolve("/V40/Customers.xml").tier is ResourceTier.MEMORY
