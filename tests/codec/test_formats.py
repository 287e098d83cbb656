"""Tests for format kinds, media types and path suffixes."""

from __future__ import annotations

import pytest

from fitstore.codec import FORMAT_INFO, FormatKind, derived_suffix


class TestFormatKind:
    """Tests for FormatKind metadata."""

    def test_every_kind_has_info(self) -> None:
        assert set(FORMAT_INFO) == set(FormatKind)

    def test_suffixes_unique(self) -> None:
        suffixes = [kind.suffix for kind in FormatKind]
        assert len(suffixes) == len(set(suffixes))

    @pytest.mark.parametrize(
        ("kind", "suffix"),
        [
            (FormatKind.ATOM, ".xml"),
            (FormatKind.JSON_FULL_METADATA, ".full.json"),
            (FormatKind.JSON_MINIMAL_METADATA, ".json"),
            (FormatKind.JSON_NO_METADATA, ".nometa.json"),
        ],
    )
    def test_suffix(self, kind: FormatKind, suffix: str) -> None:
        assert kind.suffix == suffix


class TestFromMediaType:
    """Tests for FormatKind.from_media_type."""

    @pytest.mark.parametrize(
        ("media_type", "expected"),
        [
            ("application/atom+xml", FormatKind.ATOM),
            ("application/xml", FormatKind.ATOM),
            ("application/json", FormatKind.JSON_MINIMAL_METADATA),
            ("application/json;odata.metadata=full", FormatKind.JSON_FULL_METADATA),
            ("application/json; odata.metadata=none; charset=utf-8", FormatKind.JSON_NO_METADATA),
            ("Application/JSON;odata.metadata=Minimal", FormatKind.JSON_MINIMAL_METADATA),
        ],
    )
    def test_known_media_types(self, media_type: str, expected: FormatKind) -> None:
        assert FormatKind.from_media_type(media_type) is expected

    def test_media_type_round_trip(self) -> None:
        for kind in FormatKind:
            assert FormatKind.from_media_type(kind.media_type) is kind

    def test_unknown_media_type_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported media type"):
            FormatKind.from_media_type("text/csv")

    def test_unknown_metadata_level_raises(self) -> None:
        with pytest.raises(ValueError, match="odata.metadata"):
            FormatKind.from_media_type("application/json;odata.metadata=verbose")


class TestSuffixDerivation:
    """The longest matching suffix names the format."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("/V40/Customers.xml", FormatKind.ATOM),
            ("/V40/Customers.json", FormatKind.JSON_MINIMAL_METADATA),
            ("/V40/Customers.full.json", FormatKind.JSON_FULL_METADATA),
            ("/V40/Customers.nometa.json", FormatKind.JSON_NO_METADATA),
            ("/V40/Customers", None),
            ("/V40/notes.txt", None),
        ],
    )
    def test_from_path(self, name: str, expected: FormatKind | None) -> None:
        assert FormatKind.from_path(name) is expected

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Customers.full.json", ".full.json"),
            ("Customers.json", ".json"),
            ("notes.txt", ".txt"),
            ("/V40/Customers", ""),
            ("/V40.d/README", ""),
            ("/V40/.hidden", ""),
        ],
    )
    def test_derived_suffix(self, name: str, expected: str) -> None:
        assert derived_suffix(name) == expected
