"""
Wire format kinds.

Each FormatKind carries the file suffix used to derive cache paths and the
media type the HTTP layer negotiates on. Both live in FORMAT_INFO so that a
new format is one enum member, one table row and one codec.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FormatKind(str, Enum):
    """Supported wire formats."""

    ATOM = "atom"
    JSON_FULL_METADATA = "json_full_metadata"
    JSON_MINIMAL_METADATA = "json_minimal_metadata"
    JSON_NO_METADATA = "json_no_metadata"

    @property
    def suffix(self) -> str:
        """File suffix appended to cache paths, e.g. ".xml"."""
        return FORMAT_INFO[self].suffix

    @property
    def media_type(self) -> str:
        """Media type including format parameters."""
        return FORMAT_INFO[self].media_type

    @classmethod
    def from_media_type(cls, media_type: str) -> FormatKind:
        """Select the format for a media type.

        Plain "application/json" selects minimal metadata. Parameters other
        than odata.metadata (charset, q, ...) are ignored.

        Raises:
            ValueError: If the media type names no supported format.
        """
        base, _, raw_params = media_type.partition(";")
        base = base.strip().lower()
        params: dict[str, str] = {}
        for part in raw_params.split(";"):
            key, sep, value = part.partition("=")
            if sep:
                params[key.strip().lower()] = value.strip().strip('"').lower()

        if base in ("application/atom+xml", "application/xml"):
            return cls.ATOM
        if base == "application/json":
            metadata = params.get("odata.metadata", "minimal")
            for kind in (cls.JSON_FULL_METADATA, cls.JSON_MINIMAL_METADATA, cls.JSON_NO_METADATA):
                if FORMAT_INFO[kind].metadata == metadata:
                    return kind
            raise ValueError(f"Unsupported odata.metadata value: {metadata!r}")
        raise ValueError(f"Unsupported media type: {media_type!r}")

    @classmethod
    def from_path(cls, name: str) -> FormatKind | None:
        """Derive the format of a cache path from its longest matching suffix."""
        matches = [kind for kind in cls if name.endswith(kind.suffix)]
        if not matches:
            return None
        return max(matches, key=lambda kind: len(kind.suffix))


@dataclass(frozen=True)
class FormatInfo:
    """Static description of a wire format.

    Attributes:
        suffix: Cache path suffix.
        media_type: Media type with format parameters.
        metadata: odata.metadata level for JSON formats (None otherwise).
    """

    suffix: str
    media_type: str
    metadata: str | None = None


FORMAT_INFO: dict[FormatKind, FormatInfo] = {
    FormatKind.ATOM: FormatInfo(
        suffix=".xml",
        media_type="application/atom+xml",
    ),
    FormatKind.JSON_FULL_METADATA: FormatInfo(
        suffix=".full.json",
        media_type="application/json;odata.metadata=full",
        metadata="full",
    ),
    FormatKind.JSON_MINIMAL_METADATA: FormatInfo(
        suffix=".json",
        media_type="application/json;odata.metadata=minimal",
        metadata="minimal",
    ),
    FormatKind.JSON_NO_METADATA: FormatInfo(
        suffix=".nometa.json",
        media_type="application/json;odata.metadata=none",
        metadata="none",
    ),
}


def derived_suffix(name: str) -> str:
    """Return the format suffix of a path.

    The longest FormatKind suffix wins, so "a.full.json" yields ".full.json"
    rather than ".json". Paths with no known suffix fall back to their last
    extension ("" when there is none).
    """
    kind = FormatKind.from_path(name)
    if kind is not None:
        return kind.suffix
    leaf = name.rsplit("/", 1)[-1]
    dot = leaf.rfind(".")
    return leaf[dot:] if dot > 0 else ""
