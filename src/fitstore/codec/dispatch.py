"""Format dispatch table and module-level encode/decode."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fitstore.codec.atom import AtomCodec
from fitstore.codec.formats import FormatKind
from fitstore.codec.json_format import JsonCodec, MetadataLevel

if TYPE_CHECKING:
    from fitstore.codec.base import FormatCodec, Model

CODECS: dict[FormatKind, FormatCodec] = {
    FormatKind.ATOM: AtomCodec(),
    FormatKind.JSON_FULL_METADATA: JsonCodec(MetadataLevel.FULL),
    FormatKind.JSON_MINIMAL_METADATA: JsonCodec(MetadataLevel.MINIMAL),
    FormatKind.JSON_NO_METADATA: JsonCodec(MetadataLevel.NONE),
}


def get_codec(format_kind: FormatKind | str) -> FormatCodec:
    """Get the codec for a format.

    Raises:
        ValueError: If the format is unknown or has no codec.
    """
    kind = FormatKind(format_kind)
    try:
        return CODECS[kind]
    except KeyError:
        raise ValueError(f"No codec registered for format {kind.value!r}") from None


def encode(model: Model, format_kind: FormatKind | str) -> bytes:
    """Encode an entity or entity set in the given format."""
    return get_codec(format_kind).encode(model)


def decode(data: bytes | bytearray | memoryview | str, format_kind: FormatKind | str) -> Model:
    """Decode a document of the given format."""
    return get_codec(format_kind).decode(data)
