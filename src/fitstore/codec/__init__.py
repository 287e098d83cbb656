"""
Multi-format entity / entity-set codec.

Converts between the fitstore.model objects and Atom or JSON (full,
minimal, no metadata) documents. Every format satisfies
decode(encode(x, f), f) == x for the models it can represent.
"""

from fitstore.codec.atom import AtomCodec
from fitstore.codec.base import (
    CodecError,
    EncodingFailureError,
    FormatCodec,
    MalformedDocumentError,
)
from fitstore.codec.dispatch import CODECS, decode, encode, get_codec
from fitstore.codec.formats import FORMAT_INFO, FormatInfo, FormatKind, derived_suffix
from fitstore.codec.json_format import JsonCodec, MetadataLevel

__all__ = [
    "CODECS",
    "FORMAT_INFO",
    "AtomCodec",
    "CodecError",
    "EncodingFailureError",
    "FormatCodec",
    "FormatInfo",
    "FormatKind",
    "JsonCodec",
    "MalformedDocumentError",
    "MetadataLevel",
    "decode",
    "derived_suffix",
    "encode",
    "get_codec",
]
