"""
fitstore: tiered payload cache and multi-format entity codec.

Serves protocol payloads for a reference data-access service from a
memory tier backed by bundled fixtures, and converts those payloads
between the entity model and Atom / JSON documents.
"""

from fitstore.codec import FormatKind, decode, encode
from fitstore.model import Entity, EntitySet, Property
from fitstore.storage import ResourceCache, VersionRegistry, get_cache
from fitstore.versions import ProtocolVersion

__version__ = "0.1.0"

__all__ = [
    "Entity",
    "EntitySet",
    "FormatKind",
    "ProtocolVersion",
    "Property",
    "ResourceCache",
    "VersionRegistry",
    "decode",
    "encode",
    "get_cache",
]
