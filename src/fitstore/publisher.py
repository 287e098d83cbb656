"""
Publish models into a resource cache and load them back.

publish() encodes a model once per format and stores each document under
the format's cache path; load() reads one variant and decodes it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from fitstore.codec import FormatKind, decode, encode

if TYPE_CHECKING:
    from fitstore.codec.base import Model
    from fitstore.storage import ResourceCache, ResourceHandle

logger = logging.getLogger(__name__)

# Formats stored for every published entry
DEFAULT_PUBLISH_FORMATS: tuple[FormatKind, ...] = (
    FormatKind.ATOM,
    FormatKind.JSON_FULL_METADATA,
)


def publish(
    cache: ResourceCache,
    relative_path: str,
    model: Model,
    formats: Iterable[FormatKind] = DEFAULT_PUBLISH_FORMATS,
) -> dict[FormatKind, ResourceHandle]:
    """
    Encode a model in each format and store the documents.

    Every format is encoded before anything is stored, so an encoding
    failure leaves the cache untouched.

    Args:
        cache: Target cache.
        relative_path: Logical resource path, e.g. "Customers(1)".
        model: Entity or EntitySet to publish.
        formats: Formats to store.

    Returns:
        Handle of each stored document by format.

    Raises:
        EncodingFailureError: If a format fails to encode.
    """
    documents = {format_kind: encode(model, format_kind) for format_kind in formats}

    handles: dict[FormatKind, ResourceHandle] = {}
    for format_kind, document in documents.items():
        path = cache.absolute_path(relative_path, format_kind)
        handles[format_kind] = cache.put(path, document)

    logger.info(
        "Published resource",
        extra={"resource": relative_path, "formats": [k.value for k in handles]},
    )
    return handles


def load(cache: ResourceCache, relative_path: str, format_kind: FormatKind) -> Model:
    """
    Read one format variant of a logical resource and decode it.

    Raises:
        ResourceNotFoundError: If the variant is in neither tier.
        MalformedDocumentError: If the stored bytes do not decode.
    """
    with cache.read_file(relative_path, format_kind) as stream:
        return decode(stream.read(), format_kind)
