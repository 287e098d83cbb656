"""
Base codec protocol and codec errors.

A codec converts between the entity model and the bytes of one wire format.
Subclasses implement the three private hooks; the public encode/decode
methods apply the error contract:

- decode raises MalformedDocumentError for anything that is not a valid
  document of the codec's format.
- encode raises EncodingFailureError, chaining the original exception, when
  the underlying serializer fails.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fitstore.model import Entity, EntitySet

if TYPE_CHECKING:
    from fitstore.codec.formats import FormatKind

logger = logging.getLogger(__name__)

Model = Entity | EntitySet


class CodecError(Exception):
    """Base exception for codec operations."""

    def __init__(self, format_kind: FormatKind, message: str) -> None:
        super().__init__(f"[{format_kind.value}] {message}")
        self.format_kind = format_kind


class MalformedDocumentError(CodecError):
    """Raised when bytes are not a valid document of the requested format."""


class EncodingFailureError(CodecError):
    """Raised when the serializer fails while encoding a valid model."""

    def __init__(self, format_kind: FormatKind, cause: BaseException) -> None:
        super().__init__(format_kind, f"encoding failed: {cause}")
        self.cause = cause


class FormatCodec(ABC):
    """Abstract base class for wire format codecs."""

    @property
    @abstractmethod
    def format_kind(self) -> FormatKind:
        """Format handled by this codec."""
        ...

    def encode(self, model: Model) -> bytes:
        """
        Encode an entity or entity set into a self-contained document.

        Args:
            model: Entity (single-entity document) or EntitySet (collection).

        Returns:
            UTF-8 encoded document bytes.

        Raises:
            TypeError: If model is neither an Entity nor an EntitySet.
            EncodingFailureError: If the serializer fails.
        """
        if not isinstance(model, (Entity, EntitySet)):
            raise TypeError(f"Cannot encode {type(model).__name__}, expected Entity or EntitySet")
        try:
            if isinstance(model, EntitySet):
                data = self._encode_entity_set(model)
            else:
                data = self._encode_entity(model)
        except CodecError:
            raise
        except Exception as exc:
            raise EncodingFailureError(self.format_kind, exc) from exc
        logger.debug(
            "Encoded document",
            extra={"format": self.format_kind.value, "size_bytes": len(data)},
        )
        return data

    def decode(self, data: bytes | bytearray | memoryview | str) -> Model:
        """
        Decode a document into an entity or entity set.

        Args:
            data: Document bytes (str input is taken as UTF-8 text).

        Returns:
            EntitySet for collection documents, Entity otherwise.

        Raises:
            MalformedDocumentError: If data is not valid for this format.
        """
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        try:
            return self._decode(raw)
        except MalformedDocumentError:
            raise
        except (ValueError, TypeError) as exc:
            # pydantic ValidationError is a ValueError
            raise MalformedDocumentError(self.format_kind, str(exc)) from exc

    @abstractmethod
    def _encode_entity(self, entity: Entity) -> bytes:
        """Encode a single-entity document."""
        ...

    @abstractmethod
    def _encode_entity_set(self, entity_set: EntitySet) -> bytes:
        """Encode a collection document."""
        ...

    @abstractmethod
    def _decode(self, data: bytes) -> Model:
        """Decode document bytes."""
        ...

    def malformed(self, message: str) -> MalformedDocumentError:
        """Build a MalformedDocumentError for this codec's format."""
        return MalformedDocumentError(self.format_kind, message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(format_kind={self.format_kind.value!r})"
