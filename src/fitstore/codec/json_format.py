"""
JSON codecs with full, minimal and no metadata.

Collection document:

    {"@odata.context": "$metadata#Collection($ref)",   (reference collections)
     "@odata.count": 2,                                (optional)
     "value": [...],
     "@odata.nextLink": "..."}                         (optional)

Entity object by metadata level:

    full     @odata.type, @odata.id, and "<Name>@odata.type" for every
             non-null property
    minimal  @odata.type, @odata.id, and "<Name>@odata.type" only where the
             JSON value cannot carry the type (Decimal, DateTimeOffset,
             non-finite Double)
    none     property values only

Reference-only entities are {"@odata.id": "..."}. With metadata they are
marked by an @odata.context ending in "$ref" (on the collection when every
entity is a reference, otherwise on the item). Without metadata any object
carrying @odata.id is a reference, since populated entities never carry one.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

import orjson

from fitstore.codec.base import FormatCodec, Model
from fitstore.codec.formats import FormatKind
from fitstore.model import EdmType, Entity, EntitySet, Property
from fitstore.model.edm import from_json_value, to_json_value

CONTEXT = "@odata.context"
COUNT = "@odata.count"
NEXT_LINK = "@odata.nextLink"
ID = "@odata.id"
TYPE = "@odata.type"
VALUE = "value"

REF_CONTEXT = "$metadata#$ref"
REF_COLLECTION_CONTEXT = "$metadata#Collection($ref)"


class MetadataLevel(str, Enum):
    """odata.metadata verbosity."""

    FULL = "full"
    MINIMAL = "minimal"
    NONE = "none"


_LEVEL_FORMATS: dict[MetadataLevel, FormatKind] = {
    MetadataLevel.FULL: FormatKind.JSON_FULL_METADATA,
    MetadataLevel.MINIMAL: FormatKind.JSON_MINIMAL_METADATA,
    MetadataLevel.NONE: FormatKind.JSON_NO_METADATA,
}


def _minimal_needs_annotation(edm_type: EdmType, value: Any) -> bool:
    if edm_type in (EdmType.DECIMAL, EdmType.DATE_TIME_OFFSET):
        return True
    return edm_type is EdmType.DOUBLE and not math.isfinite(value)


class JsonCodec(FormatCodec):
    """Codec for the JSON format at one metadata level."""

    def __init__(self, metadata: MetadataLevel) -> None:
        self._metadata = metadata

    @property
    def format_kind(self) -> FormatKind:
        return _LEVEL_FORMATS[self._metadata]

    @property
    def metadata(self) -> MetadataLevel:
        """Metadata level of this codec."""
        return self._metadata

    @property
    def _with_metadata(self) -> bool:
        return self._metadata is not MetadataLevel.NONE

    # --- encoding ---

    def _encode_entity(self, entity: Entity) -> bytes:
        return orjson.dumps(self._entity_object(entity, in_ref_collection=False))

    def _encode_entity_set(self, entity_set: EntitySet) -> bytes:
        ref_collection = entity_set.is_reference_collection
        doc: dict[str, Any] = {}
        if self._with_metadata and ref_collection:
            doc[CONTEXT] = REF_COLLECTION_CONTEXT
        if entity_set.count is not None:
            doc[COUNT] = entity_set.count
        doc[VALUE] = [
            self._entity_object(entity, in_ref_collection=ref_collection)
            for entity in entity_set.entities
        ]
        if entity_set.next_link is not None:
            doc[NEXT_LINK] = entity_set.next_link
        return orjson.dumps(doc)

    def _entity_object(self, entity: Entity, *, in_ref_collection: bool) -> dict[str, Any]:
        obj: dict[str, Any] = {}
        if entity.is_reference:
            if self._with_metadata and not in_ref_collection:
                obj[CONTEXT] = REF_CONTEXT
            obj[ID] = entity.reference
            return obj

        if self._with_metadata:
            if entity.type_name is not None:
                obj[TYPE] = f"#{entity.type_name}"
            if entity.id is not None:
                obj[ID] = entity.id

        for prop in entity.properties:
            edm_type = prop.edm_type
            if edm_type is not None and self._annotate(edm_type, prop.value):
                obj[f"{prop.name}{TYPE}"] = f"#{edm_type.short_name}"
            obj[prop.name] = to_json_value(prop.value)
        return obj

    def _annotate(self, edm_type: EdmType, value: Any) -> bool:
        if self._metadata is MetadataLevel.FULL:
            return True
        if self._metadata is MetadataLevel.MINIMAL:
            return _minimal_needs_annotation(edm_type, value)
        return False

    # --- decoding ---

    def _decode(self, data: bytes) -> Model:
        try:
            doc = orjson.loads(data)
        except orjson.JSONDecodeError as exc:
            raise self.malformed(f"invalid JSON: {exc}") from exc

        if not isinstance(doc, dict):
            raise self.malformed(f"expected a JSON object, got {type(doc).__name__}")

        if isinstance(doc.get(VALUE), list):
            return self._decode_entity_set(doc)
        return self._decode_entity(doc, in_ref_collection=False)

    def _decode_entity_set(self, doc: dict[str, Any]) -> EntitySet:
        context = doc.get(CONTEXT)
        ref_collection = isinstance(context, str) and context.endswith("Collection($ref)")

        entities: list[Entity] = []
        for item in doc[VALUE]:
            if not isinstance(item, dict):
                raise self.malformed(f"collection item is not an object: {item!r}")
            entities.append(self._decode_entity(item, in_ref_collection=ref_collection))

        return EntitySet(
            entities=tuple(entities),
            next_link=self._optional_str(doc, NEXT_LINK),
            count=self._decode_count(doc.get(COUNT)),
        )

    def _decode_count(self, raw: Any) -> int | None:
        if raw is None:
            return None
        # IEEE754Compatible payloads send the count as a string
        if isinstance(raw, str) and raw.isdigit():
            return int(raw)
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        raise self.malformed(f"invalid {COUNT}: {raw!r}")

    def _optional_str(self, obj: dict[str, Any], key: str) -> str | None:
        value = obj.get(key)
        if value is None or isinstance(value, str):
            return value
        raise self.malformed(f"{key} must be a string, got {value!r}")

    def _is_reference(self, obj: dict[str, Any], *, in_ref_collection: bool) -> bool:
        if in_ref_collection:
            return True
        context = obj.get(CONTEXT)
        if isinstance(context, str) and context.endswith("$ref"):
            return True
        return not self._with_metadata and ID in obj

    def _decode_entity(self, obj: dict[str, Any], *, in_ref_collection: bool) -> Entity:
        names = [key for key in obj if "@" not in key]

        if self._is_reference(obj, in_ref_collection=in_ref_collection):
            if names:
                raise self.malformed(f"reference carries properties: {names}")
            reference = self._optional_str(obj, ID)
            if reference is None:
                raise self.malformed(f"reference without {ID}")
            return Entity(reference=reference)

        type_name = self._optional_str(obj, TYPE)
        properties: list[Property] = []
        for name in names:
            annotation = self._optional_str(obj, f"{name}{TYPE}")
            edm_type = EdmType.parse(annotation) if annotation else None
            properties.append(Property(name=name, value=from_json_value(obj[name], edm_type)))

        return Entity(
            properties=tuple(properties),
            id=self._optional_str(obj, ID),
            type_name=type_name.removeprefix("#") if type_name else None,
        )
