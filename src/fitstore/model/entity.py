"""
Entity and entity-set model.

These are the in-memory shapes every wire format encodes and decodes.
All models are frozen; equality is structural (field by field, in order).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from fitstore.model.edm import INT64_MAX, INT64_MIN, EdmType, edm_type_of

# OData simple identifier, also a valid XML local name and JSON member name
PROPERTY_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

# Characters outside the XML 1.0 Char production
_XML_ILLEGAL_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

PropertyValue = bool | int | float | Decimal | datetime | str | None


def check_xml_text(value: str | None, field: str) -> str | None:
    """Reject text that no XML document can hold."""
    if value is not None:
        match = _XML_ILLEGAL_CHARS.search(value)
        if match is not None:
            raise ValueError(
                f"{field} contains a character not allowed in XML: {match.group()!r}"
            )
    return value


class Property(BaseModel):
    """
    Named primitive property of an entity.

    Attributes:
        name: Property name (OData simple identifier).
        value: Primitive value; its EDM type is derived from the Python type.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., pattern=PROPERTY_NAME_PATTERN, description="Property name")
    value: PropertyValue = Field(default=None, description="Primitive property value")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: Any) -> Any:
        """Reject values no wire format can carry.

        DateTimeOffset needs an offset, integers must fit Edm.Int64 and
        strings must be valid XML text.
        """
        if isinstance(v, datetime) and v.utcoffset() is None:
            raise ValueError("datetime property values must be timezone-aware")
        if isinstance(v, int) and not isinstance(v, bool) and not INT64_MIN <= v <= INT64_MAX:
            raise ValueError(f"integer property value outside the Edm.Int64 range: {v}")
        if isinstance(v, str):
            check_xml_text(v, "string property value")
        return v

    @property
    def edm_type(self) -> EdmType | None:
        """EDM type of the value (None for null)."""
        return edm_type_of(self.value)


class Entity(BaseModel):
    """
    Single entity, either fully populated or reference-only.

    A reference-only entity carries nothing but its reference URI: it has
    no properties, no id and no type name.

    Attributes:
        properties: Ordered, uniquely named properties.
        id: Entity id URI.
        type_name: Qualified entity type name (e.g. "NS.Customer").
        reference: Reference URI; set only on reference-only entities.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    properties: tuple[Property, ...] = Field(default=(), description="Ordered properties")
    id: str | None = Field(default=None, min_length=1, description="Entity id URI")
    type_name: str | None = Field(default=None, min_length=1, description="Entity type name")
    reference: str | None = Field(default=None, min_length=1, description="Reference URI")

    @field_validator("id", "type_name", "reference")
    @classmethod
    def validate_text(cls, v: str | None, info: ValidationInfo) -> str | None:
        """Identifiers must be valid XML text."""
        return check_xml_text(v, info.field_name or "value")

    @model_validator(mode="after")
    def validate_shape(self) -> Entity:
        """Enforce unique property names and the reference-only shape."""
        seen: set[str] = set()
        for prop in self.properties:
            if prop.name in seen:
                raise ValueError(f"Duplicate property name: {prop.name}")
            seen.add(prop.name)
        if self.reference is not None and (self.properties or self.id or self.type_name):
            raise ValueError("Reference-only entities carry no properties, id or type name")
        return self

    @property
    def is_reference(self) -> bool:
        """True for reference-only entities."""
        return self.reference is not None

    @property
    def property_names(self) -> list[str]:
        """Property names in order."""
        return [p.name for p in self.properties]

    def get_property(self, name: str) -> Property | None:
        """Get property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def values(self) -> dict[str, Any]:
        """Property values keyed by name, in order."""
        return {p.name: p.value for p in self.properties}

    @classmethod
    def from_values(
        cls,
        values: Mapping[str, Any],
        *,
        id: str | None = None,
        type_name: str | None = None,
    ) -> Entity:
        """Create a populated entity from a name -> value mapping."""
        return cls(
            properties=tuple(Property(name=k, value=v) for k, v in values.items()),
            id=id,
            type_name=type_name,
        )

    @classmethod
    def ref(cls, reference: str) -> Entity:
        """Create a reference-only entity."""
        return cls(reference=reference)


class EntitySet(BaseModel):
    """
    Ordered collection of entities with optional paging information.

    Attributes:
        entities: Entities in order.
        next_link: Link to the next page; set when more results follow.
        count: Total number of matching entities on the server. Independent
            of the page size, so it may exceed len(entities).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entities: tuple[Entity, ...] = Field(default=(), description="Entities in order")
    next_link: str | None = Field(default=None, min_length=1, description="Next page link")
    count: int | None = Field(
        default=None, ge=0, le=INT64_MAX, description="Server-side total count"
    )

    @field_validator("next_link")
    @classmethod
    def validate_next_link(cls, v: str | None) -> str | None:
        """Next link must be valid XML text."""
        return check_xml_text(v, "next_link")

    @property
    def size(self) -> int:
        """Number of entities on this page."""
        return len(self.entities)

    @property
    def is_reference_collection(self) -> bool:
        """True when non-empty and every entity is reference-only."""
        return bool(self.entities) and all(e.is_reference for e in self.entities)

    def with_count(self, count: int | None = None) -> EntitySet:
        """Copy with count set (defaults to the page size)."""
        return EntitySet(
            entities=self.entities,
            next_link=self.next_link,
            count=self.size if count is None else count,
        )
