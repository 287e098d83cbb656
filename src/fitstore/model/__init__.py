"""Entity / entity-set model shared by every wire format."""

from fitstore.model.edm import EdmType, edm_type_of
from fitstore.model.entity import Entity, EntitySet, Property, PropertyValue

__all__ = [
    "EdmType",
    "Entity",
    "EntitySet",
    "Property",
    "PropertyValue",
    "edm_type_of",
]
