"""EDM primitive types and their text / JSON renderings.

The EDM type of a property is derived from its Python value:

    None      -> (null, untyped)
    bool      -> Edm.Boolean
    int       -> Edm.Int32, or Edm.Int64 outside the 32-bit range
    float     -> Edm.Double
    Decimal   -> Edm.Decimal
    str       -> Edm.String
    datetime  -> Edm.DateTimeOffset (timezone-aware only)
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Non-finite doubles are written as these literals in every format
_DOUBLE_LITERALS: dict[str, float] = {
    "NaN": math.nan,
    "INF": math.inf,
    "-INF": -math.inf,
}


class EdmType(str, Enum):
    """Primitive EDM types carried by property values."""

    BOOLEAN = "Edm.Boolean"
    INT32 = "Edm.Int32"
    INT64 = "Edm.Int64"
    DOUBLE = "Edm.Double"
    DECIMAL = "Edm.Decimal"
    STRING = "Edm.String"
    DATE_TIME_OFFSET = "Edm.DateTimeOffset"

    @property
    def short_name(self) -> str:
        """Unqualified name, e.g. "Int32", as used in type annotations."""
        return self.value.split(".", 1)[1]

    @classmethod
    def parse(cls, name: str) -> EdmType:
        """Parse "Edm.Int32", "Int32" or "#Int32".

        Raises:
            ValueError: If the name is not a supported primitive type.
        """
        text = name.lstrip("#")
        if not text.startswith("Edm."):
            text = f"Edm.{text}"
        return cls(text)


def edm_type_of(value: Any) -> EdmType | None:
    """Return the EDM type of a property value (None for null)."""
    if value is None:
        return None
    # bool first: bool is an int subclass
    if isinstance(value, bool):
        return EdmType.BOOLEAN
    if isinstance(value, int):
        return EdmType.INT32 if INT32_MIN <= value <= INT32_MAX else EdmType.INT64
    if isinstance(value, float):
        return EdmType.DOUBLE
    if isinstance(value, Decimal):
        return EdmType.DECIMAL
    if isinstance(value, str):
        return EdmType.STRING
    if isinstance(value, datetime):
        return EdmType.DATE_TIME_OFFSET
    raise TypeError(f"Unsupported property value type: {type(value).__name__}")


def _double_to_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(value)


def to_text(value: Any) -> str:
    """Render a non-null value as element text (XML formats)."""
    edm_type = edm_type_of(value)
    if edm_type is EdmType.BOOLEAN:
        return "true" if value else "false"
    if edm_type is EdmType.DOUBLE:
        return _double_to_text(value)
    if edm_type is EdmType.DATE_TIME_OFFSET:
        return value.isoformat()
    return str(value)


def from_text(text: str, edm_type: EdmType) -> Any:
    """Parse element text back into a value of the given type.

    Raises:
        ValueError: If the text is not a valid literal of the type.
    """
    if edm_type is EdmType.STRING:
        return text
    literal = text.strip()
    if edm_type is EdmType.BOOLEAN:
        if literal == "true":
            return True
        if literal == "false":
            return False
        raise ValueError(f"Invalid Edm.Boolean literal: {text!r}")
    if edm_type in (EdmType.INT32, EdmType.INT64):
        return int(literal)
    if edm_type is EdmType.DOUBLE:
        if literal in _DOUBLE_LITERALS:
            return _DOUBLE_LITERALS[literal]
        return float(literal)
    if edm_type is EdmType.DECIMAL:
        try:
            return Decimal(literal)
        except InvalidOperation:
            raise ValueError(f"Invalid Edm.Decimal literal: {text!r}") from None
    if edm_type is EdmType.DATE_TIME_OFFSET:
        return datetime.fromisoformat(literal)
    raise ValueError(f"Unsupported EDM type: {edm_type}")


def to_json_value(value: Any) -> Any:
    """Render a value as a JSON-native value."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and not math.isfinite(value):
        return _double_to_text(value)
    return value


def from_json_value(raw: Any, edm_type: EdmType | None) -> Any:
    """Convert a decoded JSON value back into a property value.

    Without a type annotation the JSON value is taken as-is.

    Raises:
        ValueError: If the JSON value does not fit the annotated type.
    """
    if raw is None:
        return None
    if edm_type is None:
        if isinstance(raw, (str, int, float, bool)):
            return raw
        raise ValueError(f"Unsupported JSON property value: {type(raw).__name__}")
    if edm_type is EdmType.BOOLEAN:
        if isinstance(raw, bool):
            return raw
    elif edm_type in (EdmType.INT32, EdmType.INT64):
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
    elif edm_type is EdmType.DOUBLE:
        if isinstance(raw, str) and raw in _DOUBLE_LITERALS:
            return _DOUBLE_LITERALS[raw]
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
    elif edm_type is EdmType.STRING:
        if isinstance(raw, str):
            return raw
    elif edm_type is EdmType.DECIMAL:
        if isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
            return from_text(str(raw), edm_type)
    elif edm_type is EdmType.DATE_TIME_OFFSET:
        if isinstance(raw, str):
            return from_text(raw, edm_type)
    raise ValueError(f"JSON value {raw!r} is not a valid {edm_type.value}")
