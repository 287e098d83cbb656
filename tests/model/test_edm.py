"""Tests for EDM primitive types."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fitstore.model.edm import (
    INT32_MAX,
    INT32_MIN,
    EdmType,
    edm_type_of,
    from_json_value,
    from_text,
    to_json_value,
    to_text,
)


class TestEdmTypeOf:
    """Tests for deriving the EDM type of a value."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            (True, EdmType.BOOLEAN),
            (7, EdmType.INT32),
            (INT32_MAX, EdmType.INT32),
            (INT32_MIN, EdmType.INT32),
            (INT32_MAX + 1, EdmType.INT64),
            (1.5, EdmType.DOUBLE),
            (Decimal("2.50"), EdmType.DECIMAL),
            ("Bob", EdmType.STRING),
            (datetime(2020, 1, 1, tzinfo=UTC), EdmType.DATE_TIME_OFFSET),
        ],
    )
    def test_derived_type(self, value: object, expected: EdmType | None) -> None:
        assert edm_type_of(value) is expected

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(TypeError, match="list"):
            edm_type_of([1, 2])


class TestEdmTypeParse:
    """Tests for EdmType.parse."""

    @pytest.mark.parametrize("name", ["Edm.Int32", "Int32", "#Int32"])
    def test_accepted_spellings(self, name: str) -> None:
        assert EdmType.parse(name) is EdmType.INT32

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError):
            EdmType.parse("Edm.Geography")

    def test_short_name(self) -> None:
        assert EdmType.DATE_TIME_OFFSET.short_name == "DateTimeOffset"


class TestTextRendering:
    """Tests for element text rendering (Atom)."""

    def test_boolean_literals(self) -> None:
        assert to_text(True) == "true"
        assert from_text("false", EdmType.BOOLEAN) is False

    def test_invalid_boolean_raises(self) -> None:
        with pytest.raises(ValueError, match="Boolean"):
            from_text("yes", EdmType.BOOLEAN)

    def test_non_finite_doubles(self) -> None:
        assert to_text(math.inf) == "INF"
        assert to_text(-math.inf) == "-INF"
        assert to_text(math.nan) == "NaN"
        assert math.isnan(from_text("NaN", EdmType.DOUBLE))
        assert from_text("-INF", EdmType.DOUBLE) == -math.inf

    def test_decimal_keeps_digits(self) -> None:
        assert to_text(Decimal("2500.50")) == "2500.50"
        assert from_text("2500.50", EdmType.DECIMAL) == Decimal("2500.50")

    def test_invalid_decimal_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Decimal"):
            from_text("abc", EdmType.DECIMAL)

    def test_datetime_offset_preserved(self) -> None:
        value = datetime(1957, 4, 3, 12, 30, tzinfo=timezone(timedelta(hours=2)))
        parsed = from_text(to_text(value), EdmType.DATE_TIME_OFFSET)
        assert parsed == value
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_string_text_not_stripped(self) -> None:
        assert from_text("  padded ", EdmType.STRING) == "  padded "


class TestJsonRendering:
    """Tests for JSON value rendering."""

    def test_native_values_unchanged(self) -> None:
        assert to_json_value(1) == 1
        assert to_json_value("x") == "x"
        assert to_json_value(1.25) == 1.25

    def test_decimal_as_string(self) -> None:
        assert to_json_value(Decimal("3100.00")) == "3100.00"

    def test_non_finite_double_as_literal(self) -> None:
        assert to_json_value(math.inf) == "INF"

    def test_untyped_value_taken_as_is(self) -> None:
        assert from_json_value(42, None) == 42
        assert from_json_value("42", None) == "42"

    def test_int_annotated_as_double_becomes_float(self) -> None:
        value = from_json_value(2, EdmType.DOUBLE)
        assert isinstance(value, float)
        assert value == 2.0

    def test_decimal_from_string(self) -> None:
        assert from_json_value("2500.50", EdmType.DECIMAL) == Decimal("2500.50")

    def test_type_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="Edm.Int32"):
            from_json_value("1", EdmType.INT32)

    def test_bool_is_not_an_int(self) -> None:
        with pytest.raises(ValueError):
            from_json_value(True, EdmType.INT32)

    def test_nested_object_rejected(self) -> None:
        with pytest.raises(ValueError, match="dict"):
            from_json_value({"a": 1}, None)
