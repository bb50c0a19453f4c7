"""DefaultTypeConverter built-ins, registration, and failures."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from pathlib import Path
from uuid import UUID

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_layered_env.application.conversion import DefaultTypeConverter, parse_bool, parse_int, split_delimited
from lib_layered_env.application.ports import TypeConverter
from lib_layered_env.domain.errors import ConversionError


class Color(Enum):
    RED = "r"
    GREEN = "g"


@pytest.fixture()
def converter() -> DefaultTypeConverter:
    return DefaultTypeConverter()


@pytest.mark.parametrize(
    ("value", "target", "expected"),
    [
        ("42", int, 42),
        (" 0x1F ", int, 31),
        ("1_000", int, 1000),
        ("2.5", float, 2.5),
        ("2.50", Decimal, Decimal("2.50")),
        ("ON", bool, True),
        ("no", bool, False),
        ("/etc/app", Path, Path("/etc/app")),
        ("12345678-1234-5678-1234-567812345678", UUID, UUID("12345678-1234-5678-1234-567812345678")),
        ("GREEN", Color, Color.GREEN),
        ("red", Color, Color.RED),
        ("a,b,a", list, ["a", "b", "a"]),
        ("a,b,a", tuple, ("a", "b", "a")),
        ("a,b,a", set, {"a", "b"}),
        ("a,b", frozenset, frozenset({"a", "b"})),
        (5432, str, "5432"),
        (True, str, "true"),
        (Color.RED, str, "RED"),
        (["a", "b"], str, "a,b"),
        (3, float, 3.0),
        (2.0, int, 2),
        (1, bool, True),
    ],
)
def test_builtin_conversions(converter: DefaultTypeConverter, value, target, expected) -> None:
    assert converter.convert(value, target) == expected


def test_values_of_target_type_pass_through(converter: DefaultTypeConverter) -> None:
    payload = ["x"]
    assert converter.convert(payload, list) is payload
    assert converter.convert(None, int) is None
    assert converter.convert("x", object) == "x"


def test_bool_is_not_treated_as_int(converter: DefaultTypeConverter) -> None:
    result = converter.convert(True, int)
    assert result == 1 and type(result) is int


def test_empty_bool_text_converts_to_none(converter: DefaultTypeConverter) -> None:
    assert converter.convert("", bool) is None


@pytest.mark.parametrize(
    ("value", "target"),
    [
        ("abc", int),
        ("maybe", bool),
        ("purple", Color),
        ("1.5.2", Decimal),
        (2.5, int),
        (object(), float),
        ("x", bytes),
    ],
)
def test_failures_raise_conversion_error(converter: DefaultTypeConverter, value, target) -> None:
    with pytest.raises(ConversionError) as excinfo:
        converter.convert(value, target)
    assert excinfo.value.target_type is target


def test_register_custom_converter(converter: DefaultTypeConverter) -> None:
    converter.register(bytes, lambda value: str(value).encode("utf-8"))
    assert converter.can_convert(str, bytes)
    assert converter.convert("hi", bytes) == b"hi"


def test_custom_converter_errors_are_wrapped(converter: DefaultTypeConverter) -> None:
    def reject(value):
        raise ValueError("nope")

    converter.register(bytes, reject)
    with pytest.raises(ConversionError, match="nope"):
        converter.convert("hi", bytes)


def test_can_convert(converter: DefaultTypeConverter) -> None:
    assert converter.can_convert(str, int)
    assert converter.can_convert(str, Color)
    assert converter.can_convert(bool, int)
    assert converter.can_convert(bytes, object)
    assert not converter.can_convert(str, bytes)


def test_default_converter_satisfies_port(converter: DefaultTypeConverter) -> None:
    assert isinstance(converter, TypeConverter)


def test_parsers() -> None:
    assert parse_bool(" TRUE ") is True
    assert parse_int("-0o17") == -15
    assert split_delimited("a;b;;c", ";") == ["a", "b", "c"]


@given(st.integers(min_value=-(10**18), max_value=10**18))
def test_int_text_round_trips(number: int) -> None:
    assert DefaultTypeConverter().convert(str(number), int) == number


@pytest.mark.parametrize("target", [list[str], dict[str, int], tuple[int, ...]])
def test_parameterized_generic_targets_raise_conversion_error(converter: DefaultTypeConverter, target) -> None:
    with pytest.raises(ConversionError) as excinfo:
        converter.convert("a,b", target)
    assert excinfo.value.target_type is target
    assert converter.can_convert(str, target) is False
    assert converter.convert(None, target) is None
