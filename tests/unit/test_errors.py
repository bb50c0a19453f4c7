from __future__ import annotations

import pytest

from lib_layered_env.domain.errors import (
    CircularPlaceholderError,
    ConfigError,
    ConversionError,
    InvalidArgumentError,
    InvalidFormat,
    MalformedExpressionError,
    MissingKeyError,
    MissingRequiredPropertiesError,
    NotFound,
    NotFoundError,
    PlaceholderError,
    UnresolvedPlaceholderError,
)


def test_error_hierarchy() -> None:
    for error_type in (
        InvalidArgumentError,
        NotFoundError,
        MissingKeyError,
        MissingRequiredPropertiesError,
        PlaceholderError,
        MalformedExpressionError,
        ConversionError,
        InvalidFormat,
        NotFound,
    ):
        assert issubclass(error_type, ConfigError)
    assert issubclass(UnresolvedPlaceholderError, PlaceholderError)
    assert issubclass(CircularPlaceholderError, PlaceholderError)


@pytest.mark.parametrize(
    ("error_type", "builtin"),
    [
        (InvalidArgumentError, ValueError),
        (NotFoundError, LookupError),
        (MissingKeyError, LookupError),
        (MalformedExpressionError, ValueError),
        (ConversionError, ValueError),
    ],
)
def test_errors_describing_bad_input_share_builtin_bases(error_type: type, builtin: type) -> None:
    assert issubclass(error_type, builtin)


def test_missing_key_error_exposes_key() -> None:
    error = MissingKeyError("db.url")
    assert error.key == "db.url"
    assert str(error) == "Required key 'db.url' not found"


def test_missing_required_properties_lists_every_key_in_order() -> None:
    error = MissingRequiredPropertiesError(["b", "a"])
    assert error.missing_keys == ("b", "a")
    assert str(error).endswith("could not be resolved: b, a")


def test_placeholder_errors_carry_context() -> None:
    unresolved = UnresolvedPlaceholderError("host", "http://${host}")
    assert (unresolved.key, unresolved.text) == ("host", "http://${host}")
    assert "'host'" in str(unresolved)
    circular = CircularPlaceholderError("a")
    assert circular.key == "a"
    assert "Circular" in str(circular)


def test_conversion_error_mentions_target_type() -> None:
    error = ConversionError("abc", int, "not a number")
    assert error.value == "abc"
    assert error.target_type is int
    assert str(error) == "Cannot convert 'abc' to int: not a number"
