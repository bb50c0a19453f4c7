"""Default type-conversion collaborator.

Purpose
-------
Turn resolved configuration values (mostly strings) into the Python types
callers request from :meth:`ValueResolver.get_value`. The resolver treats the
converter as a replaceable port (:class:`lib_layered_env.application.ports.TypeConverter`);
this module supplies the implementation used when none is injected.

Contents
--------
* :class:`DefaultTypeConverter` – registry of ``target type -> function``
  conversions with scalar, enum, and collection support.
* :func:`parse_bool` / :func:`parse_int` / :func:`split_delimited` – the
  string parsers behind the built-in conversions.

System Role
-----------
Every :class:`~lib_layered_env.application.resolver.ValueResolver` lazily
builds its own instance so registrations on one resolver never leak into
another.
"""

from __future__ import annotations

import threading
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Final, get_origin
from uuid import UUID

from ..domain.errors import ConversionError

Converter = Callable[[Any], Any]

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "on", "yes", "1"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"false", "off", "no", "0"})
_COLLECTION_TYPES: Final[tuple[type, ...]] = (list, tuple, set, frozenset)


def parse_bool(value: str) -> bool | None:
    """Interpret common textual booleans; empty text yields ``None``.

    Examples
    --------
    >>> parse_bool("Yes"), parse_bool("off"), parse_bool("  ")
    (True, False, None)
    >>> parse_bool("maybe")
    Traceback (most recent call last):
    ...
    ValueError: Invalid boolean value 'maybe'
    """

    text = value.strip().lower()
    if not text:
        return None
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value '{value}'")


def parse_int(value: str) -> int:
    """Parse decimal or ``0x``/``0o``/``0b`` prefixed integers.

    Examples
    --------
    >>> parse_int("42"), parse_int("0x1F"), parse_int("-0b101")
    (42, 31, -5)
    """

    text = value.strip().replace("_", "")
    body = text.lstrip("+-").lower()
    if body.startswith(("0x", "0o", "0b")):
        return int(text, 0)
    return int(text, 10)


def split_delimited(value: str, delimiter: str = ",") -> list[str]:
    """Split *value* on *delimiter*, trimming entries and dropping empties.

    Examples
    --------
    >>> split_delimited(" a, b ,,c ")
    ['a', 'b', 'c']
    """

    return [item.strip() for item in value.split(delimiter) if item.strip()]


class DefaultTypeConverter:
    """Convert values between scalar, path, enum, and collection types.

    Why
    ----
    Configuration arrives as text from environment variables and ``.env``
    files, yet callers want ``int`` ports, ``bool`` switches, and ``Path``
    directories.

    What
    ----
    Keeps a registry keyed by target type. Lookups walk the target's MRO so a
    converter registered for a base class (``Enum``) serves its subclasses.
    Values already of the target type pass through untouched.

    Examples
    --------
    >>> converter = DefaultTypeConverter()
    >>> converter.convert("8080", int)
    8080
    >>> converter.convert("a, b", list)
    ['a', 'b']
    >>> converter.convert("abc", int)
    Traceback (most recent call last):
    ...
    lib_layered_env.domain.errors.ConversionError: Cannot convert 'abc' to int: invalid literal for int() with base 10: 'abc'
    """

    def __init__(self) -> None:
        self._converters: dict[type, Converter] = {}
        self._lock = threading.Lock()
        self._register_defaults()

    def register(self, target_type: type, converter: Converter) -> None:
        """Register *converter* for *target_type*, replacing any previous one."""

        with self._lock:
            self._converters = {**self._converters, target_type: converter}

    def can_convert(self, source_type: type, target_type: type) -> bool:
        """Return whether values of *source_type* can become *target_type*."""

        if get_origin(target_type) is not None:
            return False
        if target_type is object or issubclass(source_type, target_type):
            return True
        return self._lookup(target_type) is not None

    def convert(self, value: Any, target_type: type) -> Any:
        """Return *value* converted to *target_type*.

        ``None`` converts to ``None`` for every target.

        Raises
        ------
        ConversionError
            When no converter exists or the converter rejects the value.
        """

        if value is not None and get_origin(target_type) is not None:
            raise ConversionError(value, target_type, "parameterized generic types are not supported")
        if value is None or target_type is object or _is_instance(value, target_type):
            return value
        converter = self._lookup(target_type)
        if converter is None:
            raise ConversionError(value, target_type, "no converter registered")
        try:
            if issubclass(target_type, Enum):
                return converter(value, target_type)
            if target_type in _COLLECTION_TYPES:
                return converter(self._to_items(value))
            return converter(value)
        except ConversionError:
            raise
        except (ValueError, TypeError, ArithmeticError, InvalidOperation, KeyError) as exc:
            raise ConversionError(value, target_type, str(exc)) from exc

    def _lookup(self, target_type: type) -> Any | None:
        converters = self._converters
        for candidate in getattr(target_type, "__mro__", (target_type,)):
            if candidate in converters:
                return converters[candidate]
        return None

    def _to_items(self, value: Any) -> list[Any]:
        if isinstance(value, str):
            return split_delimited(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return list(value)
        return [value]

    def _register_defaults(self) -> None:
        self._converters = {
            str: _to_str,
            int: _to_int,
            float: _to_float,
            Decimal: _to_decimal,
            bool: _to_bool,
            Path: lambda value: Path(str(value)),
            UUID: lambda value: UUID(str(value)),
            Enum: _to_enum,
            list: list,
            tuple: tuple,
            set: set,
            frozenset: frozenset,
        }


def _is_instance(value: Any, target_type: type) -> bool:
    # bool is an int subclass; treat it as distinct for numeric targets
    if isinstance(value, bool) and target_type in (int, float, Decimal):
        return False
    return isinstance(value, target_type)


def _to_str(value: Any) -> str:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(_to_str(item) for item in value)
    return str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return parse_int(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{value!r} has a fractional part")
    if isinstance(value, (int, float, Decimal)):
        return int(value)
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _to_float(value: Any) -> float:
    if isinstance(value, (str, int, float, Decimal)) and not isinstance(value, bool):
        return float(value)
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, str):
        return Decimal(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(str(value))
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, str):
        return parse_bool(value)
    if isinstance(value, (int, float, Decimal)):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{value!r} is not a boolean number")
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _to_enum(value: Any, enum_type: type[Enum]) -> Enum:
    if isinstance(value, str):
        name = value.strip()
        if not name:
            raise ValueError("empty enum name")
        try:
            return enum_type[name]
        except KeyError:
            for member in enum_type:
                if member.name.lower() == name.lower():
                    return member
            raise
    return enum_type(value)
