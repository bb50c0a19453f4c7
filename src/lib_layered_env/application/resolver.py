"""Key lookup across a source chain with placeholder expansion and conversion.

Purpose
-------
Answer "what is the value of *key*?" for a :class:`SourceChain`: scan sources in
precedence order, expand placeholders in the first string hit, and convert the
result to the requested type.

Contents
--------
* :class:`ValueResolver` – the resolver, its placeholder settings, and the
  required-key registry.

System Role
-----------
Wrapped by :class:`lib_layered_env.application.environment.Environment` and
usable standalone. Delegates textual substitution to
:class:`~lib_layered_env.application.placeholders.PlaceholderExpander` and type
conversion to a :class:`~lib_layered_env.application.ports.TypeConverter`.

Thread Safety
-------------
Concurrent read-only queries are safe once configured. The converter and the
cached expanders are created lazily under a lock; changing delimiters or the
required-key set while other threads read is not supported.
"""

from __future__ import annotations

import threading
from typing import Any, TypeVar, get_origin, overload

from ..domain.chain import SourceChain
from ..domain.errors import InvalidArgumentError, MissingKeyError, MissingRequiredPropertiesError
from ..observability import log_debug
from .conversion import DefaultTypeConverter
from .placeholders import DEFAULT_PREFIX, DEFAULT_SEPARATOR, DEFAULT_SUFFIX, PlaceholderExpander
from .ports import TypeConverter

T = TypeVar("T")


class ValueResolver:
    """Resolve keys against an ordered :class:`SourceChain`.

    Why
    ----
    Applications need one lookup API that honours layered precedence, lets
    values reference each other through ``${...}``, and hands back typed values.

    What
    ----
    * ``get_value`` scans the chain, expands placeholders in string hits (strict
      unless :attr:`ignore_unresolvable_nested_placeholders` is set), and
      converts.
    * ``resolve_placeholders`` / ``resolve_required_placeholders`` expand
      arbitrary text in lenient / strict mode regardless of that flag.
    * ``validate_required`` reports every missing required key at once.

    Parameters
    ----------
    chain:
        Sources to search; ``None`` behaves like an empty chain.
    converter:
        Optional type converter. When omitted a private
        :class:`DefaultTypeConverter` is created on first use.

    Examples
    --------
    >>> from lib_layered_env.domain.source import MapSource
    >>> chain = SourceChain([
    ...     MapSource("env", {"port": "8080"}),
    ...     MapSource("defaults", {"port": "80", "url": "http://localhost:${port}"}),
    ... ])
    >>> resolver = ValueResolver(chain)
    >>> resolver.get_value("url")
    'http://localhost:8080'
    >>> resolver.get_value("port", int)
    8080
    >>> resolver.get_value("timeout", int, default=30)
    30
    """

    def __init__(self, chain: SourceChain | None = None, *, converter: TypeConverter | None = None) -> None:
        self._chain = chain
        self._converter = converter
        self._lock = threading.Lock()
        self._prefix = DEFAULT_PREFIX
        self._suffix = DEFAULT_SUFFIX
        self._separator: str | None = DEFAULT_SEPARATOR
        self._ignore_unresolvable_nested = False
        self._expanders: dict[bool, PlaceholderExpander] = {}
        self._required_keys: dict[str, None] = {}

    def __repr__(self) -> str:
        names = self._chain.names() if self._chain is not None else ()
        return f"ValueResolver(sources={list(names)!r})"

    @property
    def chain(self) -> SourceChain | None:
        """The chain searched by this resolver."""

        return self._chain

    @property
    def converter(self) -> TypeConverter:
        """Type converter, created on first access when none was injected."""

        converter = self._converter
        if converter is None:
            with self._lock:
                converter = self._converter
                if converter is None:
                    converter = DefaultTypeConverter()
                    self._converter = converter
        return converter

    @converter.setter
    def converter(self, converter: TypeConverter) -> None:
        if converter is None:
            raise InvalidArgumentError("converter must not be None")
        self._converter = converter

    @property
    def placeholder_prefix(self) -> str:
        return self._prefix

    @placeholder_prefix.setter
    def placeholder_prefix(self, prefix: str) -> None:
        if not prefix:
            raise InvalidArgumentError("placeholder prefix must not be empty")
        self._prefix = prefix
        self._expanders = {}

    @property
    def placeholder_suffix(self) -> str:
        return self._suffix

    @placeholder_suffix.setter
    def placeholder_suffix(self, suffix: str) -> None:
        if not suffix:
            raise InvalidArgumentError("placeholder suffix must not be empty")
        self._suffix = suffix
        self._expanders = {}

    @property
    def value_separator(self) -> str | None:
        """Separator between key and default; ``None`` disables defaults."""

        return self._separator

    @value_separator.setter
    def value_separator(self, separator: str | None) -> None:
        self._separator = separator
        self._expanders = {}

    @property
    def ignore_unresolvable_nested_placeholders(self) -> bool:
        """Whether ``get_value`` leaves unresolvable nested placeholders in place."""

        return self._ignore_unresolvable_nested

    @ignore_unresolvable_nested_placeholders.setter
    def ignore_unresolvable_nested_placeholders(self, ignore: bool) -> None:
        self._ignore_unresolvable_nested = bool(ignore)

    @property
    def required_keys(self) -> tuple[str, ...]:
        """Keys registered through :meth:`set_required_keys`, in registration order."""

        return tuple(self._required_keys)

    def set_required_keys(self, *keys: str) -> None:
        """Register *keys* that :meth:`validate_required` must find."""

        for key in keys:
            self._required_keys[key] = None

    def validate_required(self) -> None:
        """Check every required key, raising once with all missing keys.

        Raises
        ------
        MissingRequiredPropertiesError
            Listing each required key whose value resolved to ``None``.
        """

        missing = [key for key in self._required_keys if self.get_value(key) is None]
        if missing:
            raise MissingRequiredPropertiesError(missing)

    def contains_key(self, key: str) -> bool:
        """Return whether any source holds a non-``None`` value for *key*."""

        if self._chain is None:
            return False
        return any(source.contains_key(key) for source in self._chain)

    def get_raw(self, key: str) -> str | None:
        """Return the first value for *key* as text, without placeholder expansion."""

        return self._find(key, str, resolve_nested=False)

    @overload
    def get_value(self, key: str) -> str | None: ...

    @overload
    def get_value(self, key: str, *, default: str) -> str: ...

    @overload
    def get_value(self, key: str, target_type: type[T]) -> T | None: ...

    @overload
    def get_value(self, key: str, target_type: type[T], *, default: T) -> T: ...

    @overload
    def get_value(self, key: str, target_type: None, *, default: Any = ...) -> Any: ...

    def get_value(self, key: str, target_type: type[Any] | None = str, *, default: Any = None) -> Any:
        """Return the value for *key* converted to *target_type*, or *default*.

        ``target_type=None`` returns the expanded value without conversion.
        """

        value = self._find(key, target_type, resolve_nested=True)
        return value if value is not None else default

    def get_required(self, key: str, target_type: type[Any] | None = str) -> Any:
        """Return the value for *key* or raise :class:`MissingKeyError`."""

        value = self._find(key, target_type, resolve_nested=True)
        if value is None:
            raise MissingKeyError(key)
        return value

    def resolve_placeholders(self, text: str) -> str:
        """Expand placeholders in *text*, leaving unresolvable ones verbatim."""

        return self._expander(lenient=True).expand(text, self.get_raw)

    def resolve_required_placeholders(self, text: str) -> str:
        """Expand placeholders in *text*, failing on any without value or default."""

        return self._expander(lenient=False).expand(text, self.get_raw)

    def _resolve_nested(self, value: str) -> str:
        if not value:
            return value
        if self._ignore_unresolvable_nested:
            return self.resolve_placeholders(value)
        return self.resolve_required_placeholders(value)

    def _find(self, key: str, target_type: type[Any] | None, *, resolve_nested: bool) -> Any:
        if self._chain is not None:
            for source in self._chain:
                value = source.get_value(key)
                if value is None:
                    continue
                if resolve_nested and isinstance(value, str):
                    value = self._resolve_nested(value)
                log_debug("key_found", layer=source.name, path=None, key=key, value_type=type(value).__name__)
                return self._convert(value, target_type)
        log_debug("key_not_found", layer="chain", path=None, key=key)
        return None

    def _convert(self, value: Any, target_type: type[Any] | None) -> Any:
        if target_type is None:
            return value
        if get_origin(target_type) is not None:
            return self.converter.convert(value, target_type)
        if isinstance(value, target_type) and not (isinstance(value, bool) and target_type is not bool):
            return value
        return self.converter.convert(value, target_type)

    def _expander(self, *, lenient: bool) -> PlaceholderExpander:
        expanders = self._expanders
        expander = expanders.get(lenient)
        if expander is None:
            with self._lock:
                expanders = self._expanders
                expander = expanders.get(lenient)
                if expander is None:
                    expander = PlaceholderExpander(
                        self._prefix,
                        self._suffix,
                        self._separator,
                        ignore_unresolvable=lenient,
                    )
                    self._expanders = {**expanders, lenient: expander}
        return expander

