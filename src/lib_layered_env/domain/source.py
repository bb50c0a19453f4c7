"""Named key/value sources.

Purpose
-------
Model the leaf of the resolution engine: a read-only view over a backing
key/value store identified solely by its name. Sources are produced by adapters
(environment snapshot, ``.env`` files, structured files) or by callers wrapping
their own mappings.

Contents
--------
* :class:`Source` – abstract base with name-based equality and hashing.
* :class:`EnumerableSource` – base for sources that can list their keys.
* :class:`MapSource` – source backed by any :class:`~collections.abc.Mapping`.
* :class:`StubSource` – placeholder source that never yields a value.
* :meth:`Source.named` – comparison-only instance used for lookups by name.

System Role
-----------
:class:`lib_layered_env.domain.chain.SourceChain` orders sources and the
resolver scans them. The engine only ever calls :meth:`Source.get_value` and
:meth:`Source.contains_key`, treating both as pure reads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Generic, Iterator, TypeVar

from .errors import InvalidArgumentError

T = TypeVar("T")


class Source(ABC, Generic[T]):
    """Named view over a backing store ``T``.

    Why
    ----
    Chain operations (replace, remove, precedence) identify sources by name, so
    two sources with the same name are interchangeable for those operations even
    when their backing data differs.

    Examples
    --------
    >>> MapSource("app", {"a": 1}) == MapSource("app", {"b": 2})
    True
    >>> len({MapSource("app", {}), StubSource("app")})
    1
    """

    __slots__ = ("_name", "_backing")

    def __init__(self, name: str, backing: T) -> None:
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("Source name must contain at least one non-whitespace character")
        if backing is None:
            raise InvalidArgumentError(f"Source '{name}' requires a backing store")
        self._name = name
        self._backing = backing

    @property
    def name(self) -> str:
        """Identity of the source inside a chain."""

        return self._name

    @property
    def backing(self) -> T:
        """The underlying store supplied at construction."""

        return self._backing

    def contains_key(self, key: str) -> bool:
        """Return whether :meth:`get_value` yields a non-``None`` value for *key*.

        Subclasses over enumerable stores override this with a direct
        membership test.
        """

        return self.get_value(key) is not None

    @abstractmethod
    def get_value(self, key: str) -> Any | None:
        """Return the value stored under *key* or ``None``."""

    @staticmethod
    def named(name: str) -> Source[Any]:
        """Return a comparison-only source used to locate *name* inside collections.

        Examples
        --------
        >>> Source.named("app") == MapSource("app", {})
        True
        >>> Source.named("app").get_value("a")
        Traceback (most recent call last):
        ...
        TypeError: comparison sources are for use with collection lookups only
        """

        return _ComparisonSource(name)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Source):
            return NotImplemented
        return self._name == other._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


class EnumerableSource(Source[T]):
    """Source whose keys can be listed without probing."""

    __slots__ = ()

    @abstractmethod
    def key_names(self) -> tuple[str, ...]:
        """Return every key exposed by this source."""


class MapSource(EnumerableSource[Mapping[str, Any]]):
    """Source backed by a mapping supplied by the caller.

    The mapping is referenced, not copied: later changes by the caller are
    visible to subsequent lookups.

    Examples
    --------
    >>> source = MapSource("defaults", {"db.host": "localhost", "empty": None})
    >>> source.get_value("db.host")
    'localhost'
    >>> source.contains_key("db.host"), source.contains_key("empty"), source.contains_key("missing")
    (True, False, False)
    """

    __slots__ = ()

    def get_value(self, key: str) -> Any | None:
        return self._backing.get(key)

    def contains_key(self, key: str) -> bool:
        return self._backing.get(key) is not None

    def key_names(self) -> tuple[str, ...]:
        return tuple(self._backing.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self._backing)


class StubSource(Source[object]):
    """Source that holds a name only, useful to reserve a position in a chain.

    Examples
    --------
    >>> StubSource("servlet").get_value("anything") is None
    True
    """

    __slots__ = ()

    def __init__(self, name: str) -> None:
        super().__init__(name, object())

    def get_value(self, key: str) -> None:
        return None


class _ComparisonSource(StubSource):
    """Name-only source that refuses reads."""

    __slots__ = ()

    _USAGE_ERROR = "comparison sources are for use with collection lookups only"

    @property
    def backing(self) -> object:
        raise TypeError(self._USAGE_ERROR)

    def contains_key(self, key: str) -> bool:
        raise TypeError(self._USAGE_ERROR)

    def get_value(self, key: str) -> None:
        raise TypeError(self._USAGE_ERROR)
