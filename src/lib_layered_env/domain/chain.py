"""Ordered, copy-on-write chain of sources.

Purpose
-------
Hold the precedence order used by the resolver: the source at index ``0`` wins
over every later source. Mutations never edit the current sequence in place;
each writer publishes a fresh tuple so readers iterating a snapshot are never
torn and never blocked.

Contents
--------
* :class:`SourceChain` – mutable precedence list with name-unique entries.

System Role
-----------
Created by :func:`lib_layered_env.core.build_environment` or directly by
callers, scanned by :class:`lib_layered_env.application.resolver.ValueResolver`.
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Iterator

from ..observability import log_debug
from .errors import InvalidArgumentError, NotFoundError
from .source import Source


class SourceChain:
    """Precedence-ordered collection of uniquely named :class:`Source` objects.

    Why
    ----
    Layered configuration needs explicit, inspectable precedence plus cheap
    concurrent reads while a bootstrapping thread may still add sources.

    What
    ----
    Stores sources in an immutable tuple replaced atomically on every mutating
    call. Writers serialise through a lock; readers only dereference the current
    tuple.

    Examples
    --------
    >>> from lib_layered_env.domain.source import MapSource
    >>> chain = SourceChain()
    >>> chain.add_last(MapSource("defaults", {"port": "80"}))
    >>> chain.add_first(MapSource("overrides", {"port": "8080"}))
    >>> [source.name for source in chain]
    ['overrides', 'defaults']
    >>> chain.precedence_of(MapSource("defaults", {}))
    1
    """

    def __init__(self, sources: Iterable[Source[Any]] | None = None) -> None:
        self._sources: tuple[Source[Any], ...] = ()
        self._lock = threading.Lock()
        for source in sources or ():
            self.add_last(source)

    def __iter__(self) -> Iterator[Source[Any]]:
        """Iterate over the snapshot current at the time iteration starts."""

        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, Source):
            name = name.name
        return isinstance(name, str) and self._index_of(self._sources, name) != -1

    def __repr__(self) -> str:
        return f"SourceChain({[source.name for source in self._sources]!r})"

    @property
    def size(self) -> int:
        """Number of sources currently in the chain."""

        return len(self._sources)

    def snapshot(self) -> tuple[Source[Any], ...]:
        """Return the current immutable sequence of sources."""

        return self._sources

    def names(self) -> tuple[str, ...]:
        """Return source names in precedence order."""

        return tuple(source.name for source in self._sources)

    def contains(self, name: str) -> bool:
        """Return whether a source called *name* is present."""

        return name in self

    def get(self, name: str) -> Source[Any] | None:
        """Return the source called *name* or ``None``."""

        sources = self._sources
        index = self._index_of(sources, name)
        return sources[index] if index != -1 else None

    def precedence_of(self, source: Source[Any]) -> int:
        """Return the index of *source* (matched by name) or ``-1``."""

        return self._index_of(self._sources, source.name)

    def add_first(self, source: Source[Any]) -> None:
        """Insert *source* with the highest precedence, replacing a namesake."""

        with self._lock:
            remaining = self._without(source.name)
            self._publish((source, *remaining))
        log_debug("source_added", layer=source.name, path=None, position=0)

    def add_last(self, source: Source[Any]) -> None:
        """Append *source* with the lowest precedence, replacing a namesake."""

        with self._lock:
            remaining = self._without(source.name)
            self._publish((*remaining, source))
            position = len(remaining)
        log_debug("source_added", layer=source.name, path=None, position=position)

    def add_before(self, relative_name: str, source: Source[Any]) -> None:
        """Insert *source* directly ahead of the source called *relative_name*.

        Raises
        ------
        InvalidArgumentError
            When *source* carries *relative_name* itself.
        NotFoundError
            When no source called *relative_name* exists.
        """

        self._insert_relative(relative_name, source, offset=0)

    def add_after(self, relative_name: str, source: Source[Any]) -> None:
        """Insert *source* directly behind the source called *relative_name*."""

        self._insert_relative(relative_name, source, offset=1)

    def remove(self, name: str) -> Source[Any] | None:
        """Remove and return the source called *name* (``None`` when absent)."""

        with self._lock:
            sources = self._sources
            index = self._index_of(sources, name)
            if index == -1:
                return None
            removed = sources[index]
            self._publish(sources[:index] + sources[index + 1 :])
        log_debug("source_removed", layer=name, path=None, position=index)
        return removed

    def replace(self, name: str, source: Source[Any]) -> None:
        """Swap the source called *name* for *source*, keeping its position.

        Raises
        ------
        NotFoundError
            When no source called *name* exists.
        """

        with self._lock:
            sources = self._sources
            index = self._require_index(sources, name)
            updated = list(sources)
            updated[index] = source
            if source.name != name:
                updated = [
                    existing for position, existing in enumerate(updated)
                    if position == index or existing.name != source.name
                ]
            self._publish(tuple(updated))
        log_debug("source_replaced", layer=name, path=None, replacement=source.name)

    def _insert_relative(self, relative_name: str, source: Source[Any], *, offset: int) -> None:
        if relative_name == source.name:
            raise InvalidArgumentError(f"Source named '{source.name}' cannot be added relative to itself")
        with self._lock:
            remaining = self._without(source.name)
            index = self._require_index(remaining, relative_name) + offset
            self._publish((*remaining[:index], source, *remaining[index:]))
        log_debug("source_added", layer=source.name, path=None, position=index, relative_to=relative_name)

    def _without(self, name: str) -> tuple[Source[Any], ...]:
        return tuple(existing for existing in self._sources if existing.name != name)

    def _publish(self, sources: tuple[Source[Any], ...]) -> None:
        self._sources = sources

    @staticmethod
    def _index_of(sources: tuple[Source[Any], ...], name: str) -> int:
        for index, existing in enumerate(sources):
            if existing.name == name:
                return index
        return -1

    @classmethod
    def _require_index(cls, sources: tuple[Source[Any], ...], name: str) -> int:
        index = cls._index_of(sources, name)
        if index == -1:
            raise NotFoundError(f"Source named '{name}' does not exist")
        return index
