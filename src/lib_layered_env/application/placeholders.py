"""Recursive ``${key:default}`` placeholder expansion.

Purpose
-------
Substitute placeholders embedded in configuration text. Keys and defaults may
themselves contain placeholders, and resolved values are expanded again before
substitution, so ``${outer:${inner}}`` and values that point at other keys both
work.

Contents
--------
* :data:`DEFAULT_PREFIX` / :data:`DEFAULT_SUFFIX` / :data:`DEFAULT_SEPARATOR`.
* :class:`PlaceholderExpander` – immutable helper configured with delimiters and
  a strict/lenient policy.

System Role
-----------
:class:`lib_layered_env.application.resolver.ValueResolver` owns one strict and
one lenient expander and passes its raw lookup as the resolution callback.
"""

from __future__ import annotations

from typing import Callable, Final

from ..domain.errors import CircularPlaceholderError, InvalidArgumentError, UnresolvedPlaceholderError
from ..observability import log_debug

DEFAULT_PREFIX: Final[str] = "${"
DEFAULT_SUFFIX: Final[str] = "}"
DEFAULT_SEPARATOR: Final[str] = ":"

Lookup = Callable[[str], "str | None"]

_SIMPLE_PREFIXES: Final[dict[str, str]] = {"}": "{", "]": "[", ")": "("}


class PlaceholderExpander:
    """Expand placeholders in text using a caller-supplied lookup.

    Why
    ----
    Values such as ``jdbc://${db.host:localhost}:${db.port}`` must be
    assembled from other keys at read time, with deterministic behaviour for
    missing keys and self-references.

    What
    ----
    Scans for ``prefix``, finds the matching ``suffix`` while tracking nesting
    depth, splits key and default at the first top-level ``separator``, expands
    both, and substitutes the looked-up (and itself expanded) value or the
    default. Unresolvable placeholders are left verbatim in lenient mode and
    raise :class:`UnresolvedPlaceholderError` in strict mode. A placeholder that
    re-enters itself raises :class:`CircularPlaceholderError` in either mode.

    Parameters
    ----------
    prefix / suffix:
        Placeholder delimiters, ``${`` and ``}`` by default.
    separator:
        Key/default separator; ``None`` disables default values.
    ignore_unresolvable:
        ``True`` for lenient mode, ``False`` for strict mode. Defaults to
        ``True``, unlike :class:`ValueResolver`, whose nested resolution in
        ``get_value`` is strict unless
        ``ignore_unresolvable_nested_placeholders`` is set.

    Examples
    --------
    >>> values = {"host": "db.local", "url": "jdbc://${host}:${port:5432}"}
    >>> PlaceholderExpander().expand("${url}", values.get)
    'jdbc://db.local:5432'
    >>> PlaceholderExpander().expand("${missing} stays", values.get)
    '${missing} stays'
    >>> PlaceholderExpander(ignore_unresolvable=False).expand("${missing}", values.get)
    Traceback (most recent call last):
    ...
    lib_layered_env.domain.errors.UnresolvedPlaceholderError: Could not resolve placeholder 'missing' in value "${missing}"
    """

    __slots__ = ("_prefix", "_suffix", "_separator", "_ignore_unresolvable", "_simple_prefix")

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        suffix: str = DEFAULT_SUFFIX,
        separator: str | None = DEFAULT_SEPARATOR,
        *,
        ignore_unresolvable: bool = True,
    ) -> None:
        if not prefix or not suffix:
            raise InvalidArgumentError("Placeholder prefix and suffix must not be empty")
        self._prefix = prefix
        self._suffix = suffix
        self._separator = separator or None
        self._ignore_unresolvable = ignore_unresolvable
        simple = _SIMPLE_PREFIXES.get(suffix)
        self._simple_prefix = simple if simple is not None and prefix.endswith(simple) else prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def suffix(self) -> str:
        return self._suffix

    @property
    def separator(self) -> str | None:
        return self._separator

    @property
    def ignore_unresolvable(self) -> bool:
        return self._ignore_unresolvable

    def expand(self, text: str, lookup: Lookup) -> str:
        """Return *text* with every placeholder substituted through *lookup*."""

        return self._expand(text, lookup, set())

    def _expand(self, text: str, lookup: Lookup, visited: set[str]) -> str:
        start = text.find(self._prefix)
        if start == -1:
            return text

        result = text
        while start != -1:
            end = self._find_end(result, start)
            if end == -1:
                break
            placeholder = result[start + len(self._prefix) : end]
            if placeholder in visited:
                raise CircularPlaceholderError(placeholder)
            visited.add(placeholder)

            raw_key, raw_default = self._split(placeholder)
            key = self._expand(raw_key, lookup, visited)
            default = self._expand(raw_default, lookup, visited) if raw_default is not None else None

            value = lookup(key)
            if value is not None:
                value = self._expand(value, lookup, visited)
            elif default is not None:
                value = default

            if value is not None:
                result = result[:start] + value + result[end + len(self._suffix) :]
                log_debug("placeholder_resolved", layer="placeholder", path=None, key=key)
                start = result.find(self._prefix, start + len(value))
            elif self._ignore_unresolvable:
                start = result.find(self._prefix, end + len(self._suffix))
            else:
                raise UnresolvedPlaceholderError(key, text)
            visited.discard(placeholder)
        return result

    def _find_end(self, buffer: str, start: int) -> int:
        """Return the index of the suffix closing the placeholder opened at *start*."""

        index = start + len(self._prefix)
        depth = 0
        while index < len(buffer):
            if buffer.startswith(self._suffix, index):
                if depth == 0:
                    return index
                depth -= 1
                index += len(self._suffix)
            elif buffer.startswith(self._simple_prefix, index):
                depth += 1
                index += len(self._simple_prefix)
            else:
                index += 1
        return -1

    def _split(self, placeholder: str) -> tuple[str, str | None]:
        """Split *placeholder* at the first separator outside nested placeholders.

        Examples
        --------
        >>> PlaceholderExpander()._split("a:${b:c}")
        ('a', '${b:c}')
        >>> PlaceholderExpander()._split("${a:b}")
        ('${a:b}', None)
        """

        separator = self._separator
        if separator is None:
            return placeholder, None
        index = 0
        depth = 0
        while index < len(placeholder):
            if placeholder.startswith(self._simple_prefix, index):
                depth += 1
                index += len(self._simple_prefix)
            elif depth > 0 and placeholder.startswith(self._suffix, index):
                depth -= 1
                index += len(self._suffix)
            elif depth == 0 and placeholder.startswith(separator, index):
                return placeholder[:index], placeholder[index + len(separator) :]
            else:
                index += 1
        return placeholder, None
