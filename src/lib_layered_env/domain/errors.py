"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the source chain, the resolver, the
profile parser, adapters, and consuming applications. The hierarchy lives in the
domain layer so outer layers may depend on it without the domain importing
anything from them.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library failures.
* :class:`InvalidArgumentError` – malformed chain operations or flag names.
* :class:`NotFoundError` – a named source referenced by a chain operation is absent.
* :class:`MissingKeyError` – a single required key did not resolve.
* :class:`MissingRequiredPropertiesError` – aggregate of every missing required key.
* :class:`PlaceholderError` / :class:`UnresolvedPlaceholderError` /
  :class:`CircularPlaceholderError` – placeholder expansion failures.
* :class:`MalformedExpressionError` – profile expression grammar violations.
* :class:`ConversionError` – raised by type-conversion collaborators.
* :class:`InvalidFormat` / :class:`NotFound` – adapter-level file problems.

System Role
-----------
Callers catch :class:`ConfigError` to handle all library failures uniformly.
Subclasses that describe bad input also derive from the matching builtin
(``ValueError`` / ``LookupError``) so generic handlers keep working.
"""

from __future__ import annotations

from typing import Iterable


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_layered_env``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidArgumentError(ConfigError, ValueError):
    """Raised for malformed input to a chain operation or an invalid flag name.

    Typical Sources
    ---------------
    ``SourceChain.add_before("x", source_named_x)`` and profile names that are
    empty, whitespace-only, or start with ``!``.
    """


class NotFoundError(ConfigError, LookupError):
    """Raised when a chain operation references a source name that is absent."""


class MissingKeyError(ConfigError, LookupError):
    """Raised by ``get_required`` when *key* does not resolve to a value."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required key '{key}' not found")
        self.key = key


class MissingRequiredPropertiesError(ConfigError):
    """Aggregate failure listing every required key that did not resolve.

    Why
    ----
    Operators fix configuration faster when they see all missing keys at once
    rather than one per run.

    Examples
    --------
    >>> error = MissingRequiredPropertiesError(["db.url", "db.user"])
    >>> error.missing_keys
    ('db.url', 'db.user')
    >>> str(error)
    'The following properties were declared as required but could not be resolved: db.url, db.user'
    """

    def __init__(self, missing_keys: Iterable[str]) -> None:
        self.missing_keys = tuple(missing_keys)
        super().__init__(
            "The following properties were declared as required but could not be resolved: "
            + ", ".join(self.missing_keys)
        )


class PlaceholderError(ConfigError, ValueError):
    """Base type for failures raised while expanding ``${...}`` placeholders."""


class UnresolvedPlaceholderError(PlaceholderError):
    """A placeholder had neither a value nor a default in strict mode."""

    def __init__(self, key: str, text: str) -> None:
        super().__init__(f"Could not resolve placeholder '{key}' in value \"{text}\"")
        self.key = key
        self.text = text


class CircularPlaceholderError(PlaceholderError):
    """A placeholder refers back to itself, directly or through other keys."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Circular placeholder reference '{key}' in property definitions")
        self.key = key


class MalformedExpressionError(ConfigError, ValueError):
    """A profile expression violates the grammar.

    Examples
    --------
    >>> error = MalformedExpressionError("a & b | c", "cannot mix '&' and '|' without parentheses")
    >>> error.expression
    'a & b | c'
    >>> str(error)
    "Malformed profile expression [a & b | c]: cannot mix '&' and '|' without parentheses"
    """

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Malformed profile expression [{expression}]: {reason}")
        self.expression = expression
        self.reason = reason


class ConversionError(ConfigError, ValueError):
    """A value cannot be converted to the requested target type."""

    def __init__(self, value: object, target_type: type, reason: str | None = None) -> None:
        message = f"Cannot convert {value!r} to {getattr(target_type, '__name__', target_type)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.value = value
        self.target_type = target_type


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and dotenv
    parsing helpers.
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, directories, etc.).

    The composition root treats this as a non-fatal condition.
    """
