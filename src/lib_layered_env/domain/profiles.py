"""Boolean expressions over named profiles (flags).

Purpose
-------
Parse expressions such as ``"prod & (eu | us)"`` or ``"!legacy"`` once and
evaluate them repeatedly against a caller-supplied "is this profile active"
predicate.

Contents
--------
* :class:`Profiles` – abstract predicate over profile activity, plus the
  :meth:`Profiles.of` factory.
* :class:`Literal`, :class:`Not`, :class:`And`, :class:`Or` – immutable AST nodes.
* :class:`ParsedProfiles` – OR across several parsed input strings.
* :func:`parse` – recursive-descent parser raising
  :class:`~lib_layered_env.domain.errors.MalformedExpressionError`.

Grammar
-------
::

    expression := unary ( ("&" unary)* | ("|" unary)* )
    unary      := "!" unary | "(" expression ")" | literal

``&`` and ``|`` never mix at one nesting level without parentheses. The parser
rejects such input instead of picking a precedence.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Final, NoReturn

from .errors import InvalidArgumentError, MalformedExpressionError

ActivePredicate = Callable[[str], bool]

_DELIMITERS: Final[re.Pattern[str]] = re.compile(r"([()&|!])")
_OPERATORS: Final[frozenset[str]] = frozenset({"&", "|"})


class Profiles(ABC):
    """Predicate over the activity of named profiles.

    Examples
    --------
    >>> active = {"prod", "eu"}.__contains__
    >>> Profiles.of("prod & (eu | us)").matches(active)
    True
    >>> Profiles.of("!prod", "us").matches(active)
    False
    """

    @abstractmethod
    def matches(self, is_active: ActivePredicate) -> bool:
        """Return whether the expression holds for the given activity test."""

    @staticmethod
    def of(*expressions: str) -> ParsedProfiles:
        """Parse *expressions*, any one of which matching is sufficient.

        Raises
        ------
        InvalidArgumentError
            When no expression is given.
        MalformedExpressionError
            When any expression violates the grammar.
        """

        if not expressions:
            raise InvalidArgumentError("Must specify at least one profile expression")
        return ParsedProfiles(tuple(expressions), tuple(parse(expression) for expression in expressions))


@dataclass(frozen=True, slots=True)
class Literal(Profiles):
    """A single profile name."""

    name: str

    def matches(self, is_active: ActivePredicate) -> bool:
        return bool(is_active(self.name))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Not(Profiles):
    """Negation of one operand."""

    operand: Profiles

    def matches(self, is_active: ActivePredicate) -> bool:
        return not self.operand.matches(is_active)

    def __str__(self) -> str:
        return f"!{_render(self.operand)}"


@dataclass(frozen=True, slots=True)
class And(Profiles):
    """Conjunction: every operand must match."""

    operands: tuple[Profiles, ...]

    def matches(self, is_active: ActivePredicate) -> bool:
        return all(operand.matches(is_active) for operand in self.operands)

    def __str__(self) -> str:
        return " & ".join(_render(operand) for operand in self.operands)


@dataclass(frozen=True, slots=True)
class Or(Profiles):
    """Disjunction: at least one operand must match."""

    operands: tuple[Profiles, ...]

    def matches(self, is_active: ActivePredicate) -> bool:
        return any(operand.matches(is_active) for operand in self.operands)

    def __str__(self) -> str:
        return " | ".join(_render(operand) for operand in self.operands)


@dataclass(frozen=True, slots=True)
class ParsedProfiles(Profiles):
    """Result of :meth:`Profiles.of`: an implicit OR across input strings.

    Examples
    --------
    >>> str(Profiles.of("web & api", "cli | batch"))
    'web & api or cli | batch'
    """

    expressions: tuple[str, ...]
    parsed: tuple[Profiles, ...]

    def matches(self, is_active: ActivePredicate) -> bool:
        return any(candidate.matches(is_active) for candidate in self.parsed)

    def __str__(self) -> str:
        return " or ".join(self.expressions)


def parse(expression: str) -> Profiles:
    """Parse a single *expression* into an AST.

    Examples
    --------
    >>> parse("(a & b) | c")
    Or(operands=(And(operands=(Literal(name='a'), Literal(name='b'))), Literal(name='c')))
    >>> parse("a & b | c")
    Traceback (most recent call last):
    ...
    lib_layered_env.domain.errors.MalformedExpressionError: Malformed profile expression [a & b | c]: cannot mix '&' and '|' without parentheses
    """

    if not isinstance(expression, str) or not expression.strip():
        raise MalformedExpressionError(str(expression), "must contain text")
    return _Parser(expression).parse()


def tokenize(expression: str) -> list[str]:
    """Split *expression* on ``()&|!`` keeping delimiters, trimming literals.

    Examples
    --------
    >>> tokenize("!(web)&api ")
    ['!', '(', 'web', ')', '&', 'api']
    """

    return [token for token in (part.strip() for part in _DELIMITERS.split(expression)) if token]


class _Parser:
    """Recursive-descent parser over the token list of one expression."""

    def __init__(self, expression: str) -> None:
        self._expression = expression
        self._tokens = tokenize(expression)
        self._position = 0

    def parse(self) -> Profiles:
        result = self._parse_expression()
        if self._peek() is not None:
            self._fail("unmatched ')'")
        return result

    def _parse_expression(self) -> Profiles:
        operands = [self._parse_unary()]
        operator: str | None = None
        while self._peek() in _OPERATORS:
            token = self._next()
            if operator is not None and token != operator:
                self._fail("cannot mix '&' and '|' without parentheses")
            operator = token
            if self._peek() in (None, ")"):
                self._fail(f"dangling operator '{token}'")
            operands.append(self._parse_unary())
        if self._peek() not in (None, ")"):
            self._fail(f"missing operator before '{self._peek()}'")
        if len(operands) == 1:
            return operands[0]
        return And(tuple(operands)) if operator == "&" else Or(tuple(operands))

    def _parse_unary(self) -> Profiles:
        token = self._next()
        if token is None:
            self._fail("expected a profile name")
        if token == "!":
            if self._peek() in (None, ")", "&", "|"):
                self._fail("'!' must be followed by a profile name or group")
            return Not(self._parse_unary())
        if token == "(":
            if self._peek() == ")":
                self._fail("empty group '()'")
            if self._peek() is None:
                self._fail("unmatched '('")
            inner = self._parse_expression()
            if self._next() != ")":
                self._fail("unmatched '('")
            return inner
        if token == ")":
            self._fail("unmatched ')'")
        if token in _OPERATORS:
            self._fail(f"operator '{token}' has no preceding operand")
        return Literal(token)

    def _peek(self) -> str | None:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self) -> str | None:
        token = self._peek()
        if token is not None:
            self._position += 1
        return token

    def _fail(self, reason: str) -> NoReturn:
        raise MalformedExpressionError(self._expression, reason)


def _render(node: Profiles) -> str:
    """Render *node*, parenthesising compound operands."""

    if isinstance(node, (And, Or)):
        return f"({node})"
    return str(node)
