"""Placeholder expansion: defaults, nesting, strictness, and cycles."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_layered_env.application.placeholders import PlaceholderExpander
from lib_layered_env.domain.errors import CircularPlaceholderError, InvalidArgumentError, UnresolvedPlaceholderError

VALUES = {
    "host": "db.local",
    "port": "5432",
    "url": "jdbc://${host}:${port}",
    "name": "host",
    "empty": "",
}

lenient = PlaceholderExpander()
strict = PlaceholderExpander(ignore_unresolvable=False)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("plain text", "plain text"),
        ("${host}", "db.local"),
        ("${host}:${port}", "db.local:5432"),
        ("${url}/app", "jdbc://db.local:5432/app"),
        ("${missing:fallback}", "fallback"),
        ("${missing:}", ""),
        ("${host:fallback}", "db.local"),
        ("${${name}}", "db.local"),
        ("${missing:${host}}", "db.local"),
        ("${missing:${other:deep}}", "deep"),
        ("${empty}x", "x"),
        ("${missing:a:b}", "a:b"),
        ("${missing:{literal}}", "{literal}"),
    ],
)
def test_expansion(text: str, expected: str) -> None:
    assert lenient.expand(text, VALUES.get) == expected
    assert strict.expand(text, VALUES.get) == expected


def test_lenient_mode_keeps_unresolvable_placeholders_verbatim() -> None:
    assert lenient.expand("a ${missing} b ${host}", VALUES.get) == "a ${missing} b db.local"


def test_strict_mode_reports_key_and_text() -> None:
    with pytest.raises(UnresolvedPlaceholderError) as excinfo:
        strict.expand("a ${missing} b", VALUES.get)
    assert excinfo.value.key == "missing"
    assert excinfo.value.text == "a ${missing} b"


def test_strict_mode_fails_inside_referenced_values() -> None:
    values = {"outer": "x-${inner}"}
    with pytest.raises(UnresolvedPlaceholderError):
        strict.expand("${outer}", values.get)
    assert lenient.expand("${outer}", values.get) == "x-${inner}"


def test_unterminated_placeholder_is_left_alone() -> None:
    assert strict.expand("${host", VALUES.get) == "${host"
    assert lenient.expand("${host} ${port", VALUES.get) == "db.local ${port"


@pytest.mark.parametrize("expander", [lenient, strict])
def test_direct_cycle_is_detected(expander: PlaceholderExpander) -> None:
    with pytest.raises(CircularPlaceholderError) as excinfo:
        expander.expand("${a}", {"a": "${a}"}.get)
    assert excinfo.value.key == "a"


@pytest.mark.parametrize("expander", [lenient, strict])
def test_indirect_cycle_is_detected(expander: PlaceholderExpander) -> None:
    with pytest.raises(CircularPlaceholderError):
        expander.expand("${a}", {"a": "${b}", "b": "${a}"}.get)


def test_same_key_twice_in_one_text_is_not_a_cycle() -> None:
    assert lenient.expand("${host}/${host}", VALUES.get) == "db.local/db.local"


def test_substituted_text_is_not_scanned_again() -> None:
    values = {"literal": "${not-a-key}"}
    expander = PlaceholderExpander(ignore_unresolvable=True)
    assert expander.expand("${literal}", values.get) == "${not-a-key}"
    assert expander.expand("${missing:$}{host}", VALUES.get) == "${host}"


def test_custom_delimiters_and_disabled_separator() -> None:
    expander = PlaceholderExpander("%(", ")", None)
    values = {"a:b": "colon", "host": "db"}
    assert expander.expand("%(a:b)-%(host)", values.get) == "colon-db"
    assert expander.separator is None


def test_empty_delimiters_are_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        PlaceholderExpander("", "}")


TEXT = st.text(alphabet=st.characters(exclude_characters="${}"), max_size=30)


@given(TEXT)
def test_text_without_placeholders_is_unchanged(text: str) -> None:
    assert strict.expand(text, VALUES.get) == text


@given(st.lists(st.sampled_from(["${host}", "${port}", "${url}", "${missing:d}", "-", "x"]), max_size=8))
def test_expansion_is_idempotent_for_resolvable_text(parts: list[str]) -> None:
    once = strict.expand("".join(parts), VALUES.get)
    assert strict.expand(once, VALUES.get) == once


def test_strict_mode_fails_when_nested_default_is_unresolvable() -> None:
    with pytest.raises(UnresolvedPlaceholderError) as excinfo:
        strict.expand("${a:${b}}", {}.get)
    assert excinfo.value.key == "b"
