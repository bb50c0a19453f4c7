"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour, and
that chain and resolver operations emit the documented events.
"""

from __future__ import annotations

import logging

import pytest

from lib_layered_env import MapSource, SourceChain, ValueResolver, bind_trace_id, get_logger
from lib_layered_env.observability import TRACE_ID, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_layered_env")
    bind_trace_id("trace-123")
    try:
        log_info("environment_built", layer="chain", path=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "layer": "chain", "path": None}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    event = make_event("dotenv", "/srv/.env", {"keys": 3})
    assert event == {"layer": "dotenv", "path": "/srv/.env", "keys": 3}


def test_chain_mutations_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_layered_env")
    chain = SourceChain()
    chain.add_last(MapSource("defaults", {}))
    chain.replace("defaults", MapSource("fallback", {}))
    chain.remove("fallback")
    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["source_added", "source_replaced", "source_removed"]


def test_key_lookups_report_source_name(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_layered_env")
    resolver = ValueResolver(SourceChain([MapSource("app", {"port": 80})]))
    resolver.get_value("port", int)
    resolver.get_value("missing")
    found = next(record for record in caplog.records if record.getMessage() == "key_found")
    assert found.context["layer"] == "app"
    assert found.context["key"] == "port"
    assert found.context["value_type"] == "int"
    assert any(record.getMessage() == "key_not_found" for record in caplog.records)
