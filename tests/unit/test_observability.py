"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour.
"""

from __future__ import annotations

import logging

import pytest

from gss_config import bind_trace_id, get_logger
from gss_config.observability import TRACE_ID, log_debug, log_error, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert logger.name == "gss_config"
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="gss_config")
    bind_trace_id("trace-123")
    try:
        log_info("configuration_built", layer="final", path=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "layer": "final", "path": None}


@pytest.mark.parametrize(("emit", "level"), [(log_debug, logging.DEBUG), (log_error, logging.ERROR)])
def test_levels(caplog: pytest.LogCaptureFixture, emit, level: int) -> None:
    caplog.set_level(logging.DEBUG, logger="gss_config")
    emit("field_invalid", field="port")
    record = caplog.records[-1]
    assert record.levelno == level
    assert record.context == {"trace_id": None, "field": "port"}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    assert make_event("env", None, {"keys": 3}) == {"layer": "env", "path": None, "keys": 3}
    assert make_event("file", "/etc/gss/config.yaml") == {"layer": "file", "path": "/etc/gss/config.yaml"}
