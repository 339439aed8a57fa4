"""
Tests for logging processors.
"""

from quantumdmn.logging import (
    REDACTED,
    add_component_context,
    add_correlation_context,
    clear_context,
    redact_secrets,
    request_context,
    request_id_var,
    set_request_id,
)


def test_secrets_are_redacted():
    event = {"event": "Access token refreshed", "access_token": "abc", "Authorization": "Bearer abc", "expires_in": 3600}

    result = redact_secrets(None, "info", event)

    assert result["access_token"] == REDACTED
    assert result["Authorization"] == REDACTED
    assert result["expires_in"] == 3600


def test_component_from_logger_name():
    assert add_component_context(None, "info", {"logger": "quantumdmn.auth.token_provider"})["component"] == "auth"
    assert "component" not in add_component_context(None, "info", {"logger": "other.module"})


def test_correlation_id():
    request_id = set_request_id()
    try:
        assert add_correlation_context(None, "info", {})["request_id"] == request_id
    finally:
        clear_context()

    assert "request_id" not in add_correlation_context(None, "info", {})


def test_request_context_restores_outer_id():
    with request_context("outer") as outer:
        with request_context() as inner:
            assert request_id_var.get() == inner
            assert inner != outer
        assert request_id_var.get() == "outer"

    assert request_id_var.get() is None
