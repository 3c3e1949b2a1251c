"""
Tests for FortiManager MCP Server exception classes.

This module tests the custom exception hierarchy including error context,
error codes, and the HTTP and JSONRPC error payloads.
"""

from datetime import datetime

import pytest

from src.fortimanager_mcp.core.exceptions import (
    ConfigurationError,
    FortiManagerError,
    HttpError,
    MalformedResponseError,
    MissingCredentialsError,
    NetworkError,
    RpcBatchError,
    RpcError,
    TimeoutError,
    ValidationError,
)


class TestFortiManagerError:
    """Test the base FortiManagerError exception class."""

    def test_basic_exception_creation(self):
        error = FortiManagerError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.error_code == "FortiManagerError"
        assert error.context == {}
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_error_code_and_context(self):
        error = FortiManagerError("Failed", error_code="CUSTOM", context={"url": "/sys/status"})

        assert error.error_code == "CUSTOM"
        assert error.context["url"] == "/sys/status"

    def test_to_dict(self):
        error = ValidationError("Bad name", context={"parameter": "name"})

        data = error.to_dict()

        assert data["error_type"] == "ValidationError"
        assert data["error_code"] == "ValidationError"
        assert data["message"] == "Bad name"
        assert data["context"] == {"parameter": "name"}
        assert data["timestamp"] == error.timestamp.isoformat()

    @pytest.mark.parametrize(
        "error_class",
        [ConfigurationError, ValidationError, NetworkError, TimeoutError],
    )
    def test_simple_subclasses(self, error_class):
        error = error_class("boom")

        assert isinstance(error, FortiManagerError)
        assert error.error_code == error_class.__name__


class TestProtocolErrors:
    """Test the errors raised by the response validator and the session."""

    def test_missing_credentials_default_message(self):
        error = MissingCredentialsError()

        assert str(error) == "user and password required"
        assert isinstance(error, FortiManagerError)

    def test_http_error(self):
        error = HttpError(503, "Service Unavailable")

        assert error.code == 503
        assert error.body == "Service Unavailable"
        assert str(error) == "http error (503): Service Unavailable"
        assert error.context["status_code"] == 503

    def test_malformed_response(self):
        error = MalformedResponseError('{"id": 1}', "missing result list")

        assert error.raw_body == '{"id": 1}'
        assert error.reason == "missing result list"
        assert "missing result list" in str(error)
        assert '{"id": 1}' in str(error)

    def test_malformed_response_without_reason(self):
        error = MalformedResponseError("garbage")

        assert error.reason is None
        assert error.context == {}

    def test_rpc_error(self):
        error = RpcError(-11, "No permission for the resource", url="/sys/status")

        assert error.code == -11
        assert error.status_message == "No permission for the resource"
        assert error.url == "/sys/status"
        assert str(error) == "jsonrpc error (-11): No permission for the resource"

    def test_rpc_batch_error(self):
        failures = [
            {"url": "/a", "code": -3, "message": "Object does not exist"},
            {"url": "/c", "code": -10, "message": "Invalid data"},
        ]

        error = RpcBatchError(failures)

        assert error.failures == failures
        assert error.context["failures"] == failures
        assert "2 call(s) failed" in str(error)
        assert "/a (-3): Object does not exist" in str(error)
        assert "/c (-10): Invalid data" in str(error)

    def test_errors_are_distinct_types(self):
        """HTTP failures and RPC failures are told apart by type."""
        assert not issubclass(HttpError, RpcError)
        assert not issubclass(RpcBatchError, RpcError)
        assert not issubclass(MalformedResponseError, HttpError)
