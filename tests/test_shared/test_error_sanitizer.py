"""
Tests for FortiManager MCP Server error message sanitization.
"""

import logging
from unittest.mock import Mock

import httpx

from src.fortimanager_mcp.core.exceptions import (
    ConfigurationError,
    HttpError,
    MalformedResponseError,
    RpcBatchError,
    RpcError,
)
from src.fortimanager_mcp.shared.error_sanitizer import ErrorMessageSanitizer, log_error_safely


class TestSanitizeForUser:
    """Test ErrorMessageSanitizer.sanitize_for_user."""

    def test_rpc_error(self):
        message = ErrorMessageSanitizer.sanitize_for_user(RpcError(-6, "Invalid url"))

        assert message == "FortiManager error (-6): Invalid url"

    def test_rpc_error_message_redacted(self):
        message = ErrorMessageSanitizer.sanitize_for_user(RpcError(-11, "bad session=abc123"))

        assert "abc123" not in message
        assert "session=[REDACTED]" in message

    def test_batch_error(self):
        error = RpcBatchError([{"url": "/a", "code": -3, "message": "missing"}])

        assert ErrorMessageSanitizer.sanitize_for_user(error) == "1 call(s) of the batch failed."

    def test_http_error_hides_body(self):
        message = ErrorMessageSanitizer.sanitize_for_user(HttpError(500, "stack trace with internals"))

        assert message == "FortiManager returned HTTP 500."

    def test_malformed_response_hides_body(self):
        message = ErrorMessageSanitizer.sanitize_for_user(MalformedResponseError('{"session": "x"}'))

        assert message == "Received invalid response from FortiManager."

    def test_raw_httpx_errors(self):
        assert "Cannot connect" in ErrorMessageSanitizer.sanitize_for_user(httpx.ConnectError("refused"))
        assert "timed out" in ErrorMessageSanitizer.sanitize_for_user(httpx.ReadTimeout("slow"))

    def test_unknown_error(self):
        message = ErrorMessageSanitizer.sanitize_for_user(KeyError("passwd"), "exec_rpc_call")

        assert message == "An error occurred during exec_rpc_call. Please check the logs for details."


class TestSanitizeText:
    """Test text and context redaction."""

    def test_json_form_redacted(self):
        text = '{"user": "admin", "passwd": "hunter2", "session": "TOKEN"}'

        sanitized = ErrorMessageSanitizer._sanitize_text(text)

        assert "hunter2" not in sanitized
        assert "TOKEN" not in sanitized
        assert '"passwd": "[REDACTED]"' in sanitized
        assert '"user": "admin"' in sanitized

    def test_key_value_form_redacted(self):
        sanitized = ErrorMessageSanitizer._sanitize_text("login failed password=hunter2 user=admin")

        assert sanitized == "login failed password=[REDACTED] user=admin"

    def test_plain_text_untouched(self):
        assert ErrorMessageSanitizer._sanitize_text("Object does not exist") == "Object does not exist"

    def test_context_redacted(self):
        context = {
            "url": "/sys/login/user",
            "passwd": "hunter2",
            "nested": {"session_id": "TOKEN"},
            "code": -22,
        }

        sanitized = ErrorMessageSanitizer._sanitize_context(context)

        assert sanitized["passwd"] == "[REDACTED]"
        assert sanitized["nested"]["session_id"] == "[REDACTED]"
        assert sanitized["url"] == "/sys/login/user"
        assert sanitized["code"] == -22

    def test_empty_context(self):
        assert ErrorMessageSanitizer._sanitize_context(None) == {}


class TestSanitizeForLogs:
    """Test ErrorMessageSanitizer.sanitize_for_logs."""

    def test_rpc_error_details(self):
        details = ErrorMessageSanitizer.sanitize_for_logs(RpcError(-3, "Object does not exist", url="/a"))

        assert details["error_type"] == "RpcError"
        assert details["rpc"] == {"url": "/a", "code": -3}

    def test_batch_failures_redacted(self):
        error = RpcBatchError([{"url": "/a", "code": -11, "message": "session=abc123 expired"}])

        details = ErrorMessageSanitizer.sanitize_for_logs(error)

        assert details["rpc"] == {"failed_urls": ["/a"]}
        assert details["context"]["failures"][0]["message"] == "session=[REDACTED] expired"
        assert "abc123" not in details["error_message"]

    def test_http_body_excerpt(self):
        details = ErrorMessageSanitizer.sanitize_for_logs(HttpError(502, "x" * 2000))

        assert details["http"]["status_code"] == 502
        assert details["http"]["body"].endswith("... (2000 chars)")
        assert len(details["error_message"]) < 600

    def test_malformed_body_redacted(self):
        error = MalformedResponseError('{"session": "abc123"}', "no result")

        details = ErrorMessageSanitizer.sanitize_for_logs(error)

        assert details["response"] == {"reason": "no result", "body": '{"session": "[REDACTED]"}'}

    def test_plain_exception(self):
        details = ErrorMessageSanitizer.sanitize_for_logs(ValueError("bad"))

        assert details == {"error_type": "ValueError", "error_message": "bad"}


class TestLogErrorSafely:
    """Test log_error_safely."""

    def test_logs_and_returns_user_message(self):
        logger = Mock(spec=logging.Logger)

        message = log_error_safely(logger, ConfigurationError("Profile missing"), "exec_rpc_call")

        assert message == "Configuration error: Profile missing"
        logger.error.assert_called_once()

    def test_custom_user_message(self):
        logger = Mock(spec=logging.Logger)

        message = log_error_safely(logger, RuntimeError("x"), "op", user_message="Try again")

        assert message == "Try again"

    def test_log_entry_is_redacted(self):
        logger = Mock(spec=logging.Logger)

        log_error_safely(logger, RuntimeError('{"passwd": "hunter2"}'), "op")

        assert "hunter2" not in logger.error.call_args[0][0]
