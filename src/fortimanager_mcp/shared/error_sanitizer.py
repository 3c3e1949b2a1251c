"""
FortiManager MCP Server - Error Message Sanitization

This module provides utilities for sanitizing error messages to prevent
information disclosure while maintaining helpful user feedback.
"""

import json
import logging
import re
from typing import Any

import httpx

from ..core.exceptions import (
    ConfigurationError,
    FortiManagerError,
    HttpError,
    MalformedResponseError,
    MissingCredentialsError,
    NetworkError,
    RpcBatchError,
    RpcError,
    ValidationError,
)
from ..core.exceptions import (
    TimeoutError as FortiManagerTimeoutError,
)

logger = logging.getLogger("fortimanager-mcp")

# Longest excerpt of a response body or error text written to the logs
MAX_LOGGED_BODY = 512


class ErrorMessageSanitizer:
    """Sanitize error messages for safe user display."""

    # Sensitive patterns that should never appear in user-facing messages
    SENSITIVE_PATTERNS = [
        "passwd",
        "password",
        "session",
        "token",
        "credential",
        "authorization",
        "secret",
    ]

    @staticmethod
    def sanitize_for_user(error: Exception, operation: str = "operation") -> str:
        """
        Return user-safe error message without sensitive details.

        Args:
            error: The exception to sanitize
            operation: Description of the operation that failed

        Returns:
            User-safe error message
        """
        if isinstance(error, MissingCredentialsError):
            return "FortiManager user and password are required."

        if isinstance(error, ConfigurationError):
            return f"Configuration error: {error.message}"

        if isinstance(error, ValidationError):
            return f"Invalid input: {error.message}"

        if isinstance(error, RpcError):
            return (
                f"FortiManager error ({error.code}): "
                f"{ErrorMessageSanitizer._sanitize_text(error.status_message)}"
            )

        if isinstance(error, RpcBatchError):
            return f"{len(error.failures)} call(s) of the batch failed."

        if isinstance(error, HttpError):
            return f"FortiManager returned HTTP {error.code}."

        if isinstance(error, MalformedResponseError):
            return "Received invalid response from FortiManager."

        if isinstance(error, FortiManagerTimeoutError):
            return "Request timed out. FortiManager may be overloaded or unreachable."

        if isinstance(error, NetworkError):
            return "Network error. Cannot connect to FortiManager. Check URL and network connectivity."

        if isinstance(error, httpx.ConnectError):
            return "Cannot connect to FortiManager. Please check the URL and network."

        if isinstance(error, httpx.TimeoutException):
            return "Request timed out. FortiManager may be overloaded."

        if isinstance(error, json.JSONDecodeError):
            return "Received invalid response from FortiManager."

        return f"An error occurred during {operation}. Please check the logs for details."

    @staticmethod
    def sanitize_for_logs(error: Exception) -> dict[str, Any]:
        """
        Return detailed error info for logging (never shown to users).

        JSONRPC errors carry their wire details: the failing URL and status
        code, the HTTP status, or an excerpt of the malformed body.

        Args:
            error: The exception to log

        Returns:
            Dictionary with error details for logging
        """
        error_info: dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": ErrorMessageSanitizer._excerpt(str(error)),
        }

        if not isinstance(error, FortiManagerError):
            return error_info

        error_info["error_code"] = error.error_code
        error_info["context"] = ErrorMessageSanitizer._sanitize_context(error.context)

        if isinstance(error, RpcError):
            error_info["rpc"] = {"url": error.url, "code": error.code}
        elif isinstance(error, RpcBatchError):
            error_info["rpc"] = {
                "failed_urls": [failure.get("url") for failure in error.failures],
            }
        elif isinstance(error, HttpError):
            error_info["http"] = {
                "status_code": error.code,
                "body": ErrorMessageSanitizer._excerpt(error.body),
            }
        elif isinstance(error, MalformedResponseError):
            error_info["response"] = {
                "reason": error.reason,
                "body": ErrorMessageSanitizer._excerpt(error.raw_body),
            }

        return error_info

    @staticmethod
    def _excerpt(text: str) -> str:
        """Redact text and cut it down to MAX_LOGGED_BODY characters."""
        sanitized = ErrorMessageSanitizer._sanitize_text(text)
        if len(sanitized) > MAX_LOGGED_BODY:
            return f"{sanitized[:MAX_LOGGED_BODY]}... ({len(sanitized)} chars)"
        return sanitized

    @staticmethod
    def _sanitize_text(text: str) -> str:
        """
        Remove sensitive values from text.

        Both ``key=value`` and JSON ``"key": "value"`` forms are redacted.

        Args:
            text: Text to sanitize

        Returns:
            Sanitized text
        """
        sanitized = _JSON_FIELD.sub(r'"\1": "[REDACTED]"', text)
        return _ASSIGNMENT.sub(r"\1=[REDACTED]", sanitized)

    @staticmethod
    def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any]:
        """
        Remove sensitive data from a context dictionary.

        Keys naming a sensitive field are redacted whole. Nested dicts and
        lists (such as the failures of a batch) are walked.

        Args:
            context: Context dictionary to sanitize

        Returns:
            Sanitized context dictionary
        """
        if not context:
            return {}
        return ErrorMessageSanitizer._sanitize_value(context)

    @staticmethod
    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: "[REDACTED]" if _is_sensitive_key(key)
                else ErrorMessageSanitizer._sanitize_value(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [ErrorMessageSanitizer._sanitize_value(item) for item in value]
        if isinstance(value, str):
            return ErrorMessageSanitizer._sanitize_text(value)
        return value


def _is_sensitive_key(key: Any) -> bool:
    key_lower = str(key).lower()
    return any(pattern in key_lower for pattern in ErrorMessageSanitizer.SENSITIVE_PATTERNS)


_SENSITIVE_ALTERNATION = "|".join(ErrorMessageSanitizer.SENSITIVE_PATTERNS)
_JSON_FIELD = re.compile(rf'"({_SENSITIVE_ALTERNATION})"\s*:\s*"[^"]*"', re.IGNORECASE)
_ASSIGNMENT = re.compile(rf'({_SENSITIVE_ALTERNATION})[=:](?!\s*")\S+', re.IGNORECASE)


def log_error_safely(
    logger: logging.Logger,
    error: Exception,
    operation: str = "operation",
    user_message: str | None = None,
) -> str:
    """
    Log error with full details and return sanitized user message.

    Args:
        logger: Logger instance
        error: Exception that occurred
        operation: Description of the operation
        user_message: Optional custom user message

    Returns:
        Sanitized user-facing error message
    """
    error_details = ErrorMessageSanitizer.sanitize_for_logs(error)
    logger.error(f"Error in {operation}: {json.dumps(error_details, default=str)}")

    if user_message:
        return user_message
    return ErrorMessageSanitizer.sanitize_for_user(error, operation)
