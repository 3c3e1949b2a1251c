"""
FortiManager MCP Server - Error Handling Helpers

This module provides error handling utilities and user-friendly error response generation.
"""

import json
import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, TYPE_CHECKING

from ..core.exceptions import (
    FortiManagerError,
    ConfigurationError,
    HttpError,
    MalformedResponseError,
    MissingCredentialsError,
    NetworkError,
    RpcBatchError,
    RpcError,
    TimeoutError,
    ValidationError,
)
from .constants import API_SYS_LOGIN_USER
from .error_sanitizer import ErrorMessageSanitizer

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger("fortimanager-mcp")

# FortiManager status codes that callers commonly branch on
RPC_CODE_MESSAGES = {
    -2: "The object already exists.",
    -3: "The object does not exist.",
    -6: "Invalid URL or object path.",
    -10: "The data is invalid for this object.",
    -11: "No permission for this operation, or the session is invalid.",
    -22: "Login failed. Please check the FortiManager user and password.",
}

OBJECT_NAME_PATTERN = re.compile(r'^[^/\s][^/]{0,78}$')


class ErrorSeverity(str, Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorResponse:
    """Structured error response system with user-friendly messaging."""

    def __init__(self, error: Exception, operation: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM):
        """Initialize error response.

        Args:
            error: The exception that occurred
            operation: Name of the operation that failed
            severity: Severity level of the error
        """
        self.error = error
        self.operation = operation
        self.severity = severity
        self.timestamp = datetime.now(timezone.utc)
        self.error_id = f"{operation}_{int(self.timestamp.timestamp())}"

    def get_user_message(self) -> str:
        """Get user-friendly error message.

        Returns:
            Human-readable error message
        """
        if isinstance(self.error, MissingCredentialsError):
            return "FortiManager user and password are required to log in."
        elif isinstance(self.error, ConfigurationError):
            return "FortiManager connection not configured. Please configure the connection first."
        elif isinstance(self.error, ValidationError):
            return f"Invalid input: {self.error.message}"
        elif isinstance(self.error, RpcError):
            hint = RPC_CODE_MESSAGES.get(self.error.code)
            status = ErrorMessageSanitizer._sanitize_text(self.error.status_message)
            message = f"FortiManager rejected the call ({self.error.code}): {status}"
            return f"{message}. {hint}" if hint else message
        elif isinstance(self.error, RpcBatchError):
            failed = ", ".join(
                f"{failure['url']} ({failure['code']}: {ErrorMessageSanitizer._sanitize_text(failure['message'])})"
                for failure in self.error.failures
            )
            return f"{len(self.error.failures)} call(s) of the batch failed: {failed}"
        elif isinstance(self.error, HttpError):
            return f"FortiManager returned HTTP {self.error.code}."
        elif isinstance(self.error, MalformedResponseError):
            return "Received an unexpected response from FortiManager."
        elif isinstance(self.error, NetworkError):
            return "Cannot connect to FortiManager. Please check the URL and network connectivity."
        elif isinstance(self.error, TimeoutError):
            return "Request timed out. The FortiManager server may be overloaded."
        else:
            return f"An unexpected error occurred during {self.operation}."

    def get_technical_details(self) -> Dict[str, Any]:
        """Get technical error details for logging.

        Returns:
            Dictionary containing technical error information
        """
        details = {
            "error_id": self.error_id,
            "operation": self.operation,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "error_type": type(self.error).__name__,
            "message": ErrorMessageSanitizer._sanitize_text(str(self.error))
        }

        if isinstance(self.error, FortiManagerError):
            error_dict = self.error.to_dict()
            error_dict["message"] = ErrorMessageSanitizer._sanitize_text(error_dict["message"])
            error_dict["context"] = ErrorMessageSanitizer._sanitize_context(error_dict["context"])
            details.update(error_dict)

        if isinstance(self.error, HttpError):
            details["status_code"] = self.error.code

        return details


async def handle_tool_error(
    ctx: 'Context',
    operation: str,
    error: Exception,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
) -> str:
    """Centralized error handling for MCP tools.

    Args:
        ctx: MCP context for error reporting
        operation: Name of the operation that failed
        error: The exception that occurred
        severity: Severity level of the error

    Returns:
        User-friendly error message
    """
    error_response = ErrorResponse(error, operation, severity)

    technical_details = error_response.get_technical_details()
    logger.error(f"Tool error in {operation}: {json.dumps(technical_details, indent=2, default=str)}")

    user_message = error_response.get_user_message()
    await ctx.error(user_message)

    return f"Error: {user_message}"


def validate_name(name: str, operation: str, parameter: str = "name") -> None:
    """Validate a FortiManager object or ADOM name supplied to a tool.

    Args:
        name: Name to validate
        operation: Operation name for error context
        parameter: Parameter name for error context

    Raises:
        ValidationError: If the name is empty, too long, or contains '/'
    """
    if not name or not OBJECT_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid {parameter}: '{name}'. Use 1-79 characters, no '/' and no leading whitespace",
            context={"operation": operation, "parameter": parameter, "value": name}
        )


def is_login_failure(error: RpcError) -> bool:
    """True when the RpcError came from /sys/login/user rather than a later call."""
    return error.url in (None, API_SYS_LOGIN_USER)


def describe_rpc_failure(error: RpcError) -> str:
    """One-line description of a failed call that names the call.

    Args:
        error: Error raised by the session

    Returns:
        "Login rejected (...)" for the login call, "<url> failed (...)" otherwise
    """
    if is_login_failure(error):
        return f"Login rejected ({error.code}): {error.status_message}"
    return f"{error.url} failed ({error.code}): {error.status_message}"


def parse_json_argument(value: str | None, operation: str, parameter: str) -> Any:
    """Parse a JSON-encoded tool argument.

    Args:
        value: JSON text or None
        operation: Operation name for error context
        parameter: Parameter name for error context

    Returns:
        The decoded value, or None when value is None or empty

    Raises:
        ValidationError: If the text is not valid JSON
    """
    if value is None or not value.strip():
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid JSON in {parameter}: {e}",
            context={"operation": operation, "parameter": parameter}
        )
