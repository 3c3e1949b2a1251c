"""
FortiManager MCP Server - Exception Hierarchy

This module contains all custom exceptions used throughout the FortiManager MCP server.

Two independent failure domains are reported through this hierarchy: the HTTP
transport (``HttpError``, ``NetworkError``, ``TimeoutError``) and the per-call
status embedded in JSONRPC results (``RpcError``, ``RpcBatchError``).
"""

from datetime import datetime, timezone
from typing import Any


class FortiManagerError(Exception):
    """Base exception for all FortiManager-related errors with enhanced context."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(FortiManagerError):
    """Client not configured or invalid configuration."""


class ValidationError(FortiManagerError):
    """Input parameter validation failed."""


class MissingCredentialsError(FortiManagerError):
    """Login attempted without both user and password."""

    def __init__(self, message: str = "user and password required"):
        super().__init__(message)


class NetworkError(FortiManagerError):
    """Network communication error."""


class TimeoutError(FortiManagerError):
    """Request timed out."""


class HttpError(FortiManagerError):
    """The HTTP layer answered with a status other than 200."""

    def __init__(self, code: int, body: str):
        super().__init__(
            f"http error ({code}): {body}",
            context={"status_code": code},
        )
        self.code = code
        self.body = body


class MalformedResponseError(FortiManagerError):
    """The response body does not have the documented JSONRPC shape."""

    def __init__(self, raw_body: str, reason: str | None = None):
        message = "jsonrpc error: response not in expected format"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            f"{message}: {raw_body}",
            context={"reason": reason} if reason else None,
        )
        self.raw_body = raw_body
        self.reason = reason


class RpcError(FortiManagerError):
    """A single JSONRPC call returned a non-zero status code."""

    def __init__(self, code: int, status_message: str, url: str | None = None):
        super().__init__(
            f"jsonrpc error ({code}): {status_message}",
            context={"code": code, "url": url},
        )
        self.code = code
        self.status_message = status_message
        self.url = url


class RpcBatchError(FortiManagerError):
    """One or more entries of a batched JSONRPC call failed.

    ``failures`` holds one ``{"url", "code", "message"}`` dict per failed
    entry, in submission order.
    """

    def __init__(self, failures: list[dict[str, Any]]):
        details = "; ".join(
            f"{failure['url']} ({failure['code']}): {failure['message']}"
            for failure in failures
        )
        super().__init__(
            f"jsonrpc batch error, {len(failures)} call(s) failed: {details}",
            context={"failures": failures},
        )
        self.failures = failures
