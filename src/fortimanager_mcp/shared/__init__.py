"""
FortiManager MCP Server - Shared Utilities

This package contains shared utilities and constants used across the MCP server.
"""

from . import constants
from .error_handlers import (
    ErrorResponse,
    ErrorSeverity,
    describe_rpc_failure,
    handle_tool_error,
    parse_json_argument,
    validate_name,
)
from .error_sanitizer import ErrorMessageSanitizer, log_error_safely

__all__ = [
    "ErrorMessageSanitizer",
    "ErrorResponse",
    "ErrorSeverity",
    "describe_rpc_failure",
    "constants",
    "handle_tool_error",
    "log_error_safely",
    "parse_json_argument",
    "validate_name",
]
