"""
FortiManager MCP Server - Core Infrastructure

This package contains the JSONRPC session layer and the supporting infrastructure
of the FortiManager MCP server.
"""

from .client import FortiManagerClient, validate_object_name
from .exceptions import (
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
from .models import FortiManagerConfig
from .protocol import CallEnvelope, TransactionSequencer, build_envelope
from .session import RpcSession
from .state import ServerState
from .transport import HttpTransport, RequestResponseLogger, TransportResponse
from .validator import validate_response

__all__ = [
    # Exceptions
    "FortiManagerError",
    "ConfigurationError",
    "ValidationError",
    "MissingCredentialsError",
    "HttpError",
    "MalformedResponseError",
    "RpcError",
    "RpcBatchError",
    "NetworkError",
    "TimeoutError",
    # Models
    "FortiManagerConfig",
    # Protocol
    "TransactionSequencer",
    "CallEnvelope",
    "build_envelope",
    "validate_response",
    # Transport
    "HttpTransport",
    "TransportResponse",
    "RequestResponseLogger",
    # Session & client
    "RpcSession",
    "FortiManagerClient",
    "validate_object_name",
    # State
    "ServerState",
]
