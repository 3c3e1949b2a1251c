"""
FortiManager MCP Server

A Model Context Protocol (MCP) server and JSONRPC client library for managing
firewall policy objects on Fortinet FortiManager.
"""

__version__ = "1.0.0"
__license__ = "AGPL-3.0"

from .core.client import FortiManagerClient
from .core.exceptions import (
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
from .core.models import FortiManagerConfig
from .core.session import RpcSession
from .core.state import ServerState

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
    # Core classes
    "FortiManagerConfig",
    "RpcSession",
    "FortiManagerClient",
    "ServerState",
]
