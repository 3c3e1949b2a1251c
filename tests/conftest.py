"""
Shared pytest configuration and fixtures for FortiManager MCP Server tests.

This module provides common fixtures used across all test modules including:
- FortiManager configurations
- An httpx mock transport that answers JSONRPC envelopes like FortiManager
- Sessions and clients wired to that transport
- MCP context mocks
"""

from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from src.fortimanager_mcp.core import (
    FortiManagerClient,
    FortiManagerConfig,
    HttpTransport,
    RpcSession,
)

from tests.fixtures.jsonrpc import JsonRpcMockTransport

TEST_URL = "https://fmg.example.com"

# ========== Configuration Fixtures ==========


@pytest.fixture
def fmg_config() -> FortiManagerConfig:
    """Provide a FortiManager configuration for testing."""
    return FortiManagerConfig(
        url=TEST_URL,
        user="api-admin",
        passwd="s3cret-passw0rd",
        verify_ssl=False,  # Disable SSL verification for tests
    )


@pytest.fixture
def fmg_config_dict() -> dict[str, Any]:
    """Provide a dictionary version of the FortiManager configuration."""
    return {
        "url": TEST_URL,
        "user": "api-admin",
        "passwd": "s3cret-passw0rd",
        "adom": "root",
        "verify_ssl": False,
        "verbose": True,
        "timeout": 30.0,
    }


# ========== HTTP Mock Transport ==========


@pytest.fixture
def fmg_mock_transport() -> JsonRpcMockTransport:
    """Provide a JSONRPC mock transport with default routes."""
    return JsonRpcMockTransport()


@pytest.fixture
def http_transport(fmg_mock_transport) -> HttpTransport:
    """Provide an HttpTransport that talks to the mock transport."""
    transport = HttpTransport(TEST_URL, client=httpx.Client(transport=fmg_mock_transport))
    yield transport
    transport.close()


@pytest.fixture
def rpc_session(fmg_config, http_transport) -> RpcSession:
    """Provide a fresh, unauthenticated session."""
    return RpcSession(fmg_config, transport=http_transport)


@pytest.fixture
def fmg_client(fmg_config, http_transport) -> FortiManagerClient:
    """Provide a logged-in FortiManager client."""
    client = FortiManagerClient(fmg_config, transport=http_transport)
    client.login()
    return client


# ========== Mock Client Fixtures ==========


@pytest.fixture
def mock_fmg_client(fmg_config):
    """Provide a mock FortiManager client for tool tests."""
    client = Mock(spec=FortiManagerClient)
    client.config = fmg_config
    client.user = fmg_config.user
    client.adom = "root"
    client.adoms = ["branch", "corp", "root"]
    client.is_authenticated = True
    client.last_transaction_id = 3
    return client


# ========== MCP Context Mocks ==========


@pytest.fixture
def mock_mcp_context():
    """Provide a mock MCP context for tool testing."""
    context = Mock()
    context.info = AsyncMock()
    context.warn = AsyncMock()
    context.error = AsyncMock()
    context.debug = AsyncMock()
    return context


# ========== Pytest Configuration ==========


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
