"""
Fixtures for FortiManager MCP Server domain tool tests.

The domain modules register their tools on the ``mcp`` instance of the main
module and share its ``server_state``. The main module is replaced here with a
stand-in carrying a real FastMCP instance and a mock state whose ``call`` runs
client methods inline.
"""

import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.server.fastmcp import FastMCP

mock_mcp = FastMCP("test-server")
mock_server_state = MagicMock()
mock_main = MagicMock()
mock_main.mcp = mock_mcp
mock_main.server_state = mock_server_state
sys.modules["src.fortimanager_mcp.main"] = mock_main


def _call_inline(func, *args, **kwargs):
    return func(*args, **kwargs)


@pytest.fixture(autouse=True)
def inline_server_state():
    """Reset the shared mock state and run client calls inline."""
    mock_server_state.reset_mock()
    mock_server_state.call = AsyncMock(side_effect=_call_inline)
    mock_server_state.initialize = AsyncMock()
    mock_server_state.cleanup = AsyncMock()
    mock_server_state.get_client = AsyncMock()
    mock_server_state.client = None
    mock_server_state.session_created = None
    return mock_server_state
