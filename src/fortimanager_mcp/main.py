#!/usr/bin/env python3
"""
FortiManager MCP Server - Main Entry Point

This module initializes the FastMCP server and registers all domain-specific tools.
It serves as the central coordination point for the modular MCP server architecture.
"""

import logging
from mcp.server.fastmcp import FastMCP

from .core.state import ServerState

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("fortimanager-mcp")

# Initialize FastMCP server
mcp = FastMCP(
    "FortiManager MCP Server",
    instructions="Manage FortiManager ADOMs and firewall policy objects via MCP",
)

# Initialize global server state
server_state = ServerState()


# Import domain modules to register their MCP tools
# Each domain module uses the global `mcp` instance to register its tools
# using decorators like: @mcp.tool(name="tool_name", description="...")
from .domains import configuration   # Connection, login/logout, ADOM selection
from .domains import system          # System status
from .domains import firewall        # Addresses, groups, services, policy packages
from .domains import utilities       # Raw JSONRPC calls


def run():
    """Run the MCP server over stdio."""
    mcp.run()


if __name__ == "__main__":
    run()
