#!/usr/bin/env python3
"""
FortiManager MCP Server - Launcher Script

Runs the MCP server from a source checkout without installing the package.
Tools are grouped by domain under src/fortimanager_mcp/domains/:
  * configuration - Profile loading, login/logout, ADOM selection
  * system - System status and session information
  * firewall - Addresses, address groups, services, policy packages
  * utilities - Raw JSONRPC calls

Installed deployments can use the ``fortimanager-mcp-server`` console script instead.
"""

from src.fortimanager_mcp.main import mcp

if __name__ == "__main__":
    mcp.run()
