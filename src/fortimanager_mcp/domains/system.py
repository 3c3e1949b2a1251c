"""
FortiManager MCP Server - System Domain

This module provides system tools for FortiManager.

Tools included:
- get_system_status: Get FortiManager system status (/sys/status)
- get_session_info: Show the state of the current JSONRPC session
"""

import json
import logging

from mcp.server.fastmcp import Context

from ..main import mcp, server_state
from ..shared.error_handlers import ErrorSeverity, handle_tool_error
from .configuration import get_fortimanager_client

logger = logging.getLogger("fortimanager-mcp")


@mcp.tool(name="get_system_status", description="Get FortiManager system status")
async def get_system_status(ctx: Context) -> str:
    """Get FortiManager system status (version, hostname, serial number, HA mode).

    Args:
        ctx: MCP context

    Returns:
        JSON string of the system status
    """
    try:
        client = await get_fortimanager_client()
        status = await server_state.call(client.get_sys_status)
        await ctx.info("Retrieved FortiManager system status")
        return json.dumps(status, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "get_system_status", e, ErrorSeverity.LOW)


@mcp.tool(name="get_session_info", description="Show the state of the FortiManager session")
async def get_session_info(ctx: Context) -> str:
    """Show whether a session is held, the selected ADOM and the last transaction id.

    The session token itself is never returned.
    """
    try:
        client = await get_fortimanager_client()
        return json.dumps({
            "url": client.config.url,
            "user": client.user,
            "authenticated": client.is_authenticated,
            "adom": client.adom,
            "adoms": client.adoms,
            "last_transaction_id": client.last_transaction_id,
            "session_created": (
                server_state.session_created.isoformat() if server_state.session_created else None
            ),
        }, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "get_session_info", e, ErrorSeverity.LOW)
