"""
FortiManager MCP Server - Configuration Domain

This module provides tools for configuring the FortiManager connection, ending the
session and choosing the administrative domain (ADOM) used by the object tools.
"""

import json
import logging

from mcp.server.fastmcp import Context

from ..core import (
    ConfigurationError,
    FortiManagerClient,
    MissingCredentialsError,
    NetworkError,
    RpcError,
)
from ..core.config_loader import ConfigLoader
from ..main import mcp, server_state
from ..shared.error_handlers import (
    ErrorSeverity,
    describe_rpc_failure,
    handle_tool_error,
    is_login_failure,
    validate_name,
)

logger = logging.getLogger("fortimanager-mcp")


# ========== HELPER FUNCTIONS ==========


async def get_fortimanager_client() -> FortiManagerClient:
    """Get FortiManager client from server state with validation."""
    return await server_state.get_client()


# ========== CONFIGURATION TOOLS ==========


@mcp.tool(
    name="configure_fortimanager_connection",
    description="Log into FortiManager using locally stored credentials (secure - never sends credentials to LLM)",
)
async def configure_fortimanager_connection(ctx: Context, profile: str = "default") -> str:
    """Configure the FortiManager connection using locally stored credentials.

    **SECURITY:** Credentials are loaded from local storage only and never sent to the LLM.

    **Setup Required:** Before using this tool, credentials must be configured using:
    1. CLI command: `fortimanager-mcp setup` (recommended)
    2. Environment variables: FORTIMANAGER_URL, FORTIMANAGER_USER, FORTIMANAGER_PASSWORD
    3. Config file: ~/.fortimanager-mcp/config.json

    Args:
        ctx: MCP context
        profile: Profile name to load credentials from (default: "default")

    Returns:
        Success message with connection details (no credentials exposed)
    """
    try:
        logger.info(f"Loading FortiManager configuration for profile: {profile}")
        config = ConfigLoader.load(profile)

        await server_state.initialize(config)

        # Track current profile for credential rotation detection
        server_state._current_profile = profile

        await ctx.info(f"FortiManager connection configured successfully using profile '{profile}'")

        client = server_state.client
        adoms = ", ".join(client.adoms) if client and client.adoms else "none reported"
        return (
            f"✅ FortiManager connection configured successfully!\n\n"
            f"Profile: {profile}\n"
            f"URL: {config.url}\n"
            f"User: {config.user}\n"
            f"ADOM: {config.adom}\n"
            f"Available ADOMs: {adoms}\n"
            f"SSL Verification: {'Enabled' if config.verify_ssl else 'Disabled'}\n\n"
            f"🔒 Security: Credentials loaded from local storage (never exposed to LLM)"
        )

    except (ConfigurationError, MissingCredentialsError) as e:
        error_msg = f"Configuration error: {e!s}"
        logger.error(error_msg, exc_info=True)
        await ctx.error(error_msg)

        return (
            f"❌ Configuration Error: {e!s}\n\n"
            f"📖 Setup Instructions:\n"
            f"1. Run: fortimanager-mcp setup --profile {profile}\n"
            f"2. Or set environment variables: FORTIMANAGER_URL, FORTIMANAGER_USER, FORTIMANAGER_PASSWORD\n"
            f"3. Or create config file: {ConfigLoader.DEFAULT_CONFIG_FILE}\n\n"
            f"💡 Tip: Use 'fortimanager-mcp list-profiles' to see configured profiles"
        )

    except RpcError as e:
        if not is_login_failure(e):
            error_msg = f"Connection check failed: {describe_rpc_failure(e)}"
            logger.error(error_msg)
            await ctx.error(error_msg)
            return (
                f"❌ Connection Error: {describe_rpc_failure(e)}\n\n"
                f"The login for profile '{profile}' was accepted, but the follow-up call failed.\n"
                f"Please verify the admin profile allows reading ADOMs over the JSON API."
            )
        error_msg = f"Login failed: {e.code} {e.status_message}"
        logger.error(error_msg)
        await ctx.error(error_msg)
        return (
            f"❌ Login Error ({e.code}): {e.status_message}\n\n"
            f"The credentials for profile '{profile}' were rejected.\n"
            f"Please verify:\n"
            f"• User and password are correct\n"
            f"• The admin profile allows JSON API access\n\n"
            f"Run: fortimanager-mcp setup --profile {profile} (to update credentials)"
        )

    except NetworkError as e:
        error_msg = f"Network error: {e!s}"
        logger.error(error_msg, exc_info=True)
        await ctx.error(error_msg)
        return (
            f"❌ Network Error: {e!s}\n\n"
            f"Could not reach FortiManager at the configured URL.\n"
            f"Run: fortimanager-mcp test-connection --profile {profile} (to diagnose)"
        )

    except Exception as e:
        return await handle_tool_error(ctx, "configure_fortimanager_connection", e, ErrorSeverity.HIGH)


@mcp.tool(name="disconnect_fortimanager", description="Log out of FortiManager and drop the session")
async def disconnect_fortimanager(ctx: Context) -> str:
    """Log out of FortiManager.

    The local session is dropped even when the logout call fails.

    Args:
        ctx: MCP context

    Returns:
        Confirmation message
    """
    try:
        if not server_state.client:
            return "No active FortiManager session."

        await server_state.cleanup()
        server_state._current_profile = None
        await ctx.info("FortiManager session closed")
        return "✅ Logged out of FortiManager."
    except Exception as e:
        return await handle_tool_error(ctx, "disconnect_fortimanager", e)


@mcp.tool(name="list_adoms", description="List the administrative domains (ADOMs) on FortiManager")
async def list_adoms(ctx: Context) -> str:
    """List ADOM names and the currently selected ADOM.

    Args:
        ctx: MCP context

    Returns:
        JSON string with the ADOM names and the selected ADOM
    """
    try:
        client = await get_fortimanager_client()
        adoms = await server_state.call(client.list_adoms)
        return json.dumps({"adoms": adoms, "selected": client.adom}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "list_adoms", e, ErrorSeverity.LOW)


@mcp.tool(name="select_adom", description="Select the ADOM used by all object tools")
async def select_adom(ctx: Context, adom: str) -> str:
    """Select the administrative domain used by subsequent object tools.

    Args:
        ctx: MCP context
        adom: ADOM name

    Returns:
        Confirmation message
    """
    try:
        validate_name(adom, "select_adom", "adom")
        client = await get_fortimanager_client()
        selected = await server_state.call(client.select_adom, adom)
        await ctx.info(f"ADOM '{selected}' selected")
        return f"✅ ADOM '{selected}' selected."
    except Exception as e:
        return await handle_tool_error(ctx, "select_adom", e)
