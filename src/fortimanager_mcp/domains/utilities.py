"""Utilities domain for FortiManager MCP Server.

This module provides utility tools for advanced operations:
- Raw JSONRPC call execution on any FortiManager URL
"""

import json
import logging

from mcp.server.fastmcp import Context

from ..core.exceptions import ValidationError
from ..main import mcp, server_state
from ..shared.constants import (
    DANGEROUS_URLS,
    RPC_METHOD_GET,
    RPC_METHODS,
    RPC_WRITE_METHODS,
    SAFE_URL_PATTERNS,
)
from ..shared.error_handlers import parse_json_argument
from ..shared.error_sanitizer import log_error_safely
from .configuration import get_fortimanager_client

# Configure logging
logger = logging.getLogger(__name__)


def validate_url_safety(url: str, method: str) -> None:
    """
    Validate a FortiManager resource URL for safety before execution.

    Prevents accidental execution of calls that could:
    - Hijack or end the session owned by the connection tools
    - Reboot the appliance or change admin accounts
    - Delete ADOMs or devices
    - Push configuration to managed devices

    Args:
        url: Resource URL to validate
        method: RPC verb (get, set, add, update, delete, exec)

    Raises:
        ValidationError: If the verb is unknown or the URL is classified as dangerous

    Notes:
        - CRITICAL URLs are always blocked
        - HIGH/MEDIUM URLs are blocked for write verbs
        - Read-only calls (get) on known object trees are allowed
    """
    if method not in RPC_METHODS:
        raise ValidationError(
            f"Unsupported RPC method: {method}. Must be one of: {list(RPC_METHODS)}",
            context={"method": method},
        )

    normalized = url if url.startswith("/") else "/" + url

    if method == RPC_METHOD_GET:
        for pattern in SAFE_URL_PATTERNS:
            if normalized.startswith(pattern):
                return

    for dangerous_url, risk_level in DANGEROUS_URLS.items():
        if normalized.startswith(dangerous_url):
            if risk_level == "CRITICAL":
                raise ValidationError(
                    f"URL '{url}' is classified as {risk_level} risk and cannot "
                    f"be called via exec_rpc_call.",
                    context={
                        "url": url,
                        "risk_level": risk_level,
                        "reason": "Session management and appliance lifecycle are not exposed",
                    },
                )

            if method in RPC_WRITE_METHODS:
                raise ValidationError(
                    f"URL '{url}' is classified as {risk_level} risk and cannot "
                    f"be called with {method} via exec_rpc_call. Use the FortiManager "
                    f"GUI or a dedicated tool for this operation.",
                    context={
                        "url": url,
                        "method": method,
                        "risk_level": risk_level,
                        "reason": "Prevents accidental destructive operations",
                    },
                )

    if method in RPC_WRITE_METHODS:
        logger.warning(
            f"Executing {method} on unclassified URL {url}. "
            f"This may modify FortiManager configuration. Use with caution."
        )


@mcp.tool(
    name="exec_rpc_call",
    description="Execute a raw JSONRPC call on FortiManager. ⚠️ ADVANCED: Use with caution",
)
async def exec_rpc_call(
    ctx: Context,
    method: str,
    url: str,
    params: str | None = None,
) -> str:
    """Execute a raw JSONRPC call on FortiManager.

    Provides direct access to any FortiManager resource URL for advanced use
    cases not covered by specific tools. The call runs in the current session
    and ADOM context.

    Args:
        ctx: MCP context
        method: RPC verb: "get", "set", "add", "update", "delete" or "exec"
        url: Resource URL (e.g. "/pm/config/adom/root/obj/firewall/schedule/recurring")
        params: JSON object of extra parameter fields (optional)
            - Example: '{"fields": ["name"], "filter": ["name", "like", "web%"]}'
            - Example: '{"data": {"comment": "updated"}}'

    Returns:
        JSON string containing the result data
    """
    try:
        client = await get_fortimanager_client()
    except Exception:
        return "FortiManager client not initialized. Please configure the server first."

    method = method.lower().strip()

    try:
        validate_url_safety(url, method)
    except ValidationError as e:
        error_msg = f"Safety validation failed: {e.message}"
        logger.warning(f"Blocked dangerous URL: {url} ({method})")
        await ctx.error(error_msg)
        return f"Error: {error_msg}"

    try:
        params_dict = parse_json_argument(params, "exec_rpc_call", "params")
        if params_dict is not None and not isinstance(params_dict, dict):
            raise ValidationError("params must be a JSON object",
                                  context={"operation": "exec_rpc_call", "parameter": "params"})

        response = await server_state.call(client.exec_method, method, url, params_dict)

        return json.dumps(response, indent=2)
    except ValidationError as e:
        error_msg = e.message
        logger.error(f"Error in exec_rpc_call: {error_msg}")
        await ctx.error(error_msg)
        return f"Error: {error_msg}"
    except Exception as e:
        safe_msg = log_error_safely(logger, e, "exec_rpc_call")
        await ctx.error(safe_msg)
        return f"Error: {safe_msg}"
