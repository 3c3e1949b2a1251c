"""
FortiManager MCP Server - Firewall Domain

This module provides tools for managing firewall policy objects in the selected ADOM:
addresses, address groups, custom services, policy packages and their policies.

Object changes are written to the FortiManager database only; installing a
policy package onto managed devices is out of reach of these tools.
"""

import ipaddress
import json
import logging
from typing import Any

from mcp.server.fastmcp import Context

from ..core import ValidationError
from ..main import mcp, server_state
from ..shared.error_handlers import (
    ErrorSeverity,
    handle_tool_error,
    parse_json_argument,
    validate_name,
)
from .configuration import get_fortimanager_client

logger = logging.getLogger("fortimanager-mcp")

ADDRESS_TYPES = ["ipmask", "iprange", "fqdn"]


# ========== HELPER FUNCTIONS ==========


def _list_params(fields: str | None, filter_json: str | None, operation: str) -> dict[str, Any]:
    """Build the optional fields/filter parameters of a get call."""
    params: dict[str, Any] = {}
    if fields:
        params["fields"] = [field.strip() for field in fields.split(",") if field.strip()]
    parsed_filter = parse_json_argument(filter_json, operation, "filter")
    if parsed_filter is not None:
        if not isinstance(parsed_filter, list):
            raise ValidationError("filter must be a JSON array, e.g. [\"name\", \"like\", \"web%\"]",
                                  context={"operation": operation, "parameter": "filter"})
        params["filter"] = parsed_filter
    return params


def build_address_data(
    address_type: str,
    subnet: str | None,
    start_ip: str | None,
    end_ip: str | None,
    fqdn: str | None,
    comment: str | None,
    operation: str,
) -> dict[str, Any]:
    """Validate address arguments and build the FortiManager address object.

    Args:
        address_type: ipmask, iprange or fqdn
        subnet: Network in CIDR notation for ipmask
        start_ip: First address for iprange
        end_ip: Last address for iprange
        fqdn: Host name for fqdn
        comment: Optional comment
        operation: Operation name for error context

    Returns:
        Address data dictionary

    Raises:
        ValidationError: If the arguments do not fit the address type
    """
    if address_type not in ADDRESS_TYPES:
        raise ValidationError(f"Invalid address type '{address_type}'. Must be one of: {ADDRESS_TYPES}",
                              context={"operation": operation, "parameter": "address_type"})

    data: dict[str, Any] = {"type": address_type}

    try:
        if address_type == "ipmask":
            if not subnet:
                raise ValidationError("subnet is required for ipmask addresses",
                                      context={"operation": operation})
            network = ipaddress.IPv4Network(subnet, strict=False)
            data["subnet"] = [str(network.network_address), str(network.netmask)]
        elif address_type == "iprange":
            if not (start_ip and end_ip):
                raise ValidationError("start_ip and end_ip are required for iprange addresses",
                                      context={"operation": operation})
            start = ipaddress.IPv4Address(start_ip)
            end = ipaddress.IPv4Address(end_ip)
            if start > end:
                raise ValidationError(f"Invalid range: {start_ip} is after {end_ip}",
                                      context={"operation": operation})
            data["start-ip"] = str(start)
            data["end-ip"] = str(end)
        else:
            if not fqdn:
                raise ValidationError("fqdn is required for fqdn addresses",
                                      context={"operation": operation})
            data["fqdn"] = fqdn
    except ValueError as e:
        raise ValidationError(f"Invalid IPv4 value: {e}",
                              context={"operation": operation})

    if comment:
        data["comment"] = comment
    return data


# ========== FIREWALL ADDRESS TOOLS ==========


@mcp.tool(name="firewall_list_addresses", description="List firewall addresses in the selected ADOM")
async def firewall_list_addresses(
    ctx: Context,
    fields: str | None = None,
    filter: str | None = None,
) -> str:
    """List firewall address objects.

    Args:
        ctx: MCP context
        fields: Comma-separated field names to return (e.g. "name,subnet")
        filter: JSON array filter, e.g. '["name", "like", "web%"]'

    Returns:
        JSON string with the address objects
    """
    try:
        params = _list_params(fields, filter, "firewall_list_addresses")
        client = await get_fortimanager_client()
        addresses = await server_state.call(client.list_firewall_addresses, params)
        return json.dumps(addresses, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_list_addresses", e, ErrorSeverity.LOW)


@mcp.tool(name="firewall_get_address", description="Get a firewall address by name")
async def firewall_get_address(ctx: Context, name: str) -> str:
    """Get one firewall address object.

    Args:
        ctx: MCP context
        name: Address name

    Returns:
        JSON string with the address object
    """
    try:
        validate_name(name, "firewall_get_address")
        client = await get_fortimanager_client()
        address = await server_state.call(client.get_firewall_address, name)
        return json.dumps(address, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_get_address", e, ErrorSeverity.LOW)


@mcp.tool(name="firewall_create_address", description="Create a firewall address")
async def firewall_create_address(
    ctx: Context,
    name: str,
    address_type: str = "ipmask",
    subnet: str | None = None,
    start_ip: str | None = None,
    end_ip: str | None = None,
    fqdn: str | None = None,
    comment: str | None = None,
) -> str:
    """Create a firewall address object in the selected ADOM.

    Args:
        ctx: MCP context
        name: Address name
        address_type: "ipmask" (subnet), "iprange" (start_ip/end_ip) or "fqdn"
        subnet: Network in CIDR notation, e.g. "10.0.0.0/24"
        start_ip: First address of an iprange
        end_ip: Last address of an iprange
        fqdn: Host name of an fqdn address
        comment: Optional comment

    Returns:
        JSON string with the result
    """
    try:
        validate_name(name, "firewall_create_address")
        data = build_address_data(address_type, subnet, start_ip, end_ip, fqdn, comment,
                                  "firewall_create_address")
        client = await get_fortimanager_client()
        result = await server_state.call(client.create_firewall_address, name, data)
        await ctx.info(f"Firewall address '{name}' created in ADOM '{client.adom}'")
        return json.dumps({"name": name, "adom": client.adom, "result": result}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_create_address", e, ErrorSeverity.HIGH)


@mcp.tool(name="firewall_update_address", description="Update fields of a firewall address")
async def firewall_update_address(ctx: Context, name: str, data: str) -> str:
    """Update a firewall address object.

    Args:
        ctx: MCP context
        name: Address name
        data: JSON object with the fields to change, e.g. '{"comment": "web tier"}'

    Returns:
        JSON string with the result
    """
    try:
        validate_name(name, "firewall_update_address")
        update = parse_json_argument(data, "firewall_update_address", "data")
        if not isinstance(update, dict) or not update:
            raise ValidationError("data must be a non-empty JSON object",
                                  context={"operation": "firewall_update_address", "parameter": "data"})
        client = await get_fortimanager_client()
        result = await server_state.call(client.update_firewall_address, name, update)
        await ctx.info(f"Firewall address '{name}' updated")
        return json.dumps({"name": name, "adom": client.adom, "result": result}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_update_address", e, ErrorSeverity.HIGH)


@mcp.tool(name="firewall_delete_address", description="Delete a firewall address by name")
async def firewall_delete_address(ctx: Context, name: str) -> str:
    """Delete a firewall address object.

    Args:
        ctx: MCP context
        name: Address name

    Returns:
        JSON string with the result
    """
    try:
        validate_name(name, "firewall_delete_address")
        client = await get_fortimanager_client()
        result = await server_state.call(client.delete_firewall_address, name)
        await ctx.info(f"Firewall address '{name}' deleted")
        return json.dumps({"name": name, "adom": client.adom, "result": result}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_delete_address", e, ErrorSeverity.HIGH)


@mcp.tool(
    name="firewall_delete_addresses",
    description="Delete several firewall addresses in one batched call",
)
async def firewall_delete_addresses(ctx: Context, names: str) -> str:
    """Delete several firewall addresses in one JSONRPC envelope.

    Each deletion runs independently on the server. If some fail, the error
    lists exactly those; the others stay deleted.

    Args:
        ctx: MCP context
        names: Comma-separated address names

    Returns:
        JSON string with one result entry per address
    """
    try:
        name_list = [name.strip() for name in names.split(",") if name.strip()]
        if not name_list:
            raise ValidationError("At least one address name is required",
                                  context={"operation": "firewall_delete_addresses"})
        for name in name_list:
            validate_name(name, "firewall_delete_addresses")

        client = await get_fortimanager_client()
        results = await server_state.call(client.delete_firewall_addresses, name_list)
        await ctx.info(f"Deleted {len(name_list)} firewall address(es)")
        return json.dumps({"adom": client.adom, "results": results}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_delete_addresses", e, ErrorSeverity.HIGH)


# ========== ADDRESS GROUP & SERVICE TOOLS ==========


@mcp.tool(name="firewall_list_address_groups", description="List firewall address groups in the selected ADOM")
async def firewall_list_address_groups(ctx: Context, fields: str | None = None) -> str:
    """List firewall address groups.

    Args:
        ctx: MCP context
        fields: Comma-separated field names to return (e.g. "name,member")

    Returns:
        JSON string with the address groups
    """
    try:
        params = _list_params(fields, None, "firewall_list_address_groups")
        client = await get_fortimanager_client()
        groups = await server_state.call(client.list_firewall_address_groups, params)
        return json.dumps(groups, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_list_address_groups", e, ErrorSeverity.LOW)


@mcp.tool(name="firewall_create_address_group", description="Create a firewall address group")
async def firewall_create_address_group(
    ctx: Context,
    name: str,
    members: str,
    comment: str | None = None,
) -> str:
    """Create a firewall address group.

    Args:
        ctx: MCP context
        name: Group name
        members: Comma-separated names of existing addresses
        comment: Optional comment

    Returns:
        JSON string with the result
    """
    try:
        validate_name(name, "firewall_create_address_group")
        member_list = [member.strip() for member in members.split(",") if member.strip()]
        if not member_list:
            raise ValidationError("An address group needs at least one member",
                                  context={"operation": "firewall_create_address_group"})
        data: dict[str, Any] = {"member": member_list}
        if comment:
            data["comment"] = comment

        client = await get_fortimanager_client()
        result = await server_state.call(client.create_firewall_address_group, name, data)
        await ctx.info(f"Address group '{name}' created")
        return json.dumps({"name": name, "adom": client.adom, "result": result}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_create_address_group", e, ErrorSeverity.HIGH)


@mcp.tool(name="firewall_delete_address_group", description="Delete a firewall address group by name")
async def firewall_delete_address_group(ctx: Context, name: str) -> str:
    try:
        validate_name(name, "firewall_delete_address_group")
        client = await get_fortimanager_client()
        result = await server_state.call(client.delete_firewall_address_group, name)
        return json.dumps({"name": name, "adom": client.adom, "result": result}, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_delete_address_group", e, ErrorSeverity.HIGH)


@mcp.tool(name="firewall_list_services", description="List custom firewall services in the selected ADOM")
async def firewall_list_services(ctx: Context, fields: str | None = None) -> str:
    """List custom firewall service objects.

    Args:
        ctx: MCP context
        fields: Comma-separated field names to return (e.g. "name,tcp-portrange")

    Returns:
        JSON string with the services
    """
    try:
        params = _list_params(fields, None, "firewall_list_services")
        client = await get_fortimanager_client()
        services = await server_state.call(client.list_firewall_services, params)
        return json.dumps(services, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_list_services", e, ErrorSeverity.LOW)


# ========== POLICY PACKAGE TOOLS ==========


@mcp.tool(name="firewall_list_policy_packages", description="List policy packages in the selected ADOM")
async def firewall_list_policy_packages(ctx: Context) -> str:
    try:
        client = await get_fortimanager_client()
        packages = await server_state.call(client.list_policy_packages)
        return json.dumps(packages, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_list_policy_packages", e, ErrorSeverity.LOW)


@mcp.tool(name="firewall_list_policies", description="List firewall policies of a policy package")
async def firewall_list_policies(ctx: Context, package: str, fields: str | None = None) -> str:
    """List the firewall policies of one policy package.

    Args:
        ctx: MCP context
        package: Policy package name
        fields: Comma-separated field names (e.g. "policyid,name,srcaddr,dstaddr,action")

    Returns:
        JSON string with the policies
    """
    try:
        validate_name(package, "firewall_list_policies", "package")
        params = _list_params(fields, None, "firewall_list_policies")
        client = await get_fortimanager_client()
        policies = await server_state.call(client.list_firewall_policies, package, params)
        return json.dumps(policies, indent=2)
    except Exception as e:
        return await handle_tool_error(ctx, "firewall_list_policies", e, ErrorSeverity.LOW)
