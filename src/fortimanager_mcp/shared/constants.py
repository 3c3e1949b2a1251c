"""
FortiManager MCP Server - API Constants

This module contains the JSONRPC endpoint, RPC verbs and resource URLs used throughout
the server. Resource URLs travel inside the JSONRPC ``params`` objects; every envelope
is posted to the single ``JSONRPC_ENDPOINT``.
"""

# Transport
JSONRPC_ENDPOINT = "/jsonrpc"
USER_AGENT = "FortiManager-MCP-Server/1.0"

# RPC verbs accepted in the envelope "method" field
RPC_METHOD_GET = "get"
RPC_METHOD_SET = "set"
RPC_METHOD_ADD = "add"
RPC_METHOD_UPDATE = "update"
RPC_METHOD_DELETE = "delete"
RPC_METHOD_EXEC = "exec"

RPC_METHODS = (
    RPC_METHOD_GET,
    RPC_METHOD_SET,
    RPC_METHOD_ADD,
    RPC_METHOD_UPDATE,
    RPC_METHOD_DELETE,
    RPC_METHOD_EXEC,
)

# Verbs that change configuration on the appliance
RPC_WRITE_METHODS = (
    RPC_METHOD_SET,
    RPC_METHOD_ADD,
    RPC_METHOD_UPDATE,
    RPC_METHOD_DELETE,
    RPC_METHOD_EXEC,
)

# Status code reported by the server for a successful call
RPC_STATUS_OK = 0

# System
API_SYS_LOGIN_USER = "/sys/login/user"
API_SYS_LOGOUT = "/sys/logout"
API_SYS_STATUS = "/sys/status"

# Device manager database
API_DVMDB_ADOM = "/dvmdb/adom"

# Policy & objects, prefixed by the ADOM: /pm/config/adom/{adom}/...
API_PM_CONFIG_ADOM = "/pm/config/adom"
API_PM_PKG_ADOM = "/pm/pkg/adom"

OBJ_FIREWALL_ADDRESS = "obj/firewall/address"
OBJ_FIREWALL_ADDRGRP = "obj/firewall/addrgrp"
OBJ_FIREWALL_SERVICE_CUSTOM = "obj/firewall/service/custom"
PKG_FIREWALL_POLICY = "firewall/policy"

# Default administrative domain
DEFAULT_ADOM = "root"

# ========== EXEC_RPC_CALL SAFETY CLASSIFICATION ==========

# URLs that are refused by exec_rpc_call. CRITICAL URLs are always refused,
# HIGH/MEDIUM URLs only for write verbs.
DANGEROUS_URLS = {
    # Session management is owned by the connection tools
    "/sys/login": "CRITICAL",
    "/sys/logout": "CRITICAL",
    # Appliance lifecycle
    "/sys/reboot": "CRITICAL",
    "/sys/proxy/json": "CRITICAL",
    "/cli/global/system/admin": "CRITICAL",
    "/cli/global/system/global": "HIGH",
    # ADOM and device inventory
    "/dvmdb/adom": "HIGH",
    "/dvmdb/device": "HIGH",
    "/dvm/cmd": "HIGH",
    # Installation to managed devices
    "/securityconsole/install": "HIGH",
    "/securityconsole/package/commit": "HIGH",
    "/pm/pkg": "MEDIUM",
}

# Read-only URL fragments that are always allowed with the get verb
SAFE_URL_PATTERNS = [
    "/sys/status",
    "/dvmdb/adom",
    "/dvmdb/device",
    "/pm/config/adom",
    "/pm/pkg/adom",
    "/task/task",
]
