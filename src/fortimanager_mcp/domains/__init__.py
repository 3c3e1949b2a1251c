"""
FortiManager MCP Server - Domain Modules

This package contains domain-specific tool implementations organized by feature area.
Each module provides MCP tools for a specific aspect of FortiManager management.
"""

# Domain modules are imported here to register their MCP tools
from . import (
    configuration,
    firewall,
    system,
    utilities,
)

__all__ = [
    "configuration",
    "firewall",
    "system",
    "utilities",
]
