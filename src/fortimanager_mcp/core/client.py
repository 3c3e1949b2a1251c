"""
FortiManager MCP Server - API Client

This module provides the main client class for interacting with the FortiManager API.
Object operations are thin URL builders over ``RpcSession.exec_method`` and
``RpcSession.exec_batch``; all paths below /pm are scoped to the selected ADOM.
"""

import logging
from typing import Any, Dict, List, Optional

from ..shared.constants import (
    API_PM_CONFIG_ADOM,
    API_PM_PKG_ADOM,
    API_SYS_STATUS,
    OBJ_FIREWALL_ADDRESS,
    OBJ_FIREWALL_ADDRGRP,
    OBJ_FIREWALL_SERVICE_CUSTOM,
    PKG_FIREWALL_POLICY,
    RPC_METHOD_DELETE,
    RPC_METHOD_GET,
    RPC_METHOD_SET,
    RPC_METHOD_UPDATE,
)
from .exceptions import ValidationError
from .session import RpcSession

logger = logging.getLogger("fortimanager-mcp")


def validate_object_name(name: str, operation: str) -> None:
    """Validate an object name used as URL path segment.

    Args:
        name: Object name
        operation: Operation name for error context

    Raises:
        ValidationError: If the name is empty or contains a slash
    """
    if not name or not name.strip():
        raise ValidationError("Object name is required",
                              context={"operation": operation})
    if "/" in name:
        raise ValidationError(f"Invalid object name: {name}. Names must not contain '/'",
                              context={"operation": operation, "name": name})


class FortiManagerClient(RpcSession):
    """Client for interacting with the FortiManager JSONRPC API."""

    def _adom_url(self, *parts: str) -> str:
        return "/".join([API_PM_CONFIG_ADOM, self.adom, *parts])

    # ========== SYSTEM ==========

    def get_sys_status(self) -> Dict[str, Any]:
        """Returns /sys/status."""
        return self.exec_method(RPC_METHOD_GET, API_SYS_STATUS)

    def list_adoms(self) -> List[str]:
        """Returns the names of all ADOMs, sorted."""
        return self._load_adoms()

    # ========== GENERIC OBJECT HELPERS ==========

    def _list_objects(self, kind: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.exec_method(RPC_METHOD_GET, self._adom_url(kind), params or {})

    def _get_object(self, kind: str, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        validate_object_name(name, f"get {kind}")
        return self.exec_method(RPC_METHOD_GET, self._adom_url(kind, name), params or {})

    def _create_object(self, kind: str, name: str, data: Dict[str, Any]) -> Any:
        validate_object_name(name, f"create {kind}")
        params = {
            "data": [{
                **data,
                "name": name,
            }],
        }
        return self.exec_method(RPC_METHOD_SET, self._adom_url(kind), params)

    def _update_object(self, kind: str, name: str, data: Dict[str, Any]) -> Any:
        validate_object_name(name, f"update {kind}")
        return self.exec_method(RPC_METHOD_UPDATE, self._adom_url(kind, name), {"data": dict(data)})

    def _delete_object(self, kind: str, name: str) -> Any:
        validate_object_name(name, f"delete {kind}")
        return self.exec_method(RPC_METHOD_DELETE, self._adom_url(kind, name))

    # ========== FIREWALL ADDRESSES ==========

    def list_firewall_addresses(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """Returns a list of firewall addresses."""
        return self._list_objects(OBJ_FIREWALL_ADDRESS, params)

    def get_firewall_address(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Takes a firewall address name and returns its data."""
        return self._get_object(OBJ_FIREWALL_ADDRESS, name, params)

    def create_firewall_address(self, name: str, data: Dict[str, Any]) -> Any:
        """Creates a firewall address. Returns True on success."""
        return self._create_object(OBJ_FIREWALL_ADDRESS, name, data)

    def update_firewall_address(self, name: str, data: Dict[str, Any]) -> Any:
        """Updates a firewall address. Returns True on success."""
        return self._update_object(OBJ_FIREWALL_ADDRESS, name, data)

    def delete_firewall_address(self, name: str) -> Any:
        """Deletes a firewall address. Returns True on success."""
        return self._delete_object(OBJ_FIREWALL_ADDRESS, name)

    def delete_firewall_addresses(self, names: List[str]) -> List[Dict[str, Any]]:
        """Deletes several firewall addresses in one batched call.

        Every name becomes its own parameter object. The server deletes each
        independently; if any deletion fails an RpcBatchError lists the
        failed names while the others stay deleted.

        Args:
            names: Firewall address names

        Returns:
            Ordered result entries, one per name
        """
        if not names:
            raise ValidationError("At least one address name is required",
                                  context={"operation": "delete_firewall_addresses"})
        for name in names:
            validate_object_name(name, "delete_firewall_addresses")

        return self.exec_batch(
            RPC_METHOD_DELETE,
            [{"url": self._adom_url(OBJ_FIREWALL_ADDRESS, name)} for name in names],
        )

    # ========== FIREWALL ADDRESS GROUPS ==========

    def list_firewall_address_groups(self, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._list_objects(OBJ_FIREWALL_ADDRGRP, params)

    def get_firewall_address_group(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._get_object(OBJ_FIREWALL_ADDRGRP, name, params)

    def create_firewall_address_group(self, name: str, data: Dict[str, Any]) -> Any:
        return self._create_object(OBJ_FIREWALL_ADDRGRP, name, data)

    def update_firewall_address_group(self, name: str, data: Dict[str, Any]) -> Any:
        return self._update_object(OBJ_FIREWALL_ADDRGRP, name, data)

    def delete_firewall_address_group(self, name: str) -> Any:
        return self._delete_object(OBJ_FIREWALL_ADDRGRP, name)

    # ========== FIREWALL SERVICES ==========

    def list_firewall_services(self, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._list_objects(OBJ_FIREWALL_SERVICE_CUSTOM, params)

    def get_firewall_service(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._get_object(OBJ_FIREWALL_SERVICE_CUSTOM, name, params)

    def create_firewall_service(self, name: str, data: Dict[str, Any]) -> Any:
        return self._create_object(OBJ_FIREWALL_SERVICE_CUSTOM, name, data)

    def update_firewall_service(self, name: str, data: Dict[str, Any]) -> Any:
        return self._update_object(OBJ_FIREWALL_SERVICE_CUSTOM, name, data)

    def delete_firewall_service(self, name: str) -> Any:
        return self._delete_object(OBJ_FIREWALL_SERVICE_CUSTOM, name)

    # ========== POLICY PACKAGES ==========

    def list_policy_packages(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """Returns the policy packages of the selected ADOM."""
        return self.exec_method(RPC_METHOD_GET, f"{API_PM_PKG_ADOM}/{self.adom}", params or {})

    def list_firewall_policies(self, package: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Takes a policy package name and returns its firewall policies."""
        validate_object_name(package, "list_firewall_policies")
        return self.exec_method(
            RPC_METHOD_GET,
            self._adom_url("pkg", package, PKG_FIREWALL_POLICY),
            params or {},
        )
