"""
FortiManager MCP Server - Response Validation

This module classifies a transport response in two stages:

1. HTTP: anything other than status 200 is an ``HttpError``.
2. JSONRPC: the body must carry one result entry per submitted parameter object.
   A single call with a non-zero status raises ``RpcError``; a batch raises
   ``RpcBatchError`` listing every failed entry.
"""

import logging
from typing import Any

from ..shared.constants import RPC_STATUS_OK
from .exceptions import HttpError, MalformedResponseError, RpcBatchError, RpcError
from .transport import TransportResponse

logger = logging.getLogger("fortimanager-mcp")


def check_http_status(response: TransportResponse) -> None:
    """Raise HttpError unless the server answered with 200."""
    if response.http_code != 200:
        raise HttpError(response.http_code, response.body)


def _check_result_shape(response: TransportResponse, expected_count: int) -> list[dict[str, Any]]:
    data = response.parsed_json

    if not isinstance(data, dict):
        raise MalformedResponseError(response.body, "body is not a JSON object")

    result = data.get("result")
    if not isinstance(result, list):
        raise MalformedResponseError(response.body, "missing result list")

    if len(result) != expected_count:
        raise MalformedResponseError(
            response.body,
            f"expected {expected_count} result entries, got {len(result)}",
        )

    for entry in result:
        if not isinstance(entry, dict):
            raise MalformedResponseError(response.body, "result entry is not an object")
        status = entry.get("status")
        if not isinstance(status, dict):
            raise MalformedResponseError(response.body, "result entry without status")
        code = status.get("code")
        if not isinstance(code, int) or isinstance(code, bool):
            raise MalformedResponseError(response.body, "status code is not an integer")
        if not isinstance(status.get("message", ""), str):
            raise MalformedResponseError(response.body, "status message is not a string")

    return result


def check_rpc_result(response: TransportResponse, expected_count: int) -> list[dict[str, Any]]:
    """Validate the JSONRPC result list and raise on failed calls.

    Args:
        response: Transport response that already passed the HTTP check
        expected_count: Number of parameter objects in the request envelope

    Returns:
        The result entries, in submission order

    Raises:
        MalformedResponseError: If the body does not match the documented shape
        RpcError: If the single submitted call failed
        RpcBatchError: If any call of a batch failed
    """
    result = _check_result_shape(response, expected_count)

    if expected_count == 1:
        entry = result[0]
        code = entry["status"]["code"]
        if code != RPC_STATUS_OK:
            raise RpcError(code, entry["status"].get("message", ""), url=entry.get("url"))
        return result

    failures = [
        {
            "url": entry.get("url"),
            "code": entry["status"]["code"],
            "message": entry["status"].get("message", ""),
        }
        for entry in result
        if entry["status"]["code"] != RPC_STATUS_OK
    ]
    if failures:
        logger.warning(f"{len(failures)} of {expected_count} batched calls failed")
        raise RpcBatchError(failures)

    return result


def validate_response(response: TransportResponse, expected_count: int) -> list[dict[str, Any]]:
    """Run both validation stages and return the result entries."""
    check_http_status(response)
    return check_rpc_result(response, expected_count)
