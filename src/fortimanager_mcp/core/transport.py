"""
FortiManager MCP Server - HTTP Transport

This module posts JSONRPC envelopes to FortiManager and hands back the raw outcome.
It performs no JSONRPC interpretation; that is the job of the response validator.
"""

import json
import logging
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import certifi
import httpx

from ..shared.constants import USER_AGENT
from .exceptions import NetworkError
from .exceptions import TimeoutError as FortiManagerTimeoutError

logger = logging.getLogger("fortimanager-mcp")


@dataclass
class TransportResponse:
    """Outcome of one HTTP POST: status code, raw body and decoded JSON (if any)."""

    http_code: int
    body: str
    parsed_json: Any = None


class RequestResponseLogger:
    """Framework for logging JSONRPC requests and responses with sensitive data protection."""

    def __init__(self, logger: logging.Logger):
        """Initialize request/response logger.

        Args:
            logger: Logger instance to use for logging
        """
        self.logger = logger

    def log_request(
        self,
        url: str,
        body: Optional[Dict[str, Any]] = None,
        operation: str = "unknown"
    ):
        """Log a JSONRPC request without its payload or session token.

        Args:
            url: Endpoint URL
            body: JSONRPC envelope being posted
            operation: Operation name for context
        """
        body = body or {}
        params = body.get("params") or []

        log_data = {
            "operation": operation,
            "request": {
                "method": "POST",
                "url": url,
                "rpc_id": body.get("id"),
                "rpc_method": body.get("method"),
                "urls": [param.get("url") for param in params if isinstance(param, dict)],
                "has_session": "session" in body,
            }
        }

        self.logger.info(f"API Request: {json.dumps(log_data)}")

    def log_response(
        self,
        status_code: int,
        response_size: Optional[int] = None,
        duration_ms: Optional[float] = None,
        operation: str = "unknown",
        error: Optional[Exception] = None
    ):
        """Log API response details with performance metrics.

        Args:
            status_code: HTTP status code
            response_size: Size of response in bytes
            duration_ms: Request duration in milliseconds
            operation: Operation name for context
            error: Exception if request failed
        """
        log_data = {
            "operation": operation,
            "response": {
                "status_code": status_code,
                "response_size": response_size,
                "duration_ms": duration_ms,
                "success": status_code == 200 and not error,
                "has_error": bool(error)
            }
        }

        if error:
            log_data["error"] = str(error)

        level = logging.INFO if log_data["response"]["success"] else logging.WARNING
        self.logger.log(level, f"API Response: {json.dumps(log_data)}")


# Initialize request/response logger
request_logger = RequestResponseLogger(logger)


def create_ssl_context(verify_ssl: bool) -> ssl.SSLContext:
    """
    Create SSL context with security hardening.

    Args:
        verify_ssl: Whether to verify SSL certificates

    Returns:
        Configured SSL context

    Notes:
        - When verify_ssl=False, logs prominent security warning
        - When verify_ssl=True, enforces TLS 1.2+ and certificate validation
        - Uses certifi for up-to-date CA bundle
    """
    if not verify_ssl:
        logger.warning(
            "SSL CERTIFICATE VERIFICATION IS DISABLED!\n"
            "Connection is vulnerable to Man-in-the-Middle (MITM) attacks.\n"
            "This should ONLY be used in isolated lab environments.\n"
            "NEVER disable SSL verification in production or internet-facing deployments."
        )
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    context = ssl.create_default_context(cafile=certifi.where())
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    logger.debug("SSL verification enabled with TLS 1.2+ enforcement")
    return context


class HttpTransport:
    """Blocking JSON POST transport for the FortiManager JSONRPC endpoint."""

    def __init__(
        self,
        base_url: str,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None
    ):
        """Initialize the transport.

        Args:
            base_url: FortiManager base URL (scheme and host)
            verify_ssl: Whether to verify SSL certificates
            timeout: Blocking call timeout in seconds
            client: Pre-built httpx client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        if client is None:
            ssl_context = create_ssl_context(verify_ssl)
            client = httpx.Client(
                verify=ssl_context if verify_ssl else False,
                timeout=httpx.Timeout(timeout, pool=5.0),
                limits=httpx.Limits(
                    max_keepalive_connections=1,
                    max_connections=1,
                    keepalive_expiry=30.0
                )
            )
        self.client = client

        logger.info(
            f"Initialized FortiManager transport for {self.base_url} "
            f"(SSL verification: {'enabled' if self.verify_ssl else 'DISABLED'})"
        )

    def close(self):
        """Close the httpx client."""
        self.client.close()

    def post(self, path: str, body: Dict[str, Any], operation: str = "jsonrpc") -> TransportResponse:
        """POST a JSON document and return status, raw body and decoded JSON.

        Args:
            path: Endpoint path, e.g. "/jsonrpc"
            body: JSON document to send
            operation: Name of operation for logging context

        Returns:
            TransportResponse; parsed_json is None when the body is not JSON

        Raises:
            NetworkError: For connection and other request failures
            TimeoutError: When the request exceeds the configured timeout
        """
        url = f"{self.base_url}{path}"
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT
        }

        request_logger.log_request(url, body, operation)
        start_time = datetime.now(timezone.utc)

        try:
            response = self.client.post(url, headers=headers, json=body, timeout=self.timeout)
        except httpx.TimeoutException as e:
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            request_logger.log_response(0, 0, duration_ms, operation, e)
            raise FortiManagerTimeoutError(f"Request timed out after {self.timeout}s",
                                           context={"timeout": self.timeout, "url": url})
        except httpx.ConnectError as e:
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            request_logger.log_response(0, 0, duration_ms, operation, e)
            raise NetworkError(f"Cannot connect to FortiManager at {self.base_url}",
                               context={"base_url": self.base_url, "error": str(e)})
        except httpx.RequestError as e:
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            request_logger.log_response(0, 0, duration_ms, operation, e)
            raise NetworkError(f"Network error: {str(e)}",
                               context={"url": url, "error": str(e)})

        duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
        response_size = len(response.content) if response.content else 0

        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        request_logger.log_response(response.status_code, response_size, duration_ms, operation)
        return TransportResponse(
            http_code=response.status_code,
            body=response.text,
            parsed_json=parsed,
        )
