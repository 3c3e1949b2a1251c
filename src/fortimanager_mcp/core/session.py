"""
FortiManager MCP Server - JSONRPC Session

This module owns the stateful part of the FortiManager protocol: credentials,
the session token issued at login, the transaction counter and the ADOM selection.
Every object operation is built on ``exec_method`` (one call) or ``exec_batch``
(several calls sharing one verb).

A session serves one call at a time. Callers sharing a session between threads
or tasks must serialize access themselves (see ``ServerState.call``).
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from ..shared.constants import (
    API_DVMDB_ADOM,
    API_SYS_LOGIN_USER,
    API_SYS_LOGOUT,
    JSONRPC_ENDPOINT,
    RPC_METHOD_EXEC,
    RPC_METHOD_GET,
)
from .exceptions import (
    MalformedResponseError,
    MissingCredentialsError,
    ValidationError,
)
from .models import FortiManagerConfig
from .protocol import TransactionSequencer, build_envelope
from .transport import HttpTransport
from .validator import validate_response

logger = logging.getLogger("fortimanager-mcp")


class RpcSession:
    """Stateful FortiManager JSONRPC session."""

    def __init__(self, config: FortiManagerConfig, transport: Optional[HttpTransport] = None):
        """Initialize the session.

        Args:
            config: Connection configuration
            transport: Transport to post envelopes with; built from config when omitted
        """
        self.config = config
        self.user = config.user
        self.passwd = config.passwd
        self.adom = config.adom
        self.adoms: List[str] = []
        self.verbose = config.verbose

        self.transport = transport or HttpTransport(
            config.url,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
        )

        self._session_id: Optional[str] = None
        self._sequencer = TransactionSequencer()

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_authenticated(self) -> bool:
        return self._session_id is not None

    @property
    def last_transaction_id(self) -> Optional[int]:
        return self._sequencer.last_id

    def close(self):
        """Close the underlying transport."""
        self.transport.close()

    def _exec_method(
        self,
        method: str,
        params: Any,
        with_session: bool = True
    ) -> Dict[str, Any]:
        """Post one envelope and return the validated response body.

        Args:
            method: RPC verb
            params: Sequence of parameter objects
            with_session: Attach the session token when one is held

        Returns:
            Decoded response body; its result list has one entry per parameter object
        """
        envelope = build_envelope(
            method,
            params,
            self._sequencer,
            session=self._session_id if with_session else None,
            verbose=self.verbose,
        )

        response = self.transport.post(
            JSONRPC_ENDPOINT,
            envelope.to_dict(),
            operation=f"{method} {', '.join(str(url) for url in envelope.urls)}",
        )
        validate_response(response, envelope.param_count)
        return response.parsed_json

    def exec_method(
        self,
        method: str,
        url: str,
        params: Optional[Mapping] = None
    ) -> Any:
        """Execute a single call on a resource URL.

        This is the lowest level method every object operation is built on.
        It does the HTTP and JSONRPC error handling and extracts the result
        data from the response.

        Args:
            method: RPC verb (get, set, add, update, delete, exec)
            url: Resource URL, e.g. "/sys/status"
            params: Extra parameter fields (data, fields, filter, ...)

        Returns:
            The result data when the server sent any, otherwise True

        Raises:
            ValidationError: If params is not a mapping
            HttpError: For non-200 HTTP responses
            MalformedResponseError: If the response shape is wrong
            RpcError: If the call failed on the server
        """
        if params is not None and not isinstance(params, Mapping):
            raise ValidationError(
                "params needs to be a mapping",
                context={"params_type": type(params).__name__},
            )

        full_params = dict(params) if params is not None else {}
        full_params["url"] = url

        body = self._exec_method(method, [full_params])

        # result[0] is guaranteed by the validator
        entry = body["result"][0]
        if "data" in entry:
            return entry["data"]
        return True

    def exec_batch(self, method: str, params: List[Mapping]) -> List[Dict[str, Any]]:
        """Execute several calls sharing one verb in a single envelope.

        The server executes every entry independently; the batch fails as a
        whole when any entry fails, and the error lists every failed entry.

        Args:
            method: RPC verb shared by all calls
            params: Non-empty sequence of parameter objects, each with a url

        Returns:
            The full ordered result list

        Raises:
            ValidationError: If params is not a non-empty sequence of mappings
            HttpError: For non-200 HTTP responses
            MalformedResponseError: If the response shape is wrong
            RpcError: If a batch of one failed
            RpcBatchError: If any call of a larger batch failed
        """
        body = self._exec_method(method, params)
        return body["result"]

    def login(self) -> bool:
        """Log into FortiManager and load the list of ADOMs.

        The configured ADOM is kept even when the server does not know it;
        calls using it will then fail on the server.

        Returns:
            True on success

        Raises:
            MissingCredentialsError: If user or password is missing
        """
        if self.user is None or self.passwd is None:
            raise MissingCredentialsError()

        body = self._exec_method(
            RPC_METHOD_EXEC,
            [{
                "url": API_SYS_LOGIN_USER,
                "data": {
                    "user": self.user,
                    "passwd": self.passwd,
                },
            }],
            with_session=False,
        )

        session_id = body.get("session")
        if not isinstance(session_id, str) or not session_id:
            raise MalformedResponseError(json.dumps(body), "login response without session")

        self._session_id = session_id
        logger.info(f"Logged into FortiManager at {self.config.url} as '{self.user}'")

        self.adoms = self._load_adoms()
        if self.adom not in self.adoms:
            logger.warning(
                f"Configured ADOM '{self.adom}' is not among the ADOMs known to the server: "
                f"{self.adoms}"
            )

        return True

    def logout(self) -> bool:
        """Log out of FortiManager.

        The local session token and transaction counter are cleared even
        when the logout call itself fails.

        Returns:
            True on success
        """
        try:
            self.exec_method(RPC_METHOD_EXEC, API_SYS_LOGOUT)
        finally:
            self._session_id = None
            self._sequencer.clear()
            logger.info(f"Logged out of FortiManager at {self.config.url}")

        return True

    def _load_adoms(self) -> List[str]:
        data = self.exec_method(RPC_METHOD_GET, API_DVMDB_ADOM, {"fields": ["name"]})
        if not isinstance(data, list):
            return []
        return sorted(entry["name"] for entry in data if isinstance(entry, dict) and "name" in entry)

    def select_adom(self, name: str) -> str:
        """Select the ADOM used by all object operations.

        Args:
            name: ADOM name

        Returns:
            The selected ADOM name

        Raises:
            ValidationError: If the name is empty or, once ADOMs are known, not one of them
        """
        if not name or not name.strip():
            raise ValidationError("ADOM name is required", context={"adom": name})

        if self.adoms and name not in self.adoms:
            raise ValidationError(
                f"Unknown ADOM '{name}'",
                context={"adom": name, "known_adoms": self.adoms},
            )

        self.adom = name
        logger.info(f"Selected ADOM '{name}'")
        return name
