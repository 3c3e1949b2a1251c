"""
FortiManager MCP Server - JSONRPC Framing

This module provides the transaction sequencer and the request envelope builder.
An envelope carries one verb and one or more parameter objects; the server answers
with exactly one result entry per parameter object.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..shared.constants import RPC_METHODS
from .exceptions import ValidationError


class TransactionSequencer:
    """Hands out per-session call ids: 1, 2, 3, ... until cleared.

    Not safe for concurrent use; a session has at most one call in flight.
    """

    def __init__(self):
        self.last_id: int | None = None

    def next_id(self) -> int:
        """Return the id for the next outbound envelope and remember it."""
        if self.last_id is None:
            transaction_id = 1
        else:
            transaction_id = self.last_id + 1
        self.last_id = transaction_id
        return transaction_id

    def clear(self) -> None:
        self.last_id = None


@dataclass
class CallEnvelope:
    """One JSONRPC request as posted to the server."""

    id: int
    method: str
    params: list[dict[str, Any]]
    session: str | None = None
    verbose: bool = True
    param_count: int = field(init=False)

    def __post_init__(self):
        self.param_count = len(self.params)

    @property
    def urls(self) -> list[str]:
        return [param.get("url") for param in self.params]

    def to_dict(self) -> dict[str, Any]:
        """Wire representation of the envelope."""
        body: dict[str, Any] = {
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }
        if self.session is not None:
            body["session"] = self.session
        if self.verbose:
            body["verbose"] = 1
        return body


def validate_params(params: Any) -> list[dict[str, Any]]:
    """Check that params is a non-empty sequence of parameter objects.

    Args:
        params: Candidate parameter list

    Returns:
        The parameter objects as a list of dicts

    Raises:
        ValidationError: If params is not a sequence, is empty, or holds non-mappings
    """
    if isinstance(params, (str, bytes, Mapping)) or not isinstance(params, Sequence):
        raise ValidationError(
            "params needs to be a sequence of parameter objects",
            context={"params_type": type(params).__name__},
        )

    if len(params) == 0:
        raise ValidationError("params needs at least one parameter object")

    checked = []
    for index, param in enumerate(params):
        if not isinstance(param, Mapping):
            raise ValidationError(
                "every parameter object needs to be a mapping",
                context={"index": index, "param_type": type(param).__name__},
            )
        checked.append(dict(param))
    return checked


def build_envelope(
    method: str,
    params: Any,
    sequencer: TransactionSequencer,
    session: str | None = None,
    verbose: bool = True,
) -> CallEnvelope:
    """Assemble a call envelope and draw its transaction id.

    Arguments are validated before the id is drawn, so a rejected envelope
    never consumes an id.

    Args:
        method: RPC verb (get, set, add, update, delete, exec)
        params: Ordered sequence of parameter objects
        sequencer: Session sequencer providing the envelope id
        session: Session token, omitted from the envelope when None
        verbose: Request symbolic enum values in responses

    Returns:
        The assembled CallEnvelope

    Raises:
        ValidationError: For an unknown verb or malformed params
    """
    if method not in RPC_METHODS:
        raise ValidationError(
            f"Unsupported RPC method: {method}",
            context={"method": method, "allowed": list(RPC_METHODS)},
        )

    checked_params = validate_params(params)

    return CallEnvelope(
        id=sequencer.next_id(),
        method=method,
        params=checked_params,
        session=session,
        verbose=verbose,
    )
