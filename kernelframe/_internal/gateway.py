"""
Execution gateway contract.

This module contains:
- Outcome TypedDicts (value / printed / failure)
- ExecutionGateway Protocol
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Literal,
    Protocol,
    TypedDict,
    Union,
    runtime_checkable,
)

logger = logging.getLogger(__name__)


class ValueOutcome(TypedDict):
    kind: Literal["value"]
    value: Any
    binding: str | None


class PrintedOutcome(TypedDict):
    kind: Literal["printed"]
    text: str


class FailureOutcome(TypedDict):
    kind: Literal["failure"]
    ename: str
    message: str


Outcome = Union[ValueOutcome, PrintedOutcome, FailureOutcome]


def value_outcome(value: Any, binding: str | None = None) -> ValueOutcome:
    return ValueOutcome(kind="value", value=value, binding=binding)


def printed_outcome(text: str) -> PrintedOutcome:
    return PrintedOutcome(kind="printed", text=text)


def failure_outcome(message: str, ename: str = "Error") -> FailureOutcome:
    return FailureOutcome(kind="failure", ename=ename, message=message)


def outcome_payload(outcome: Outcome) -> Any:
    """Return the value or printed text carried by a non-failure outcome."""
    if outcome["kind"] == "value":
        return outcome["value"]
    if outcome["kind"] == "printed":
        return outcome["text"]
    raise ValueError(f"Outcome of kind {outcome['kind']!r} carries no payload")


@runtime_checkable
class ExecutionGateway(Protocol):
    """Protocol for the service that runs generated code in the remote session.

    Implementations execute every submission against one persistent interpreter
    state, so bindings made by earlier submissions stay visible to later ones.
    Each ``submit`` produces exactly one outcome; a failure is reported as a
    ``failure`` outcome rather than raised.
    """

    async def connect(self) -> None:
        """Start the remote session and return once it acknowledged liveness."""
        ...

    async def submit(self, code: str) -> Outcome:
        """Execute *code* and return its outcome."""
        ...

    async def close(self) -> None:
        """Release the remote session and any local resources."""
        ...
