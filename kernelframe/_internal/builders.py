"""
Operation builders.

This module contains:
- Argument variants (HandleArg, NameArg, LiteralArg, ExprArg, ArgList)
- column_args / single_arg (per-argument classification)
- generate_assignment / generate_result / generate_void

Every builder returns immediately. The returned handle or Deferred resolves once
the session is ready, every input handle has resolved, and the rendered code has
run remotely. If an input fails, no code is submitted.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, Union

from ..errors import (
    KernelFrameError,
    MalformedArgumentsError,
    MissingParameterError,
    ResultParseError,
    UpstreamDependencyFailure,
)
from .gateway import outcome_payload
from .remote_handle import Deferred, RemoteHandle
from .templating import literal, placeholders, quote, render
from .verifier import check_outcome, verify_assignment

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

H = TypeVar("H", bound=RemoteHandle)
T = TypeVar("T")

# ---------------------------------------------------------------------------
# Argument variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HandleArg:
    """A remote value, substituted by its identifier."""

    handle: RemoteHandle


@dataclass(frozen=True)
class NameArg:
    """A column or table name, substituted as a quoted string."""

    name: str


@dataclass(frozen=True)
class LiteralArg:
    """A plain value, substituted as a remote literal."""

    value: Any


@dataclass(frozen=True)
class ExprArg:
    """Trusted remote-dialect source, substituted verbatim."""

    code: str


Arg = Union[HandleArg, NameArg, LiteralArg, ExprArg]


@dataclass(frozen=True)
class ArgList:
    """Comma-separated arguments; an empty list renders as nothing."""

    args: tuple[Arg, ...]


def column_args(args: Sequence[Any], handle_type: type[RemoteHandle] = RemoteHandle) -> ArgList:
    """Classify a variadic column list as all handles or all names.

    Each argument is classified on its own. A list mixing handles and names, or
    holding anything else, raises MalformedArgumentsError.
    """
    classified: list[Arg] = []
    kinds: set[str] = set()
    for position, arg in enumerate(args):
        if isinstance(arg, handle_type):
            classified.append(HandleArg(arg))
            kinds.add("handle")
        elif isinstance(arg, str):
            classified.append(NameArg(arg))
            kinds.add("name")
        else:
            raise MalformedArgumentsError(
                f"Argument {position} must be a {handle_type.__name__} or str, got {type(arg).__name__}"
            )
    if len(kinds) > 1:
        raise MalformedArgumentsError(
            f"Cannot mix {handle_type.__name__} handles and column names in one call: {list(args)!r}"
        )
    return ArgList(tuple(classified))


def single_arg(value: Any, handle_type: type[RemoteHandle] = RemoteHandle) -> Arg:
    """Classify one argument that may be a handle or a string."""
    if isinstance(value, handle_type):
        return HandleArg(value)
    if isinstance(value, str):
        return NameArg(value)
    raise MalformedArgumentsError(
        f"Expected a {handle_type.__name__} or str, got {type(value).__name__}"
    )


# ---------------------------------------------------------------------------
# Parameter resolution
# ---------------------------------------------------------------------------

Param = Union[RemoteHandle, HandleArg, NameArg, LiteralArg, ExprArg, ArgList, str, int, float, bool]


def _check_params(template: str, params: Mapping[str, Any], provided: set[str]) -> None:
    missing = placeholders(template) - provided - set(params)
    if missing:
        raise MissingParameterError(sorted(missing)[0], template)
    for name, value in params.items():
        if not isinstance(value, (RemoteHandle, HandleArg, NameArg, LiteralArg, ExprArg, ArgList, str, int, float)):
            raise TypeError(f"Unsupported template parameter {name}={type(value).__name__}")
        args = value.args if isinstance(value, ArgList) else (value,)
        for arg in args:
            # render literals now so bad values fail at call time
            if isinstance(arg, LiteralArg):
                literal(arg.value)
            elif isinstance(arg, NameArg):
                quote(arg.name)


async def _render_arg(arg: Arg) -> str:
    if isinstance(arg, HandleArg):
        return await arg.handle.ref_id()
    if isinstance(arg, NameArg):
        return quote(arg.name)
    if isinstance(arg, LiteralArg):
        return literal(arg.value)
    return arg.code


async def _render_param(value: Any) -> str:
    if isinstance(value, RemoteHandle):
        return await value.ref_id()
    if isinstance(value, (HandleArg, NameArg, LiteralArg, ExprArg)):
        return await _render_arg(value)
    if isinstance(value, ArgList):
        rendered = await asyncio.gather(*(_render_arg(a) for a in value.args))
        return ",".join(rendered)
    if isinstance(value, str):
        # already-rendered code
        return value
    return literal(value)


async def _resolve(
    session: Session,
    parent: RemoteHandle | None,
    params: Mapping[str, Any],
) -> dict[str, str]:
    """Wait for the session and every input handle concurrently.

    The first failure short-circuits into UpstreamDependencyFailure.
    """
    names = list(params)
    try:
        results = await asyncio.gather(
            session.ready(),
            parent.ref_id() if parent is not None else _none(),
            *(_render_param(params[name]) for name in names),
        )
    except Exception as exc:
        logger.debug("Dependency failed, nothing submitted: %s", exc)
        raise UpstreamDependencyFailure(exc) from exc

    resolved = dict(zip(names, results[2:]))
    if parent is not None:
        resolved["inRefId"] = results[1]
    return resolved


async def _none() -> None:
    return None


def _split_parent(parent: RemoteHandle | Session) -> tuple[Session, RemoteHandle | None]:
    if isinstance(parent, RemoteHandle):
        return parent.session, parent
    return parent, None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def generate_assignment(
    parent: RemoteHandle | Session,
    result_type: type[H],
    template: str,
    params: Mapping[str, Param] | None = None,
) -> H:
    """Bind the result of *template* to a fresh remote name and return its handle.

    The template sees ``refId`` (the new name), ``inRefId`` (the parent's name,
    when the parent is a handle) and every entry of *params*.
    """
    params = dict(params or {})
    session, parent_handle = _split_parent(parent)
    provided = {"refId"} | ({"inRefId"} if parent_handle is not None else set())
    _check_params(template, params, provided)

    ref_id = session.names.next(result_type.kind)

    async def _assign() -> str:
        resolved = await _resolve(session, parent_handle, params)
        code = render(template, {**resolved, "refId": ref_id})
        return await verify_assignment(session.submit(code), ref_id, code)

    return result_type(session, Deferred(_assign, label=ref_id))


def generate_result(
    parent: RemoteHandle | Session,
    template: str,
    params: Mapping[str, Param] | None = None,
    parse: Callable[[Any], T] | None = None,
) -> Deferred[T]:
    """Run a query statement and parse the value it returns."""
    params = dict(params or {})
    session, parent_handle = _split_parent(parent)
    provided = {"inRefId"} if parent_handle is not None else set()
    _check_params(template, params, provided)

    async def _query() -> T:
        resolved = await _resolve(session, parent_handle, params)
        code = render(template, resolved)
        outcome = check_outcome(await session.submit(code), code)
        payload = outcome_payload(outcome)
        if parse is None:
            return payload  # type: ignore[no-any-return]
        try:
            return parse(payload)
        except KernelFrameError:
            raise
        except (ValueError, TypeError, KeyError, IndexError) as exc:
            logger.error("Could not decode result of %r: %s", code, exc)
            raise ResultParseError(str(exc), payload) from exc

    return Deferred(_query, label=template)


def generate_void(
    parent: RemoteHandle | Session,
    template: str,
    params: Mapping[str, Param] | None = None,
) -> Deferred[None]:
    """Run a statement for its side effect only."""
    return generate_result(parent, template, params, parse=_discard)


def _discard(payload: Any) -> None:
    return None


# ---------------------------------------------------------------------------
# Payload parsers
# ---------------------------------------------------------------------------


def parse_json(payload: Any) -> Any:
    if isinstance(payload, (bytes, str)):
        return json.loads(payload)
    # value outcomes from the gateway may already be decoded
    return payload


def parse_int(payload: Any) -> int:
    if isinstance(payload, bool):
        raise TypeError("boolean is not a count")
    if isinstance(payload, int):
        return payload
    if isinstance(payload, float) and payload.is_integer():
        return int(payload)
    return int(str(payload).strip())


def parse_text(payload: Any) -> str:
    if isinstance(payload, str):
        # quoted string results from JSON-ish gateways
        if len(payload) >= 2 and payload[0] == payload[-1] == '"':
            try:
                return str(json.loads(payload))
            except ValueError:
                return payload
        return payload
    return str(payload)


def non_negative_int(value: Any, what: str) -> LiteralArg:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{what} must be a non-negative int, got {value!r}")
    return LiteralArg(value)
