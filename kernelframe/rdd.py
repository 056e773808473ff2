"""Handle for a remote RDD."""

from __future__ import annotations

from typing import Any

from ._internal.builders import ExprArg, generate_assignment, generate_result, non_negative_int, parse_int, parse_json
from ._internal.remote_handle import Deferred, RemoteHandle


def remote_function(func: Any) -> ExprArg:
    """Wrap remote-dialect function source for substitution into generated code.

    Python callables cannot run in the remote interpreter, so only source text
    is accepted.
    """
    if isinstance(func, str):
        if not func.strip():
            raise ValueError("Remote function source must not be empty")
        return ExprArg(func)
    if callable(func):
        raise TypeError(
            f"Cannot ship Python callable {getattr(func, '__name__', func)!r} to the remote "
            "session; pass the function's remote source as a string"
        )
    raise TypeError(f"Expected remote function source as str, got {type(func).__name__}")


class RDD(RemoteHandle):
    """A remote resilient distributed dataset."""

    kind = "rdd"

    def cache(self) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.cache();")

    def map(self, func: str) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.map({{udf}});",
                                   {"udf": remote_function(func)})

    def filter(self, func: str) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.filter({{udf}});",
                                   {"udf": remote_function(func)})

    def flat_map(self, func: str) -> RDD:
        return generate_assignment(self, RDD, "var {{refId}} = {{inRefId}}.flatMap({{udf}});",
                                   {"udf": remote_function(func)})

    def count(self) -> Deferred[int]:
        return generate_result(self, "{{inRefId}}.count();", parse=parse_int)

    def collect(self) -> Deferred[list[Any]]:
        return generate_result(self, "JSON.stringify({{inRefId}}.collect());", parse=_parse_list)

    def take(self, num: int) -> Deferred[list[Any]]:
        return generate_result(self, "JSON.stringify({{inRefId}}.take({{num}}));",
                               {"num": non_negative_int(num, "num")}, parse=_parse_list)

    def first(self) -> Deferred[Any]:
        return generate_result(self, "JSON.stringify({{inRefId}}.first());", parse=parse_json)


def _parse_list(payload: Any) -> list[Any]:
    value = parse_json(payload)
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON array, got {type(value).__name__}")
    return value
