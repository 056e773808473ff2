"""
kernelframe - Build distributed dataframe computations against a remote kernel.

kernelframe exposes Spark-style DataFrame and RDD handles whose operations are
turned into statements of the remote kernel's language and executed in one
persistent remote session. Every operation returns immediately: chainable
operations return a new handle, terminal operations return an awaitable value.

Key Features:
    - Handles resolve once and are shared by every dependent operation
    - Independent call chains run concurrently; dependent ones are ordered
    - A failed input short-circuits its dependents without submitting code
    - Every user-supplied string is quoted before it reaches generated code

Basic Usage:
    >>> import asyncio
    >>> import kernelframe
    >>> async def main():
    ...     async with kernelframe.Session("local[*]", "people") as session:
    ...         df = session.read_json("people.json")
    ...         adults = df.filter("age >= 18").select("name", "age")
    ...         print(await adults.count())
    ...         for row in await adults.collect():
    ...             print(row["name"])
    >>> asyncio.run(main())
"""

from ._internal.gateway import ExecutionGateway, Outcome
from ._internal.http_gateway import HttpKernelGateway
from ._internal.remote_handle import Deferred, RemoteHandle
from .config import SessionConfig, config_from_env, load_config
from .dataframe import Column, DataFrame, GroupedData, RowHandle
from .errors import (
    IdentifierMismatchError,
    KernelFrameError,
    MalformedArgumentsError,
    MissingParameterError,
    RemoteExecutionFailure,
    ResultParseError,
    SessionConnectionError,
    UpstreamDependencyFailure,
)
from .rdd import RDD
from .rows import Row
from .session import Session, SessionState

__version__ = "0.1.0"

__all__ = [
    "Session",
    "SessionState",
    "SessionConfig",
    "config_from_env",
    "load_config",
    "DataFrame",
    "Column",
    "GroupedData",
    "RowHandle",
    "RDD",
    "Row",
    "RemoteHandle",
    "Deferred",
    "ExecutionGateway",
    "HttpKernelGateway",
    "Outcome",
    "KernelFrameError",
    "MissingParameterError",
    "MalformedArgumentsError",
    "UpstreamDependencyFailure",
    "RemoteExecutionFailure",
    "IdentifierMismatchError",
    "ResultParseError",
    "SessionConnectionError",
]
