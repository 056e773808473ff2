"""Session: the entry point that owns one remote execution context.

A Session starts connecting as soon as it is created (or on first use when it
is created outside a running event loop). Every handle created from it shares
its gateway and its variable name generator.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import Any

from ._internal.builders import LiteralArg, generate_assignment
from ._internal.gateway import ExecutionGateway, Outcome
from ._internal.http_gateway import HttpKernelGateway
from ._internal.naming import VariableNameGenerator
from ._internal.remote_handle import Deferred
from ._internal.templating import quote, render
from ._internal.verifier import check_outcome
from .config import SessionConfig, config_from_env
from .dataframe import DataFrame
from .errors import SessionConnectionError
from .rdd import RDD

__all__ = ["Session", "SessionState"]

logger = logging.getLogger(__name__)

CONTEXT_VARIABLE = "jsc"
SQL_CONTEXT_VARIABLE = "sqlContext"

_CONTEXT_TEMPLATE = "var {{ctx}} = new SparkContext({{master}}, {{name}});"
_SQL_CONTEXT_TEMPLATE = "var {{sqlCtx}} = new SQLContext({{ctx}});"


class SessionState(enum.Enum):
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


class Session:
    """A remote execution session plus its Spark and SQL contexts."""

    def __init__(
        self,
        master: str = "local[*]",
        app_name: str = "kernelframe",
        *,
        gateway: ExecutionGateway | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        """Create the session and start connecting.

        Args:
            master: Cluster URL handed to the remote SparkContext.
            app_name: Application name shown by the remote cluster.
            gateway: Gateway to submit code through. Defaults to an
                HttpKernelGateway built from *config*.
            config: Connection settings; read from ``KERNELFRAME_*`` environment
                variables when omitted.
        """
        if gateway is None:
            gateway = HttpKernelGateway.from_config(config or config_from_env())
        elif not isinstance(gateway, ExecutionGateway):
            raise TypeError(f"{type(gateway).__name__} does not implement ExecutionGateway")

        self.master = master
        self.app_name = app_name
        self.gateway = gateway
        self.names = VariableNameGenerator()
        self.state = SessionState.CONNECTING
        self._ready: Deferred[None] = Deferred(self._connect, label="session")

    async def _connect(self) -> None:
        statements = [
            render(_CONTEXT_TEMPLATE, {
                "ctx": CONTEXT_VARIABLE,
                "master": quote(self.master),
                "name": quote(self.app_name),
            }),
            render(_SQL_CONTEXT_TEMPLATE, {"sqlCtx": SQL_CONTEXT_VARIABLE, "ctx": CONTEXT_VARIABLE}),
        ]
        try:
            await self.gateway.connect()
            for code in statements:
                logger.debug("Session init: %s", code)
                check_outcome(await self.gateway.submit(code), code)
        except SessionConnectionError:
            self.state = SessionState.FAILED
            logger.error("Session %r failed to connect", self.app_name)
            raise
        except Exception as exc:
            self.state = SessionState.FAILED
            logger.error("Session %r failed to initialize: %s", self.app_name, exc)
            raise SessionConnectionError(f"Failed to initialize session: {exc}") from exc

        self.state = SessionState.READY
        logger.info("Session %r ready (master=%s)", self.app_name, self.master)

    async def ready(self) -> None:
        """Wait until the remote side acknowledged the session."""
        await self._ready

    async def submit(self, code: str) -> Outcome:
        """Submit one statement once the session is ready."""
        await self.ready()
        logger.debug("Submitting: %s", code)
        outcome = await self.gateway.submit(code)
        logger.debug("Outcome for %r: %s", code, outcome["kind"])
        return outcome

    async def close(self) -> None:
        await self.gateway.close()

    async def __aenter__(self) -> Session:
        try:
            await self.ready()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<Session {self.app_name!r} master={self.master!r} state={self.state.value}>"

    # RDD sources
    def parallelize(self, values: Sequence[Any]) -> RDD:
        """Distribute a local collection to form an RDD."""
        template = "var {{refId}} = " + CONTEXT_VARIABLE + ".parallelize({{values}});"
        return generate_assignment(self, RDD, template, {"values": LiteralArg(list(values))})

    def text_file(self, path: str) -> RDD:
        """Read a text file as an RDD of lines."""
        template = "var {{refId}} = " + CONTEXT_VARIABLE + ".textFile({{path}});"
        return generate_assignment(self, RDD, template, {"path": LiteralArg(path)})

    # SQL context
    def sql(self, query: str) -> DataFrame:
        template = "var {{refId}} = " + SQL_CONTEXT_VARIABLE + ".sql({{query}});"
        return generate_assignment(self, DataFrame, template, {"query": LiteralArg(query)})

    def table(self, name: str) -> DataFrame:
        """Return the table registered under *name* as a DataFrame."""
        template = "var {{refId}} = " + SQL_CONTEXT_VARIABLE + ".table({{name}});"
        return generate_assignment(self, DataFrame, template, {"name": LiteralArg(name)})

    def read_json(self, path: str) -> DataFrame:
        template = "var {{refId}} = " + SQL_CONTEXT_VARIABLE + ".read().json({{path}});"
        return generate_assignment(self, DataFrame, template, {"path": LiteralArg(path)})

    def read_parquet(self, path: str) -> DataFrame:
        template = "var {{refId}} = " + SQL_CONTEXT_VARIABLE + ".read().parquet({{path}});"
        return generate_assignment(self, DataFrame, template, {"path": LiteralArg(path)})
