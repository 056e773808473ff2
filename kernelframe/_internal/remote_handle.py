"""Handle for values that live in the remote session.

A RemoteHandle carries the owning session plus a deferred identifier: the name
the value is bound to inside the remote interpreter. The identifier is computed
once (by running the code that creates the binding) and shared by every
dependent that awaits it.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deferred(Generic[T]):
    """A coroutine that runs at most once, with its result or failure cached.

    The coroutine is scheduled immediately when created inside a running event
    loop, otherwise on the first ``await``. Like any asyncio task, the result
    must be awaited from the loop that started it.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], *, label: str = "") -> None:
        self._factory: Callable[[], Awaitable[T]] | None = factory
        self._task: asyncio.Future[T] | None = None
        self.label = label
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.start()

    @classmethod
    def of(cls, value: T, *, label: str = "") -> Deferred[T]:
        async def _value() -> T:
            return value

        return cls(_value, label=label)

    def start(self) -> asyncio.Future[T]:
        if self._task is None:
            assert self._factory is not None
            factory, self._factory = self._factory, None
            self._task = asyncio.ensure_future(factory())
            self._task.add_done_callback(self._on_done)
        return self._task

    def _on_done(self, task: asyncio.Future[T]) -> None:
        # Retrieve the exception so a discarded, failed handle does not trigger
        # asyncio's "exception was never retrieved" report at GC time.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Deferred %s failed: %s", self.label or "<anonymous>", exc)

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def __await__(self) -> Generator[Any, None, T]:
        # A cancelled awaiter must not cancel the shared task.
        return asyncio.shield(self.start()).__await__()


class RemoteHandle:
    """Caller-side stand-in for a value bound in the remote session.

    Attributes:
        session: The Session the binding lives in.
        kind: Prefix used when generating variable names for this handle type.
    """

    kind = "ref"

    def __init__(
        self,
        session: Session,
        ref_id: Deferred[str] | Callable[[], Awaitable[str]],
    ) -> None:
        self.session = session
        if not isinstance(ref_id, Deferred):
            ref_id = Deferred(ref_id, label=type(self).__name__)
        self._ref_id = ref_id

    @classmethod
    def resolved(cls: type[H], session: Session, ref_id: str) -> H:
        """Wrap a name that is already bound in the remote session."""
        return cls(session, Deferred.of(ref_id, label=ref_id))

    async def ref_id(self) -> str:
        """Wait for the remote binding and return its identifier."""
        return await self._ref_id

    def done(self) -> bool:
        return self._ref_id.done()

    def __await__(self) -> Generator[Any, None, str]:
        return self._ref_id.__await__()

    def __repr__(self) -> str:
        task = self._ref_id._task
        if task is not None and task.done() and not task.cancelled() and task.exception() is None:
            return f"<{type(self).__name__} id={task.result()}>"
        state = "failed" if task is not None and task.done() else "pending"
        return f"<{type(self).__name__} {state}>"


H = TypeVar("H", bound=RemoteHandle)
