"""Error types raised by kernelframe.

Every failure is delivered to exactly one pending handle or awaitable. Nothing
here is retried automatically.
"""

from __future__ import annotations

from typing import Any


class KernelFrameError(Exception):
    """Base class for all kernelframe errors."""


class MissingParameterError(KernelFrameError, KeyError):
    """A code template referenced a placeholder that was not supplied."""

    def __init__(self, name: str, template: str) -> None:
        super().__init__(f"Template parameter '{name}' missing for template: {template!r}")
        self.name = name
        self.template = template

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class MalformedArgumentsError(KernelFrameError, ValueError):
    """A variadic call received arguments it cannot disambiguate."""


class UpstreamDependencyFailure(KernelFrameError):
    """An input handle of an operation failed to resolve.

    ``cause`` is always the root failure, never another UpstreamDependencyFailure.
    """

    def __init__(self, cause: BaseException) -> None:
        while isinstance(cause, UpstreamDependencyFailure):
            cause = cause.cause
        super().__init__(f"Upstream dependency failed: {type(cause).__name__}: {cause}")
        self.cause = cause


class RemoteExecutionFailure(KernelFrameError, RuntimeError):
    """The remote session reported a failure for submitted code."""

    def __init__(self, message: str, *, ename: str | None = None, code: str | None = None) -> None:
        full = f"{ename}: {message}" if ename else message
        super().__init__(full)
        self.ename = ename
        self.remote_message = message
        self.code = code


class IdentifierMismatchError(RemoteExecutionFailure):
    """The remote side bound a different identifier than the one requested."""

    def __init__(self, expected: str, actual: str, *, code: str | None = None) -> None:
        super().__init__(
            f"expected binding '{expected}' but remote reported '{actual}'",
            ename="IdentifierMismatch",
            code=code,
        )
        self.expected = expected
        self.actual = actual


class ResultParseError(KernelFrameError, ValueError):
    """The remote computation succeeded but its payload could not be decoded."""

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(f"Parse Error: {message}")
        self.payload = payload


class SessionConnectionError(KernelFrameError, ConnectionError):
    """The remote session could not be started or never became ready."""
