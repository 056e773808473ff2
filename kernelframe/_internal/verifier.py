from __future__ import annotations

import logging
from collections.abc import Awaitable

from ..errors import IdentifierMismatchError, RemoteExecutionFailure
from .gateway import Outcome

logger = logging.getLogger(__name__)


def check_outcome(outcome: Outcome, code: str | None = None) -> Outcome:
    """Raise RemoteExecutionFailure for a failure outcome, else return it unchanged."""
    if outcome["kind"] == "failure":
        logger.debug("Remote failure %s: %s", outcome["ename"], outcome["message"])
        raise RemoteExecutionFailure(outcome["message"], ename=outcome["ename"], code=code)
    return outcome


async def verify_assignment(
    submission: Awaitable[Outcome],
    expected: str,
    code: str | None = None,
) -> str:
    """Wait for a submitted ``expected = <expr>`` statement and confirm the binding.

    Returns *expected* once the remote side reported success. A failure outcome,
    or a value outcome naming a different binding, raises RemoteExecutionFailure.
    """
    outcome = check_outcome(await submission, code)

    if outcome["kind"] == "value":
        actual = outcome.get("binding")
        if actual is not None and actual != expected:
            logger.error("Binding mismatch: expected %s, remote reported %s", expected, actual)
            raise IdentifierMismatchError(expected, actual, code=code)

    logger.debug("Bound %s", expected)
    return expected
