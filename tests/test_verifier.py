"""Tests for the assignment verifier."""

import asyncio

import pytest

from kernelframe._internal.gateway import failure_outcome, printed_outcome, value_outcome
from kernelframe._internal.verifier import check_outcome, verify_assignment
from kernelframe.errors import IdentifierMismatchError, RemoteExecutionFailure


async def _deliver(outcome):
    await asyncio.sleep(0)
    return outcome


@pytest.mark.asyncio
class TestVerifyAssignment:
    async def test_success_resolves_to_expected_identifier(self):
        ref_id = await verify_assignment(_deliver(value_outcome(None)), "df7")

        assert ref_id == "df7"

    async def test_printed_outcome_counts_as_success(self):
        assert await verify_assignment(_deliver(printed_outcome("")), "df7") == "df7"

    async def test_matching_binding_is_accepted(self):
        assert await verify_assignment(_deliver(value_outcome(None, binding="df7")), "df7") == "df7"

    async def test_failure_rejects_with_remote_message(self):
        outcome = failure_outcome("ParseException: mismatched input 'SELEC'", ename="ParseException")

        with pytest.raises(RemoteExecutionFailure) as exc_info:
            await verify_assignment(_deliver(outcome), "df7", code="var df7 = sqlContext.sql(\"SELEC\");")

        assert "ParseException" in str(exc_info.value)
        assert exc_info.value.remote_message == "ParseException: mismatched input 'SELEC'"
        assert exc_info.value.code == "var df7 = sqlContext.sql(\"SELEC\");"

    async def test_identifier_mismatch_is_a_remote_failure(self):
        with pytest.raises(IdentifierMismatchError) as exc_info:
            await verify_assignment(_deliver(value_outcome(None, binding="df8")), "df7")

        assert isinstance(exc_info.value, RemoteExecutionFailure)
        assert exc_info.value.expected == "df7"
        assert exc_info.value.actual == "df8"


def test_check_outcome_passes_through_values():
    outcome = value_outcome("3")

    assert check_outcome(outcome) is outcome


def test_check_outcome_raises_on_failure():
    with pytest.raises(RemoteExecutionFailure, match="TypeError: boom"):
        check_outcome(failure_outcome("boom", ename="TypeError"))
