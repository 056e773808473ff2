"""Tests for Session lifecycle and session-level sources."""

import asyncio

import pytest

from kernelframe import DataFrame, RDD, Session, SessionState
from kernelframe._internal.gateway import failure_outcome, value_outcome
from kernelframe.errors import (
    RemoteExecutionFailure,
    SessionConnectionError,
    UpstreamDependencyFailure,
)

from .fixtures.fake_gateway import FakeGateway


class TestSessionConstruction:
    def test_construction_outside_loop_is_lazy(self, gateway):
        session = Session("local[2]", "app", gateway=gateway)

        assert session.state is SessionState.CONNECTING
        assert gateway.connect_calls == 0
        assert "connecting" in repr(session)

    def test_rejects_objects_that_are_not_gateways(self):
        with pytest.raises(TypeError):
            Session(gateway=object())  # type: ignore[arg-type]

    def test_default_gateway_built_from_config(self, monkeypatch):
        monkeypatch.setenv("KERNELFRAME_HOST", "kernel.example")
        monkeypatch.setenv("KERNELFRAME_PORT", "9000")

        session = Session()

        assert session.gateway.endpoint == "http://kernel.example:9000"

    def test_each_session_owns_its_name_generator(self, gateway):
        a = Session(gateway=gateway)
        b = Session(gateway=FakeGateway())

        assert a.names is not b.names


@pytest.mark.asyncio
class TestSessionLifecycle:
    async def test_ready_runs_setup_statements(self, gateway):
        session = Session("spark://master:7077", 'my "app"', gateway=gateway)

        await session.ready()

        assert session.state is SessionState.READY
        assert gateway.connected
        assert gateway.submitted == [
            'var jsc = new SparkContext("spark://master:7077", "my \\"app\\"");',
            "var sqlContext = new SQLContext(jsc);",
        ]

    async def test_construction_inside_loop_connects_eagerly(self, gateway):
        Session(gateway=gateway)

        for _ in range(10):
            await asyncio.sleep(0)

        assert gateway.connect_calls == 1

    async def test_ready_is_idempotent(self, gateway):
        session = Session(gateway=gateway)

        await asyncio.gather(session.ready(), session.ready())
        await session.ready()

        assert gateway.connect_calls == 1
        assert len(gateway.submitted) == 2

    async def test_connect_failure_marks_session_failed(self):
        gateway = FakeGateway(connect_error=SessionConnectionError("kernel died"))
        session = Session(gateway=gateway)

        with pytest.raises(SessionConnectionError, match="kernel died"):
            await session.ready()

        assert session.state is SessionState.FAILED

    async def test_setup_statement_failure_marks_session_failed(self, gateway):
        gateway.respond("new SparkContext", failure_outcome("no master", ename="SparkException"))
        session = Session(gateway=gateway)

        with pytest.raises(SessionConnectionError, match="no master"):
            await session.ready()

        assert session.state is SessionState.FAILED
        assert len(gateway.submitted) == 1

    async def test_failed_operation_leaves_session_usable(self, session, gateway):
        gateway.respond("sqlContext.sql", failure_outcome("ParseException: bad", ename="ParseException"))

        with pytest.raises(RemoteExecutionFailure):
            await session.sql("SELEC 1")

        assert session.state is SessionState.READY
        assert await session.table("people") == "dataFrame2"

    async def test_context_manager_closes_gateway(self, gateway):
        async with Session(gateway=gateway) as session:
            assert session.state is SessionState.READY

        assert gateway.closed

    async def test_context_manager_closes_gateway_when_setup_fails(self, gateway):
        gateway.respond("new SQLContext", failure_outcome("no sql", ename="SparkException"))

        with pytest.raises(SessionConnectionError, match="no sql"):
            async with Session(gateway=gateway):
                pass

        assert gateway.closed

    async def test_submit_waits_for_ready(self, gateway):
        session = Session(gateway=gateway)
        gateway.respond("1 + 1;", value_outcome("2"))

        outcome = await session.submit("1 + 1;")

        assert outcome == value_outcome("2")
        assert gateway.submitted[-1] == "1 + 1;"


@pytest.mark.asyncio
class TestSessionSources:
    async def test_sql(self, session, gateway):
        df = session.sql("SELECT * FROM people WHERE name = 'x'")

        assert isinstance(df, DataFrame)
        await df
        assert gateway.statements == [
            "var dataFrame1 = sqlContext.sql(\"SELECT * FROM people WHERE name = 'x'\");"
        ]

    async def test_readers_and_table(self, session, gateway):
        await session.read_json("/data/people.json")
        await session.read_parquet("/data/people.parquet")
        await session.table("people")

        assert gateway.statements == [
            'var dataFrame1 = sqlContext.read().json("/data/people.json");',
            'var dataFrame2 = sqlContext.read().parquet("/data/people.parquet");',
            'var dataFrame3 = sqlContext.table("people");',
        ]

    async def test_parallelize_and_text_file(self, session, gateway):
        numbers = session.parallelize([1, 2, 3])
        lines = session.text_file("/data/lines.txt")

        assert isinstance(numbers, RDD)
        await numbers
        await lines

        assert sorted(gateway.statements) == [
            "var rdd1 = jsc.parallelize([1,2,3]);",
            'var rdd2 = jsc.textFile("/data/lines.txt");',
        ]

    async def test_operations_on_failed_session_never_submit(self):
        gateway = FakeGateway(connect_error=ConnectionRefusedError("refused"))
        session = Session(gateway=gateway)

        df = session.sql("select 1")
        count = df.count()

        with pytest.raises(UpstreamDependencyFailure):
            await df
        with pytest.raises(UpstreamDependencyFailure) as exc_info:
            await count
        assert isinstance(exc_info.value.cause, SessionConnectionError)
        assert gateway.submitted == []
