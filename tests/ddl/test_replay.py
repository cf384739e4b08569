"""Tests for ddlmeta.ddl.replay: the replay engine and its retry loop.

The engine runs against a RecordingHandle fake, so these tests observe the
exact execution sequence without a database.
"""

import pytest
from structlog.testing import capture_logs

from conftest import BrokenSource, RecordingHandle
from ddlmeta.core.errors import (
    DDLParseError,
    ExecutionError,
    FailureCode,
    FailureSignature,
    RepairLimitError,
    ScriptReadError,
)
from ddlmeta.ddl.parser import ScriptParser
from ddlmeta.ddl.repair import SchemaRepairPolicy
from ddlmeta.ddl.replay import ReplayEngine
from ddlmeta.ddl.sources import StringSource

CREATE_S1 = "ATTACH DATABASE ':memory:' AS \"s1\""
CREATE_S2 = "ATTACH DATABASE ':memory:' AS \"s2\""


def make_engine(handle: RecordingHandle, **kwargs) -> ReplayEngine:
    return ReplayEngine(handle, ScriptParser(), SchemaRepairPolicy(handle.dialect), **kwargs)


class TestOrdering:
    """Statements run in script order, then parse order."""

    @pytest.mark.parametrize("scripts,per_script", [(1, 1), (2, 3), (4, 2)])
    def test_concatenation_order(self, scripts, per_script):
        sources = []
        expected = []
        for i in range(scripts):
            statements = [f"CREATE TABLE t{i}_{j} (id INT)" for j in range(per_script)]
            expected.extend(statements)
            sources.append(StringSource("; ".join(statements), name=f"{i}.sql"))

        handle = RecordingHandle()
        report = make_engine(handle).replay(sources)

        assert handle.executed == expected
        assert [o.statement.sql for o in report.statements] == expected
        assert report.scripts == [f"{i}.sql" for i in range(scripts)]


class TestSchemaRepair:
    """Missing schemas are created and the statement retried."""

    def test_repair_inserted_before_first_reference(self):
        handle = RecordingHandle(
            requires={
                "CREATE TABLE s1.a (id INT)": ["s1"],
                "CREATE TABLE s1.b (id INT)": ["s1"],
            }
        )
        with capture_logs() as logs:
            report = make_engine(handle).replay(
                [StringSource("CREATE TABLE s1.a (id INT); CREATE TABLE s1.b (id INT)")]
            )

        assert handle.executed == [
            "CREATE TABLE s1.a (id INT)",
            CREATE_S1,
            "CREATE TABLE s1.a (id INT)",
            "CREATE TABLE s1.b (id INT)",
        ]
        assert report.created_schemas == ["s1"]
        created = [e for e in logs if e["event"] == "ddl.schema_created"]
        assert [e["schema"] for e in created] == ["s1"]

    def test_distinct_schemas_repaired_in_sequence(self):
        statement = "CREATE VIEW s1.v AS SELECT * FROM s2.t"
        handle = RecordingHandle(requires={statement: ["s1", "s2"]})

        report = make_engine(handle).replay([StringSource(statement)])

        assert handle.executed == [statement, CREATE_S1, statement, CREATE_S2, statement]
        assert report.created_schemas == ["s1", "s2"]

    def test_repair_limit(self):
        statement = "CREATE TABLE s1.t (id INT)"
        handle = RecordingHandle(requires={statement: ["s1"]}, sticky_schemas={"s1"})

        with pytest.raises(RepairLimitError) as exc_info:
            make_engine(handle).replay([StringSource(statement)])

        assert exc_info.value.context.schema == "s1"
        assert handle.executed == [statement, CREATE_S1, statement]

    def test_higher_repair_limit_allows_more_attempts(self):
        statement = "CREATE TABLE s1.t (id INT)"
        handle = RecordingHandle(requires={statement: ["s1"]}, sticky_schemas={"s1"})

        with pytest.raises(RepairLimitError):
            make_engine(handle, max_schema_repairs=2).replay([StringSource(statement)])

        assert handle.executed.count(CREATE_S1) == 2

    def test_corrective_failure_is_fatal(self):
        statement = "CREATE TABLE s1.t (id INT)"
        handle = RecordingHandle(requires={statement: ["s1"]}, broken_schemas={"s1"})

        with pytest.raises(ExecutionError) as exc_info:
            make_engine(handle).replay([StringSource(statement)])

        assert not isinstance(exc_info.value, RepairLimitError)
        assert exc_info.value is handle.errors[-1]
        assert exc_info.value.message == f"failed: {CREATE_S1}"
        assert exc_info.value.failure == FailureSignature(FailureCode.UNKNOWN, "boom")
        assert exc_info.value.context.schema == "s1"
        assert handle.executed == [statement, CREATE_S1]


class TestFatalFailures:
    """Unrecoverable failures abort the whole replay."""

    def test_non_repairable_failure_propagates_unchanged(self):
        bad = "DROP TABLE missing"
        handle = RecordingHandle(failures={bad: FailureSignature(FailureCode.OBJECT_NOT_FOUND, "no such table")})

        with pytest.raises(ExecutionError) as exc_info:
            make_engine(handle).replay(
                [
                    StringSource(f"CREATE TABLE a (id INT); {bad}; CREATE TABLE b (id INT)", name="one.sql"),
                    StringSource("CREATE TABLE c (id INT)", name="two.sql"),
                ]
            )

        assert exc_info.value.failure.code is FailureCode.OBJECT_NOT_FOUND
        assert exc_info.value.context.script == "one.sql"
        assert handle.executed == ["CREATE TABLE a (id INT)", bad]

    def test_read_failure(self):
        handle = RecordingHandle()
        with pytest.raises(ScriptReadError):
            make_engine(handle).replay([BrokenSource(), StringSource("CREATE TABLE a (id INT)")])
        assert handle.executed == []

    def test_parse_failure_logs_hint(self):
        handle = RecordingHandle()
        with capture_logs() as logs, pytest.raises(DDLParseError):
            make_engine(handle).replay(
                [StringSource("CREATE TABLE a (id INT)"), StringSource("SELECT (1", name="bad.sql")]
            )

        assert handle.executed == ["CREATE TABLE a (id INT)"]
        failed = [e for e in logs if e["event"] == "ddl.interpretation_failed"]
        assert len(failed) == 1
        assert failed[0]["script"] == "bad.sql"
        assert "[ddlmeta ignore start]" in failed[0]["hint"]
        assert failed[0]["log_level"] == "error"

    def test_execution_failure_logs_hint(self):
        bad = "DROP VIEW missing"
        handle = RecordingHandle(failures={bad: FailureSignature(FailureCode.OBJECT_NOT_FOUND, "no such view: missing")})

        with capture_logs() as logs, pytest.raises(ExecutionError) as exc_info:
            make_engine(handle).replay([StringSource(bad, name="idx.sql")])

        failed = [e for e in logs if e["event"] == "ddl.interpretation_failed"]
        assert len(failed) == 1
        assert failed[0]["script"] == "idx.sql"
        assert failed[0]["error"] == exc_info.value.message
        assert "[ddlmeta ignore stop]" in failed[0]["hint"]

    def test_repair_limit_logs_hint(self):
        statement = "CREATE TABLE s1.t (id INT)"
        handle = RecordingHandle(requires={statement: ["s1"]}, sticky_schemas={"s1"})

        with capture_logs() as logs, pytest.raises(RepairLimitError):
            make_engine(handle).replay([StringSource(statement)])

        assert [e["event"] for e in logs].count("ddl.interpretation_failed") == 1


class TestOutcomeLogging:
    """Update counts and rows are logged, not acted on."""

    def test_update_count_logged(self):
        with capture_logs() as logs:
            make_engine(RecordingHandle()).replay([StringSource("CREATE TABLE a (id INT)")])

        events = [e["event"] for e in logs]
        assert events == ["ddl.statement", "ddl.update_count"]
