"""DDL replay engine.

Replays scripts statement by statement on a scratch connection. When a
statement fails because it references a schema nobody created, the repair
policy supplies a "create schema if not exists" statement; the engine runs it
and retries the original statement.

Architecture::

    Source ──► read ──► parse ──► prepare ──► _execute (state machine)

    EXECUTING ──ok──► DONE
        │
        └─err──► REPAIRING ──corrective ok──► RETRYING ──ok──► DONE
                     │                            │
                     └─no repair / limit──► FAILED ◄──┘ (err: back to REPAIRING)

Guardrails:
    - Statements run in script order, then parse order. Nothing is reordered.
    - The first unrecoverable failure aborts the whole replay.
    - A corrective statement that fails is fatal; it is never retried.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ddlmeta.core.errors import (
    ErrorContext,
    ExecutionError,
    ParseError,
    RepairLimitError,
)
from ddlmeta.core.logging import get_logger
from ddlmeta.core.protocols import Source
from ddlmeta.core.result import Err, Ok
from ddlmeta.ddl.execution import ExecutionHandle, StatementOutcome
from ddlmeta.ddl.parser import ScriptParser
from ddlmeta.ddl.repair import SchemaRepairPolicy
from ddlmeta.ddl.sources import read_source
from ddlmeta.ddl.statements import Statement

logger = get_logger(__name__)

REMEDIATION_HINT = (
    "The script could not be interpreted. Statements the parser or the "
    "interpreter database cannot handle can be skipped by wrapping them in "
    "comments containing the ignore markers, e.g. '/* {start} */ ... "
    "/* {stop} */', with DDLMETA_PARSE_IGNORE_COMMENTS=true."
)


class ReplayState(str, Enum):
    """States of a single statement's execution."""

    EXECUTING = "EXECUTING"
    REPAIRING = "REPAIRING"
    RETRYING = "RETRYING"
    FAILED = "FAILED"
    DONE = "DONE"


@dataclass(frozen=True, slots=True)
class SchemaRepair:
    """A schema created to let *statement* run."""

    schema: str
    statement: str
    script: str


@dataclass
class ReplayReport:
    """What a replay did, in order."""

    scripts: list[str] = field(default_factory=list)
    statements: list[StatementOutcome] = field(default_factory=list)
    repairs: list[SchemaRepair] = field(default_factory=list)

    @property
    def created_schemas(self) -> list[str]:
        return [repair.schema for repair in self.repairs]


class ReplayEngine:
    """Runs parsed DDL through an execution handle with schema auto-repair."""

    def __init__(
        self,
        handle: ExecutionHandle,
        parser: ScriptParser,
        policy: SchemaRepairPolicy,
        *,
        max_schema_repairs: int = 1,
    ):
        self.handle = handle
        self.parser = parser
        self.policy = policy
        self.max_schema_repairs = max_schema_repairs

    def replay(self, sources: Iterable[Source]) -> ReplayReport:
        """Replay every source in order.

        Raises:
            ScriptReadError: A script could not be read.
            ParseError: A script could not be parsed or rendered.
            ExecutionError: A statement failed and could not be repaired.
        """
        report = ReplayReport()
        for source in sources:
            self.load_script(source, report)
        return report

    def load_script(self, source: Source, report: ReplayReport) -> None:
        """Read, parse and execute one script."""
        text = read_source(source)
        report.scripts.append(source.name)
        try:
            for expression in self.parser.parse(text, script=source.name):
                statement = self.handle.prepare(expression)
                report.statements.append(self._execute(statement, source.name, report))
        except (ParseError, ExecutionError) as e:
            logger.error(
                "ddl.interpretation_failed",
                script=source.name,
                error=e.message,
                hint=REMEDIATION_HINT.format(
                    start=self.parser.ignore_comment_start,
                    stop=self.parser.ignore_comment_stop,
                ),
            )
            e.with_context(script=source.name)
            raise

    def _execute(self, statement: Statement, script: str, report: ReplayReport) -> StatementOutcome:
        repairs: Counter[str] = Counter()
        state = ReplayState.EXECUTING
        error: ExecutionError | None = None

        while True:
            match state:
                case ReplayState.EXECUTING | ReplayState.RETRYING:
                    match self.handle.run(statement):
                        case Ok(outcome):
                            state = ReplayState.DONE
                        case Err(failure):
                            error = failure
                            state = ReplayState.REPAIRING

                case ReplayState.REPAIRING:
                    assert error is not None
                    corrective = self.policy.decide(error.failure)
                    if corrective is None:
                        state = ReplayState.FAILED
                        continue
                    schema = self.policy.missing_schema(error.failure) or ""
                    repairs[schema] += 1
                    if repairs[schema] > self.max_schema_repairs:
                        raise RepairLimitError(
                            f'Schema "{schema}" is still missing after '
                            f"{self.max_schema_repairs} repair(s)",
                            failure=error.failure,
                            context=ErrorContext(
                                script=script, statement=statement.sql, schema=schema
                            ),
                            cause=error,
                        )
                    self._repair(corrective, schema, statement, script, report)
                    state = ReplayState.RETRYING

                case ReplayState.FAILED:
                    assert error is not None
                    raise error

                case ReplayState.DONE:
                    self._log_outcome(outcome, script)
                    return outcome

    def _repair(
        self,
        corrective: Statement,
        schema: str,
        statement: Statement,
        script: str,
        report: ReplayReport,
    ) -> None:
        match self.handle.run(corrective):
            case Ok(_):
                logger.info(
                    "ddl.schema_created",
                    schema=schema,
                    sql=corrective.sql,
                    script=script,
                    statement=statement.sql,
                )
                report.repairs.append(SchemaRepair(schema, statement.sql, script))
            case Err(failure):
                raise failure.with_context(schema=schema, script=script)

    def _log_outcome(self, outcome: StatementOutcome, script: str) -> None:
        logger.debug("ddl.statement", sql=outcome.statement.sql, script=script)
        if outcome.rows is not None:
            logger.debug("ddl.rows", count=len(outcome.rows), rows=list(outcome.rows))
        else:
            logger.debug("ddl.update_count", count=outcome.update_count)


__all__ = [
    "REMEDIATION_HINT",
    "ReplayState",
    "SchemaRepair",
    "ReplayReport",
    "ReplayEngine",
]
