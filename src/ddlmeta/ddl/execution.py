"""Execution handle bound to one interpreter connection.

The handle prepares parsed expressions (name transform, execution hints,
dialect rendering) and runs the resulting statements. Running never raises
for database failures: the outcome is an ``Ok[StatementOutcome]`` or an
``Err[ExecutionError]`` whose failure signature the repair policy inspects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlglot import exp

from ddlmeta.core.errors import ErrorContext, ExecutionError
from ddlmeta.core.result import Err, Ok, Result
from ddlmeta.ddl.dialect import InterpreterDialect
from ddlmeta.ddl.statements import (
    ExecutionHints,
    NameTransform,
    Statement,
    StatementKind,
    prepare_statement,
)


@dataclass(frozen=True, slots=True)
class StatementOutcome:
    """What running one statement produced."""

    statement: Statement
    update_count: int | None = None
    rows: tuple[tuple[Any, ...], ...] | None = None
    skipped: bool = False


class ExecutionHandle:
    """Prepares and runs statements on a scratch connection."""

    def __init__(
        self,
        connection: Any,
        dialect: InterpreterDialect,
        *,
        hints: ExecutionHints = ExecutionHints(),
        name_transform: NameTransform | None = None,
    ):
        self._connection = connection
        self.dialect = dialect
        self.hints = hints
        self.name_transform = name_transform

    def mark(self, **hints: bool) -> None:
        """Set execution hints, e.g. ``mark(ignore_storage_clauses=True)``."""
        self.hints = replace(self.hints, **hints)

    def prepare(self, expression: exp.Expression) -> Statement:
        return prepare_statement(
            expression,
            self.dialect,
            hints=self.hints,
            name_transform=self.name_transform,
        )

    def run(self, statement: Statement) -> Result[StatementOutcome]:
        """Run *statement*; rows are fully materialized for queries."""
        try:
            if statement.unless_schema_exists is not None and self.dialect.has_schema(
                self._connection, statement.unless_schema_exists
            ):
                return Ok(StatementOutcome(statement, update_count=0, skipped=True))
            if statement.if_schema_exists is not None and not self.dialect.has_schema(
                self._connection, statement.if_schema_exists
            ):
                return Ok(StatementOutcome(statement, update_count=0, skipped=True))
            if statement.ignored:
                return Ok(StatementOutcome(statement, update_count=0, skipped=True))
            if statement.rebuild is not None:
                count = self.dialect.rebuild_table(self._connection, statement.rebuild)
                return Ok(StatementOutcome(statement, update_count=count))

            cursor = self._connection.exec_driver_sql(statement.sql)
            if statement.kind is StatementKind.QUERY:
                rows = tuple(tuple(row) for row in cursor.fetchall())
                return Ok(StatementOutcome(statement, rows=rows))
            return Ok(StatementOutcome(statement, update_count=cursor.rowcount))
        except SQLAlchemyError as e:
            failure = self.dialect.classify(e)
            return Err(
                ExecutionError(
                    f"Statement failed on {self.dialect.name}: {failure}",
                    failure=failure,
                    context=ErrorContext(statement=statement.sql, dialect=self.dialect.name),
                    cause=e,
                )
            )


__all__ = ["StatementOutcome", "ExecutionHandle"]
