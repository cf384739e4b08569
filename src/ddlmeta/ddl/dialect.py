"""Interpreter dialect abstraction.

An ``InterpreterDialect`` knows how to talk to one embedded interpreter
database: how to render parsed statements for it, how to create a schema
that a script references but never declares, and how to turn the driver's
exceptions into a :class:`~ddlmeta.core.errors.FailureSignature`.

Manifesto:
    The replay engine must never look at driver exception text. Every
    engine-specific detail (message formats, schema emulation, SQL flavour)
    lives behind this protocol so the engine and the repair policy stay
    generic.

    - **One interface:** ``InterpreterDialect`` for render/classify/schema ops
    - **Registry:** ``get_interpreter_dialect(name)`` resolves settings values
    - **Testable:** Fakes can implement the protocol for engine tests

Architecture::

    parsed expression ──► render() ──► Statement ──► execute
                                                        │
                                   driver exception ◄───┘
                                          │
                                     classify() ──► FailureSignature
                                                     (code, cause)

Features:
    - **SQLiteInterpreterDialect:** schemas emulated as attached in-memory
      databases (``ATTACH DATABASE ':memory:' AS "s"``)
    - Schema qualifiers SQLite rejects are moved or dropped while rendering
    - ``ALTER TABLE ... ADD CONSTRAINT`` emulated by recreating the table

Examples:
    >>> from ddlmeta.ddl.dialect import get_interpreter_dialect
    >>> d = get_interpreter_dialect("sqlite")
    >>> print(d.create_schema_if_not_exists("s1"))
    ATTACH DATABASE ':memory:' AS "s1"

Tags:
    dialect, interpreter, sqlite, sqlglot, ddl-meta
"""

from __future__ import annotations

import re
from typing import Any, Protocol, runtime_checkable

import sqlglot
from sqlglot import exp
from sqlglot.errors import ErrorLevel, SqlglotError

from ddlmeta.core.errors import (
    ErrorContext,
    FailureCode,
    FailureSignature,
    InvalidConfigError,
    TranslationError,
)
from ddlmeta.ddl.statements import ExecutionHints, Statement, StatementKind, TableRebuild


@runtime_checkable
class InterpreterDialect(Protocol):
    """Interpreter database contract."""

    @property
    def name(self) -> str:
        """Dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def sqlglot_dialect(self) -> str:
        """sqlglot dialect used to render statements."""
        ...

    def render(self, expression: exp.Expression, hints: ExecutionHints) -> Statement:
        """Render a prepared expression as an interpreter statement."""
        ...

    def create_schema_if_not_exists(self, name: str) -> Statement:
        """Statement creating schema *name* unless it already exists."""
        ...

    def has_schema(self, connection: Any, name: str) -> bool:
        """Whether schema *name* exists on *connection*."""
        ...

    def rebuild_table(self, connection: Any, rebuild: TableRebuild) -> int:
        """Recreate a table with extra constraints; returns an update count."""
        ...

    def classify(self, error: BaseException) -> FailureSignature:
        """Map a driver exception to a failure signature."""
        ...


def _schema_name(expression: exp.Expression) -> str:
    """Name of the schema targeted by ``CREATE SCHEMA`` / ``DROP SCHEMA``."""
    target = expression.this
    if target is None:
        # sqlglot keeps DROP targets in ``tables``.
        tables = expression.args.get("tables") or []
        target = tables[0] if tables else None
    if isinstance(target, exp.Identifier):
        return target.name
    if isinstance(target, exp.Table):
        # Newer sqlglot stores schema references in ``db``.
        part = target.args.get("db") or target.args.get("this")
        if part is not None:
            return part.name
    raise TranslationError(
        f"Cannot determine schema name of: {expression.sql()}",
    )


def _kind(expression: exp.Expression) -> str:
    return (expression.args.get("kind") or "").upper()


def _target_table(expression: exp.Expression) -> exp.Table | None:
    target = expression.this
    if isinstance(target, exp.Schema):
        target = target.this
    return target if isinstance(target, exp.Table) else None


def _qualify_index(create: exp.Create, schema: str | None = None) -> None:
    """Move the indexed table's schema onto the index name.

    SQLite spells ``CREATE INDEX ix ON s1.t (id)`` as
    ``CREATE INDEX s1.ix ON t (id)``. *schema* overrides the qualifier.
    """
    index = create.this
    if not isinstance(index, exp.Index) or not isinstance(index.this, exp.Identifier):
        return
    table = index.args.get("table")
    if isinstance(table, exp.Schema):
        table = table.this
    if not isinstance(table, exp.Table):
        return
    db = exp.to_identifier(schema, quoted=True) if schema else table.args.get("db")
    if db is None:
        return
    index.set("this", exp.Table(this=index.this, db=db.copy()))
    table.set("db", None)
    table.set("catalog", None)


def _unqualify_references(expression: exp.Expression, *, permissive: bool) -> None:
    """Drop schema qualifiers from ``REFERENCES`` targets.

    A SQLite foreign key always refers to a table in its own schema. Other
    schemas are only dropped when rendering permissively.
    """
    owner = _target_table(expression)
    schema = owner.db.lower() if owner is not None else ""
    for reference in expression.find_all(exp.Reference):
        target = _target_table(reference)
        if target is None or not target.args.get("db"):
            continue
        if permissive or target.db.lower() == schema:
            target.set("db", None)
            target.set("catalog", None)


_TABLE_CONSTRAINTS = (
    exp.Constraint,
    exp.PrimaryKey,
    exp.ForeignKey,
    exp.UniqueColumnConstraint,
    exp.CheckColumnConstraint,
)


def _added_constraints(alter: exp.Alter) -> tuple[exp.Expression, ...] | None:
    """Constraints added by an ``ALTER TABLE`` made only of ``ADD CONSTRAINT`` actions."""
    actions = alter.args.get("actions") or []
    if not actions or not all(isinstance(action, exp.AddConstraint) for action in actions):
        return None
    constraints = tuple(c for action in actions for c in action.expressions)
    if not constraints or not all(isinstance(c, _TABLE_CONSTRAINTS) for c in constraints):
        return None
    return constraints


class SQLiteInterpreterDialect:
    """In-memory SQLite as the interpreter database.

    SQLite has no ``CREATE SCHEMA``; a schema is an attached database, so
    ``CREATE SCHEMA`` renders as ``ATTACH`` and ``DROP SCHEMA`` as ``DETACH``.
    """

    _UNKNOWN_DATABASE = re.compile(r"unknown database (.+?)\s*$", re.IGNORECASE)
    _NOT_FOUND = re.compile(r"no such (table|index|view|column|trigger|database)", re.IGNORECASE)
    _EXISTS = re.compile(r"already exists|already in use", re.IGNORECASE)
    _SYNTAX = re.compile(r"syntax error|incomplete input", re.IGNORECASE)
    _CONSTRAINT = re.compile(r"constraint failed", re.IGNORECASE)

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def sqlglot_dialect(self) -> str:
        return "sqlite"

    @staticmethod
    def quote(name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def render(self, expression: exp.Expression, hints: ExecutionHints) -> Statement:
        if isinstance(expression, exp.Create) and _kind(expression) == "SCHEMA":
            name = _schema_name(expression)
            if expression.args.get("exists"):
                return self.create_schema_if_not_exists(name)
            return Statement(f"ATTACH DATABASE ':memory:' AS {self.quote(name)}")

        if isinstance(expression, exp.Drop) and _kind(expression) == "SCHEMA":
            name = _schema_name(expression)
            return Statement(
                f"DETACH DATABASE {self.quote(name)}",
                if_schema_exists=name if expression.args.get("exists") else None,
            )

        if isinstance(expression, exp.Create) and _kind(expression) == "INDEX":
            _qualify_index(expression)
        if isinstance(expression, (exp.Create, exp.Alter)):
            _unqualify_references(expression, permissive=hints.parse_for_catalog)

        sql = self._generate(expression, hints)

        if isinstance(expression, exp.Comment):
            if not hints.parse_for_catalog:
                raise TranslationError(
                    f"COMMENT ON is not supported by {self.name}",
                    context=ErrorContext(statement=sql, dialect=self.name),
                )
            return Statement(sql, ignored=True)

        if isinstance(expression, exp.Alter) and _kind(expression) == "TABLE":
            constraints = _added_constraints(expression)
            table = _target_table(expression)
            if constraints is not None and table is not None:
                rebuild = TableRebuild(table.db or None, table.name, constraints)
                return Statement(sql, rebuild=rebuild)

        kind = StatementKind.QUERY if isinstance(expression, exp.Query) else StatementKind.MUTATION
        return Statement(sql, kind=kind)

    def _generate(self, expression: exp.Expression, hints: ExecutionHints) -> str:
        level = ErrorLevel.IGNORE if hints.parse_for_catalog else ErrorLevel.RAISE
        try:
            return expression.sql(dialect=self.sqlglot_dialect, unsupported_level=level)
        except SqlglotError as e:
            raise TranslationError(
                f"Cannot render statement for {self.name}: {e}",
                context=ErrorContext(statement=expression.sql(), dialect=self.name),
                cause=e,
            ) from e

    def create_schema_if_not_exists(self, name: str) -> Statement:
        return Statement(
            f"ATTACH DATABASE ':memory:' AS {self.quote(name)}",
            unless_schema_exists=name,
        )

    def has_schema(self, connection: Any, name: str) -> bool:
        rows = connection.exec_driver_sql("PRAGMA database_list").fetchall()
        return any(row[1].lower() == name.lower() for row in rows)

    def rebuild_table(self, connection: Any, rebuild: TableRebuild) -> int:
        """Add constraints by copying the table into a new definition.

        Follows SQLite's documented recipe for schema changes ``ALTER TABLE``
        cannot make: create the new table, copy the rows, drop the old table,
        rename, then recreate its indexes. Triggers are not carried over.
        """
        schema = self.quote(rebuild.schema or "main")
        if not connection.exec_driver_sql(
            f"PRAGMA {schema}.table_info({self.quote(rebuild.table)})"
        ).fetchall():
            # Let the interpreter report the missing table in its own words.
            connection.exec_driver_sql(f"SELECT * FROM {schema}.{self.quote(rebuild.table)}")

        rows = connection.exec_driver_sql(
            f"SELECT type, name, sql FROM {schema}.sqlite_master "
            "WHERE lower(tbl_name) = lower(?) AND type IN ('table', 'index') "
            "AND sql IS NOT NULL",
            (rebuild.table,),
        ).fetchall()
        table = next(name for type_, name, _ in rows if type_ == "table")
        staging = f"{table}__rebuild"

        try:
            create = sqlglot.parse_one(
                next(sql for type_, _, sql in rows if type_ == "table"),
                read=self.sqlglot_dialect,
            )
            columns = create.this
            for constraint in rebuild.constraints:
                columns.append("expressions", constraint.copy())
            columns.set("this", exp.Table(
                this=exp.to_identifier(staging, quoted=True),
                db=exp.to_identifier(rebuild.schema or "main", quoted=True),
            ))
            indexes = []
            for sql in (sql for type_, _, sql in rows if type_ == "index"):
                index = sqlglot.parse_one(sql, read=self.sqlglot_dialect)
                _qualify_index(index, rebuild.schema or "main")
                indexes.append(index.sql(dialect=self.sqlglot_dialect))
            create_sql = create.sql(dialect=self.sqlglot_dialect)
        except SqlglotError as e:
            raise TranslationError(
                f"Cannot rebuild table {rebuild.table} for {self.name}: {e}",
                context=ErrorContext(schema=rebuild.schema, dialect=self.name),
                cause=e,
            ) from e

        source = f"{schema}.{self.quote(table)}"
        target = f"{schema}.{self.quote(staging)}"
        # Rename without rewriting or re-checking views on the old name.
        connection.exec_driver_sql("PRAGMA legacy_alter_table = ON")
        try:
            connection.exec_driver_sql(create_sql)
            copied = connection.exec_driver_sql(f"INSERT INTO {target} SELECT * FROM {source}")
            connection.exec_driver_sql(f"DROP TABLE {source}")
            connection.exec_driver_sql(f"ALTER TABLE {target} RENAME TO {self.quote(table)}")
            for sql in indexes:
                connection.exec_driver_sql(sql)
        finally:
            connection.exec_driver_sql("PRAGMA legacy_alter_table = OFF")
        return copied.rowcount

    def classify(self, error: BaseException) -> FailureSignature:
        message = str(getattr(error, "orig", None) or error)

        match = self._UNKNOWN_DATABASE.search(message)
        if match:
            schema = match.group(1).strip('"`[]')
            return FailureSignature(FailureCode.SCHEMA_NOT_FOUND, f'Schema "{schema}" not found')
        if self._NOT_FOUND.search(message):
            return FailureSignature(FailureCode.OBJECT_NOT_FOUND, message)
        if self._EXISTS.search(message):
            return FailureSignature(FailureCode.OBJECT_EXISTS, message)
        if self._SYNTAX.search(message):
            return FailureSignature(FailureCode.SYNTAX_ERROR, message)
        if self._CONSTRAINT.search(message):
            return FailureSignature(FailureCode.CONSTRAINT_VIOLATION, message)
        return FailureSignature(FailureCode.UNKNOWN, message or None)


# =============================================================================
# Dialect registry
# =============================================================================

_DIALECTS: dict[str, InterpreterDialect] = {
    "sqlite": SQLiteInterpreterDialect(),
}


def get_interpreter_dialect(name: str) -> InterpreterDialect:
    """Get an interpreter dialect by name.

    Raises:
        InvalidConfigError: If ``name`` is not registered.
    """
    key = name.lower()
    if key not in _DIALECTS:
        raise InvalidConfigError(
            "interpreter_dialect",
            name,
            f"Unknown interpreter dialect '{name}'. Supported: {sorted(_DIALECTS)}",
        )
    return _DIALECTS[key]


__all__ = [
    "InterpreterDialect",
    "SQLiteInterpreterDialect",
    "get_interpreter_dialect",
]
