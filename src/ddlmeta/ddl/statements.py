"""Statements prepared for the interpreter database.

A parsed sqlglot expression becomes a :class:`Statement` in
:func:`prepare_statement`: identifiers are passed through the optional name
transform, storage clauses are stripped when the handle asks for it, and the
interpreter dialect renders the final SQL.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from sqlglot import exp

if TYPE_CHECKING:
    from ddlmeta.ddl.dialect import InterpreterDialect


NameTransform = Callable[[exp.Expression], exp.Expression]


class StatementKind(str, Enum):
    """Whether a statement produces rows or an update count."""

    QUERY = "QUERY"
    MUTATION = "MUTATION"


@dataclass(frozen=True, slots=True)
class ExecutionHints:
    """Interpretation hints marked on an execution handle.

    ignore_storage_clauses
        Drop engine, partitioning, tablespace and similar properties from
        ``CREATE`` statements.
    parse_for_catalog
        Render permissively: constructs the interpreter does not support are
        dropped instead of failing the statement.
    """

    ignore_storage_clauses: bool = False
    parse_for_catalog: bool = False


@dataclass(frozen=True, slots=True)
class TableRebuild:
    """Constraints to add to an existing table by recreating it.

    Used by interpreters whose ``ALTER TABLE`` cannot add constraints.
    """

    schema: str | None
    table: str
    constraints: tuple[exp.Expression, ...]


@dataclass(frozen=True, slots=True)
class Statement:
    """Interpreter SQL plus what the handle needs to run it."""

    sql: str
    kind: StatementKind = StatementKind.MUTATION
    # Skip when the named schema already exists / is missing.
    unless_schema_exists: str | None = None
    if_schema_exists: str | None = None
    # Carried out by the dialect instead of running ``sql``.
    rebuild: TableRebuild | None = None
    # Accepted, but leaves no trace in the catalog (e.g. ``COMMENT ON``).
    ignored: bool = False

    def __str__(self) -> str:
        return self.sql


# Property types that only describe physical storage.
STORAGE_PROPERTIES: frozenset[str] = frozenset(
    {
        "AlgorithmProperty",
        "AutoIncrementProperty",
        "BlockCompressionProperty",
        "CharacterSetProperty",
        "ChecksumProperty",
        "ClusteredByProperty",
        "CollateProperty",
        "CompressProperty",
        "DataBlocksizeProperty",
        "DistKeyProperty",
        "DistStyleProperty",
        "EngineProperty",
        "FallbackProperty",
        "FileFormatProperty",
        "FreespaceProperty",
        "IsolatedLoadingProperty",
        "JournalProperty",
        "LocationProperty",
        "LogProperty",
        "MergeBlockRatioProperty",
        "PartitionedByProperty",
        "PartitionedOfProperty",
        "RowFormatDelimitedProperty",
        "RowFormatProperty",
        "RowFormatSerdeProperty",
        "SortKeyProperty",
        "StorageHandlerProperty",
        "TablespaceProperty",
        "WithDataProperty",
    }
)


def strip_storage_clauses(expression: exp.Expression) -> exp.Expression:
    """Remove storage properties from every ``CREATE`` in *expression* (in place)."""
    for create in expression.find_all(exp.Create):
        properties = create.args.get("properties")
        if not properties:
            continue
        kept = [
            prop
            for prop in properties.expressions
            if type(prop).__name__ not in STORAGE_PROPERTIES
        ]
        if len(kept) == len(properties.expressions):
            continue
        if kept:
            properties.set("expressions", kept)
        else:
            create.set("properties", None)
    return expression


def prepare_statement(
    expression: exp.Expression,
    dialect: InterpreterDialect,
    *,
    hints: ExecutionHints = ExecutionHints(),
    name_transform: NameTransform | None = None,
) -> Statement:
    """Turn a parsed expression into an interpreter :class:`Statement`.

    The parsed expression is never mutated; preparation works on a copy.
    """
    prepared = expression.copy()
    if name_transform is not None:
        prepared = prepared.transform(name_transform, copy=False)
    if hints.ignore_storage_clauses:
        prepared = strip_storage_clauses(prepared)
    return dialect.render(prepared, hints)


__all__ = [
    "NameTransform",
    "StatementKind",
    "ExecutionHints",
    "TableRebuild",
    "Statement",
    "STORAGE_PROPERTIES",
    "strip_storage_clauses",
    "prepare_statement",
]
