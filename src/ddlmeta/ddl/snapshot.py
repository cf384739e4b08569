"""
Immutable structural snapshot of the interpreter catalog.

After replay, :class:`SnapshotCapturer` walks the interpreter database with
SQLAlchemy's ``Inspector`` and copies everything it finds into frozen
dataclasses. The snapshot holds no reference to the connection, so it stays
usable after the scratch context has been released.

Architecture:
    ::

        Snapshot(dialect)
        └── SchemaSnapshot            (discovery order: main, then attached)
            ├── TableSnapshot
            │   ├── ColumnSnapshot    (type rendered as interpreter SQL)
            │   ├── PrimaryKeySnapshot
            │   ├── ForeignKeySnapshot
            │   ├── UniqueConstraintSnapshot
            │   ├── CheckConstraintSnapshot
            │   └── IndexSnapshot
            └── ViewSnapshot          (definition text)

Examples:
    >>> with ScratchContext.open(settings, provider) as scratch:
    ...     ReplayEngine(scratch.handle, parser, policy).replay(sources)
    ...     snapshot = SnapshotCapturer().capture(scratch)
    >>> snapshot.schema("s1").table("t").columns[0].name
    'id'

Guardrails:
    - All collections are tuples; all dataclasses are frozen
    - Capture reads the catalog only; it never executes DDL

Tags:
    snapshot, catalog, inspector, sqlalchemy, ddl-meta
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import NullType

from ddlmeta.core.errors import ErrorContext, ExecutionError
from ddlmeta.core.logging import get_logger

if TYPE_CHECKING:
    from ddlmeta.ddl.scratch import ScratchContext

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ColumnSnapshot:
    name: str
    type: str
    nullable: bool = True
    default: str | None = None


@dataclass(frozen=True, slots=True)
class PrimaryKeySnapshot:
    name: str | None
    columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ForeignKeySnapshot:
    name: str | None
    columns: tuple[str, ...]
    referred_schema: str | None
    referred_table: str
    referred_columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class UniqueConstraintSnapshot:
    name: str | None
    columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CheckConstraintSnapshot:
    name: str | None
    sqltext: str


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    name: str | None
    # Expression index members are rendered as None by the inspector.
    columns: tuple[str | None, ...]
    unique: bool = False


@dataclass(frozen=True, slots=True)
class TableSnapshot:
    name: str
    columns: tuple[ColumnSnapshot, ...] = ()
    primary_key: PrimaryKeySnapshot | None = None
    foreign_keys: tuple[ForeignKeySnapshot, ...] = ()
    unique_constraints: tuple[UniqueConstraintSnapshot, ...] = ()
    check_constraints: tuple[CheckConstraintSnapshot, ...] = ()
    indexes: tuple[IndexSnapshot, ...] = ()

    def column(self, name: str) -> ColumnSnapshot | None:
        return next((c for c in self.columns if c.name == name), None)


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    name: str
    definition: str | None = None


@dataclass(frozen=True, slots=True)
class SchemaSnapshot:
    name: str
    tables: tuple[TableSnapshot, ...] = ()
    views: tuple[ViewSnapshot, ...] = ()

    def table(self, name: str) -> TableSnapshot | None:
        return next((t for t in self.tables if t.name == name), None)

    def view(self, name: str) -> ViewSnapshot | None:
        return next((v for v in self.views if v.name == name), None)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Structural snapshot of every schema the replay produced."""

    dialect: str
    schemas: tuple[SchemaSnapshot, ...] = ()

    @property
    def schema_names(self) -> tuple[str, ...]:
        return tuple(schema.name for schema in self.schemas)

    @property
    def tables(self) -> tuple[TableSnapshot, ...]:
        return tuple(table for schema in self.schemas for table in schema.tables)

    def schema(self, name: str) -> SchemaSnapshot | None:
        return next((s for s in self.schemas if s.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, e.g. for JSON output."""
        return asdict(self)


def _render_type(type_: Any, dialect: Any) -> str:
    if isinstance(type_, NullType):
        return ""
    return str(type_.compile(dialect=dialect))


def _default(value: Any) -> str | None:
    return None if value is None else str(value)


class SnapshotCapturer:
    """Reads the interpreter catalog of a scratch context into a :class:`Snapshot`."""

    def capture(self, scratch: ScratchContext) -> Snapshot:
        """Capture every schema visible on *scratch*.

        Raises:
            ExecutionError: If the catalog cannot be read.
        """
        connection = scratch.connection
        dialect_name = scratch.dialect.name
        try:
            inspector = inspect(connection)
            schemas = tuple(
                self._schema(inspector, name, connection.dialect)
                for name in inspector.get_schema_names()
            )
        except SQLAlchemyError as e:
            raise ExecutionError(
                f"Could not read the interpreter catalog: {e}",
                failure=scratch.dialect.classify(e),
                context=ErrorContext(dialect=dialect_name),
                cause=e,
            ) from e

        snapshot = Snapshot(dialect=dialect_name, schemas=schemas)
        logger.debug(
            "ddl.catalog_read",
            schemas=list(snapshot.schema_names),
            tables=len(snapshot.tables),
        )
        return snapshot

    def _schema(self, inspector: Inspector, schema: str, dialect: Any) -> SchemaSnapshot:
        tables = tuple(
            self._table(inspector, schema, name, dialect)
            for name in inspector.get_table_names(schema=schema)
        )
        views = tuple(
            ViewSnapshot(name, inspector.get_view_definition(name, schema=schema))
            for name in inspector.get_view_names(schema=schema)
        )
        return SchemaSnapshot(schema, tables, views)

    def _table(self, inspector: Inspector, schema: str, table: str, dialect: Any) -> TableSnapshot:
        columns = tuple(
            ColumnSnapshot(
                name=column["name"],
                type=_render_type(column["type"], dialect),
                nullable=bool(column.get("nullable", True)),
                default=_default(column.get("default")),
            )
            for column in inspector.get_columns(table, schema=schema)
        )

        pk = inspector.get_pk_constraint(table, schema=schema)
        primary_key = None
        if pk and pk.get("constrained_columns"):
            primary_key = PrimaryKeySnapshot(pk.get("name"), tuple(pk["constrained_columns"]))

        foreign_keys = tuple(
            ForeignKeySnapshot(
                name=fk.get("name"),
                columns=tuple(fk["constrained_columns"]),
                referred_schema=fk.get("referred_schema"),
                referred_table=fk["referred_table"],
                referred_columns=tuple(fk["referred_columns"]),
            )
            for fk in inspector.get_foreign_keys(table, schema=schema)
        )
        uniques = tuple(
            UniqueConstraintSnapshot(uc.get("name"), tuple(uc["column_names"]))
            for uc in inspector.get_unique_constraints(table, schema=schema)
        )
        checks = tuple(
            CheckConstraintSnapshot(cc.get("name"), cc["sqltext"])
            for cc in inspector.get_check_constraints(table, schema=schema)
        )
        indexes = tuple(
            IndexSnapshot(ix.get("name"), tuple(ix["column_names"]), bool(ix.get("unique")))
            for ix in inspector.get_indexes(table, schema=schema)
        )

        return TableSnapshot(
            name=table,
            columns=columns,
            primary_key=primary_key,
            foreign_keys=foreign_keys,
            unique_constraints=uniques,
            check_constraints=checks,
            indexes=indexes,
        )


__all__ = [
    "ColumnSnapshot",
    "PrimaryKeySnapshot",
    "ForeignKeySnapshot",
    "UniqueConstraintSnapshot",
    "CheckConstraintSnapshot",
    "IndexSnapshot",
    "TableSnapshot",
    "ViewSnapshot",
    "SchemaSnapshot",
    "Snapshot",
    "SnapshotCapturer",
]
