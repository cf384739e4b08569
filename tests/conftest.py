"""
Shared pytest fixtures and configuration for ddl-meta tests.

This module provides:
- structlog reset between tests (log capture relies on uncached loggers)
- Settings fixtures
- Fakes for the replay engine's collaborators: a counting connection
  provider, a recording execution handle and failing sources

Usage:
    Fixtures are auto-discovered by pytest:

    def test_something(counting_provider, settings):
        ...
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

# Ensure ddlmeta package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ddlmeta.core.errors import ExecutionError, FailureCode, FailureSignature
from ddlmeta.core.result import Err, Ok
from ddlmeta.core.settings import DDLMetaSettings
from ddlmeta.ddl.connection import EngineConnectionProvider
from ddlmeta.ddl.dialect import get_interpreter_dialect
from ddlmeta.ddl.execution import StatementOutcome
from ddlmeta.ddl.statements import Statement


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults before and after each test."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def settings() -> DDLMetaSettings:
    """Default settings, independent of the environment and any .env file."""
    return DDLMetaSettings(_env_file=None)


# =============================================================================
# Fakes
# =============================================================================


class CountingProvider:
    """ConnectionProvider wrapper that counts acquire/release calls."""

    def __init__(self, delegate: Any = None, *, fail_release: bool = False):
        self.delegate = delegate or EngineConnectionProvider.from_url("sqlite://")
        self.fail_release = fail_release
        self.acquired = 0
        self.released = 0
        self.connections: list[Any] = []

    def acquire(self) -> Any:
        self.acquired += 1
        connection = self.delegate.acquire()
        self.connections.append(connection)
        return connection

    def release(self, connection: Any) -> None:
        self.released += 1
        self.delegate.release(connection)
        if self.fail_release:
            raise RuntimeError("release failed")


class BrokenSource:
    """Source whose reader cannot be opened."""

    name = "broken.sql"

    def reader(self):
        raise OSError("disk on fire")


class RecordingHandle:
    """Execution handle fake that tracks schemas instead of running SQL.

    ``requires`` maps statement SQL to the schemas it needs, in the order the
    interpreter would complain about them. Corrective statements (those with
    ``unless_schema_exists``) create their schema unless listed in
    ``broken_schemas``; schemas in ``sticky_schemas`` are "created" but never
    become visible.
    """

    def __init__(
        self,
        requires: dict[str, list[str]] | None = None,
        *,
        failures: dict[str, FailureSignature] | None = None,
        broken_schemas: set[str] | None = None,
        sticky_schemas: set[str] | None = None,
    ):
        self.dialect = get_interpreter_dialect("sqlite")
        self.requires = requires or {}
        self.failures = failures or {}
        self.broken_schemas = broken_schemas or set()
        self.sticky_schemas = sticky_schemas or set()
        self.schemas: set[str] = set()
        self.executed: list[str] = []
        self.errors: list[ExecutionError] = []

    def prepare(self, expression) -> Statement:
        return Statement(expression.sql())

    def run(self, statement: Statement):
        self.executed.append(statement.sql)

        schema = statement.unless_schema_exists
        if schema is not None:
            if schema in self.broken_schemas:
                return Err(self._error(statement, FailureSignature(FailureCode.UNKNOWN, "boom")))
            if schema not in self.sticky_schemas:
                self.schemas.add(schema)
            return Ok(StatementOutcome(statement, update_count=0))

        if statement.sql in self.failures:
            return Err(self._error(statement, self.failures[statement.sql]))

        for needed in self.requires.get(statement.sql, []):
            if needed not in self.schemas:
                failure = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, f'Schema "{needed}" not found')
                return Err(self._error(statement, failure))

        return Ok(StatementOutcome(statement, update_count=0))

    def _error(self, statement: Statement, failure: FailureSignature) -> ExecutionError:
        error = ExecutionError(f"failed: {statement.sql}", failure=failure)
        self.errors.append(error)
        return error


@pytest.fixture
def counting_provider() -> CountingProvider:
    return CountingProvider()


@pytest.fixture
def recording_handle() -> RecordingHandle:
    return RecordingHandle()
