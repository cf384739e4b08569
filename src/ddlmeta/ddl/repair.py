"""Schema auto-repair policy.

DDL scripts often reference schemas they never create (the target database
had them already). When a statement fails because its schema is missing,
:class:`SchemaRepairPolicy` answers with the statement that creates the
schema so the engine can retry. Every other failure is left alone.
"""

from __future__ import annotations

import re

from ddlmeta.core.errors import FailureCode, FailureSignature
from ddlmeta.ddl.dialect import InterpreterDialect
from ddlmeta.ddl.statements import Statement

# First double-quoted segment of the cause message.
P_NAME = re.compile(r'(?s:.*?"([^"]*)".*)')


class SchemaRepairPolicy:
    """Maps a failure signature to an optional corrective statement.

    Only ``FailureCode.SCHEMA_NOT_FOUND`` failures with a cause message that
    contains a non-empty double-quoted name are repairable.
    """

    def __init__(self, dialect: InterpreterDialect):
        self._dialect = dialect

    def missing_schema(self, failure: FailureSignature) -> str | None:
        """Name of the missing schema, or ``None`` if *failure* is not repairable."""
        if failure.code is not FailureCode.SCHEMA_NOT_FOUND or failure.cause is None:
            return None
        match = P_NAME.match(failure.cause)
        if match is None or not match.group(1):
            return None
        return match.group(1)

    def decide(self, failure: FailureSignature) -> Statement | None:
        """Corrective "create schema if not exists" statement, or ``None``."""
        name = self.missing_schema(failure)
        if name is None:
            return None
        return self._dialect.create_schema_if_not_exists(name)


__all__ = ["P_NAME", "SchemaRepairPolicy"]
