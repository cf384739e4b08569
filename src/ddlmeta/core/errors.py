"""
Structured error types for ddl-meta.

Every failure the replay engine can surface is a ``DDLMetaError`` subclass
carrying a category, structured context (script, statement, schema) and the
chained underlying exception. Callers either receive a complete snapshot or
one of these errors, never a partial result.

Manifesto:
    - **Typed hierarchy:** Read, parse, execution and lifecycle failures are
      distinct types, so callers can react without string matching
    - **Failure signatures:** Execution errors carry a ``FailureSignature``
      (classification code + nested cause) that the repair policy inspects
    - **Rich context:** Errors carry the script and statement they came from
    - **Error chaining:** The driver or parser exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        DDLMetaError                           │
        │              (category, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │  SourceError        ParseError          DatabaseError         │
        │  (SOURCE)           (PARSE)             (DATABASE)            │
        │      │                  │                   │                 │
        │  ScriptReadError    DDLParseError       ExecutionError        │
        │                     TranslationError    RepairLimitError      │
        │                                         ScratchContextError   │
        │                                         ReleaseError          │
        │                                                               │
        │  ConfigError                                                  │
        │  (CONFIG)                                                     │
        │      │                                                        │
        │  InvalidConfigError                                           │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ExecutionError(
    ...     "statement failed",
    ...     failure=FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "s1" not found'),
    ... )
    >>> error.failure.code
    <FailureCode.SCHEMA_NOT_FOUND: 'SCHEMA_NOT_FOUND'>
    >>> error.to_dict()["category"]
    'DATABASE'

Guardrails:
    ❌ DON'T: Raise plain exceptions from the replay path
    ✅ DO: Wrap driver and parser errors with ``cause=``

    ❌ DON'T: Match on error messages to decide recoverability
    ✅ DO: Inspect ``ExecutionError.failure.code``

Tags:
    error-handling, exception-hierarchy, failure-signature, ddl-meta
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and reporting."""

    SOURCE = "SOURCE"             # Script text could not be obtained
    PARSE = "PARSE"               # Invalid syntax, untranslatable statement
    DATABASE = "DATABASE"         # Interpreter execution, connection lifecycle
    CONFIG = "CONFIG"             # Missing or invalid settings
    INTERNAL = "INTERNAL"         # Misuse, e.g. a released scratch context


class FailureCode(str, Enum):
    """Stable classification codes for interpreter execution failures."""

    SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    OBJECT_EXISTS = "OBJECT_EXISTS"
    SYNTAX_ERROR = "SYNTAX_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True, slots=True)
class FailureSignature:
    """Classification code plus the optional nested cause message."""

    code: FailureCode
    cause: str | None = None

    def __str__(self) -> str:
        if self.cause:
            return f"{self.code.value}: {self.cause}"
        return self.code.value


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        script: Name of the script being replayed
        statement: SQL of the statement that failed
        schema: Schema name involved (repairs, missing schemas)
        dialect: Interpreter or parse dialect
        metadata: Additional key-value pairs
    """

    script: str | None = None
    statement: str | None = None
    schema: str | None = None
    dialect: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["script", "statement", "schema", "dialect"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DDLMetaError(Exception):
    """
    Base exception for all ddl-meta errors.

    Subclasses set ``default_category``. The ``cause`` is chained as
    ``__cause__`` so tracebacks show the original driver or parser error.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DDLMetaError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ScriptReadError("unreadable").with_context(script="01_core.sql")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(DDLMetaError):
    """Error obtaining script text."""

    default_category = ErrorCategory.SOURCE


class ScriptReadError(SourceError):
    """Script text could not be read."""

    pass


# =============================================================================
# PARSE ERRORS
# =============================================================================


class ParseError(DDLMetaError):
    """Error turning script text into interpreter statements."""

    default_category = ErrorCategory.PARSE


class DDLParseError(ParseError):
    """Script text is not valid syntax for the configured dialect."""

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.line = line
        self.column = column

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        return result


class TranslationError(ParseError):
    """Statement parsed but cannot be rendered for the interpreter."""

    pass


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(DDLMetaError):
    """Interpreter database error."""

    default_category = ErrorCategory.DATABASE


class ExecutionError(DatabaseError):
    """A statement failed on the interpreter database."""

    def __init__(
        self,
        message: str,
        *,
        failure: FailureSignature | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.failure = failure or FailureSignature(FailureCode.UNKNOWN)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["failure_code"] = self.failure.code.value
        if self.failure.cause is not None:
            result["failure_cause"] = self.failure.cause
        return result


class RepairLimitError(ExecutionError):
    """The same missing schema kept failing after being repaired."""

    pass


class ScratchContextError(DatabaseError):
    """The scratch context could not be set up."""

    pass


class ReleaseError(DatabaseError):
    """The scratch connection could not be released."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DDLMetaError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


__all__ = [
    "ErrorCategory",
    "FailureCode",
    "FailureSignature",
    "ErrorContext",
    "DDLMetaError",
    "SourceError",
    "ScriptReadError",
    "ParseError",
    "DDLParseError",
    "TranslationError",
    "DatabaseError",
    "ExecutionError",
    "RepairLimitError",
    "ScratchContextError",
    "ReleaseError",
    "ConfigError",
    "InvalidConfigError",
]
