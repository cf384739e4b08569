"""Tests for ddlmeta.core.errors module."""

import pytest

from ddlmeta.core.errors import (
    ConfigError,
    DatabaseError,
    DDLMetaError,
    DDLParseError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    FailureCode,
    FailureSignature,
    InvalidConfigError,
    ParseError,
    RepairLimitError,
    ScriptReadError,
    SourceError,
)


class TestFailureSignature:
    """FailureSignature value type."""

    def test_str_with_cause(self):
        signature = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "s1" not found')
        assert str(signature) == 'SCHEMA_NOT_FOUND: Schema "s1" not found'

    def test_str_without_cause(self):
        assert str(FailureSignature(FailureCode.UNKNOWN)) == "UNKNOWN"

    def test_frozen(self):
        signature = FailureSignature(FailureCode.UNKNOWN)
        with pytest.raises(AttributeError):
            signature.code = FailureCode.SYNTAX_ERROR


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_to_dict_excludes_none(self):
        ctx = ErrorContext(script="01_core.sql")
        assert ctx.to_dict() == {"script": "01_core.sql"}

    def test_to_dict_includes_metadata(self):
        ctx = ErrorContext(schema="s1", metadata={"attempt": 2})
        assert ctx.to_dict() == {"schema": "s1", "attempt": 2}


class TestHierarchy:
    """Categories follow the class hierarchy."""

    @pytest.mark.parametrize(
        "cls,category,base",
        [
            (ScriptReadError, ErrorCategory.SOURCE, SourceError),
            (DDLParseError, ErrorCategory.PARSE, ParseError),
            (ExecutionError, ErrorCategory.DATABASE, DatabaseError),
            (RepairLimitError, ErrorCategory.DATABASE, ExecutionError),
        ],
    )
    def test_default_category(self, cls, category, base):
        error = cls("boom")
        assert error.category is category
        assert isinstance(error, base)
        assert isinstance(error, DDLMetaError)

    def test_invalid_config(self):
        error = InvalidConfigError("interpreter_dialect", "h2")
        assert isinstance(error, ConfigError)
        assert error.category is ErrorCategory.CONFIG
        assert "interpreter_dialect" in error.message


class TestDDLMetaError:
    """Base error behaviour."""

    def test_cause_is_chained(self):
        cause = ValueError("root")
        error = DDLMetaError("wrapped", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "root"

    def test_with_context(self):
        error = ScriptReadError("unreadable").with_context(script="a.sql", reader="file")
        assert error.context.script == "a.sql"
        assert error.context.metadata == {"reader": "file"}

    def test_execution_error_to_dict(self):
        error = ExecutionError(
            "failed",
            failure=FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "s1" not found'),
            context=ErrorContext(statement="CREATE TABLE s1.t (id INT)"),
        )
        data = error.to_dict()
        assert data["error_type"] == "ExecutionError"
        assert data["category"] == "DATABASE"
        assert data["failure_code"] == "SCHEMA_NOT_FOUND"
        assert data["failure_cause"] == 'Schema "s1" not found'
        assert data["context"] == {"statement": "CREATE TABLE s1.t (id INT)"}

    def test_execution_error_default_failure(self):
        assert ExecutionError("x").failure.code is FailureCode.UNKNOWN

    def test_parse_error_position(self):
        data = DDLParseError("bad", line=3, column=7).to_dict()
        assert (data["line"], data["column"]) == (3, 7)
