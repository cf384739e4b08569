"""Tests for ddlmeta.ddl.repair: schema auto-repair policy."""

import pytest

from ddlmeta.core.errors import FailureCode, FailureSignature
from ddlmeta.ddl.dialect import get_interpreter_dialect
from ddlmeta.ddl.repair import SchemaRepairPolicy


@pytest.fixture
def policy() -> SchemaRepairPolicy:
    return SchemaRepairPolicy(get_interpreter_dialect("sqlite"))


class TestDecide:
    """decide() returns a corrective statement only for missing schemas."""

    def test_schema_not_found_with_quoted_name(self, policy):
        statement = policy.decide(FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "s1" not found'))
        assert statement is not None
        assert statement.unless_schema_exists == "s1"
        assert '"s1"' in statement.sql

    def test_first_quoted_segment_wins(self, policy):
        failure = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "a" not found near "b"')
        assert policy.missing_schema(failure) == "a"

    def test_multiline_cause(self, policy):
        failure = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'line 1\nSchema "S2"\nnot found')
        assert policy.missing_schema(failure) == "S2"

    def test_other_code_not_repaired(self, policy):
        failure = FailureSignature(FailureCode.OBJECT_NOT_FOUND, 'Table "t" not found')
        assert policy.decide(failure) is None

    def test_missing_cause_not_repaired(self, policy):
        assert policy.decide(FailureSignature(FailureCode.SCHEMA_NOT_FOUND)) is None

    def test_unquoted_cause_not_repaired(self, policy):
        failure = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, "Schema s1 not found")
        assert policy.decide(failure) is None

    def test_empty_quoted_name_not_repaired(self, policy):
        failure = FailureSignature(FailureCode.SCHEMA_NOT_FOUND, 'Schema "" not found')
        assert policy.decide(failure) is None
