"""Tests for ddlmeta.ddl.names: identifier case normalization."""

import pytest
import sqlglot
from sqlglot import exp

from ddlmeta.core.settings import RenderNameCase
from ddlmeta.ddl.names import NameNormalizer, convert_case


def ident(name: str, quoted: bool = False) -> exp.Identifier:
    return exp.Identifier(this=name, quoted=quoted)


class TestCasePolicies:
    """Each policy applied to quoted and unquoted parts."""

    def test_lower_if_unquoted_lowers_unquoted(self):
        result = NameNormalizer(RenderNameCase.LOWER_IF_UNQUOTED).normalize_part(ident("Foo"))
        assert result.name == "foo"
        assert result.quoted is True

    def test_lower_if_unquoted_keeps_quoted(self):
        part = ident("Foo", quoted=True)
        result = NameNormalizer(RenderNameCase.LOWER_IF_UNQUOTED).normalize_part(part)
        assert result is part
        assert result.name == "Foo"

    def test_upper_rewrites_unquoted_and_quoted(self):
        normalizer = NameNormalizer(RenderNameCase.UPPER)
        unquoted = normalizer.normalize_part(ident("Foo"))
        quoted = normalizer.normalize_part(ident("Foo", quoted=True))
        assert (unquoted.name, unquoted.quoted) == ("FOO", True)
        assert (quoted.name, quoted.quoted) == ("FOO", True)

    def test_lower_rewrites_quoted(self):
        result = NameNormalizer(RenderNameCase.LOWER).normalize_part(ident("MiXeD", quoted=True))
        assert result.name == "mixed"

    def test_upper_if_unquoted_keeps_quoted(self):
        part = ident("foo", quoted=True)
        assert NameNormalizer(RenderNameCase.UPPER_IF_UNQUOTED).normalize_part(part) is part

    def test_as_is_returns_part(self):
        part = ident("Foo")
        assert NameNormalizer(RenderNameCase.AS_IS).normalize_part(part) is part

    def test_accepts_policy_value_string(self):
        assert NameNormalizer("UPPER").name_case is RenderNameCase.UPPER


class TestIdempotence:
    """Normalizing twice equals normalizing once; compliant parts are untouched."""

    @pytest.mark.parametrize("policy", list(RenderNameCase))
    @pytest.mark.parametrize("quoted", [False, True])
    def test_twice_equals_once(self, policy, quoted):
        normalizer = NameNormalizer(policy)
        once = normalizer.normalize_part(ident("MixedCase", quoted=quoted))
        twice = normalizer.normalize_part(once)
        assert twice is once

    def test_compliant_quoted_part_not_replaced(self):
        part = ident("FOO", quoted=True)
        assert NameNormalizer(RenderNameCase.UPPER).normalize_part(part) is part

    def test_normalize_returns_same_tuple_when_unchanged(self):
        parts = (ident("s1", quoted=True), ident("t", quoted=True))
        assert NameNormalizer(RenderNameCase.LOWER).normalize(parts) is parts

    def test_normalize_rewrites_each_part_independently(self):
        parts = (ident("S1", quoted=True), ident("T"))
        result = NameNormalizer(RenderNameCase.LOWER_IF_UNQUOTED).normalize(parts)
        assert result is not parts
        assert result[0] is parts[0]
        assert (result[1].name, result[1].quoted) == ("t", True)


class TestTransformHook:
    """The normalizer used as an Expression.transform hook."""

    def test_rewrites_every_name_part(self):
        tree = sqlglot.parse_one('CREATE TABLE Sch.Tab (Id INT, "Keep" INT)')
        result = tree.transform(NameNormalizer(RenderNameCase.LOWER_IF_UNQUOTED))
        names = [(i.name, i.quoted) for i in result.find_all(exp.Identifier)]
        assert ("sch", True) in names
        assert ("tab", True) in names
        assert ("id", True) in names
        assert ("Keep", True) in names

    def test_non_identifier_nodes_returned_unchanged(self):
        node = exp.Literal.number(1)
        assert NameNormalizer(RenderNameCase.UPPER)(node) is node


class TestLocale:
    """Locale-sensitive case conversion."""

    def test_turkish_upper_dotted_i(self):
        assert convert_case("id", upper=True, locale="tr_TR") == "İD"

    def test_turkish_lower_dotless_i(self):
        assert convert_case("ID", upper=False, locale="tr") == "ıd"

    def test_default_locale(self):
        assert convert_case("id", upper=True) == "ID"
        assert convert_case("id", upper=True, locale="en_US") == "ID"

    def test_normalizer_uses_locale(self):
        normalizer = NameNormalizer(RenderNameCase.UPPER, locale="az-AZ")
        assert normalizer.normalize_part(ident("fix")).name == "FİX"
