"""Identifier case normalization.

:class:`NameNormalizer` rewrites every identifier part of a statement
according to a :class:`~ddlmeta.core.settings.RenderNameCase` policy while
the statement is being prepared. It is passed explicitly to
:func:`~ddlmeta.ddl.statements.prepare_statement` as the ``name_transform``.

Policies:
    AS_IS               no change
    LOWER / UPPER       rewrite every part, quoted or not, into a quoted
                        identifier holding the case-converted text
    *_IF_UNQUOTED       leave quoted parts alone, otherwise as the forced case

A part that needs no change is returned as the same object, which makes the
normalizer idempotent and lets callers detect "nothing changed" by identity.
"""

from __future__ import annotations

import re

from sqlglot import exp

from ddlmeta.core.settings import RenderNameCase


# Languages whose dotted/dotless i do not follow the default case mapping.
_DOTTED_I_LANGUAGES = frozenset({"tr", "az"})


def _language(locale: str | None) -> str | None:
    if not locale:
        return None
    return re.split(r"[-_.@]", locale, maxsplit=1)[0].lower()


def convert_case(text: str, *, upper: bool, locale: str | None = None) -> str:
    """Case-convert *text* using the rules of *locale*.

    >>> convert_case("id", upper=True, locale="tr_TR")
    'İD'
    >>> convert_case("ID", upper=False, locale="tr_TR")
    'ıd'
    """
    if _language(locale) in _DOTTED_I_LANGUAGES:
        if upper:
            text = text.replace("i", "İ")
        else:
            text = text.replace("İ", "i").replace("I", "ı")
    return text.upper() if upper else text.lower()


class NameNormalizer:
    """Applies a case policy to identifier parts."""

    def __init__(self, name_case: RenderNameCase, locale: str | None = None):
        self.name_case = RenderNameCase(name_case)
        self.locale = locale

    def normalize_part(self, part: exp.Identifier) -> exp.Identifier:
        """Normalize one name part; returns *part* itself when unchanged."""
        match self.name_case:
            case RenderNameCase.AS_IS:
                return part
            case RenderNameCase.LOWER_IF_UNQUOTED | RenderNameCase.UPPER_IF_UNQUOTED if part.quoted:
                return part

        upper = self.name_case in (RenderNameCase.UPPER, RenderNameCase.UPPER_IF_UNQUOTED)
        text = convert_case(part.name, upper=upper, locale=self.locale)
        if part.quoted and text == part.name:
            return part
        return exp.Identifier(this=text, quoted=True)

    def normalize(self, parts: tuple[exp.Identifier, ...]) -> tuple[exp.Identifier, ...]:
        """Normalize a multi-part name; returns *parts* itself when no part changes."""
        normalized = tuple(self.normalize_part(part) for part in parts)
        if all(new is old for new, old in zip(normalized, parts)):
            return parts
        return normalized

    def __call__(self, node: exp.Expression) -> exp.Expression:
        # Hook for Expression.transform: only identifiers are rewritten.
        if isinstance(node, exp.Identifier):
            return self.normalize_part(node)
        return node

    def __repr__(self) -> str:
        return f"NameNormalizer({self.name_case.value}, locale={self.locale!r})"


__all__ = ["convert_case", "NameNormalizer"]
