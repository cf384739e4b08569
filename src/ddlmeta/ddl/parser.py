"""Script parsing.

:class:`ScriptParser` turns script text into the ordered list of sqlglot
expressions to replay. Regions delimited by ignore-comment markers are cut
out first when enabled, which is the documented escape hatch for SQL the
parser or interpreter cannot handle::

    /* [ddlmeta ignore start] */
    CREATE FUNCTION vendor_specific() ...;
    /* [ddlmeta ignore stop] */
"""

from __future__ import annotations

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ddlmeta.core.errors import DDLParseError, ErrorContext
from ddlmeta.core.settings import DDLMetaSettings

# Quoted literals and identifiers are matched so markers inside them are skipped.
_COMMENT = re.compile(
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
    r"|`(?:[^`]|``)*`"
    r"|(?P<comment>--[^\n]*|/\*.*?\*/)",
    re.DOTALL,
)


def strip_ignored_regions(text: str, start: str, stop: str) -> str:
    """Remove everything from a comment containing *start* through a comment containing *stop*.

    An unterminated region extends to the end of *text*.
    """
    kept: list[str] = []
    position = 0
    ignoring = False
    for match in _COMMENT.finditer(text):
        comment = match.group("comment")
        if comment is None:
            continue
        if not ignoring and start in comment:
            kept.append(text[position:match.start()])
            ignoring = True
        elif ignoring and stop in comment:
            position = match.end()
            ignoring = False
    if not ignoring:
        kept.append(text[position:])
    return "".join(kept)


class ScriptParser:
    """Parses DDL scripts written in *dialect* (sqlglot name, ``None`` = generic)."""

    def __init__(
        self,
        dialect: str | None = None,
        *,
        ignore_comments: bool = False,
        ignore_comment_start: str = "[ddlmeta ignore start]",
        ignore_comment_stop: str = "[ddlmeta ignore stop]",
    ):
        self.dialect = dialect
        self.ignore_comments = ignore_comments
        self.ignore_comment_start = ignore_comment_start
        self.ignore_comment_stop = ignore_comment_stop

    @classmethod
    def from_settings(cls, settings: DDLMetaSettings) -> ScriptParser:
        return cls(
            settings.parse_dialect,
            ignore_comments=settings.parse_ignore_comments,
            ignore_comment_start=settings.parse_ignore_comment_start,
            ignore_comment_stop=settings.parse_ignore_comment_stop,
        )

    def parse(self, text: str, *, script: str | None = None) -> list[exp.Expression]:
        """Parse *text* into statements, in script order.

        Raises:
            DDLParseError: If *text* is not valid for the configured dialect.
        """
        if self.ignore_comments:
            text = strip_ignored_regions(text, self.ignore_comment_start, self.ignore_comment_stop)

        try:
            expressions = sqlglot.parse(text, read=self.dialect)
        except SqlglotError as e:
            errors = getattr(e, "errors", None) or [{}]
            raise DDLParseError(
                f"Could not parse script {script or '<unnamed>'}: {e}",
                line=errors[0].get("line"),
                column=errors[0].get("col"),
                context=ErrorContext(script=script, dialect=self.dialect),
                cause=e,
            ) from e

        return [expression for expression in expressions if expression is not None]


__all__ = ["strip_ignored_regions", "ScriptParser"]
