"""Script sources.

Minimal :class:`~ddlmeta.core.protocols.Source` implementations for DDL
text held in memory or stored in a file, plus :func:`read_source`, which
drains a source exactly once.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import TextIO

from ddlmeta.core.errors import ErrorContext, ScriptReadError
from ddlmeta.core.protocols import Source


class StringSource:
    """DDL text held in memory."""

    def __init__(self, text: str, name: str = "<string>"):
        self._text = text
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def reader(self) -> TextIO:
        return io.StringIO(self._text)

    def __repr__(self) -> str:
        return f"StringSource(name={self._name!r})"


class FileSource:
    """DDL text stored in a file."""

    def __init__(self, path: Path | str, encoding: str = "utf-8"):
        self._path = Path(path)
        self._encoding = encoding

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    def reader(self) -> TextIO:
        return self._path.open(encoding=self._encoding)

    def __repr__(self) -> str:
        return f"FileSource({str(self._path)!r})"


def source_of(value: Source | Path | str) -> Source:
    """Coerce *value* to a source.

    ``Path`` values become :class:`FileSource`; strings are DDL text.
    """
    if isinstance(value, Path):
        return FileSource(value)
    if isinstance(value, str):
        return StringSource(value)
    return value


def read_source(source: Source) -> str:
    """Read the complete text of *source*.

    Raises:
        ScriptReadError: If the text cannot be obtained.
    """
    try:
        with source.reader() as reader:
            return reader.read()
    except (OSError, UnicodeError) as e:
        raise ScriptReadError(
            f"Could not read script {source.name}: {e}",
            context=ErrorContext(script=source.name),
            cause=e,
        ) from e


__all__ = ["StringSource", "FileSource", "source_of", "read_source"]
