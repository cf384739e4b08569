"""Interpreter engine factory and connection provider.

The interpreter database must be disposable: every acquisition returns a
connection to a fresh in-memory database, and releasing it throws the
database away. For SQLite this means ``NullPool`` (no connection reuse) and
``AUTOCOMMIT`` (``ATTACH`` is not allowed inside a transaction).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import NullPool


def create_interpreter_engine(
    url: str = "sqlite://",
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine for the interpreter database.

    Parameters
    ----------
    url:
        Database URL. Defaults to in-memory SQLite.
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("poolclass", NullPool)
        kwargs.setdefault("isolation_level", "AUTOCOMMIT")
    return _sa_create_engine(url, echo=echo, **kwargs)


class EngineConnectionProvider:
    """``ConnectionProvider`` backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> EngineConnectionProvider:
        return cls(create_interpreter_engine(url, **kwargs))

    @property
    def engine(self) -> Engine:
        return self._engine

    def acquire(self) -> Connection:
        return self._engine.connect()

    def release(self, connection: Connection) -> None:
        connection.close()


__all__ = ["create_interpreter_engine", "EngineConnectionProvider"]
