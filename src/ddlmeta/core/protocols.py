"""
Canonical protocol definitions for ddl-meta.

The replay engine consumes its collaborators through these structural
protocols, so tests can substitute fakes (counting providers, recording
handles) without inheritance.

Architecture:
    ::

        protocols.py
        ├── Source             : named script text, read once
        ├── ConnectionProvider : acquire()/release() of interpreter connections
        └── MetaProvider       : provide() -> Snapshot

Guardrails:
    ❌ DON'T: Release a connection you did not acquire
    ✅ DO: Pair every acquire() with exactly one release()

Tags:
    protocol, connection-provider, source, ddl-meta
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

if TYPE_CHECKING:
    from ddlmeta.ddl.snapshot import Snapshot


@runtime_checkable
class Source(Protocol):
    """A named script whose text is obtained through ``reader()``."""

    @property
    def name(self) -> str:
        """Human-readable script name used in logs and errors."""
        ...

    def reader(self) -> TextIO:
        """Open a character stream over the script text."""
        ...


@runtime_checkable
class ConnectionProvider(Protocol):
    """
    Hands out interpreter connections.

    Every ``acquire()`` must be matched by exactly one ``release()`` of the
    same connection, on every exit path.
    """

    def acquire(self) -> Any:
        """Acquire a connection."""
        ...

    def release(self, connection: Any) -> None:
        """Release a previously acquired connection."""
        ...


@runtime_checkable
class MetaProvider(Protocol):
    """Produces a structural snapshot."""

    def provide(self) -> Snapshot:
        ...


__all__ = ["Source", "ConnectionProvider", "MetaProvider"]
