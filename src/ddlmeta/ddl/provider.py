"""Translating meta provider.

``TranslatingMetaProvider`` is the entry point: it replays DDL scripts on a
disposable interpreter database and returns the structure they produce.

Examples:
    >>> from ddlmeta import TranslatingMetaProvider
    >>> provider = TranslatingMetaProvider(
    ...     "CREATE TABLE s1.t (id INT)",
    ...     "CREATE TABLE s2.u (id INT)",
    ... )
    >>> provider.provide().schema_names
    ('main', 's1', 's2')
"""

from __future__ import annotations

from pathlib import Path

from ddlmeta.core.logging import get_logger
from ddlmeta.core.protocols import ConnectionProvider, Source
from ddlmeta.core.settings import DDLMetaSettings, get_settings
from ddlmeta.ddl.connection import EngineConnectionProvider
from ddlmeta.ddl.parser import ScriptParser
from ddlmeta.ddl.repair import SchemaRepairPolicy
from ddlmeta.ddl.replay import ReplayEngine
from ddlmeta.ddl.scratch import ScratchContext
from ddlmeta.ddl.snapshot import Snapshot, SnapshotCapturer
from ddlmeta.ddl.sources import source_of

logger = get_logger(__name__)


class TranslatingMetaProvider:
    """Produces a :class:`Snapshot` by interpreting DDL scripts.

    Each ``provide()`` call acquires its own connection and releases it
    before returning or raising. No partial snapshot is ever returned.
    """

    def __init__(
        self,
        *sources: Source | Path | str,
        settings: DDLMetaSettings | None = None,
        connection_provider: ConnectionProvider | None = None,
        capturer: SnapshotCapturer | None = None,
    ):
        self.sources = tuple(source_of(source) for source in sources)
        self.settings = settings or get_settings()
        self.connection_provider = connection_provider or EngineConnectionProvider.from_url(
            self.settings.interpreter_url
        )
        self.capturer = capturer or SnapshotCapturer()

    def provide(self) -> Snapshot:
        with ScratchContext.open(self.settings, self.connection_provider) as scratch:
            engine = ReplayEngine(
                scratch.handle,
                ScriptParser.from_settings(self.settings),
                SchemaRepairPolicy(scratch.dialect),
                max_schema_repairs=self.settings.max_schema_repairs,
            )
            report = engine.replay(self.sources)
            snapshot = self.capturer.capture(scratch)

        logger.info(
            "ddl.snapshot_captured",
            scripts=report.scripts,
            statements=len(report.statements),
            created_schemas=report.created_schemas,
            schemas=list(snapshot.schema_names),
        )
        return snapshot


def snapshot_of(
    *sources: Source | Path | str,
    settings: DDLMetaSettings | None = None,
) -> Snapshot:
    """Shorthand for ``TranslatingMetaProvider(*sources, settings=settings).provide()``."""
    return TranslatingMetaProvider(*sources, settings=settings).provide()


__all__ = ["TranslatingMetaProvider", "snapshot_of"]
