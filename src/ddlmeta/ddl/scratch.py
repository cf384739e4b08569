"""Scratch context lifecycle.

A :class:`ScratchContext` owns one interpreter connection for the duration
of a single ``provide()`` call. Opening it acquires the connection, derives
an :class:`~ddlmeta.ddl.execution.ExecutionHandle`, marks the permissive
interpretation hints and installs the name normalizer. Closing it releases
the connection exactly once, whatever happened in between.

Usage::

    with ScratchContext.open(settings, provider) as scratch:
        ReplayEngine(scratch.handle, parser, policy).replay(sources)
        snapshot = SnapshotCapturer().capture(scratch)
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from ddlmeta.core.errors import ErrorCategory, ReleaseError, ScratchContextError
from ddlmeta.core.logging import get_logger
from ddlmeta.core.protocols import ConnectionProvider
from ddlmeta.core.settings import DDLMetaSettings, RenderNameCase
from ddlmeta.ddl.dialect import InterpreterDialect, get_interpreter_dialect
from ddlmeta.ddl.execution import ExecutionHandle
from ddlmeta.ddl.names import NameNormalizer

logger = get_logger(__name__)


class ScratchContext:
    """A disposable interpreter connection plus its execution handle."""

    def __init__(
        self,
        connection: Any,
        handle: ExecutionHandle,
        provider: ConnectionProvider,
    ):
        self._connection = connection
        self._handle = handle
        self._provider = provider
        self._released = False

    @classmethod
    def open(cls, settings: DDLMetaSettings, provider: ConnectionProvider) -> ScratchContext:
        """Acquire a connection and prepare it for DDL replay.

        Raises:
            InvalidConfigError: If the interpreter dialect is unknown (nothing
                is acquired in that case).
            ScratchContextError: If preparing the acquired connection fails;
                the connection is released before raising.
        """
        dialect = get_interpreter_dialect(settings.interpreter_dialect)
        connection = provider.acquire()

        try:
            handle = ExecutionHandle(connection, dialect)
            handle.mark(ignore_storage_clauses=True, parse_for_catalog=True)
            if settings.render_name_case is not RenderNameCase.AS_IS:
                handle.name_transform = NameNormalizer(
                    settings.render_name_case, settings.interpreter_locale
                )
        except Exception as e:
            context = cls(connection, None, provider)  # type: ignore[arg-type]
            context.close(error=e)
            raise ScratchContextError(
                "Error while preparing the interpreter database", cause=e
            ) from e

        logger.debug(
            "ddl.scratch_opened",
            dialect=dialect.name,
            name_case=settings.render_name_case.value,
        )
        return cls(connection, handle, provider)

    @property
    def connection(self) -> Any:
        if self._released:
            raise ScratchContextError(
                "Scratch context has already been released",
                category=ErrorCategory.INTERNAL,
            )
        return self._connection

    @property
    def handle(self) -> ExecutionHandle:
        if self._released:
            raise ScratchContextError(
                "Scratch context has already been released",
                category=ErrorCategory.INTERNAL,
            )
        return self._handle

    @property
    def dialect(self) -> InterpreterDialect:
        return self._handle.dialect

    @property
    def released(self) -> bool:
        return self._released

    def close(self, error: BaseException | None = None) -> None:
        """Release the connection; later calls are no-ops.

        *error* is the exception currently propagating, if any. A release
        failure is then logged and suppressed so *error* is not masked;
        otherwise it is raised as :class:`ReleaseError`.
        """
        if self._released:
            return
        self._released = True

        try:
            self._provider.release(self._connection)
        except Exception as e:
            if error is not None:
                logger.warning("ddl.release_failed", error=str(e), primary_error=str(error))
                return
            raise ReleaseError("Could not release the interpreter connection", cause=e) from e
        logger.debug("ddl.scratch_released")

    def __enter__(self) -> ScratchContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close(error=exc)


__all__ = ["ScratchContext"]
