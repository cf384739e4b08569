"""ddl-meta: structural snapshots of DDL scripts without a live database.

Scripts in any SQL dialect sqlglot understands are replayed on a disposable
in-memory interpreter database; the catalog it ends up with is returned as
an immutable :class:`~ddlmeta.ddl.snapshot.Snapshot`.

Examples:
    >>> from ddlmeta import snapshot_of
    >>> snapshot = snapshot_of("CREATE TABLE s1.t (id INT PRIMARY KEY)")
    >>> snapshot.schema("s1").table("t").primary_key.columns
    ('id',)
"""

__version__ = "0.1.0"

from ddlmeta.core.errors import DDLMetaError  # noqa: E402
from ddlmeta.core.settings import DDLMetaSettings, RenderNameCase  # noqa: E402
from ddlmeta.ddl.provider import TranslatingMetaProvider, snapshot_of  # noqa: E402
from ddlmeta.ddl.snapshot import Snapshot  # noqa: E402
from ddlmeta.ddl.sources import FileSource, StringSource  # noqa: E402

__all__ = [
    "__version__",
    "DDLMetaError",
    "DDLMetaSettings",
    "RenderNameCase",
    "TranslatingMetaProvider",
    "snapshot_of",
    "Snapshot",
    "FileSource",
    "StringSource",
]
