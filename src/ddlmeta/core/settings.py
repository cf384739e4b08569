"""Settings for the DDL interpreter.

``DDLMetaSettings`` collects everything a replay needs: the interpreter
connection URL and dialect, the dialect scripts are written in, the identifier
case policy, the parse-ignore comment markers and logging options.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at construction, not mid-replay
    - **Environment-driven:** Reads ``DDLMETA_*`` env vars and ``.env`` files
    - **Sensible defaults:** In-memory SQLite, as-is identifier casing

Examples:
    >>> from ddlmeta.core.settings import DDLMetaSettings
    >>> settings = DDLMetaSettings(parse_dialect="postgres", render_name_case="LOWER_IF_UNQUOTED")
    >>> settings.render_name_case
    <RenderNameCase.LOWER_IF_UNQUOTED: 'LOWER_IF_UNQUOTED'>

Tags:
    settings, configuration, pydantic, environment, ddl-meta
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RenderNameCase(str, Enum):
    """Case policy applied to every identifier before execution."""

    AS_IS = "AS_IS"
    LOWER = "LOWER"
    UPPER = "UPPER"
    LOWER_IF_UNQUOTED = "LOWER_IF_UNQUOTED"
    UPPER_IF_UNQUOTED = "UPPER_IF_UNQUOTED"


class DDLMetaSettings(BaseSettings):
    """Settings for one replay.

    Fields
    ──────
    interpreter_url             : SQLAlchemy URL of the scratch database
    interpreter_dialect         : Interpreter dialect name (``sqlite``)
    parse_dialect               : sqlglot dialect scripts are written in
    render_name_case            : Identifier case policy
    interpreter_locale          : Locale for case conversion (``tr_TR`` etc.)
    parse_ignore_comments       : Honour ignore-region comment markers
    parse_ignore_comment_start  : Marker opening an ignored region
    parse_ignore_comment_stop   : Marker closing an ignored region
    max_schema_repairs          : Repairs allowed per schema name per statement
    log_level                   : Structlog log level
    log_json                    : JSON logs (None = auto-detect)
    """

    model_config = SettingsConfigDict(
        env_prefix="DDLMETA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Interpreter ──────────────────────────────────────────────
    interpreter_url: str = "sqlite://"
    interpreter_dialect: str = "sqlite"

    # ── Parsing ──────────────────────────────────────────────────
    parse_dialect: str | None = None
    render_name_case: RenderNameCase = RenderNameCase.AS_IS
    interpreter_locale: str | None = None
    parse_ignore_comments: bool = False
    parse_ignore_comment_start: str = "[ddlmeta ignore start]"
    parse_ignore_comment_stop: str = "[ddlmeta ignore stop]"

    # ── Replay ───────────────────────────────────────────────────
    max_schema_repairs: int = Field(default=1, ge=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> DDLMetaSettings:
    """Return process-wide settings read from the environment."""
    return DDLMetaSettings()


__all__ = ["RenderNameCase", "DDLMetaSettings", "get_settings"]
