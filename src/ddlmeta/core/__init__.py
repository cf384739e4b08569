"""ddl-meta core -- errors, results, settings, logging and protocols.

Architecture::

    errors.py       Structured error hierarchy (DDLMetaError, FailureSignature)
    result.py       Result[T] envelope (Ok / Err)
    settings.py     DDLMetaSettings (pydantic-settings, DDLMETA_* env vars)
    logging.py      structlog configuration
    protocols.py    Source, ConnectionProvider, MetaProvider
"""
