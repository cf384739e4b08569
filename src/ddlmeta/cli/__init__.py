"""Command-line interface for ddl-meta (``ddlmeta``)."""
