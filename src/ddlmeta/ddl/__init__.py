"""DDL interpretation: parse, replay, repair and snapshot.

Architecture::

    names.py        Identifier case normalizer
    statements.py   Statement preparation (name transform, storage clauses)
    dialect.py      Interpreter dialects (SQLite) + registry
    repair.py       Schema auto-repair policy
    parser.py       Script parsing (sqlglot) + ignore-comment regions
    sources.py      String / file script sources
    execution.py    Execution handle bound to one connection
    connection.py   Interpreter engine + connection provider
    replay.py       Replay engine (retry state machine)
    scratch.py      Scratch context lifecycle
    snapshot.py     Snapshot dataclasses + capturer
    provider.py     TranslatingMetaProvider entry point
"""
