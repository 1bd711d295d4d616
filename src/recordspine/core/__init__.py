"""
record-spine core: query building and statement execution.

Modules
-------
errors          Typed error hierarchy (SpineError family)
logging         structlog configuration + get_logger
result          Ok / Err envelope for driver outcomes
flags           ExecFlag bit layout and result-shape defaults
identifiers     Identifier sanitizer + bind-parameter names
fragments       WHERE / SET / ORDER BY + LIMIT builders
dialect         MySQL / SQLite / Unsupported dialects
protocols       Statement + StatementDriver protocols
adapters        sqlite3 / mysql.connector adapters, DSN parsing
executor        StatementExecutor + DebugRecord
database        Database engine (record operations, raw SQL, schema)
settings        pydantic-settings connection configuration
registry        InstanceRegistry (named engine instances)
"""
