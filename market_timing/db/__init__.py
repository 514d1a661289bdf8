"""
SQLite persistence: connection, schema, migrations and repositories.

The history table is written only by the collector pipeline; every other
component reads it through ``MarketHistoryRepository``.
"""
