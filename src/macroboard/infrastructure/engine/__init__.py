"""Query engine connections."""

from macroboard.infrastructure.engine.duckdb_connection import (
    DuckDBConnection,
    quote_identifier,
)

__all__ = ["DuckDBConnection", "quote_identifier"]
