"""DuckDB query engine connection.

Wraps a single DuckDB connection behind an async interface. Statements run
in a worker thread so the event loop stays responsive, one at a time since
a DuckDB connection must not be used from two threads concurrently.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional, Sequence

import duckdb

from macroboard.core.config import Settings, get_settings
from macroboard.core.logging import get_logger
from macroboard.core.macros.generator import sql_literal

logger = get_logger(__name__)

_READERS = {
    ".parquet": "read_parquet",
    ".csv": "read_csv_auto",
}


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier for DuckDB."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


class DuckDBConnection:
    """Async facade over one shared DuckDB connection."""

    def __init__(self, database: str = ":memory:", threads: Optional[int] = None) -> None:
        """Open the connection.

        Args:
            database: DuckDB database file, or ":memory:".
            threads: Optional DuckDB worker thread count.
        """
        if database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        config: dict[str, Any] = {}
        if threads is not None:
            config["threads"] = threads

        self.database = database
        self._conn = duckdb.connect(database=database, config=config)
        self._lock = asyncio.Lock()
        logger.info("DuckDB connection opened", database=database)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DuckDBConnection":
        settings = settings or get_settings()
        return cls(database=settings.database_path, threads=settings.threads)

    async def execute(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> None:
        """Execute a statement, discarding any result."""
        await self._run(sql, parameters, fetch=False)

    async def fetch_all(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> list[tuple]:
        """Execute a query and return all rows."""
        return await self._run(sql, parameters, fetch=True)

    async def list_tables(self) -> list[str]:
        return [row[0] for row in await self.fetch_all("SHOW TABLES")]

    async def load_file(self, path: str | Path, table: str) -> None:
        """Create (or replace) ``table`` from a parquet or CSV file."""
        file_path = Path(path)
        reader = _READERS.get(file_path.suffix.lower())
        if reader is None:
            raise ValueError(f"Unsupported file type: {file_path.name}")

        await self.execute(
            f"CREATE OR REPLACE TABLE {quote_identifier(table)} AS "
            f"SELECT * FROM {reader}({sql_literal(str(file_path))})"
        )
        logger.info("Table loaded", table=table, path=str(file_path))

    async def rename_table(self, old_table: str, new_table: str) -> None:
        await self.execute(
            f"ALTER TABLE {quote_identifier(old_table)} RENAME TO {quote_identifier(new_table)}"
        )

    async def drop_table(self, table: str) -> None:
        await self.execute(f"DROP TABLE IF EXISTS {quote_identifier(table)}")

    def close(self) -> None:
        self._conn.close()
        logger.debug("DuckDB connection closed", database=self.database)

    async def _run(self, sql: str, parameters: Optional[Sequence[Any]], fetch: bool) -> Any:
        async with self._lock:
            return await asyncio.to_thread(self._execute_sync, sql, parameters, fetch)

    def _execute_sync(self, sql: str, parameters: Optional[Sequence[Any]], fetch: bool) -> Any:
        logger.debug("Executing statement", sql=sql)
        if parameters is None:
            cursor = self._conn.execute(sql)
        else:
            cursor = self._conn.execute(sql, parameters)
        return cursor.fetchall() if fetch else None
