"""Pytest configuration for all tests."""

import asyncio
from typing import Any, Callable, Optional

import pytest

from macroboard.core.bindings import RoleBindingTable
from macroboard.core.config import Settings
from macroboard.domain.entities.catalog import (
    MacroDefinition,
    MacroParameter,
    TableRole,
    TemplateCatalog,
)

SUMMARY_SQL = "SELECT col, COUNT(*) FROM {{facts}} GROUP BY col"

JOINED_SQL = """-- Macro: joined
-- Dependencies: facts, dims
SELECT f.col, d.label
FROM {{facts}} f
JOIN {{dims}} d ON d.col = f.col
WHERE f.col IN (SELECT col FROM {{facts}})
LIMIT {{limit_n}}"""

CASEMIX_SQL = """-- Macro: casemix
SELECT ghm2, COUNT(*) AS effectif
FROM {{fixe}}
WHERE SUBSTR(ghm2, 1, 2) = {{cmd}}
GROUP BY ghm2"""


class FakeConnection:
    """Records executed statements; fails statements matching ``fail_when``."""

    def __init__(self, fail_when: Optional[Callable[[str], bool]] = None) -> None:
        self.statements: list[str] = []
        self.fail_when = fail_when

    async def execute(self, sql: str) -> Any:
        # Suspend like a real engine call would
        await asyncio.sleep(0)
        self.statements.append(sql)
        if self.fail_when is not None and self.fail_when(sql):
            raise RuntimeError(f"engine rejected: {sql.splitlines()[0]}")
        return None

    def creates(self, macro_id: str) -> list[str]:
        return [s for s in self.statements if s.startswith(f"CREATE OR REPLACE MACRO {macro_id}(")]

    def drops(self, macro_id: str) -> list[str]:
        return [s for s in self.statements if s.startswith("DROP MACRO") and s.endswith(f" {macro_id}")]


@pytest.fixture
def catalog() -> TemplateCatalog:
    """A small catalog with three roles and three macros."""
    roles = [
        TableRole("facts", "Primary fact table", ("col", "value"), "core"),
        TableRole("dims", "Dimension table", ("col", "label"), "core"),
        TableRole("fixe", "Hospital stays", ("ghm2",), "mco"),
    ]
    macros = [
        MacroDefinition(
            id="summary",
            name="Summary",
            description="Count rows per column value",
            category="exploration",
            depends_on=("facts",),
            sql_template=SUMMARY_SQL,
        ),
        MacroDefinition(
            id="joined",
            name="Joined facts",
            description="Facts joined with their labels",
            category="quality",
            parameters=(MacroParameter("limit_n", "INTEGER", 10),),
            depends_on=("facts", "dims"),
            sql_template=JOINED_SQL,
        ),
        MacroDefinition(
            id="casemix",
            name="Casemix (GHM Distribution)",
            description="Count GHM codes for one CMD",
            category="casemix",
            parameters=(MacroParameter("cmd"),),
            depends_on=("fixe",),
            sql_template=CASEMIX_SQL,
        ),
    ]
    return TemplateCatalog.from_entities(roles, macros)


@pytest.fixture
def bindings(catalog: TemplateCatalog) -> RoleBindingTable:
    return RoleBindingTable(catalog)


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="testing", log_level="DEBUG", _env_file=None)


@pytest.fixture
def fake_connection_cls() -> type[FakeConnection]:
    return FakeConnection
