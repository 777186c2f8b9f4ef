"""Integration tests for macro activation against an in-memory DuckDB.

Tests the full path from table loading through role binding to callable
table macros, and back.
"""

import duckdb
import pytest

from macroboard.application.services import TableLifecycleService, register_table_handlers
from macroboard.core.bindings import RoleBindingTable
from macroboard.core.events import EventRegistry, TableEvent
from macroboard.core.macros import MacroActivationManager
from macroboard.infrastructure.engine import DuckDBConnection, quote_identifier

pytestmark = pytest.mark.integration


@pytest.fixture
def engine():
    connection = DuckDBConnection()
    yield connection
    connection.close()


@pytest.mark.asyncio
class TestDuckDBActivation:
    """Macros become callable when their roles are bound."""

    async def test_bound_macro_is_callable_until_unbound(self, engine, catalog):
        bindings = RoleBindingTable(catalog)
        manager = MacroActivationManager(engine, bindings)
        await engine.execute(
            "CREATE TABLE uploaded_table_7 AS SELECT * FROM (VALUES ('a'), ('a'), ('b')) v(col)"
        )

        bindings.bind("facts", "uploaded_table_7")
        await manager.wait_until_idle()

        assert manager.is_active("summary") is True
        rows = await engine.fetch_all("SELECT * FROM summary() ORDER BY col")
        assert rows == [("a", 2), ("b", 1)]

        bindings.unbind_by_concrete_table("uploaded_table_7")
        await manager.wait_until_idle()

        assert manager.is_active("summary") is False
        with pytest.raises(duckdb.Error):
            await engine.fetch_all("SELECT * FROM summary()")

    async def test_parameterized_macro(self, engine, catalog):
        bindings = RoleBindingTable(catalog)
        manager = MacroActivationManager(engine, bindings)
        await engine.execute(
            "CREATE TABLE fixe AS SELECT * FROM (VALUES ('05M09'), ('05K06'), ('06C04')) v(ghm2)"
        )

        bindings.bind("fixe", "fixe")
        await manager.wait_until_idle()

        rows = await engine.fetch_all("SELECT * FROM casemix('05') ORDER BY ghm2")
        assert rows == [("05K06", 1), ("05M09", 1)]

    async def test_rename_regenerates_macro(self, engine, catalog):
        bindings = RoleBindingTable(catalog)
        manager = MacroActivationManager(engine, bindings)
        await engine.execute("CREATE TABLE old_facts AS SELECT 'x' AS col")
        bindings.bind("facts", "old_facts")
        await manager.wait_until_idle()

        await engine.rename_table("old_facts", "new_facts")
        bindings.rebind_on_rename("old_facts", "new_facts")
        await manager.wait_until_idle()

        assert await engine.fetch_all("SELECT * FROM summary()") == [("x", 1)]

    async def test_dispose_drops_every_macro(self, engine, catalog):
        bindings = RoleBindingTable(catalog)
        manager = MacroActivationManager(engine, bindings)
        await engine.execute("CREATE TABLE facts AS SELECT 'x' AS col")
        bindings.bind("facts", "facts")
        await manager.wait_until_idle()

        await manager.dispose()

        with pytest.raises(duckdb.Error):
            await engine.fetch_all("SELECT * FROM summary()")


@pytest.mark.asyncio
class TestFileLoading:
    """Loading files through the table lifecycle events."""

    async def test_loaded_csv_auto_binds_and_activates(self, engine, catalog, settings, tmp_path):
        path = tmp_path / "facts.csv"
        path.write_text("col,value\na,1\nb,2\nb,3\n", encoding="utf-8")

        bindings = RoleBindingTable(catalog)
        manager = MacroActivationManager(engine, bindings)
        registry = EventRegistry()
        register_table_handlers(registry, TableLifecycleService(bindings, settings))

        await engine.load_file(path, "facts")
        await registry.trigger(TableEvent.ON_TABLE_LOADED, {"table": "facts"})
        await manager.wait_until_idle()

        assert await engine.list_tables() == ["facts"]
        rows = await engine.fetch_all("SELECT * FROM summary() ORDER BY col")
        assert rows == [("a", 1), ("b", 2)]

        await engine.drop_table("facts")
        await registry.trigger(TableEvent.ON_TABLE_REMOVED, {"table": "facts"})
        await manager.wait_until_idle()

        assert manager.active_macros() == []
        assert await engine.list_tables() == []

    async def test_unsupported_file_type(self, engine, tmp_path):
        path = tmp_path / "facts.xlsx"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError, match="Unsupported file type"):
            await engine.load_file(path, "facts")


def test_quote_identifier():
    assert quote_identifier("facts") == '"facts"'
    assert quote_identifier('odd"name') == '"odd""name"'
