"""Table lifecycle service - keeps role bindings in step with loaded tables.

The layer that loads files into the query engine reports what happened to
its tables; this service turns each report into the matching binding
operation. Macro activation follows from the binding change notifications.
"""

from typing import Any, Optional

from macroboard.core.bindings import RoleBindingTable
from macroboard.core.config import Settings, get_settings
from macroboard.core.events import EventRegistry, TableEvent
from macroboard.core.logging import get_logger

logger = get_logger(__name__)


class TableLifecycleService:
    """Translate table lifecycle events into role binding changes."""

    def __init__(self, bindings: RoleBindingTable, settings: Optional[Settings] = None):
        """Initialize the service.

        Args:
            bindings: The role binding table to update.
            settings: Optional settings; defaults to the cached application settings.
        """
        self.bindings = bindings
        self.settings = settings or get_settings()

    def table_loaded(self, table: str) -> Optional[str]:
        """A table was loaded; auto-bind it to a role when enabled.

        Returns:
            The role the table was bound to, or None.
        """
        if not self.settings.auto_bind_on_load:
            logger.debug("Auto-binding disabled, table left unbound", table=table)
            return None

        role = self.bindings.auto_bind(table)
        if role is not None:
            logger.info("Table auto-bound", table=table, role=role)
        return role

    def table_renamed(self, old_table: str, new_table: str) -> Optional[str]:
        """A table was renamed; move its binding to the new name."""
        role = self.bindings.rebind_on_rename(old_table, new_table)
        if role is not None:
            logger.info("Binding follows table rename", role=role, old_table=old_table, new_table=new_table)
        return role

    def table_removed(self, table: str) -> Optional[str]:
        """A table was removed; unbind whichever role pointed at it."""
        role = self.bindings.unbind_by_concrete_table(table)
        if role is not None:
            logger.info("Table removed, role unbound", table=table, role=role)
        return role

    def tables_cleared(self) -> int:
        """All tables were removed; clear every binding."""
        return self.bindings.clear()


def register_table_handlers(registry: EventRegistry, service: TableLifecycleService) -> list[str]:
    """Register the lifecycle service on the table events.

    Returns:
        The handler ids, for later unregistration.
    """

    def on_loaded(event: str, data: dict[str, Any]) -> Optional[str]:
        return service.table_loaded(data["table"])

    def on_renamed(event: str, data: dict[str, Any]) -> Optional[str]:
        return service.table_renamed(data["old_table"], data["new_table"])

    def on_removed(event: str, data: dict[str, Any]) -> Optional[str]:
        return service.table_removed(data["table"])

    def on_cleared(event: str, data: dict[str, Any]) -> int:
        return service.tables_cleared()

    return [
        registry.register(TableEvent.ON_TABLE_LOADED, on_loaded),
        registry.register(TableEvent.ON_TABLE_RENAMED, on_renamed),
        registry.register(TableEvent.ON_TABLE_REMOVED, on_removed),
        registry.register(TableEvent.ON_TABLES_CLEARED, on_cleared),
    ]
