"""Table lifecycle event definitions.

These events are fired by the layer that loads, renames and removes
tables in the query engine. MacroBoard reacts to them by updating role
bindings.
"""


class TableEvent:
    """Table lifecycle event names.

    Handlers receive ``(event, data)`` where ``data`` carries:
    - ON_TABLE_LOADED: {"table": name}
    - ON_TABLE_RENAMED: {"old_table": old, "new_table": new}
    - ON_TABLE_REMOVED: {"table": name}
    - ON_TABLES_CLEARED: {}
    """

    ON_TABLE_LOADED = "on_table_loaded"
    ON_TABLE_RENAMED = "on_table_renamed"
    ON_TABLE_REMOVED = "on_table_removed"
    ON_TABLES_CLEARED = "on_tables_cleared"


def get_all_events() -> list[str]:
    """Get all table lifecycle event names."""
    return [
        TableEvent.ON_TABLE_LOADED,
        TableEvent.ON_TABLE_RENAMED,
        TableEvent.ON_TABLE_REMOVED,
        TableEvent.ON_TABLES_CLEARED,
    ]
