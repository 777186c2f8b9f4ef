"""Table lifecycle events.

Example usage:
    from macroboard.core.events import EventRegistry, TableEvent

    registry = EventRegistry()
    registry.register(TableEvent.ON_TABLE_REMOVED, on_removed)
    await registry.trigger(TableEvent.ON_TABLE_REMOVED, {"table": "fixe_2024"})
"""

from macroboard.core.events.event_registry import (
    EventRegistry,
    EventResult,
    RegisteredHandler,
)
from macroboard.core.events.table_events import TableEvent, get_all_events

__all__ = [
    "EventRegistry",
    "EventResult",
    "RegisteredHandler",
    "TableEvent",
    "get_all_events",
]
