"""Role binding module.

Tracks which abstract catalog roles are bound to concrete tables and
notifies subscribers of every change.

Example usage:
    from macroboard.core.bindings import BindingEvent, RoleBindingTable

    bindings = RoleBindingTable(catalog)

    def on_change(event, role, new_table, previous_table):
        if event == BindingEvent.MAP:
            print(f"{role} -> {new_table}")

    unsubscribe = bindings.subscribe(on_change)
    bindings.auto_bind("fixe_2024")
"""

from macroboard.core.bindings.binding_events import (
    BindingEvent,
    BindingListener,
)
from macroboard.core.bindings.role_binding_table import (
    RegisteredListener,
    RoleBindingTable,
)

__all__ = [
    "BindingEvent",
    "BindingListener",
    "RegisteredListener",
    "RoleBindingTable",
]
