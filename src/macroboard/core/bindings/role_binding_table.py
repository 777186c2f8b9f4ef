"""Role binding table - which abstract roles point at which concrete tables.

The RoleBindingTable is the single owner of role bindings. It provides:
- Binding, unbinding and reverse lookup by concrete table
- Rename propagation and heuristic auto-binding of loaded tables
- Synchronous change notification with per-listener error isolation

Listeners are called in registration order, inside the mutating call,
before it returns.
"""

import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from macroboard.core.bindings.binding_events import BindingEvent, BindingListener
from macroboard.core.logging import get_logger
from macroboard.domain.entities.catalog import TableRole, TemplateCatalog

logger = get_logger(__name__)


@dataclass
class RegisteredListener:
    """Internal representation of a subscribed listener.

    Attributes:
        id: Unique identifier for this subscription.
        callback: Called as (event, role, new_table, previous_table).
        registration_order: Order in which this listener subscribed.
    """

    id: str
    callback: BindingListener
    registration_order: int = 0


class RoleBindingTable:
    """Mutable mapping from catalog role name to concrete table name.

    Each role maps to at most one table. Binding one table to several roles
    is allowed but logged; reverse lookups then return the first role in
    binding order.

    Example:
        bindings = RoleBindingTable(catalog)
        unsubscribe = bindings.subscribe(on_change)

        bindings.bind("facts", "uploaded_table_7")
        bindings.unbind_by_concrete_table("uploaded_table_7")

        unsubscribe()
    """

    def __init__(self, catalog: TemplateCatalog) -> None:
        self.catalog = catalog
        self._bindings: dict[str, str] = {}
        self._listeners: dict[str, RegisteredListener] = {}
        self._registration_counter: int = 0

    # ------------------------------------------------------------------ mutation

    def bind(self, role: str, table: str) -> None:
        """Bind ``role`` to ``table``, overwriting any existing binding.

        The table is not checked for existence. A ``map`` event carrying
        the previous table (or None) is delivered before returning.
        """
        previous = self._bindings.get(role)

        other_role = self.role_for(table)
        if other_role is not None and other_role != role:
            logger.warning(
                "Table already bound to another role",
                table=table,
                role=role,
                other_role=other_role,
            )

        self._bindings[role] = table
        logger.debug("Role bound", role=role, table=table, previous_table=previous)
        self._notify(BindingEvent.MAP, role, table, previous)

    def unbind(self, role: str) -> bool:
        """Remove the binding for ``role``.

        Returns:
            True if a binding was removed, False if the role was not bound
            (no event is delivered in that case).
        """
        if role not in self._bindings:
            return False

        previous = self._bindings.pop(role)
        logger.debug("Role unbound", role=role, previous_table=previous)
        self._notify(BindingEvent.UNMAP, role, None, previous)
        return True

    def unbind_by_concrete_table(self, table: str) -> Optional[str]:
        """Unbind the role currently bound to ``table``.

        Returns:
            The role that was unbound, or None if no role pointed at the table.
        """
        role = self.role_for(table)
        if role is None:
            return None
        self.unbind(role)
        return role

    def rebind_on_rename(self, old_table: str, new_table: str) -> Optional[str]:
        """Follow a table rename by re-binding its role to the new name.

        Goes through ``bind`` so listeners see a ``map`` event whose
        previous table is ``old_table``.

        Returns:
            The affected role, or None if ``old_table`` was not bound.
        """
        role = self.role_for(old_table)
        if role is None:
            return None
        self.bind(role, new_table)
        return role

    def auto_bind(self, candidate: str) -> Optional[str]:
        """Bind a freshly loaded table to the role its name suggests.

        An exact case-insensitive match on a role name wins and may
        overwrite an existing binding. Otherwise the first role whose name
        contains, or is contained in, the candidate is bound, but only
        if that role is not bound yet.

        Returns:
            The role that was bound, or None.
        """
        normalized = candidate.lower()
        if not normalized:
            return None

        for role in self.catalog.roles:
            if normalized == role.lower():
                self.bind(role, candidate)
                return role

        for role in self.catalog.roles:
            lowered = role.lower()
            if lowered in normalized or normalized in lowered:
                if not self.is_bound(role):
                    self.bind(role, candidate)
                    return role

        logger.debug("No role matches table", table=candidate)
        return None

    def clear(self) -> int:
        """Unbind every role, one ``unmap`` event per previously bound role.

        Returns:
            Number of roles unbound.
        """
        roles = list(self._bindings)
        for role in roles:
            self.unbind(role)

        logger.debug("Bindings cleared", count=len(roles))
        return len(roles)

    # ------------------------------------------------------------------ queries

    def is_bound(self, role: str) -> bool:
        return role in self._bindings

    def bound_table(self, role: str) -> Optional[str]:
        return self._bindings.get(role)

    def role_for(self, table: str) -> Optional[str]:
        for role, bound in self._bindings.items():
            if bound == table:
                return role
        return None

    def is_table_bound(self, table: str) -> bool:
        return table in self._bindings.values()

    def all_bindings(self) -> dict[str, str]:
        """Snapshot of role -> table."""
        return dict(self._bindings)

    def bound_roles(self) -> frozenset[str]:
        return frozenset(self._bindings)

    def unbound_roles(self) -> list[TableRole]:
        """Catalog roles without a binding, in catalog order."""
        return [
            definition
            for name, definition in self.catalog.roles.items()
            if name not in self._bindings
        ]

    # ------------------------------------------------------------------ listeners

    def subscribe(self, callback: BindingListener) -> Callable[[], bool]:
        """Register a change listener.

        Args:
            callback: Called as (event, role, new_table, previous_table).

        Returns:
            A function that removes the listener. It returns True the first
            time and False on later calls.
        """
        listener_id = f"listener_{uuid.uuid4().hex[:12]}"
        self._registration_counter += 1
        self._listeners[listener_id] = RegisteredListener(
            id=listener_id,
            callback=callback,
            registration_order=self._registration_counter,
        )
        logger.debug("Binding listener subscribed", listener_id=listener_id)

        def unsubscribe() -> bool:
            return self._unsubscribe(listener_id)

        return unsubscribe

    def listener_count(self) -> int:
        return len(self._listeners)

    def _unsubscribe(self, listener_id: str) -> bool:
        if self._listeners.pop(listener_id, None) is None:
            return False
        logger.debug("Binding listener unsubscribed", listener_id=listener_id)
        return True

    def _notify(
        self,
        event: str,
        role: str,
        new_table: Optional[str],
        previous_table: Optional[str],
    ) -> None:
        """Deliver an event to every listener, isolating listener failures."""
        listeners = sorted(self._listeners.values(), key=lambda listener: listener.registration_order)
        for listener in listeners:
            try:
                listener.callback(event, role, new_table, previous_table)
            except Exception as e:
                logger.error(
                    "Binding listener failed",
                    listener_id=listener.id,
                    binding_event=event,
                    role=role,
                    error=str(e),
                )
