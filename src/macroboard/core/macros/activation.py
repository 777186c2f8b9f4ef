"""Macro activation manager.

Keeps the macros registered in the query engine in sync with the role
binding table. It provides:
- Activation of macros whose dependencies are bound
- Best-effort deactivation with a fallback DROP syntax
- Per-macro serialization of engine statements
- Background scheduling of work triggered by binding changes

Binding changes are delivered synchronously, but the engine statements they
trigger run as tasks on the running event loop. Await ``wait_until_idle()``
to observe their effect.
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from macroboard.core.bindings import BindingEvent, RoleBindingTable
from macroboard.core.logging import get_logger
from macroboard.core.macros.generator import (
    generate_definition_sql,
    generate_drop_sql,
    validate_mappings,
)
from macroboard.domain.entities.catalog import MacroDefinition

logger = get_logger(__name__)


class QueryConnection(Protocol):
    """The part of a query engine connection the manager needs."""

    async def execute(self, sql: str) -> Any: ...


class ActivationStatus(Enum):
    """Outcome of an activation attempt."""

    ACTIVATED = "activated"
    UNSATISFIED = "unsatisfied"
    FAILED = "failed"


@dataclass(frozen=True)
class PendingMacro:
    """An inactive macro and the roles that still need a binding."""

    macro: MacroDefinition
    missing_roles: list[str]


class MacroActivationManager:
    """Registers and removes catalog macros as role bindings change.

    The manager subscribes to the binding table on construction and is the
    only writer of the active macro set. Operations on one macro id run one
    at a time, in the order they were requested; different ids may overlap.

    Example:
        manager = MacroActivationManager(connection, bindings)
        await manager.activate_all_satisfied()

        bindings.bind("facts", "uploaded_table_7")
        await manager.wait_until_idle()
        assert manager.is_active("summary")

        await manager.dispose()
    """

    def __init__(self, connection: QueryConnection, bindings: RoleBindingTable) -> None:
        self.connection = connection
        self.bindings = bindings
        self.catalog = bindings.catalog
        self._active: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], bool]] = bindings.subscribe(
            self._handle_binding_change
        )

    # ------------------------------------------------------------------ public API

    async def activate_if_satisfied(self, macro_id: str) -> ActivationStatus:
        """Register ``macro_id`` if every role it depends on is bound.

        Engine failures are logged and reported as FAILED, never raised.

        Raises:
            UnknownMacroError: If the catalog has no such macro.
        """
        macro = self.catalog.get_macro(macro_id)
        async with self._lock_for(macro_id):
            return await self._activate(macro)

    async def deactivate(self, macro_id: str) -> None:
        """Drop ``macro_id`` from the engine and mark it inactive.

        The macro is marked inactive even if both DROP forms fail: its
        definition referenced tables that may no longer exist.

        Raises:
            UnknownMacroError: If the catalog has no such macro.
        """
        macro = self.catalog.get_macro(macro_id)
        async with self._lock_for(macro_id):
            await self._deactivate(macro)

    async def reactivate(self, macro_id: str) -> ActivationStatus:
        """Drop then re-register ``macro_id`` against the current bindings.

        Raises:
            UnknownMacroError: If the catalog has no such macro.
        """
        macro = self.catalog.get_macro(macro_id)
        async with self._lock_for(macro_id):
            if macro.id in self._active:
                await self._deactivate(macro)
            return await self._activate(macro)

    async def activate_all_satisfied(self) -> dict[str, ActivationStatus]:
        """Try to activate every catalog macro.

        Returns:
            Activation status per macro id.
        """
        results: dict[str, ActivationStatus] = {}
        for macro_id in self.catalog.macros:
            results[macro_id] = await self.activate_if_satisfied(macro_id)

        logger.info(
            "Activation sweep finished",
            activated=sum(1 for s in results.values() if s is ActivationStatus.ACTIVATED),
            total=len(results),
        )
        return results

    def is_active(self, macro_id: str) -> bool:
        return macro_id in self._active

    def active_macros(self) -> list[str]:
        """Active macro ids in catalog order."""
        return [macro_id for macro_id in self.catalog.macros if macro_id in self._active]

    def pending_macros(self) -> list[PendingMacro]:
        """Inactive macros that are waiting for at least one role binding."""
        bound = self.bindings.bound_roles()
        pending = []
        for macro in self.catalog.macros.values():
            if macro.id in self._active:
                continue
            missing = macro.missing_roles(bound)
            if missing:
                pending.append(PendingMacro(macro=macro, missing_roles=missing))
        return pending

    async def wait_until_idle(self) -> None:
        """Wait for every operation scheduled by binding changes to finish.

        Failures of those operations are logged when they finish and are not
        raised here.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def dispose(self) -> None:
        """Unsubscribe from the binding table and deactivate every macro."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        await self.wait_until_idle()

        for macro_id in self.active_macros():
            await self.deactivate(macro_id)

        logger.debug("Activation manager disposed")

    # ------------------------------------------------------------------ internals

    def _lock_for(self, macro_id: str) -> asyncio.Lock:
        lock = self._locks.get(macro_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[macro_id] = lock
        return lock

    async def _deactivate_if_active(self, macro_id: str) -> None:
        """Deactivate ``macro_id`` if it is still active once its turn comes.

        Checked under the lock so that an activation already in flight when
        the role was unbound is undone as well.
        """
        macro = self.catalog.get_macro(macro_id)
        async with self._lock_for(macro_id):
            if macro.id in self._active:
                await self._deactivate(macro)

    async def _activate(self, macro: MacroDefinition) -> ActivationStatus:
        """Activate ``macro``; the caller holds its lock."""
        bindings = self.bindings.all_bindings()
        validation = validate_mappings(macro, bindings)
        if not validation.satisfied:
            logger.debug(
                "Macro dependencies not satisfied",
                macro_id=macro.id,
                missing_roles=validation.missing_roles,
            )
            return ActivationStatus.UNSATISFIED

        sql = generate_definition_sql(macro, bindings)
        try:
            await self.connection.execute(sql)
        except Exception as e:
            self._active.discard(macro.id)
            logger.warning("Macro activation failed", macro_id=macro.id, error=str(e))
            return ActivationStatus.FAILED

        self._active.add(macro.id)
        logger.info("Macro activated", macro_id=macro.id)
        return ActivationStatus.ACTIVATED

    async def _deactivate(self, macro: MacroDefinition) -> None:
        """Deactivate ``macro``; the caller holds its lock."""
        try:
            await self.connection.execute(generate_drop_sql(macro.id))
        except Exception as e:
            logger.debug("Table macro drop failed, retrying", macro_id=macro.id, error=str(e))
            try:
                await self.connection.execute(generate_drop_sql(macro.id, table_macro=False))
            except Exception as e2:
                logger.error("Macro deactivation failed", macro_id=macro.id, error=str(e2))

        self._active.discard(macro.id)
        logger.info("Macro deactivated", macro_id=macro.id)

    def _handle_binding_change(
        self,
        event: str,
        role: str,
        new_table: Optional[str],
        previous_table: Optional[str],
    ) -> None:
        """Schedule (de)activation of the macros that depend on ``role``."""
        affected = self.catalog.macros_depending_on(role)
        if not affected:
            return

        if event == BindingEvent.MAP:
            rebound = previous_table is not None and previous_table != new_table
            operation = self.reactivate if rebound else self.activate_if_satisfied
            for macro in affected:
                self._schedule(macro.id, operation)

        elif event == BindingEvent.UNMAP:
            for macro in affected:
                self._schedule(macro.id, self._deactivate_if_active)

    def _schedule(self, macro_id: str, operation: Callable[[str], Awaitable[Any]]) -> None:
        """Run ``operation(macro_id)`` as a background task.

        Tasks start in scheduling order and queue on the per-macro lock, so
        operations on one macro complete in the order they were scheduled.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop, macro left unsynchronized",
                macro_id=macro_id,
                operation=operation.__name__,
            )
            return

        task = loop.create_task(operation(macro_id))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._task_done, macro_id, operation.__name__))

    def _task_done(self, macro_id: str, operation_name: str, task: asyncio.Task) -> None:
        """Forget a finished background task, logging it if it raised."""
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Background macro operation failed",
                macro_id=macro_id,
                operation=operation_name,
                error=repr(error),
            )
