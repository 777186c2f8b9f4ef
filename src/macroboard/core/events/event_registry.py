"""Event registry - registration and dispatch of table lifecycle handlers.

The EventRegistry provides:
- Registration of handlers with priority
- Execution of handlers in priority order
- Error handling and logging
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from macroboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RegisteredHandler:
    """Internal representation of a registered handler.

    Attributes:
        id: Unique identifier for this registration.
        event: The event this handler is registered for.
        callback: Function called as (event, data); may be async.
        priority: Execution priority (higher = earlier).
        registration_order: Order in which this handler was registered.
    """

    id: str
    event: str
    callback: Callable
    priority: int = 0
    registration_order: int = 0


@dataclass
class EventResult:
    """Result of triggering an event.

    Attributes:
        success: False if any handler raised.
        results: Return values of the handlers that succeeded, in call order.
        errors: Messages of the handlers that failed.
    """

    success: bool = True
    results: list[Any] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class EventRegistry:
    """Central registration and dispatch of table lifecycle handlers.

    Example:
        registry = EventRegistry()

        handler_id = registry.register(
            event=TableEvent.ON_TABLE_LOADED,
            callback=on_loaded,
        )

        result = await registry.trigger(TableEvent.ON_TABLE_LOADED, {"table": "fixe"})

        registry.unregister(handler_id)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[RegisteredHandler]] = {}
        self._registration_counter: int = 0
        self._handler_map: dict[str, RegisteredHandler] = {}

    def register(self, event: str, callback: Callable, priority: int = 0) -> str:
        """Register a handler for an event.

        Args:
            event: Event name (e.g., "on_table_loaded").
            callback: Sync or async function accepting (event, data).
            priority: Higher priority handlers run first. Handlers with the
                      same priority run in registration order.

        Returns:
            Unique handler_id string for later removal.
        """
        handler_id = f"handler_{uuid.uuid4().hex[:12]}"
        self._registration_counter += 1

        handler = RegisteredHandler(
            id=handler_id,
            event=event,
            callback=callback,
            priority=priority,
            registration_order=self._registration_counter,
        )
        self._handlers.setdefault(event, []).append(handler)
        self._handler_map[handler_id] = handler

        logger.debug(
            "Event handler registered",
            handler_id=handler_id,
            table_event=event,
            priority=priority,
        )
        return handler_id

    def unregister(self, handler_id: str) -> bool:
        """Remove a registered handler.

        Returns:
            True if the handler was removed, False if it was not found.
        """
        handler = self._handler_map.pop(handler_id, None)
        if handler is None:
            logger.warning("Event handler not found for unregister", handler_id=handler_id)
            return False

        remaining = [h for h in self._handlers.get(handler.event, []) if h.id != handler_id]
        if remaining:
            self._handlers[handler.event] = remaining
        else:
            self._handlers.pop(handler.event, None)

        logger.debug("Event handler unregistered", handler_id=handler_id, table_event=handler.event)
        return True

    async def trigger(self, event: str, data: Optional[dict[str, Any]] = None) -> EventResult:
        """Execute all handlers registered for an event.

        A failing handler is logged and recorded in the result; the
        remaining handlers still run.
        """
        result = EventResult()

        handlers = sorted(
            self._handlers.get(event, []),
            key=lambda h: (-h.priority, h.registration_order),
        )
        if not handlers:
            return result

        logger.debug("Triggering event", table_event=event, handler_count=len(handlers))

        for handler in handlers:
            try:
                value = handler.callback(event, data or {})
                if asyncio.iscoroutine(value):
                    value = await value
                result.results.append(value)
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    handler_id=handler.id,
                    table_event=event,
                    error=str(e),
                )
                result.success = False
                result.errors.append(f"Handler {handler.id} failed: {e}")

        return result

    def get_handlers_for_event(self, event: str) -> list[RegisteredHandler]:
        return list(self._handlers.get(event, []))

    def get_handler_by_id(self, handler_id: str) -> Optional[RegisteredHandler]:
        return self._handler_map.get(handler_id)

    def clear(self) -> int:
        """Remove all registered handlers.

        Returns:
            Number of handlers removed.
        """
        count = len(self._handler_map)
        self._handlers.clear()
        self._handler_map.clear()
        logger.debug("Event handlers cleared", count=count)
        return count
