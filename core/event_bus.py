"""
Event Bus

Decouples the API layer from whoever presents its outcomes.
The client, session and admin panel emit events; the CLI (or any other
front end) subscribes to show them.
"""
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple async event bus.

    Usage:
        # Producer: emit event
        await bus.emit("admin.success", {"message": "Campaign approved"})

        # Consumer: subscribe
        @bus.on("admin.success")
        async def show(data):
            pass
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str):
        """Decorator to subscribe to an event."""
        def decorator(handler: Callable):
            self.subscribe(event_name, handler)
            return handler
        return decorator

    def subscribe(self, event_name: str, handler: Callable):
        """Subscribe a handler to an event (non-decorator version)."""
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_name}")

    def unsubscribe(self, event_name: str, handler: Callable):
        """Unsubscribe a handler from an event."""
        if event_name in self._handlers:
            self._handlers[event_name] = [
                h for h in self._handlers[event_name] if h != handler
            ]

    async def emit(self, event_name: str, data: Dict[str, Any] = None):
        """
        Emit an event to all subscribers.

        Args:
            event_name: Event identifier (e.g., "admin.error")
            data: Event payload
        """
        handlers = self._handlers.get(event_name, [])
        data = data or {}

        if not handlers:
            logger.debug(f"No handlers for event: {event_name}")
            return

        logger.debug(f"Emitting {event_name} to {len(handlers)} handlers")

        # Run all handlers concurrently
        tasks = []
        for handler in handlers:
            if inspect.iscoroutinefunction(handler):
                tasks.append(handler(data))
            else:
                # Sync handler, run in executor
                loop = asyncio.get_running_loop()
                tasks.append(loop.run_in_executor(None, handler, data))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Handler error for {event_name}: {result}")

    def clear(self):
        """Clear all subscriptions (useful for testing)."""
        self._handlers.clear()

    def get_subscriptions(self) -> Dict[str, int]:
        """Get count of handlers per event (for debugging)."""
        return {name: len(handlers) for name, handlers in self._handlers.items()}
