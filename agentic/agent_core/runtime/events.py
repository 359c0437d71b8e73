from __future__ import annotations

"""In-process event emission.

``EventEmitter`` is the per-engine callback list behind ``CompletionEngine.on``.
``EventBus`` is the process-wide service that republishes prompt lifecycle
events as ``PromptEvent`` records for external consumers.

Handlers are called synchronously in registration order. A handler that raises
is logged and skipped; a handler returning an awaitable is scheduled as a task
so it never blocks the caller. ``drain`` awaits the scheduled tasks.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, DefaultDict, Generic, List, Optional, Set, TypeVar

from ..schemas.domain import PromptEvent, PromptEventType

if TYPE_CHECKING:
    from ..services import Services

logger = logging.getLogger(__name__)

K = TypeVar("K")

Handler = Callable[..., Any]
Unsubscribe = Callable[[], None]


class CompletionEvent(str, Enum):
    updated = "updated"
    approval_requested = "approval-requested"
    completed = "completed"


class EventEmitter(Generic[K]):
    """Callback-registration list keyed by event name."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[Any, List[Handler]] = defaultdict(list)
        self._tasks: Set["asyncio.Task[Any]"] = set()

    def on(self, event: K, handler: Handler) -> Unsubscribe:
        """
        Register a handler for an event.

        Returns:
            A callable removing the handler again.
        """
        self._handlers[event].append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: K, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event: K, *args: Any) -> None:
        """Call every handler registered for ``event`` with ``args``."""
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(*args)
            except Exception as e:
                logger.error(f"Event handler for '{event}' failed: {e}", exc_info=True)
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)

    def _schedule(self, event: K, awaitable: Any) -> None:
        async def _run() -> None:
            try:
                await awaitable
            except Exception as e:
                logger.error(f"Async event handler for '{event}' failed: {e}", exc_info=True)

        task = asyncio.ensure_future(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Await handler tasks scheduled so far, including ones they schedule."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


class EventBus:
    """Process-wide publish/subscribe of ``PromptEvent`` records."""

    _ALL = "*"

    def __init__(self, services: Optional["Services"] = None) -> None:
        self._emitter: EventEmitter[Any] = EventEmitter()

    def listen(self, event_type: PromptEventType, handler: Callable[[PromptEvent], Any]) -> Unsubscribe:
        return self._emitter.on(event_type, handler)

    def listen_all(self, handler: Callable[[PromptEvent], Any]) -> Unsubscribe:
        return self._emitter.on(self._ALL, handler)

    def publish(self, event: PromptEvent) -> None:
        logger.debug(f"Publishing {event.type.value} for prompt {event.prompt_id}")
        self._emitter.emit(event.type, event)
        self._emitter.emit(self._ALL, event)

    async def drain(self) -> None:
        await self._emitter.drain()
