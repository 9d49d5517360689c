"""EventBus and progress events for indexing observers."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of index progress published to observers."""

    INDEXING_STARTED = "indexing_started"
    FILE_INDEXED = "file_indexed"
    INDEXING_FINISHED = "indexing_finished"
    INDEX_CLEARED = "index_cleared"


@dataclass(frozen=True, slots=True)
class IndexEvent:
    """Immutable snapshot of indexing progress.

    Attributes:
        event_type: What happened.
        in_progress: Whether a directory run is active after this event.
        chunk_count: Chunks in the memory index after this event.
        files_indexed: Files (re)indexed so far in the current run.
        path: The file concerned (``FILE_INDEXED`` only).
    """

    event_type: EventType
    in_progress: bool
    chunk_count: int
    files_indexed: int = 0
    path: str | None = None


class EventBus:
    """Dispatches index events to registered handlers.

    Handlers may be plain functions or coroutines and are called
    sequentially in registration order.  Exceptions are logged but never
    propagated, so a failing observer cannot abort indexing.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Callable[..., Any]]] = {et: [] for et in EventType}

    def register(self, event_type: EventType, handler: Callable[..., Any]) -> None:
        """Append *handler* to the list for *event_type*."""
        self._handlers[event_type].append(handler)

    def subscribe(self, handler: Callable[..., Any]) -> None:
        """Register *handler* for every event type."""
        for event_type in EventType:
            self.register(event_type, handler)

    def unregister(self, event_type: EventType, handler: Callable[..., Any]) -> bool:
        """Remove first occurrence of *handler*. Return True if found."""
        handlers = self._handlers[event_type]
        try:
            handlers.remove(handler)
            return True
        except ValueError:
            return False

    async def emit(self, event: IndexEvent) -> None:
        """Dispatch *event* to all registered handlers for its type."""
        for handler in list(self._handlers[event.event_type]):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning(
                    "Handler %r failed for %s",
                    handler,
                    event.event_type.value,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        """Total number of registered handlers across all event types."""
        return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        """Remove all registered handlers."""
        for handlers in self._handlers.values():
            handlers.clear()
