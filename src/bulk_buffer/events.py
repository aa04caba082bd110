"""Notification sinks for buffered add events."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

    from bulk_buffer.domain import BufferEvent

    EventListener = Callable[[BufferEvent, Any], None]

_logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Receive buffered add notifications."""

    def notify(self, event: BufferEvent, payload: Any) -> None:
        """Handle one notification.

        Args:
            event (BufferEvent): Event identifier.
            payload (Any): Pending documents for start events, result for end events.

        """


class NullEventSink:
    """Discard every notification."""

    def notify(self, event: BufferEvent, payload: Any) -> None:  # noqa: PLR6301
        """Ignore the notification."""
        _ = event
        _ = payload


class EventDispatcher:
    """Dispatch notifications to listeners in subscription order."""

    def __init__(self) -> None:
        """Create a dispatcher without listeners."""
        self._listeners: dict[BufferEvent, list[EventListener]] = defaultdict(list)

    def subscribe(self, event: BufferEvent, listener: EventListener) -> EventDispatcher:
        """Register a listener for one event.

        Args:
            event (BufferEvent): Event identifier.
            listener (EventListener): Callable receiving `(event, payload)`.

        Returns:
            EventDispatcher: The dispatcher itself.

        """
        self._listeners[event].append(listener)
        return self

    def unsubscribe(self, event: BufferEvent, listener: EventListener) -> EventDispatcher:
        """Remove a listener; unknown listeners are ignored.

        Args:
            event (BufferEvent): Event identifier.
            listener (EventListener): Previously registered listener.

        Returns:
            EventDispatcher: The dispatcher itself.

        """
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        return self

    def listeners(self, event: BufferEvent) -> tuple[EventListener, ...]:
        """Return listeners registered for one event."""
        return tuple(self._listeners.get(event, ()))

    def notify(self, event: BufferEvent, payload: Any) -> None:
        """Call every listener registered for the event.

        Args:
            event (BufferEvent): Event identifier.
            payload (Any): Event payload.

        """
        listeners = self.listeners(event)
        _logger.debug("Dispatching '%s' to %d listener(s).", event, len(listeners))
        for listener in listeners:
            listener(event, payload)
