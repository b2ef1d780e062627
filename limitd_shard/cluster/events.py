"""
Event Emission and Multiplexing

EventEmitter is a small synchronous observer: listeners run in
registration order on the caller's thread of control, and a listener
that raises propagates to whoever emitted the event.

EventMultiplexer forwards the connection events of every node client
to one target emitter, appending the originating client to the payload
so listeners can tell nodes apart:

    shard.on("error", lambda err, client: log(client.host, err))
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

# Events forwarded from node clients to the shard client
NODE_EVENTS: Tuple[str, ...] = (
    "error",
    "breaker_error",
    "connect",
    "reconnect",
    "close",
    "ready",
    "response",
)


class EventEmitter:
    """Registry of named event listeners."""

    def __init__(self):
        self._listeners: Dict[str, List[Tuple[Callable, bool]]] = defaultdict(list)

    def on(self, event: str, listener: Callable) -> "EventEmitter":
        """Register a listener for an event. Returns self for chaining."""
        self._listeners[event].append((listener, False))
        return self

    def once(self, event: str, listener: Callable) -> "EventEmitter":
        """Register a listener that is removed after its first call."""
        self._listeners[event].append((listener, True))
        return self

    def off(self, event: str, listener: Callable) -> "EventEmitter":
        """Remove every registration of listener for an event."""
        if event in self._listeners:
            self._listeners[event] = [
                (cb, once) for cb, once in self._listeners[event] if cb != listener
            ]
            if not self._listeners[event]:
                del self._listeners[event]
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener of an event with the given arguments.

        Returns:
            True if the event had listeners, False otherwise
        """
        registered = self._listeners.get(event)
        if not registered:
            return False

        # Snapshot so listeners may (un)register while we iterate
        snapshot = list(registered)
        if any(once for _, once in snapshot):
            self._listeners[event] = [entry for entry in registered if not entry[1]]
            if not self._listeners[event]:
                del self._listeners[event]

        for listener, _ in snapshot:
            listener(*args)
        return True

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))


class EventMultiplexer:
    """
    Re-emits node client events on a target emitter.

    Only clients that subclass EventEmitter are wired; anything else is
    skipped silently.
    """

    def __init__(self, target: EventEmitter):
        self.target = target
        self._subscriptions: Dict[int, List[Tuple[str, Callable]]] = {}

    def wire(self, client: Any) -> bool:
        """
        Subscribe to every node event of client.

        Returns:
            True if the client emits events and was wired
        """
        if not isinstance(client, EventEmitter):
            return False
        if id(client) in self._subscriptions:
            return True

        subscriptions = []
        for event in NODE_EVENTS:
            listener = self._forwarder(event, client)
            client.on(event, listener)
            subscriptions.append((event, listener))

        self._subscriptions[id(client)] = subscriptions
        logger.debug(f"Wired events for {getattr(client, 'host', client)!r}")
        return True

    def unwire(self, client: Any) -> None:
        """Drop the subscriptions made by wire()."""
        for event, listener in self._subscriptions.pop(id(client), ()):
            client.off(event, listener)

    def is_wired(self, client: Any) -> bool:
        return id(client) in self._subscriptions

    def _forwarder(self, event: str, client: Any) -> Callable:
        def forward(*payload: Any) -> None:
            self.target.emit(event, *payload, client)
        return forward
