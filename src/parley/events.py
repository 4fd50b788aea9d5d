"""
Typed observer channels.

An EventChannel holds any number of listeners for one kind of event. Emitting
calls them in subscription order on the caller's thread (the event loop).
A listener that raises is logged and skipped; it never breaks the emitter.
"""

from typing import Callable, Generic, List, TypeVar

from .logger import log_exception

Listener = TypeVar("Listener", bound=Callable[..., None])


class EventChannel(Generic[Listener]):
    """A named, multi-listener event channel."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Add a listener.

        Returns:
            A callable that unsubscribes this listener when invoked
        """
        self._listeners.append(listener)

        def unsubscribe():
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not subscribed."""
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    def emit(self, *args) -> None:
        """Deliver an event to every listener."""
        # Snapshot so listeners may unsubscribe while being called
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception as e:
                log_exception(e, f"in {self.name} listener")

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, listeners={len(self._listeners)})"
