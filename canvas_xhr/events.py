"""Minimal DOM-style event target for scripting-facing objects."""

import sys
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

Listener = Callable[["Event"], Any]


class Event(BaseModel):
    """Event passed to listeners."""

    model_config = {"frozen": True}

    type: str
    target: Any = None
    detail: dict[str, Any] = {}


class EventTarget:
    """Dispatches named events to `on<name>` handlers and added listeners.

    The `on<name>` handler for an event runs first, then listeners in the
    order they were added. A listener that raises is logged and skipped.
    """

    EVENT_NAMES: tuple[str, ...] = ()

    def __init__(self, *, debug: bool = False) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._handlers: dict[str, Listener | None] = {name: None for name in self.EVENT_NAMES}
        self._debug = debug

    def __getattr__(self, name: str) -> Any:
        handlers = self.__dict__.get("_handlers")
        if handlers is not None and name.startswith("on") and name[2:] in handlers:
            return handlers[name[2:]]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        handlers = self.__dict__.get("_handlers")
        if handlers is not None and name.startswith("on") and name[2:] in handlers:
            handlers[name[2:]] = value
            return
        super().__setattr__(name, value)

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            print(f"[canvas-xhr:events] {message}", file=sys.stderr)

    def add_event_listener(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.setdefault(name, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    def trigger_event(self, name: str, **detail: Any) -> None:
        """Call every handler registered for name with a new Event."""
        event = Event(type=name, target=self, detail=detail)
        handler = self._handlers.get(name)
        callbacks = ([handler] if handler is not None else []) + list(
            self._listeners.get(name, [])
        )
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                self._log_debug(f"Listener for {name!r} raised {type(e).__name__}: {e}")
