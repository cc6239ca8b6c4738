"""Host environment contracts used by the focus monitor.

The monitor never talks to a toolkit directly: a host supplies an event
source (subscribe/unsubscribe per signal) and a probe answering "is the
surface hidden?" and "does it have focus?". Probes answer ``None`` when the
capability is unavailable, which the monitor treats as "never obscured".
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

Unsubscribe = Callable[[], None]


class MonitorSignal(str, Enum):
    VISIBILITY = "visibility"  # handler(hidden: bool)
    BLUR = "blur"  # handler()
    FOCUS = "focus"  # handler()
    RESIZE = "resize"  # handler(outer_w, inner_w, outer_h, inner_h)
    KEY = "key"  # handler(chord) -> bool (True = suppress default action)


class EnvironmentProbe(Protocol):
    def is_hidden(self) -> Optional[bool]: ...

    def has_focus(self) -> Optional[bool]: ...


class EventSource(Protocol):
    def subscribe(self, signal: MonitorSignal, handler: Callable[..., object]) -> Unsubscribe: ...


class NullEnvironment:
    """Probe for hosts without window APIs; every capability is unknown."""

    def is_hidden(self) -> Optional[bool]:
        return None

    def has_focus(self) -> Optional[bool]:
        return None


class StaticEnvironment:
    """Probe backed by plain attributes, for headless hosts and tests."""

    def __init__(self, *, hidden: Optional[bool] = False, focused: Optional[bool] = True) -> None:
        self.hidden = hidden
        self.focused = focused

    def is_hidden(self) -> Optional[bool]:
        return self.hidden

    def has_focus(self) -> Optional[bool]:
        return self.focused


class ManualEventSource:
    """In-memory event source; ``emit`` delivers a signal to current subscribers."""

    def __init__(self) -> None:
        self._handlers: Dict[MonitorSignal, List[Callable[..., object]]] = {}

    def subscribe(self, signal: MonitorSignal, handler: Callable[..., object]) -> Unsubscribe:
        self._handlers.setdefault(signal, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(signal)
            if handlers and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._handlers[signal]

        return _unsubscribe

    def handler_count(self, signal: Optional[MonitorSignal] = None) -> int:
        if signal is not None:
            return len(self._handlers.get(signal, ()))
        return sum(len(handlers) for handlers in self._handlers.values())

    def emit(self, signal: MonitorSignal, *args: object) -> List[object]:
        results = []
        for handler in list(self._handlers.get(signal, ())):
            results.append(handler(*args))
        return results
