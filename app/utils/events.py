import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventEmitter:
    """
    Named-event listener registry.

    Listeners run synchronously, in registration order, on the thread that
    calls emit(). A slow listener holds up the emitter until it returns.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, event: str, callback: Listener) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it."""
        with self._lock:
            self._listeners.setdefault(event, []).append(callback)

        def dispose() -> None:
            self.off(event, callback)

        return dispose

    def off(self, event: str, callback: Listener) -> None:
        with self._lock:
            callbacks = self._listeners.get(event)
            if not callbacks:
                return
            self._listeners[event] = [cb for cb in callbacks if cb != callback]

    def emit(self, event: str, data: Any = None) -> None:
        with self._lock:
            callbacks = list(self._listeners.get(event, ()))
        for callback in callbacks:
            callback(data)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, ()))
