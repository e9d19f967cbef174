"""Minimal observer abstraction for lifecycle notifications.

Example:
    device.on_did_connect.subscribe(lambda: print("connected"))
    unsubscribe = device.on_did_disconnect.subscribe(refresh_tree)
    unsubscribe()
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Signal:
    """Payload-less event with synchronous dispatch.

    Listeners run in subscription order. A listener that raises is logged and
    does not prevent the remaining listeners from running.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self) -> None:
        """Call every listener."""
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Listener for %s failed", self.name)

    def clear(self) -> None:
        """Drop all listeners."""
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
