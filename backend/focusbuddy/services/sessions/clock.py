"""Server clock and client-side clock offset reconciliation."""

import threading
import time
from typing import Callable, Dict, Optional

# Indirection so tests can pin the server clock
_wall_clock = time.time


def server_now_ms() -> int:
    """Authoritative server time in epoch milliseconds."""
    return int(_wall_clock() * 1000)


def offset_for(client_now_ms: int, server_ms: Optional[int] = None) -> int:
    """Offset a client must add to its local clock to read server time."""
    if server_ms is None:
        server_ms = server_now_ms()
    return server_ms - int(client_now_ms)


class ClockReconciler:
    """Keeps `server_now() = local now + offset` for one client.

    The offset is a step function: every sync replaces it outright, with no
    smoothing or drift compensation. Subscribers are called whenever the
    value changes.
    """

    def __init__(self, local_clock: Optional[Callable[[], int]] = None, offset_ms: int = 0):
        self._local_clock = local_clock or (lambda: int(time.time() * 1000))
        self._offset = int(offset_ms)
        self._listeners: Dict[int, Callable[[int], None]] = {}
        self._next_token = 0
        self._lock = threading.Lock()

    @property
    def offset(self) -> int:
        return self._offset

    def local_now(self) -> int:
        return int(self._local_clock())

    def server_now(self) -> int:
        return self.local_now() + self._offset

    def apply_offset(self, offset_ms: int) -> None:
        offset_ms = int(offset_ms)
        with self._lock:
            if offset_ms == self._offset:
                return
            self._offset = offset_ms
            listeners = list(self._listeners.values())
        for listener in listeners:
            listener(offset_ms)

    def sync(self, server_ms: int, sent_at_ms: Optional[int] = None, received_at_ms: Optional[int] = None) -> int:
        """Recompute the offset from one server time reading.

        With a known round trip the reading is assumed to be taken at its
        midpoint; otherwise at the moment of receipt.
        """
        if received_at_ms is None:
            received_at_ms = self.local_now()
        if sent_at_ms is not None:
            local_ref = sent_at_ms + (received_at_ms - sent_at_ms) // 2
        else:
            local_ref = received_at_ms
        self.apply_offset(int(server_ms) - int(local_ref))
        return self._offset

    def subscribe(self, on_offset_change: Callable[[int], None]) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = on_offset_change

        def unsubscribe():
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe
