"""Observer registry for session record changes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

# Change kinds published by the store
CHANGE_CREATED = 'created'
CHANGE_UPDATED = 'updated'
CHANGE_DELETED = 'deleted'


@dataclass(slots=True, frozen=True)
class SessionChange:
    """One committed write to a session record."""

    session_id: str
    kind: str
    record: Dict[str, Any] | None
    changed_fields: Tuple[str, ...] = field(default_factory=tuple)


class SessionObservers:
    """Per-session subscriber lists with an explicit unsubscribe contract.

    `subscribe` returns a callable that removes the listener; calling it more
    than once is harmless. Listeners run synchronously on the writing thread
    after the write has been committed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[str, Dict[int, Callable[[SessionChange], None]]] = {}
        # Listeners for every session, e.g. the Socket.IO room broadcaster
        self._all: Dict[int, Callable[[SessionChange], None]] = {}
        self._next_token = 0

    def subscribe(self, session_id: str, on_change: Callable[[SessionChange], None]) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners.setdefault(session_id, {})[token] = on_change

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(session_id)
                if listeners is None:
                    return
                listeners.pop(token, None)
                if not listeners:
                    self._listeners.pop(session_id, None)

        return unsubscribe

    def subscribe_all(self, on_change: Callable[[SessionChange], None]) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._all[token] = on_change

        def unsubscribe() -> None:
            with self._lock:
                self._all.pop(token, None)

        return unsubscribe

    def count(self, session_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(session_id, {}))

    def publish(self, change: SessionChange) -> None:
        with self._lock:
            listeners = list(self._listeners.get(change.session_id, {}).values())
            listeners.extend(self._all.values())
        for listener in listeners:
            listener(change)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()
            self._all.clear()


# Process-wide registry used by the default store
observers = SessionObservers()
