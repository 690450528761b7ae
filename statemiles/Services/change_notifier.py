# statemiles/Services/change_notifier.py
"""
Trip change notifications.

Purpose:
- Tell interested parties that a user's trips or crossings changed
- Drive cache invalidation (mileage_cache) and live dashboard refreshes
  (the /changes WebSocket)

Architecture:
- In-process publish/subscribe, synchronous delivery in subscription order
- A failing listener is logged and skipped; the others still run
- Events carry identifiers only; consumers refetch what they need
"""

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List

from pydantic import BaseModel, ConfigDict, Field

from statemiles.Core import log_ws
from statemiles.Core.changes_ws import ChangesWebSocketManager, changes_ws_manager


class ChangeKind(str, Enum):
    TRIP_STARTED = "trip_started"
    CROSSING_ADDED = "crossing_added"
    CROSSING_DELETED = "crossing_deleted"
    TRIP_COMPLETED = "trip_completed"
    TRIP_DELETED = "trip_deleted"


class TripChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    trip_id: str
    kind: ChangeKind
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> dict:
        return {
            "type": "trip_change",
            "user_id": self.user_id,
            "trip_id": self.trip_id,
            "kind": self.kind.value,
            "occurred_at": self.occurred_at.isoformat(),
        }


Listener = Callable[[TripChangeEvent], None]


class ChangeNotifier:
    """
    Thread-safe registry of change listeners.

    Example:
        unsubscribe = notifier.subscribe(lambda event: print(event.kind))
        notifier.publish(TripChangeEvent(user_id="u1", trip_id="t1", kind=ChangeKind.TRIP_STARTED))
        unsubscribe()
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener and return a function that removes it again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event: TripChangeEvent) -> int:
        """
        Deliver an event to every listener.

        Returns:
            int: Number of listeners that handled the event without error
        """
        with self._lock:
            listeners = list(self._listeners)

        delivered = 0
        for listener in listeners:
            try:
                listener(event)
                delivered += 1
            except Exception as exc:
                log_ws.log_from_thread(
                    f"[NOTIFIER] Listener failed for {event.kind.value} on trip {event.trip_id}: {exc}",
                    msg_type="error",
                )
        return delivered


def forward_to_websocket(
    event: TripChangeEvent,
    manager: ChangesWebSocketManager = changes_ws_manager,
) -> None:
    """
    Listener that pushes an event to the /changes WebSocket clients.
    """
    manager.send_from_thread(event.to_message())


# Global notifier instance (singleton)
change_notifier = ChangeNotifier()
