# statemiles/Core/changes_ws.py

"""
Trip Changes WebSocket Manager

Pushes trip and crossing change events to dashboard clients so they can
refetch their trip lists and mileage totals.

Protocol:
- Client connects to /changes
- Client sends {"action": "subscribe", "user_id": "<id>"}
- Server pushes {"type": "trip_change", "kind": ..., "trip_id": ..., "user_id": ...}
  for that user's trips only

Clients that never subscribe receive nothing. Events carry identifiers
only; clients reload through the REST API, which is idempotent.
"""

import json
from typing import Dict, Any, Optional
from fastapi import WebSocket
from .wsBase import WebSocketManager


class ChangesWebSocketManager(WebSocketManager):
    """
    WebSocket manager that routes change events to the owning user's clients.
    """

    def __init__(self):
        super().__init__("changes")
        self._subscriptions: Dict[WebSocket, str] = {}

    def unregister(self, ws: WebSocket):
        with self._lock:
            self._subscriptions.pop(ws, None)
        super().unregister(ws)

    def subscription_for(self, ws: WebSocket) -> Optional[str]:
        with self._lock:
            return self._subscriptions.get(ws)

    async def handle_message(self, ws: WebSocket, message: str):
        """
        Accept subscribe requests; anything else gets an error reply.
        """
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            await ws.send_text(json.dumps({"type": "error", "detail": "Invalid JSON"}))
            return

        if not isinstance(data, dict) or data.get("action") != "subscribe" or not data.get("user_id"):
            await ws.send_text(json.dumps({"type": "error", "detail": "Expected subscribe action with user_id"}))
            return

        user_id = str(data["user_id"])
        with self._lock:
            self._subscriptions[ws] = user_id

        print(f"[WS:{self.name}] Client subscribed to user {user_id}")
        await ws.send_text(json.dumps({"type": "subscribed", "user_id": user_id}))

    async def broadcast(self, message: Dict[str, Any]):
        """
        Send a change event to the clients subscribed to its user_id.
        """
        target_user = message.get("user_id")

        with self._lock:
            targets = [ws for ws, user_id in self._subscriptions.items() if user_id == target_user]

        await self._send_to(targets, message)


# ==========================================================
# Global Singleton Instance
# ==========================================================
changes_ws_manager = ChangesWebSocketManager()
