"""
Log WebSocket Management Module
================================

Streams operational log lines (trips started, ended, deleted, listener
failures) to clients connected on the `/logs` WebSocket.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "The log message content"
    }

Usage Example:
-------------
    from statemiles.Core import log_ws

    log_ws.log_from_thread("[SERVICE] Trip abc started", "log")
    log_ws.log_from_thread("[NOTIFIER] Listener failed: ...", "error")
"""

from typing import Dict, Any
from fastapi import WebSocket
from .wsBase import WebSocketManager


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Broadcast a log line to all connected log clients.

    Safe to call from any thread. When nobody is listening the message
    is written to the console instead.

    Args:
        message: The log message content
        msg_type: "log" (default), "error" or "warning"
    """
    if log_ws_manager.has_clients:
        payload: Dict[str, Any] = {"msg_type": msg_type, "message": str(message)}
        log_ws_manager.send_from_thread(payload)
    else:
        print(f"[LOG-BROADCAST] {msg_type.upper()}: {message}")


class LogWebSocketManager(WebSocketManager):
    """
    WebSocket manager for real-time log streaming.

    Log clients are read-only; incoming messages are only echoed to the
    console.
    """

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[WS:{self.name}] Log clients are read-only, ignored: {message}")


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = LogWebSocketManager("logs")
