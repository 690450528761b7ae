"""
statemiles/Core/wsBase.py
==========================================
Base WebSocket Connection Manager
==========================================

Shared connection bookkeeping for the service's WebSocket endpoints
(`/logs` and `/changes`).

Responsibilities:
----------------
- Track connected clients under a threading.Lock
- Broadcast JSON messages to every client, dropping dead connections
- Let synchronous code (repositories, services, request threads) schedule
  a broadcast on the main event loop via send_from_thread()

Lifecycle:
---------
    manager = ChangesWebSocketManager()

    @asynccontextmanager
    async def lifespan(app):
        manager.set_main_loop(asyncio.get_running_loop())
        yield

    @app.websocket("/changes")
    async def changes(ws: WebSocket):
        await manager.register(ws)
        try:
            while True:
                await manager.handle_message(ws, await ws.receive_text())
        finally:
            manager.unregister(ws)
"""

import asyncio
import json
import threading
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket


class WebSocketManager:
    """
    Connection registry shared by the /logs and /changes endpoints.

    Attributes:
        name: Tag used in console diagnostics ("logs", "changes")
        main_loop: Event loop that send_from_thread() schedules onto
    """

    def __init__(self, name: str = "ws"):
        self.name = name
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        self._clients: Set[WebSocket] = set()
        self._lock = threading.Lock()

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """
        Must be called from the lifespan handler; without a loop,
        send_from_thread() drops every message.
        """
        self.main_loop = loop

    # ==========================================================
    # CONNECTIONS
    # ==========================================================

    async def register(self, ws: WebSocket):
        """
        Accept a client. It is tracked before accept() so a broadcast sent
        during the handshake reaches it; a failed handshake untracks it.
        """
        with self._lock:
            self._clients.add(ws)

        try:
            await ws.accept()
        except Exception:
            self.unregister(ws)
            raise

        print(f"[WS:{self.name}] Client connected ({self.client_count} open)")

    def unregister(self, ws: WebSocket):
        """Forget a client. Idempotent; the socket itself is not closed."""
        with self._lock:
            if ws not in self._clients:
                return
            self._clients.discard(ws)
            remaining = len(self._clients)

        print(f"[WS:{self.name}] Client disconnected ({remaining} open)")

    def _snapshot(self) -> List[WebSocket]:
        with self._lock:
            return list(self._clients)

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def has_clients(self) -> bool:
        return self.client_count > 0

    async def close_all(self, code: int = 1001):
        """Close every open connection (server shutdown)."""
        for ws in self._snapshot():
            try:
                await ws.close(code=code)
            except Exception as exc:
                print(f"[WS:{self.name}] Close failed: {exc}")
            self.unregister(ws)

    # ==========================================================
    # SENDING
    # ==========================================================

    async def _send_to(self, targets: List[WebSocket], message: Dict[str, Any]):
        """
        Send one JSON message to targets. Sockets that fail are dropped
        after the loop, never while iterating.
        """
        text = json.dumps(message, default=str)
        dead = []

        for ws in targets:
            try:
                await ws.send_text(text)
            except Exception:
                dead.append(ws)

        for ws in dead:
            self.unregister(ws)

    async def broadcast(self, message: Dict[str, Any]):
        await self._send_to(self._snapshot(), message)

    def send_from_thread(self, message: Dict[str, Any]):
        """
        Schedule broadcast() on the main loop from synchronous code
        (request threads, notifier listeners). Fire and forget.
        """
        if not self.has_clients or self.main_loop is None:
            return

        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.main_loop)

    async def handle_message(self, ws: WebSocket, message: str):
        """Incoming client message. Subclasses override this."""
        print(f"[WS:{self.name}] Ignored client message: {message}")
