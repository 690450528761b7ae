"""
statemiles/main.py
============================================
FastAPI Application for State Mileage Tracking
============================================

Entry point of the state mileage (IFTA) service. Drivers log the
jurisdiction and odometer each time their vehicle crosses a state line;
the service derives the miles driven per state for trips, quarters and
all-time history.

Architecture Overview:
---------------------
- REST API: Vehicles, trips/crossings and mileage queries
- Change Notifier: Every trip mutation publishes an event that
  invalidates the mileage cache and is forwarded to /changes clients
- WebSocket: System logs via /logs, live trip changes via /changes

Identity:
    Requests carry the caller's user id in the X-User-ID header, set by
    the authenticating gateway in front of this service.
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio

from statemiles.Core.config import settings
from statemiles.Controller.Routes import mileage, trips, vehicles

# WebSocket Management
from statemiles.Core import log_ws
from statemiles.Core.changes_ws import changes_ws_manager

# Change propagation
from statemiles.Services.change_notifier import change_notifier, forward_to_websocket
from statemiles.Services.mileage_cache import mileage_cache


# ============================================================
# CORS CONFIGURATION
# ============================================================
def _parse_origins(csv_value: str):
    """
    "*" allows every origin; otherwise a comma-separated allow-list.

    Returns:
        (allow_all, origins), e.g. "https://a.com, https://b.com" → (False, ["https://a.com", "https://b.com"])
    """
    origins = [origin.strip() for origin in (csv_value or "").split(",") if origin.strip()]
    if origins == ["*"]:
        return (True, origins)
    return (False, origins)


# Parse allowed origins from environment variables
_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup Sequence:
        1. Configure event loop for WebSocket managers
        2. Subscribe the mileage cache and the /changes forwarder to the
           change notifier

    Shutdown Sequence:
        - Listeners are unsubscribed
        - WebSocket connections are dropped with the server
    """

    # ========================================
    # STARTUP: Configure WebSocket Event Loop
    # ========================================
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)
    changes_ws_manager.set_main_loop(loop)

    # ========================================
    # STARTUP: Change Listeners
    # ========================================
    unsubscribers = [
        change_notifier.subscribe(mileage_cache.handle_change),
        change_notifier.subscribe(forward_to_websocket),
    ]
    print(f"[STARTUP] ✅ Change notifier ready ({change_notifier.listener_count} listeners)")

    print("[STARTUP] ✅ Application initialization complete")

    # Application runtime
    yield

    # ========================================
    # SHUTDOWN: Cleanup
    # ========================================
    for unsubscribe in unsubscribers:
        unsubscribe()
    await changes_ws_manager.close_all()
    await log_ws.log_ws_manager.close_all()
    print("[SHUTDOWN] 🛑 Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/health")
def health():
    """
    Health check endpoint for load balancers and container orchestrators.

    Returns:
        dict: Status object indicating application health
    """
    return {"status": "ok"}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
app.include_router(trips.router, prefix="/trips", tags=["trips"])
app.include_router(mileage.router, prefix="/mileage", tags=["mileage"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Run one WebSocket connection against a manager.

    Connections whose Origin is not in WS_ALLOWED_ORIGINS are closed
    with code 1008 (policy violation) before being accepted.
    """
    origin = ws.headers.get("origin")
    if not _ws_allow_all and origin not in _ws_origins:
        print(f"[WS:{manager.name}] ❌ Rejected origin: {origin}")
        await ws.close(code=1008)
        return

    await manager.register(ws)

    try:
        while True:
            await manager.handle_message(ws, await ws.receive_text())
    except WebSocketDisconnect:
        pass
    except Exception as e:
        print(f"[WS:{manager.name}] Connection error: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    WebSocket endpoint for streaming real-time system logs.

    Message Format:
        {
            "msg_type": "log" | "error" | "warning",
            "message": "Log message content"
        }
    """
    await socket_handler(ws, log_ws.log_ws_manager)


@app.websocket("/changes")
async def websocket_changes(ws: WebSocket):
    """
    WebSocket endpoint for live trip changes.

    Clients subscribe to one user after connecting:
        → {"action": "subscribe", "user_id": "user-1"}
        ← {"type": "subscribed", "user_id": "user-1"}

    Then receive one message per mutation of that user's trips:
        {
            "type": "trip_change",
            "user_id": "user-1",
            "trip_id": "9f1e...",
            "kind": "crossing_added",
            "occurred_at": "2025-04-02T10:30:00Z"
        }

    Clients refetch the affected trip or summary when a message arrives.
    """
    await socket_handler(ws, changes_ws_manager)


# ============================================================
# API INFORMATION ENDPOINT
# ============================================================
@app.get("/api")
def api_info():
    """
    API information and system status endpoint.

    Returns:
        dict: Version, enabled features, cache metrics and endpoints
    """
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "architecture": "REST + WebSocket change feed",
        "features": {
            "websockets": ["/logs", "/changes"],
            "websocket_clients": {
                "logs": log_ws.log_ws_manager.client_count,
                "changes": changes_ws_manager.client_count
            },
            "mileage_cache": mileage_cache.stats(),
            "change_listeners": change_notifier.listener_count
        },
        "endpoints": {
            "vehicles": "/vehicles/*",
            "trips": "/trips/*",
            "mileage": "/mileage/*",
            "logs": "/logs (WebSocket)",
            "changes": "/changes (WebSocket)",
            "health": "/health"
        }
    }
