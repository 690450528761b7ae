from __future__ import annotations

import asyncio
import json

from statemiles.Core.changes_ws import ChangesWebSocketManager
from statemiles.Services.change_notifier import (
    ChangeKind,
    ChangeNotifier,
    TripChangeEvent,
    forward_to_websocket,
)


def _event(kind: ChangeKind = ChangeKind.TRIP_STARTED, user_id: str = "user-1") -> TripChangeEvent:
    return TripChangeEvent(user_id=user_id, trip_id="trip-1", kind=kind)


class _RecordingSocket:
    def __init__(self) -> None:
        self.sent: list[dict[str, object]] = []

    async def send_text(self, text: str) -> None:
        self.sent.append(json.loads(text))


def test_listeners_receive_events_in_subscription_order() -> None:
    notifier = ChangeNotifier()
    seen: list[str] = []
    notifier.subscribe(lambda event: seen.append(f"a:{event.kind.value}"))
    notifier.subscribe(lambda event: seen.append(f"b:{event.kind.value}"))

    delivered = notifier.publish(_event(ChangeKind.CROSSING_ADDED))

    assert delivered == 2
    assert seen == ["a:crossing_added", "b:crossing_added"]


def test_unsubscribe_stops_delivery() -> None:
    notifier = ChangeNotifier()
    seen: list[TripChangeEvent] = []
    unsubscribe = notifier.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    notifier.publish(_event())

    assert seen == []
    assert notifier.listener_count == 0


def test_failing_listener_does_not_block_others() -> None:
    notifier = ChangeNotifier()
    seen: list[TripChangeEvent] = []

    def broken(_event: TripChangeEvent) -> None:
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(seen.append)

    assert notifier.publish(_event()) == 1
    assert len(seen) == 1


def test_event_message_shape() -> None:
    message = _event(ChangeKind.TRIP_DELETED).to_message()

    assert message["type"] == "trip_change"
    assert message["kind"] == "trip_deleted"
    assert message["user_id"] == "user-1"
    assert message["trip_id"] == "trip-1"


def test_forward_without_clients_is_a_no_op() -> None:
    forward_to_websocket(_event(), manager=ChangesWebSocketManager())


def test_changes_socket_routes_events_to_subscribed_user() -> None:
    manager = ChangesWebSocketManager()
    mine, theirs = _RecordingSocket(), _RecordingSocket()

    async def scenario() -> None:
        await manager.handle_message(mine, json.dumps({"action": "subscribe", "user_id": "user-1"}))
        await manager.handle_message(theirs, json.dumps({"action": "subscribe", "user_id": "user-2"}))
        await manager.broadcast(_event().to_message())

    asyncio.run(scenario())

    assert mine.sent[0] == {"type": "subscribed", "user_id": "user-1"}
    assert mine.sent[1]["kind"] == "trip_started"
    assert theirs.sent == [{"type": "subscribed", "user_id": "user-2"}]


def test_changes_socket_rejects_bad_messages() -> None:
    manager = ChangesWebSocketManager()
    socket = _RecordingSocket()

    asyncio.run(manager.handle_message(socket, "not json"))
    asyncio.run(manager.handle_message(socket, json.dumps({"action": "listen"})))

    assert [m["type"] for m in socket.sent] == ["error", "error"]
    assert manager.subscription_for(socket) is None
