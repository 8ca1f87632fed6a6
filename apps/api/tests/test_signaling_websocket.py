"""End-to-end websocket tests for both signaling vocabularies."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from signaling_relay.main import app
from signaling_relay.routers.signaling import get_call_relay, get_room_relay
from signaling_relay.services.relay import CallRelay, RoomRelay
from signaling_relay.services.rooms import RoomDirectory


@pytest.fixture
def relays():
    room_relay = RoomRelay(directory=RoomDirectory())
    call_relay = CallRelay()
    app.dependency_overrides[get_room_relay] = lambda: room_relay
    app.dependency_overrides[get_call_relay] = lambda: call_relay
    yield room_relay, call_relay
    app.dependency_overrides.pop(get_room_relay, None)
    app.dependency_overrides.pop(get_call_relay, None)


def test_room_signaling_flow(relays):
    room_relay, _ = relays

    with TestClient(app) as client:
        with client.websocket_connect("/api/signaling/rooms?connection_id=a") as ws_a:
            ws_a.send_json({"type": "create-room", "payload": {"roomId": "r1", "username": "alice"}})
            # Joining our own room echoes the host back, which confirms the room exists.
            ws_a.send_json({"type": "join-room", "payload": {"roomId": "r1", "username": "alice"}})
            assert ws_a.receive_json() == {"type": "user-joined", "payload": {"userId": "a", "username": "alice"}}

            with client.websocket_connect("/api/signaling/rooms?connection_id=b") as ws_b:
                ws_b.send_json({"type": "join-room", "payload": {"roomId": "r1", "username": "bob"}})
                assert ws_b.receive_json() == {
                    "type": "user-joined",
                    "payload": {"userId": "a", "username": "alice"},
                }
                assert ws_a.receive_json() == {"type": "user-joined", "payload": {"userId": "b", "username": "bob"}}

                ws_b.send_text("not json")
                ws_b.send_json(["no", "envelope"])
                offer = {"roomId": "r1", "sdp": {"type": "offer", "sdp": "v=0"}}
                ws_b.send_json({"type": "offer", "payload": offer})
                assert ws_a.receive_json() == {"type": "offer", "payload": offer}

                ws_a.send_json({"type": "send-message", "payload": {"roomId": "r1", "message": "hi", "sender": "alice"}})
                chat = ws_b.receive_json()
                assert chat["type"] == "receive-message"
                assert chat["payload"]["message"] == "hi"

                ws_b.close()
                assert ws_a.receive_json() == {"type": "user-left", "payload": {"userId": "b", "username": "bob"}}

            assert [member.connection_id for member in room_relay.directory.get("r1").members] == ["a"]


def test_duplicate_connection_id_is_refused(relays):
    with TestClient(app) as client:
        with client.websocket_connect("/api/signaling/calls?connection_id=x") as ws_x:
            ws_x.send_json({"type": "requestId"})
            assert ws_x.receive_json() == {"type": "idAssigned", "payload": "x"}

            with pytest.raises(WebSocketDisconnect):
                with client.websocket_connect("/api/signaling/calls?connection_id=x"):
                    pass


def test_direct_call_flow(relays):
    with TestClient(app) as client:
        with client.websocket_connect("/api/signaling/calls?connection_id=x") as ws_x:
            ws_x.send_json({"type": "requestId"})
            assert ws_x.receive_json() == {"type": "idAssigned", "payload": "x"}

            with client.websocket_connect("/api/signaling/calls") as ws_y:
                ws_y.send_json({"type": "requestId"})
                assigned = ws_y.receive_json()
                assert assigned["type"] == "idAssigned"
                y_id = assigned["payload"]
                assert y_id and y_id != "x"

                ws_y.send_json({"type": "callUser", "payload": {"userToCall": "x", "signalData": "S", "from": y_id}})
                assert ws_x.receive_json() == {"type": "callUser", "payload": {"signal": "S", "from": y_id}}

                ws_x.send_json({"type": "answerCall", "payload": {"to": y_id, "signal": "A"}})
                assert ws_y.receive_json() == {"type": "callAccepted", "payload": "A"}

                ws_x.send_json({"type": "message", "payload": {"text": "hello"}})
                assert ws_x.receive_json() == {"type": "message", "payload": {"text": "hello"}}
                assert ws_y.receive_json() == {"type": "message", "payload": {"text": "hello"}}

                ws_y.send_json({"type": "endCall"})
                assert ws_x.receive_json() == {"type": "callEnded", "payload": None}

                ws_y.close()
                assert ws_x.receive_json() == {"type": "userLeft", "payload": None}
