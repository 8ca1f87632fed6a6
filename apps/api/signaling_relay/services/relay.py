"""Signaling relays: route connection events to the right peers.

Two independent vocabularies are served, each over its own hub:

* ``RoomRelay`` scopes offers, answers, candidates and chat to named rooms kept in
  the shared ``RoomDirectory``.
* ``CallRelay`` addresses peers directly by connection id and shares one global
  presence; it keeps no rooms at all.

Relay events are fire-and-forget, so a malformed payload or an unknown room or
target produces no outbound traffic and no error for the sender.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from ..core.clock import utc_timestamp
from ..schemas.signaling import (
    AnswerCallEvent,
    CallUserEvent,
    ChatEvent,
    RoomEvent,
    RoomMembershipEvent,
)
from .errors import NotFoundError
from .hub import ConnectionHub, SignalingConnection
from .rooms import RoomDirectory, directory as room_directory

logger = logging.getLogger(__name__)

Handler = Callable[[str, Any], Awaitable[None]]


def frame(event: str, payload: Any = None) -> dict:
    """Build an outbound frame."""

    return {"type": event, "payload": payload}


class _Relay:
    """Dispatch inbound events by name to handler coroutines."""

    def __init__(self, hub: ConnectionHub) -> None:
        self.hub = hub
        self._handlers: Dict[str, Handler] = {}

    async def connect(self, connection: SignalingConnection) -> None:
        await self.hub.register(connection)
        logger.info("User connected: %s", connection.connection_id)

    async def handle(self, connection_id: str, event: str, payload: Any = None) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("Ignoring unknown event %r from %s", event, connection_id)
            return
        try:
            await handler(connection_id, payload)
        except PayloadError as exc:
            logger.debug("Dropping malformed %s from %s: %s", event, connection_id, exc.errors())

    async def disconnect(self, connection_id: str) -> None:
        """Hook run once a connection closes; each relay supplies its own cleanup."""

        raise NotImplementedError

    @staticmethod
    def _parse(model: type[BaseModel], payload: Any) -> Any:
        return model.model_validate(payload)


class RoomRelay(_Relay):
    """Room-scoped signaling backed by the room directory."""

    SIGNAL_EVENTS = ("offer", "answer", "ice-candidate")

    def __init__(self, directory: RoomDirectory, hub: Optional[ConnectionHub] = None) -> None:
        super().__init__(hub or ConnectionHub())
        self.directory = directory
        self._handlers.update(
            {
                "create-room": self._create_room,
                "join-room": self._join_room,
                "leave-room": self._leave_room,
                "send-message": self._send_message,
            }
        )
        for event in self.SIGNAL_EVENTS:
            self._handlers[event] = self._signal_forwarder(event)

    async def _create_room(self, connection_id: str, payload: Any) -> None:
        event = self._parse(RoomMembershipEvent, payload)
        self.directory.open(event.room_id, connection_id, event.username)
        await self.hub.subscribe(event.room_id, connection_id)

    async def _join_room(self, connection_id: str, payload: Any) -> None:
        event = self._parse(RoomMembershipEvent, payload)
        try:
            self.directory.join(event.room_id, connection_id, event.username, unique_names=False)
        except NotFoundError:
            logger.debug("join-room for unknown room %s from %s", event.room_id, connection_id)
            return

        await self.hub.subscribe(event.room_id, connection_id)

        host = self.directory.host(event.room_id)
        if host is None:
            return
        await self.hub.send_to(
            connection_id,
            frame("user-joined", {"userId": host.connection_id, "username": host.display_name}),
        )
        await self.hub.broadcast_group(
            event.room_id,
            frame("user-joined", {"userId": connection_id, "username": event.username}),
            exclude=connection_id,
        )

    def _signal_forwarder(self, name: str) -> Handler:
        async def forward(connection_id: str, payload: Any) -> None:
            event = self._parse(RoomEvent, payload)
            logger.debug("Relaying %s to room %s", name, event.room_id)
            await self.hub.broadcast_group(event.room_id, frame(name, payload), exclude=connection_id)

        return forward

    async def _leave_room(self, connection_id: str, payload: Any) -> None:
        room_id = payload.get("roomId") if isinstance(payload, dict) else payload
        if not isinstance(room_id, str):
            return

        # Unsubscribe even when the room is gone so a deleted room stops reaching this client.
        await self.hub.unsubscribe(room_id, connection_id)
        if room_id not in self.directory:
            return

        username = self.directory.leave(room_id, connection_id)
        if username is None:
            return
        await self.hub.broadcast_group(
            room_id,
            frame("user-left", {"userId": connection_id, "username": username}),
            exclude=connection_id,
        )

    async def _send_message(self, connection_id: str, payload: Any) -> None:
        event = self._parse(ChatEvent, payload)
        await self.hub.broadcast_group(
            event.room_id,
            frame(
                "receive-message",
                {"message": event.message, "sender": event.sender, "timestamp": utc_timestamp()},
            ),
            exclude=connection_id,
        )

    async def disconnect(self, connection_id: str) -> None:
        """Remove the connection from every room it joined and tell the remaining members."""

        departed = self.directory.leave_all(connection_id)
        await self.hub.unregister(connection_id)
        for room_id, username in departed:
            await self.hub.broadcast_group(
                room_id,
                frame("user-left", {"userId": connection_id, "username": username}),
                exclude=connection_id,
            )
        logger.info("User disconnected: %s", connection_id)


class CallRelay(_Relay):
    """Direct peer addressing with a single global presence."""

    def __init__(self, hub: Optional[ConnectionHub] = None) -> None:
        super().__init__(hub or ConnectionHub())
        self._handlers.update(
            {
                "requestId": self._request_id,
                "callUser": self._call_user,
                "answerCall": self._answer_call,
                "message": self._message,
                "endCall": self._end_call,
            }
        )

    async def _request_id(self, connection_id: str, payload: Any) -> None:
        await self.hub.send_to(connection_id, frame("idAssigned", connection_id))

    async def _call_user(self, connection_id: str, payload: Any) -> None:
        event = self._parse(CallUserEvent, payload)
        await self.hub.send_to(
            event.user_to_call,
            frame("callUser", {"signal": event.signal_data, "from": event.from_}),
        )

    async def _answer_call(self, connection_id: str, payload: Any) -> None:
        event = self._parse(AnswerCallEvent, payload)
        await self.hub.send_to(event.to, frame("callAccepted", event.signal))

    async def _message(self, connection_id: str, payload: Any) -> None:
        # Global chat: the sender receives its own message too.
        await self.hub.broadcast(frame("message", payload))

    async def _end_call(self, connection_id: str, payload: Any) -> None:
        await self.hub.broadcast(frame("callEnded"), exclude=connection_id)

    async def disconnect(self, connection_id: str) -> None:
        if not self.hub.is_connected(connection_id):
            return
        await self.hub.unregister(connection_id)
        await self.hub.broadcast(frame("userLeft"), exclude=connection_id)
        logger.info("User disconnected: %s", connection_id)


room_relay = RoomRelay(directory=room_directory)
call_relay = CallRelay()
