"""Data contracts for relay events carried over the signaling websockets."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    """Frame shape in both directions: an event name plus its payload."""

    type: str = Field(..., min_length=1)
    payload: Any = None


class RoomEvent(BaseModel):
    """Any room-scoped event; extra keys are kept so payloads can be forwarded verbatim."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    room_id: str = Field(..., alias="roomId")


class RoomMembershipEvent(RoomEvent):
    """Payload of ``create-room`` and ``join-room``."""

    username: str


class ChatEvent(RoomEvent):
    message: Any = None
    sender: Any = None


class CallUserEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_to_call: str = Field(..., alias="userToCall")
    signal_data: Any = Field(default=None, alias="signalData")
    from_: Any = Field(default=None, alias="from")


class AnswerCallEvent(BaseModel):
    to: str
    signal: Any = None
