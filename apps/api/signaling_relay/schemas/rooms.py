"""Data contracts for the room directory REST endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RoomMembershipRequest(_CamelModel):
    # Presence is checked by the route so that missing and empty values share one 400.
    room_id: str | None = Field(default=None, alias="roomId")
    username: str | None = None
    user_id: str | None = Field(default=None, alias="userId")


class RoomUser(_CamelModel):
    user_id: str = Field(..., alias="userId")
    username: str


class RoomCreatedResponse(_CamelModel):
    message: str
    room_id: str = Field(..., alias="roomId")
    creator: RoomUser


class RoomJoinedResponse(_CamelModel):
    message: str
    room_id: str = Field(..., alias="roomId")
    users: list[RoomUser]


class RoomSummary(_CamelModel):
    room_id: str = Field(..., alias="roomId")
    users: list[RoomUser]


class RoomDetailResponse(RoomSummary):
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 creation time of the room")


class RoomListResponse(BaseModel):
    count: int = Field(..., ge=0)
    rooms: list[RoomSummary]


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
