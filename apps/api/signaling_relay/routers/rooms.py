"""Room directory REST endpoints for inspection and administration."""
from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status

from ..core.clock import isoformat
from ..core.config import settings
from ..schemas import rooms as schemas
from ..services.errors import ValidationError
from ..services.rooms import Member, Room, RoomDirectory, directory

router = APIRouter()


def get_directory() -> RoomDirectory:
    """FastAPI dependency returning the process-wide room directory."""

    return directory


def _users(members: tuple[Member, ...] | list[Member]) -> list[schemas.RoomUser]:
    return [schemas.RoomUser(user_id=member.connection_id, username=member.display_name) for member in members]


def _require_membership_fields(payload: schemas.RoomMembershipRequest | None) -> tuple[str, str]:
    if payload is None or not payload.room_id or not payload.username:
        raise ValidationError("roomId and username are required")
    return payload.room_id, payload.username


def _summary(room: Room) -> schemas.RoomSummary:
    return schemas.RoomSummary(room_id=room.room_id, users=_users(room.members))


@router.post("/create", response_model=schemas.RoomCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: schemas.RoomMembershipRequest | None = Body(default=None),
    rooms: RoomDirectory = Depends(get_directory),
) -> schemas.RoomCreatedResponse:
    """Create a room whose sole member is the caller."""

    room_id, username = _require_membership_fields(payload)
    user_id = payload.user_id or settings.default_creator_id
    rooms.create(room_id, user_id, username)
    return schemas.RoomCreatedResponse(
        message="Room created successfully",
        room_id=room_id,
        creator=schemas.RoomUser(user_id=user_id, username=username),
    )


@router.post("/join", response_model=schemas.RoomJoinedResponse)
async def join_room(
    payload: schemas.RoomMembershipRequest | None = Body(default=None),
    rooms: RoomDirectory = Depends(get_directory),
) -> schemas.RoomJoinedResponse:
    """Join an existing room; display names must be unique within the room."""

    room_id, username = _require_membership_fields(payload)
    user_id = payload.user_id or settings.default_member_id
    members = rooms.join(room_id, user_id, username)
    return schemas.RoomJoinedResponse(message="Joined room successfully", room_id=room_id, users=_users(members))


@router.get("/{room_id}", response_model=schemas.RoomDetailResponse)
async def get_room(room_id: str, rooms: RoomDirectory = Depends(get_directory)) -> schemas.RoomDetailResponse:
    room = rooms.get(room_id)
    return schemas.RoomDetailResponse(
        room_id=room.room_id,
        users=_users(room.members),
        created_at=isoformat(room.created_at),
    )


@router.get("", response_model=schemas.RoomListResponse)
async def list_rooms(rooms: RoomDirectory = Depends(get_directory)) -> schemas.RoomListResponse:
    """Return every active room with its members."""

    summaries = [_summary(room) for room in rooms.list()]
    return schemas.RoomListResponse(count=len(summaries), rooms=summaries)


@router.delete("/{room_id}", response_model=schemas.MessageResponse)
async def delete_room(room_id: str, rooms: RoomDirectory = Depends(get_directory)) -> schemas.MessageResponse:
    rooms.delete(room_id)
    return schemas.MessageResponse(message="Room deleted successfully")
