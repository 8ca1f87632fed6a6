"""In-memory room directory: which members are present in which room."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..core.clock import utc_now
from .errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Member:
    connection_id: str
    display_name: str


@dataclass(frozen=True, slots=True)
class Room:
    """Immutable snapshot of a room handed out to callers."""

    room_id: str
    members: tuple[Member, ...]
    created_at: datetime

    @property
    def host(self) -> Optional[Member]:
        return self.members[0] if self.members else None


@dataclass
class _RoomEntry:
    # Insertion order matters: the first member is the room's host.
    members: Dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    def snapshot(self, room_id: str) -> Room:
        return Room(
            room_id=room_id,
            members=tuple(Member(member_id, name) for member_id, name in self.members.items()),
            created_at=self.created_at,
        )


class RoomDirectory:
    """Registry mapping a room id to the members currently present.

    Every operation runs under a single directory-wide lock so that no caller can
    observe a half-applied mutation. A room whose last member leaves is removed
    immediately.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, _RoomEntry] = {}
        self._lock = threading.Lock()

    def create(self, room_id: str, creator_id: str, creator_name: str) -> Room:
        """Create a room with the creator as its sole member; refuse existing ids."""

        with self._lock:
            if room_id in self._rooms:
                raise ConflictError("Room already exists")
            entry = self._rooms[room_id] = _RoomEntry(members={creator_id: creator_name})
            logger.info("Room %s created by %s (%s)", room_id, creator_name, creator_id)
            return entry.snapshot(room_id)

    def open(self, room_id: str, creator_id: str, creator_name: str) -> Room:
        """Create a room without a conflict check, replacing any room with the same id."""

        with self._lock:
            replaced = room_id in self._rooms
            entry = self._rooms[room_id] = _RoomEntry(members={creator_id: creator_name})
            logger.info(
                "Room %s %s by %s (%s)",
                room_id,
                "replaced" if replaced else "opened",
                creator_name,
                creator_id,
            )
            return entry.snapshot(room_id)

    def join(
        self,
        room_id: str,
        member_id: str,
        member_name: str,
        unique_names: bool = True,
    ) -> List[Member]:
        """Add a member and return the full member list in join order.

        With ``unique_names`` a display name already present in the room is refused,
        even when the same member id asks again. The live relay joins with
        ``unique_names=False``.
        """

        with self._lock:
            entry = self._rooms.get(room_id)
            if entry is None:
                raise NotFoundError("Room not found")
            if unique_names and member_name in entry.members.values():
                raise ConflictError("Username already taken in this room")
            entry.members[member_id] = member_name
            logger.info("User %s (%s) joined room %s", member_name, member_id, room_id)
            return list(entry.snapshot(room_id).members)

    def leave(self, room_id: str, member_id: str) -> Optional[str]:
        """Remove a member, returning its display name; unknown rooms or members are ignored."""

        with self._lock:
            return self._remove(room_id, member_id)

    def leave_all(self, member_id: str) -> List[Tuple[str, str]]:
        """Remove a member from every room it belongs to.

        Returns ``(room_id, display_name)`` pairs for the rooms it was removed from.
        """

        with self._lock:
            affected = [room_id for room_id, entry in self._rooms.items() if member_id in entry.members]
            removed: List[Tuple[str, str]] = []
            for room_id in affected:
                name = self._remove(room_id, member_id)
                if name is not None:
                    removed.append((room_id, name))
            return removed

    def host(self, room_id: str) -> Optional[Member]:
        with self._lock:
            entry = self._rooms.get(room_id)
            if entry is None:
                return None
            return entry.snapshot(room_id).host

    def get(self, room_id: str) -> Room:
        with self._lock:
            entry = self._rooms.get(room_id)
            if entry is None:
                raise NotFoundError("Room not found")
            return entry.snapshot(room_id)

    def list(self) -> List[Room]:
        with self._lock:
            return [entry.snapshot(room_id) for room_id, entry in self._rooms.items()]

    def delete(self, room_id: str) -> None:
        """Remove a room regardless of how many members it still has."""

        with self._lock:
            if self._rooms.pop(room_id, None) is None:
                raise NotFoundError("Room not found")
            logger.info("Room %s deleted", room_id)

    def __contains__(self, room_id: object) -> bool:
        with self._lock:
            return room_id in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def _remove(self, room_id: str, member_id: str) -> Optional[str]:
        entry = self._rooms.get(room_id)
        if entry is None or member_id not in entry.members:
            return None
        name = entry.members.pop(member_id)
        logger.info("User %s (%s) left room %s", name, member_id, room_id)
        if not entry.members:
            self._rooms.pop(room_id, None)
            logger.info("Room %s is empty and was removed", room_id)
        return name


directory = RoomDirectory()
