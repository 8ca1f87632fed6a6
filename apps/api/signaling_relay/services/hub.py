"""Connection hub: live connections, room-scoped broadcast groups and fan-out."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, Set

from .errors import ConflictError

logger = logging.getLogger(__name__)

SendCallable = Callable[[dict], Awaitable[None]]


@dataclass(slots=True)
class SignalingConnection:
    """Connection wrapper for signaling participants."""

    connection_id: str
    send: SendCallable


class ConnectionHub:
    """Track connected clients and fan messages out to them.

    Group membership is only changed under the hub lock, and every broadcast takes
    its recipient snapshot under the same lock, so a completed ``unsubscribe`` is
    visible to the next broadcast.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, SignalingConnection] = {}
        self._groups: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection: SignalingConnection) -> None:
        async with self._lock:
            if connection.connection_id in self._connections:
                raise ConflictError("Connection id already in use")
            self._connections[connection.connection_id] = connection

    async def unregister(self, connection_id: str) -> None:
        """Drop a connection and every group subscription it holds."""

        async with self._lock:
            self._connections.pop(connection_id, None)
            for group in [name for name, members in self._groups.items() if connection_id in members]:
                self._discard(group, connection_id)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def subscribe(self, group: str, connection_id: str) -> None:
        async with self._lock:
            self._groups.setdefault(group, set()).add(connection_id)

    async def unsubscribe(self, group: str, connection_id: str) -> None:
        async with self._lock:
            self._discard(group, connection_id)

    async def send_to(self, connection_id: str, message: dict) -> bool:
        """Deliver to a single connection; returns False if it is no longer connected."""

        async with self._lock:
            connection = self._connections.get(connection_id)

        if connection is None:
            logger.debug("Dropping %s for unknown connection %s", message.get("type"), connection_id)
            return False

        await self._deliver([connection], message)
        return True

    async def broadcast_group(self, group: str, message: dict, exclude: Optional[str] = None) -> int:
        """Send to every subscriber of ``group`` except ``exclude``."""

        async with self._lock:
            recipients = [
                self._connections[member_id]
                for member_id in self._groups.get(group, ())
                if member_id != exclude and member_id in self._connections
            ]

        await self._deliver(recipients, message)
        return len(recipients)

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> int:
        """Send to every connected client except ``exclude``."""

        async with self._lock:
            recipients = [
                connection
                for connection_id, connection in self._connections.items()
                if connection_id != exclude
            ]

        await self._deliver(recipients, message)
        return len(recipients)

    def _discard(self, group: str, connection_id: str) -> None:
        members = self._groups.get(group)
        if not members:
            return
        members.discard(connection_id)
        if not members:
            self._groups.pop(group, None)

    async def _deliver(self, recipients: Iterable[SignalingConnection], message: dict) -> None:
        recipients = list(recipients)
        if not recipients:
            return

        results = await asyncio.gather(
            *(connection.send(message) for connection in recipients),
            return_exceptions=True,
        )
        for connection, result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Failed sending %s to %s: %s", message.get("type"), connection.connection_id, result
                )
