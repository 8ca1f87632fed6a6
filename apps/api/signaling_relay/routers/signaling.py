"""Websocket endpoints binding client connections to the signaling relays."""
from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as PayloadError

from ..schemas.signaling import Envelope
from ..services.errors import ConflictError
from ..services.hub import SignalingConnection
from ..services.relay import CallRelay, RoomRelay, call_relay, room_relay

logger = logging.getLogger(__name__)

router = APIRouter()


def get_room_relay() -> RoomRelay:
    return room_relay


def get_call_relay() -> CallRelay:
    return call_relay


async def _serve(websocket: WebSocket, relay: RoomRelay | CallRelay) -> None:
    """Accept a connection and pump its frames into ``relay`` until it closes."""

    connection_id = websocket.query_params.get("connection_id") or str(uuid4())
    if relay.hub.is_connected(connection_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="connection id in use")
        return

    await websocket.accept()
    try:
        await relay.connect(SignalingConnection(connection_id=connection_id, send=websocket.send_json))
    except ConflictError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="connection id in use")
        return

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (KeyError, ValueError):
                logger.debug("Ignoring undecodable frame from %s", connection_id)
                continue
            try:
                envelope = Envelope.model_validate(message)
            except PayloadError:
                logger.debug("Ignoring frame without an event type from %s", connection_id)
                continue
            await relay.handle(connection_id, envelope.type, envelope.payload)
    except WebSocketDisconnect:
        pass
    finally:
        await relay.disconnect(connection_id)


@router.websocket("/rooms")
async def room_signaling(websocket: WebSocket, relay: RoomRelay = Depends(get_room_relay)) -> None:
    """Room-scoped offer/answer/candidate and chat relay."""

    await _serve(websocket, relay)


@router.websocket("/calls")
async def call_signaling(websocket: WebSocket, relay: CallRelay = Depends(get_call_relay)) -> None:
    """Direct peer-addressed call signaling with global presence."""

    await _serve(websocket, relay)
