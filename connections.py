import asyncio
from typing import Any, Dict, Optional

from fastapi import WebSocket

from backend import SessionRegistry
from logging_config import get_logger
from schemas.events import EventFrame

logger = get_logger(__name__)


class ConnectionManager:
    """WebSocket side of the event router.

    Tracks one socket per connection id. Room audiences are resolved from the
    registry at send time, so a participant receives room events from the
    moment it is added to the room until it is removed.
    """

    def __init__(self, registry: SessionRegistry):
        self.registry = registry
        # Format: {connection_id: websocket}
        self.active_connections: Dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        self.active_connections[connection_id] = websocket
        logger.debug(f"Registered connection {connection_id} (active: {len(self.active_connections)})")

    def unregister(self, connection_id: str):
        self.active_connections.pop(connection_id, None)
        logger.debug(f"Unregistered connection {connection_id} (active: {len(self.active_connections)})")

    async def send_to_one(self, connection_id: str, event: str, payload: Any, ack: Optional[Any] = None) -> None:
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            logger.debug(f"Dropping {event} for {connection_id}: not connected")
            return
        frame = EventFrame(event=event, data=payload, ack=ack).model_dump(exclude_none=True)
        await self._safe_send(connection_id, websocket, frame)

    async def send_to_group(self, room_code: str, event: str, payload: Any) -> None:
        recipients = [
            (conn_id, self.active_connections[conn_id])
            for conn_id in self.registry.room_members(room_code)
            if conn_id in self.active_connections
        ]
        if not recipients:
            return
        frame = EventFrame(event=event, data=payload).model_dump(exclude_none=True)
        logger.debug(f"Broadcasting {event} to {len(recipients)} connections in room {room_code}")
        # each recipient is independent, one failing socket does not hold up the rest
        await asyncio.gather(
            *(self._safe_send(conn_id, ws, frame) for conn_id, ws in recipients),
            return_exceptions=True,
        )

    async def _safe_send(self, connection_id: str, websocket: WebSocket, frame: dict) -> bool:
        try:
            await websocket.send_json(frame)
            return True
        except Exception as e:
            logger.warning(f"Error sending {frame.get('event')} to connection {connection_id}: {e}")
            return False
