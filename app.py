from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from routers.rooms import rooms_router
from backend import SessionRegistry
from connections import ConnectionManager
from events import RoomEventHandler, dump
from schemas.events import (
    CHECK_ROOM,
    JOIN_ROOM,
    LEAVE_ROOM,
    NEW_TRANSCRIPT,
    REQUEST_CALLBACK,
    EventFrame,
)
from schemas.rooms import CheckRoomRequest, JoinRoomRequest, TranscriptRequest
from constants import LOG_FILE, LOG_LEVEL, STATIC_DIR
from logging_config import get_logger, setup_logging
import json
import os
import uuid

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Session state lives for exactly one server run
    registry = SessionRegistry()
    connections = ConnectionManager(registry)
    app.state.registry = registry
    app.state.connections = connections
    app.state.room_events = RoomEventHandler(registry, connections)
    logger.info("Room session state ready")
    try:
        yield
    finally:
        registry.clear()
        logger.info("Room session state torn down")


app = FastAPI(lifespan=lifespan)

# Configure CORS to allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


async def handle_frame(connection_id: str, raw: str, room_events: RoomEventHandler, connections: ConnectionManager):
    """Decode one inbound frame and hand it to the matching room event handler."""
    try:
        frame = EventFrame.model_validate(json.loads(raw))
    except (ValueError, RecursionError, ValidationError) as e:
        logger.warning(f"Dropping malformed frame from connection {connection_id}: {e}")
        return

    data = frame.data or {}
    try:
        if frame.event == CHECK_ROOM:
            reply = room_events.check_room(CheckRoomRequest.model_validate(data))
            await connections.send_to_one(connection_id, CHECK_ROOM, dump(reply), ack=frame.ack)
        elif frame.event == JOIN_ROOM:
            await room_events.join_room(connection_id, JoinRoomRequest.model_validate(data))
        elif frame.event == NEW_TRANSCRIPT:
            await room_events.new_transcript(connection_id, TranscriptRequest.model_validate(data))
        elif frame.event == REQUEST_CALLBACK:
            await room_events.request_callback(connection_id)
        elif frame.event == LEAVE_ROOM:
            await room_events.leave_room(connection_id)
        else:
            logger.warning(f"Unknown event '{frame.event}' from connection {connection_id}")
    except ValidationError as e:
        logger.warning(f"Invalid {frame.event} payload from connection {connection_id}: {e}")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Room event socket. Frames are JSON objects of the form {"event": ..., "data": ...}."""
    room_events: RoomEventHandler = websocket.app.state.room_events
    connections: ConnectionManager = websocket.app.state.connections

    connection_id = uuid.uuid4().hex
    await websocket.accept()
    connections.register(connection_id, websocket)
    logger.info(f"User connected: {connection_id}")

    try:
        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug(f"WebSocket disconnected normally for connection {connection_id}")
                break
            raw = message.get("text")
            if raw is None:
                logger.warning(f"Dropping non-text frame from connection {connection_id}")
                continue
            message_count += 1
            logger.debug(f"Received frame #{message_count} from connection {connection_id}")
            await handle_frame(connection_id, raw, room_events, connections)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        connections.unregister(connection_id)
        await room_events.disconnect(connection_id)


# Static client, mounted last so it does not shadow the API routes
if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
    logger.info(f"Serving static files from {STATIC_DIR}")
