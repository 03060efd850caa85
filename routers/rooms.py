from fastapi import APIRouter, Request
from schemas.rooms import CheckRoomRequest, CheckRoomResponse, HealthResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(tags=["rooms"])


@rooms_router.get("/rooms/{room_code}", response_model=CheckRoomResponse, response_model_by_alias=True)
async def check_room(room_code: str, request: Request):
    """
    Check whether a room is currently open.

    Returns:
    - exists: True while the room has at least one participant
    - roomCode: the code that was checked, unchanged
    """
    room_events = request.app.state.room_events
    return room_events.check_room(CheckRoomRequest(room_code=room_code))


@rooms_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    registry = request.app.state.registry
    return HealthResponse(status="ok", rooms=len(registry.rooms))
