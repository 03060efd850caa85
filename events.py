import random
from typing import Any, Optional, Protocol

from backend import SessionRegistry, utc_timestamp
from callbacks import generate_callback
from logging_config import get_logger
from schemas.events import (
    CALLBACK_MESSAGE,
    CONVERSATION_HISTORY,
    NEW_MESSAGE,
    PARTICIPANT_JOINED,
    PARTICIPANT_LEFT,
    Message,
    ParticipantJoined,
    ParticipantLeft,
    ParticipantSummary,
)
from schemas.rooms import CheckRoomRequest, CheckRoomResponse, JoinRoomRequest, TranscriptRequest

logger = get_logger(__name__)


class EventRouter(Protocol):
    """Delivers outbound events. Delivery is best effort and never awaited for acknowledgement."""

    async def send_to_one(self, connection_id: str, event: str, payload: Any) -> None:
        ...

    async def send_to_group(self, room_code: str, event: str, payload: Any) -> None:
        ...


def dump(model) -> Any:
    return model.model_dump(by_alias=True, mode="json")


class RoomEventHandler:
    """Applies inbound room events to the session registry and emits the results.

    Every handler finishes its registry mutations before the first await, so
    handlers running on one event loop never observe each other half way.
    """

    def __init__(self, registry: SessionRegistry, router: EventRouter, rng: Optional[random.Random] = None):
        self.registry = registry
        self.router = router
        self.rng = rng or random.Random()

    def check_room(self, request: CheckRoomRequest) -> CheckRoomResponse:
        exists = self.registry.room_exists(request.room_code)
        logger.info(f"Room check: {request.room_code} - Exists: {exists}")
        return CheckRoomResponse(exists=exists, room_code=request.room_code)

    async def join_room(self, connection_id: str, request: JoinRoomRequest):
        if self.registry.room_exists(request.room_code):
            logger.info(f"{request.user_name} joining existing room: {request.room_code}")
        room = self.registry.get_or_create_room(request.room_code)

        room.add_participant(connection_id, request.user_name, request.voice_data)
        if request.voice_data:
            self.registry.set_voice_profile(connection_id, request.voice_data)
        self.registry.bind_connection(connection_id, request.user_name, request.room_code)

        joined = ParticipantJoined(
            participants=room.roster(),
            new_participant=ParticipantSummary(name=request.user_name, id=connection_id),
        )
        history = [dump(message) for message in room.history_snapshot()]
        logger.info(
            f"{request.user_name} joined room {request.room_code} ({len(room.participants)} total participants)"
        )

        await self.router.send_to_group(request.room_code, PARTICIPANT_JOINED, dump(joined))
        await self.router.send_to_one(connection_id, CONVERSATION_HISTORY, history)

    async def new_transcript(self, connection_id: str, request: TranscriptRequest) -> Optional[Message]:
        context = self.registry.get_connection(connection_id)
        room = self.registry.get_room(context.room_code) if context else None
        if room is None:
            logger.debug(f"Ignoring transcript from {connection_id}: not in a room")
            return None

        message = Message(
            id=self.registry.next_message_id(),
            display_name=context.user_name,
            connection_id=connection_id,
            original_text=request.original,
            translated_text=request.translated,
            changed_indices=tuple(request.changed_indices),
            created_at=utc_timestamp(),
        )
        room.append_message(message)
        room.extract_topics(request.original, request.translated, request.changed_indices)
        logger.debug(
            f'Message in {room.code} from {context.user_name}: "{request.original}" -> "{request.translated}"'
        )

        await self.router.send_to_group(room.code, NEW_MESSAGE, dump(message))
        return message

    async def request_callback(self, connection_id: str):
        context = self.registry.get_connection(connection_id)
        room = self.registry.get_room(context.room_code) if context else None
        if room is None:
            logger.debug(f"Ignoring callback request from {connection_id}: not in a room")
            return None

        callback = generate_callback(room, context.user_name, rng=self.rng)
        if callback is None:
            logger.debug(f"No key topics yet in room {room.code}, skipping callback")
            return None

        await self.router.send_to_group(room.code, CALLBACK_MESSAGE, dump(callback))
        return callback

    async def leave_room(self, connection_id: str):
        """Take the connection out of its room but keep the socket and its voice profile."""
        context = self.registry.release_connection(connection_id)
        if context is None:
            logger.debug(f"Ignoring leave from {connection_id}: not in a room")
            return
        await self._remove_from_room(connection_id, context.user_name, context.room_code)

    async def disconnect(self, connection_id: str):
        context = self.registry.release_connection(connection_id)
        self.registry.drop_voice_profile(connection_id)
        if context is not None:
            await self._remove_from_room(connection_id, context.user_name, context.room_code)
        logger.info(f"User disconnected: {connection_id}")

    async def _remove_from_room(self, connection_id: str, user_name: str, room_code: str):
        room = self.registry.get_room(room_code)
        if room is None:
            return

        room.remove_participant(connection_id)
        left = ParticipantLeft(user_name=user_name, participants=room.roster())
        if self.registry.remove_room_if_empty(room_code):
            # nobody is left to notify
            return
        logger.info(f"{user_name} left room {room_code} ({len(room.participants)} remaining)")
        await self.router.send_to_group(room_code, PARTICIPANT_LEFT, dump(left))
