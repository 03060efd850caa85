import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from constants import HISTORY_LIMIT
from logging_config import get_logger
from schemas.events import Message, ParticipantSummary

logger = get_logger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Participant:
    connection_id: str
    display_name: str
    voice_profile: Optional[Any] = None

    def summary(self) -> ParticipantSummary:
        return ParticipantSummary(name=self.display_name, id=self.connection_id)


@dataclass(frozen=True)
class ConnectionContext:
    """Who a connection joined as, and where. Replaced, never mutated."""
    connection_id: str
    user_name: str
    room_code: str


@dataclass
class Room:
    code: str
    participants: List[Participant] = field(default_factory=list)
    history: deque = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))
    key_topics: Dict[str, str] = field(default_factory=dict)

    def add_participant(self, connection_id: str, display_name: str, voice_profile: Any = None) -> List[Participant]:
        """Append a participant. Names are not deduplicated."""
        self.participants.append(Participant(connection_id, display_name, voice_profile))
        return self.participants

    def remove_participant(self, connection_id: str) -> List[Participant]:
        """Drop every entry for connection_id, keeping the order of the rest."""
        self.participants = [p for p in self.participants if p.connection_id != connection_id]
        return self.participants

    def roster(self) -> List[ParticipantSummary]:
        return [p.summary() for p in self.participants]

    def is_empty(self) -> bool:
        return not self.participants

    def append_message(self, message: Message):
        # deque(maxlen) evicts from the left once the bound is reached
        self.history.append(message)

    def history_snapshot(self) -> List[Message]:
        return list(self.history)

    def extract_topics(self, original: str, translated: str, changed_indices) -> Dict[str, str]:
        """Record original -> translated word pairs at the changed positions.

        Both texts are lowercased and split on whitespace, then aligned by
        position. Indices outside either word list are skipped.
        """
        words = original.lower().split()
        translated_words = translated.lower().split()
        for idx in changed_indices:
            if 0 <= idx < len(words) and 0 <= idx < len(translated_words):
                self.key_topics[words[idx]] = translated_words[idx]
        return self.key_topics


class SessionRegistry:
    """In-memory state for all rooms, voice profiles and joined connections."""

    def __init__(self):
        self.rooms: Dict[str, Room] = {}
        self.voice_profiles: Dict[str, Any] = {}
        self.connections: Dict[str, ConnectionContext] = {}
        self._last_message_id = 0
        logger.info("Initializing SessionRegistry")

    def room_exists(self, room_code: str) -> bool:
        return room_code in self.rooms

    def get_room(self, room_code: str) -> Optional[Room]:
        return self.rooms.get(room_code)

    def get_or_create_room(self, room_code: str) -> Room:
        room = self.rooms.get(room_code)
        if room is None:
            room = Room(code=room_code)
            self.rooms[room_code] = room
            logger.info(f"Created new room: {room_code}")
        return room

    def remove_room_if_empty(self, room_code: str) -> bool:
        room = self.rooms.get(room_code)
        if room is None or not room.is_empty():
            return False
        del self.rooms[room_code]
        logger.info(f"Deleted empty room: {room_code}")
        return True

    def room_members(self, room_code: str) -> List[str]:
        """Distinct connection ids currently in a room, in join order."""
        room = self.rooms.get(room_code)
        if room is None:
            return []
        return list(dict.fromkeys(p.connection_id for p in room.participants))

    def set_voice_profile(self, connection_id: str, voice_data: Any):
        self.voice_profiles[connection_id] = voice_data

    def get_voice_profile(self, connection_id: str) -> Optional[Any]:
        return self.voice_profiles.get(connection_id)

    def drop_voice_profile(self, connection_id: str):
        self.voice_profiles.pop(connection_id, None)

    def bind_connection(self, connection_id: str, user_name: str, room_code: str) -> ConnectionContext:
        previous = self.connections.get(connection_id)
        if previous is not None:
            logger.warning(
                f"Connection {connection_id} joined again as {user_name} in {room_code} "
                f"(was {previous.user_name} in {previous.room_code})"
            )
        context = ConnectionContext(connection_id, user_name, room_code)
        self.connections[connection_id] = context
        return context

    def get_connection(self, connection_id: str) -> Optional[ConnectionContext]:
        return self.connections.get(connection_id)

    def release_connection(self, connection_id: str) -> Optional[ConnectionContext]:
        return self.connections.pop(connection_id, None)

    def next_message_id(self) -> int:
        """Millisecond timestamp, bumped so ids never repeat or go backwards."""
        message_id = max(int(time.time() * 1000), self._last_message_id + 1)
        self._last_message_id = message_id
        return message_id

    def clear(self):
        logger.info(f"Clearing session state ({len(self.rooms)} rooms, {len(self.connections)} connections)")
        self.rooms.clear()
        self.voice_profiles.clear()
        self.connections.clear()
