from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


# Outbound event names
PARTICIPANT_JOINED = "participant-joined"
PARTICIPANT_LEFT = "participant-left"
CONVERSATION_HISTORY = "conversation-history"
NEW_MESSAGE = "new-message"
CALLBACK_MESSAGE = "callback-message"

# Inbound event names
CHECK_ROOM = "check-room"
JOIN_ROOM = "join-room"
NEW_TRANSCRIPT = "new-transcript"
REQUEST_CALLBACK = "request-callback"
LEAVE_ROOM = "leave-room"


class EventFrame(BaseModel):
    """Envelope for every frame sent over the room WebSocket."""
    event: str
    data: Any = None
    ack: Optional[Any] = None

class ParticipantSummary(BaseModel):
    name: str
    id: str

class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    display_name: str = Field(alias="userName")
    connection_id: str = Field(alias="socketId")
    original_text: str = Field(alias="original")
    translated_text: str = Field(alias="translated")
    changed_indices: tuple[int, ...] = Field(default=(), alias="changedIndices")
    created_at: str = Field(alias="timestamp")

class CallbackMessage(BaseModel):
    text: str
    reference: str
    speaker: str
    timestamp: str

class ParticipantJoined(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    participants: list[ParticipantSummary]
    new_participant: ParticipantSummary = Field(alias="newParticipant")

class ParticipantLeft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName")
    participants: list[ParticipantSummary]
