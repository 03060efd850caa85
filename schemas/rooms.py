from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class CheckRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(alias="roomCode")

class CheckRoomResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exists: bool
    room_code: str = Field(alias="roomCode")

class JoinRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName")
    room_code: str = Field(alias="roomCode")
    voice_data: Optional[Any] = Field(default=None, alias="voiceData")

class TranscriptRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original: str
    translated: str
    changed_indices: list[int] = Field(default_factory=list, alias="changedIndices")
    speaker_confidence: Optional[float] = Field(default=None, alias="speakerConfidence")

class HealthResponse(BaseModel):
    status: str
    rooms: int
