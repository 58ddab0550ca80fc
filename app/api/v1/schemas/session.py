from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer

from app.schemas import SessionState

from .serializers import serialize_utc_datetime


class CreateSessionIn(BaseModel):
    idea_id: str = Field(
        validation_alias=AliasChoices("idea", "idea_id"),
        description="Identifier of the idea the session validates",
    )
    title: str = Field(description="Title of the session, at most 100 characters")
    description: str = Field(description="What the session will cover")
    scheduled_time: datetime = Field(description="When the session starts (ISO 8601)")
    duration_minutes: int | None = Field(default=None, description="15 to 120 minutes, default 30")
    max_participants: int | None = Field(default=None, description="At least 1, default 20")


class UpdateSessionIn(BaseModel):
    """Partial update of a scheduled session.

    Unknown keys are kept so the domain can reject them explicitly, and
    immutable keys are kept so they can be dropped with a warning.
    """

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    scheduled_time: datetime | None = None
    duration_minutes: int | None = None
    max_participants: int | None = None
    recording_url: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_unset=True)
        payload.update(self.model_extra or {})
        return payload


class ChatMessageIn(BaseModel):
    message: str = Field(description="Chat message text")


class ParticipantOut(BaseModel):
    user_id: str
    joined_at: datetime

    @field_serializer("joined_at")
    def serialize_joined_at(self, dt: datetime) -> str:
        return serialize_utc_datetime(dt)


class ChatMessageOut(BaseModel):
    user_id: str
    message: str
    timestamp: datetime

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        return serialize_utc_datetime(dt)


class IdeaOut(BaseModel):
    idea_id: str
    author_id: str
    title: str
    description: str | None = None


class SessionOut(BaseModel):
    session_id: str
    host_id: str
    idea_id: str
    title: str
    description: str
    scheduled_time: datetime
    duration_minutes: int
    status: SessionState
    max_participants: int
    participants: list[ParticipantOut] = Field(default_factory=list)
    chat_messages: list[ChatMessageOut] = Field(default_factory=list)
    recording_url: str | None = None
    created_at: datetime
    updated_at: datetime
    version: int

    @field_serializer("scheduled_time", "created_at", "updated_at")
    def serialize_times(self, dt: datetime) -> str:
        return serialize_utc_datetime(dt)


class SessionDetailOut(SessionOut):
    idea: IdeaOut | None = None
