"""Session domain models."""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.schemas import ChatMessage, Participant, SessionState
from app.schemas.schema_utils import parse_mongo_datetime
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..idea.idea_linkage import IdeaSummary

TITLE_MAX_LENGTH = 100
DURATION_MIN_MINUTES = 15
DURATION_MAX_MINUTES = 120


class SessionRecord(BaseModel):
    """Snapshot of a session as seen by the lifecycle and admission logic.

    Instances handed to a store mutator are private copies; assignments are
    validated so a mutator can never leave the record in an invalid shape.
    """

    model_config = ConfigDict(validate_assignment=True)

    # Fields that no caller-supplied update may touch
    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {
            "session_id",
            "host_id",
            "idea_id",
            "status",
            "participants",
            "chat_messages",
            "created_at",
            "updated_at",
            "version",
        }
    )

    session_id: str
    host_id: str
    idea_id: str

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=1)
    scheduled_time: datetime
    duration_minutes: int = Field(default=30, ge=DURATION_MIN_MINUTES, le=DURATION_MAX_MINUTES)

    status: SessionState = SessionState.SCHEDULED
    max_participants: int = Field(default=20, ge=1)

    participants: list[Participant] = Field(default_factory=list)
    chat_messages: list[ChatMessage] = Field(default_factory=list)

    recording_url: str | None = None

    created_at: datetime
    updated_at: datetime
    version: int = 1

    @field_validator("scheduled_time", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    @field_validator("title", "description", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _check_capacity(self) -> "SessionRecord":
        if len(self.participants) > self.max_participants:
            raise ValueError(
                f"max_participants ({self.max_participants}) is below the current "
                f"participant count ({len(self.participants)})"
            )
        return self

    def is_host(self, user_id: str) -> bool:
        return self.host_id == user_id

    def is_participant(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)


class SessionCreateParams(BaseModel):
    """Parameters for creating a session."""

    idea_id: str
    title: str
    description: str
    scheduled_time: datetime
    duration_minutes: int | None = None
    max_participants: int | None = None


class SessionQuery(BaseModel):
    """Filter and sort options for listing sessions."""

    status: SessionState | None = None
    idea_id: str | None = None
    host_id: str | None = None
    # Only sessions whose scheduled_time is at or after `now`
    upcoming: bool = False
    now: datetime | None = None
    descending: bool = False
    limit: int | None = Field(default=None, ge=1)


class SessionDetail(SessionRecord):
    """Session with its idea resolved, used for single-session reads."""

    model_config = ConfigDict(validate_assignment=False)

    idea: IdeaSummary | None = None


def validation_error(exc: ValidationError) -> AppError:
    """Convert a pydantic ValidationError into a VALIDATION AppError."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return AppError(
        errcode=AppErrorCode.VALIDATION,
        errmesg="; ".join(messages) or "Invalid session fields",
        status_code=HttpStatusCode.BAD_REQUEST,
    )
