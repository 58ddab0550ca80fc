"""Session ODM schema."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from beanie.odm.operators.update.general import Set
from loguru import logger
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, IndexModel

from .schema_utils import parse_mongo_datetime
from .session_state import SessionState


class Participant(BaseModel):
    """A user admitted to a session."""

    user_id: str
    joined_at: datetime

    @field_validator("joined_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class ChatMessage(BaseModel):
    """A single entry of the append-only session chat transcript."""

    user_id: str
    message: str
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


class Session(Document):
    """Session document model."""

    session_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    host_id: str
    idea_id: str

    # Session descriptor fields
    title: str
    description: str
    scheduled_time: datetime
    duration_minutes: int = 30

    # Session settings
    status: SessionState = SessionState.SCHEDULED
    max_participants: int = 20

    participants: list[Participant] = Field(default_factory=list)
    chat_messages: list[ChatMessage] = Field(default_factory=list)

    recording_url: str | None = None

    # Timestamps
    created_at: datetime
    updated_at: datetime

    # Version control for optimistic locking
    version: int = Field(default=1)

    @field_validator("scheduled_time", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format."""
        return parse_mongo_datetime(v)

    async def update_with_version_check(
        self,
        updates: Mapping[str, Any],
    ) -> bool:
        """Apply `updates` only if the stored version still equals this document's version.

        On success the stored version is bumped by one and mirrored on `self`.

        Returns:
            True if the update was applied, False on a version conflict.
        """
        current_version = self.version
        new_version = current_version + 1
        update_fields = dict(updates)
        update_fields["version"] = new_version

        result = await Session.find(
            Session.id == self.id,
            Session.version == current_version,
        ).update(Set(update_fields))

        if result and result.modified_count > 0:
            self.version = new_version
            logger.debug(
                f"Session {self.session_id} updated "
                f"(version {current_version} -> {new_version})"
            )
            return True

        logger.debug(f"Session {self.session_id} version conflict at version {current_version}")
        return False

    class Settings:
        name = "session"
        indexes = [
            [("session_id", 1)],  # unique handled by Indexed
            IndexModel([("idea_id", ASCENDING)], name="idea_id"),
            IndexModel([("host_id", ASCENDING)], name="host_id"),
            IndexModel([("status", ASCENDING)], name="status"),
            IndexModel([("scheduled_time", ASCENDING)], name="scheduled_time"),
        ]
