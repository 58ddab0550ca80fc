"""Idea ODM schema.

Ideas are owned by another part of the platform; this service only reads the
author and maintains the `sessions` back-reference list.
"""

from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator

from .schema_utils import parse_mongo_datetime


class Idea(Document):
    """Idea document model."""

    idea_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    author_id: Indexed(str)  # type: ignore[valid-type]

    title: str
    description: str | None = None

    # Back-references to sessions created for this idea
    sessions: list[str] = Field(default_factory=list)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "idea"
