"""Idea linkage: the session service's view of idea records.

Ideas are owned elsewhere. Sessions only need the idea's author (to authorize
creation), a short summary (for session detail reads) and the `sessions`
back-reference list, which is appended on creation and pruned on deletion.
Each back-reference change is a single atomic update of the idea document.
"""

import asyncio
from contextlib import contextmanager
from typing import Protocol

from beanie.operators import AddToSet, Pull
from loguru import logger
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

from app.schemas import Idea
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class IdeaSummary(BaseModel):
    idea_id: str
    author_id: str
    title: str
    description: str | None = None
    sessions: list[str] = Field(default_factory=list)


class IdeaLinkage(Protocol):
    async def get_idea(self, idea_id: str) -> IdeaSummary | None: ...

    async def add_session(self, idea_id: str, session_id: str) -> None: ...

    async def remove_session(self, idea_id: str, session_id: str) -> None: ...


@contextmanager
def _idea_store_errors(action: str):
    try:
        yield
    except PyMongoError as e:
        logger.error("Idea store failure during {}: {}: {}", action, type(e).__name__, e)
        raise AppError(
            errcode=AppErrorCode.STORE_UNAVAILABLE,
            errmesg=f"Idea store unavailable during {action}",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        ) from e


class BeanieIdeaLinkage:
    """Idea linkage backed by the `idea` MongoDB collection."""

    async def get_idea(self, idea_id: str) -> IdeaSummary | None:
        with _idea_store_errors("get_idea"):
            idea = await Idea.find_one(Idea.idea_id == idea_id)
        if idea is None:
            return None
        return IdeaSummary(**idea.model_dump(include=set(IdeaSummary.model_fields)))

    async def add_session(self, idea_id: str, session_id: str) -> None:
        with _idea_store_errors("add_session"):
            await Idea.find_one(Idea.idea_id == idea_id).update(
                AddToSet({Idea.sessions: session_id})
            )
        logger.debug("Linked session {} to idea {}", session_id, idea_id)

    async def remove_session(self, idea_id: str, session_id: str) -> None:
        with _idea_store_errors("remove_session"):
            await Idea.find_one(Idea.idea_id == idea_id).update(
                Pull({Idea.sessions: session_id})
            )
        logger.debug("Unlinked session {} from idea {}", session_id, idea_id)


class InMemoryIdeaLinkage:
    """Process-local idea linkage for tests and the memory store backend."""

    def __init__(self, ideas: list[IdeaSummary] | None = None):
        self._ideas: dict[str, IdeaSummary] = {}
        self._lock = asyncio.Lock()
        for idea in ideas or []:
            self.put_idea(idea)

    def put_idea(self, idea: IdeaSummary) -> None:
        self._ideas[idea.idea_id] = idea.model_copy(deep=True)

    async def get_idea(self, idea_id: str) -> IdeaSummary | None:
        idea = self._ideas.get(idea_id)
        return idea.model_copy(deep=True) if idea else None

    async def add_session(self, idea_id: str, session_id: str) -> None:
        async with self._lock:
            idea = self._ideas.get(idea_id)
            if idea is not None and session_id not in idea.sessions:
                idea.sessions.append(session_id)

    async def remove_session(self, idea_id: str, session_id: str) -> None:
        async with self._lock:
            idea = self._ideas.get(idea_id)
            if idea is not None and session_id in idea.sessions:
                idea.sessions.remove(session_id)
