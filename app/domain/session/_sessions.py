"""Session operations: create, read, list and administrative delete."""

from loguru import logger
from pydantic import ValidationError

from app.schemas import ChatMessage
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..utils.idgen import new_session_id
from ._base import BaseService
from .authorization import Principal, SessionAction
from .chat_log import ChatLog
from .session_events import SessionEventType
from .session_models import (
    SessionCreateParams,
    SessionDetail,
    SessionQuery,
    SessionRecord,
    validation_error,
)


class SessionOperations(BaseService):
    """Session-related operations."""

    default_max_participants: int = 20
    default_duration_minutes: int = 30

    async def create_session(
        self,
        principal: Principal,
        params: SessionCreateParams,
    ) -> SessionRecord:
        """
        Create a session for an idea and link it back to the idea.

        The caller must be the idea's author or hold an elevated role.
        """
        idea = await self.ideas.get_idea(params.idea_id)
        if not idea:
            raise AppError(
                errcode=AppErrorCode.NOT_FOUND,
                errmesg=f"No idea found with id {params.idea_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        self.guard.ensure_can_act(principal, SessionAction.CREATE, idea=idea)

        now = self.clock()
        try:
            record = SessionRecord(
                session_id=new_session_id(),
                host_id=principal.user_id,
                idea_id=idea.idea_id,
                title=params.title,
                description=params.description,
                scheduled_time=params.scheduled_time,
                duration_minutes=(
                    params.duration_minutes
                    if params.duration_minutes is not None
                    else self.default_duration_minutes
                ),
                max_participants=(
                    params.max_participants
                    if params.max_participants is not None
                    else self.default_max_participants
                ),
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            raise validation_error(e) from e

        session = await self.store.create(record)
        logger.info(f"Created session {session.session_id} for idea {idea.idea_id} by {principal.user_id}")
        await self._publish(SessionEventType.CREATED, session, principal.user_id)

        # Back-reference is a separate atomic unit on the idea record. The
        # session is already committed, so a failed link is logged only.
        try:
            await self.ideas.add_session(idea.idea_id, session.session_id)
        except AppError as e:
            logger.error(
                f"Failed to link session {session.session_id} to idea {idea.idea_id}: "
                f"[{e.errcode.value}] {e.errmesg}"
            )

        return session

    async def get_session(self, session_id: str) -> SessionDetail:
        """
        Get a single session with its idea resolved.

        Raises AppError if session not found.
        """
        session = await self._get_session_or_raise(session_id)
        idea = await self.ideas.get_idea(session.idea_id)
        return SessionDetail(**session.model_dump(), idea=idea)

    async def list_sessions(self, query: SessionQuery) -> list[SessionRecord]:
        """Return sessions matching `query`, ordered by scheduled time."""
        if query.upcoming and query.now is None:
            query = query.model_copy(update={"now": self.clock()})
        return await self.store.query(query)

    async def get_chat_messages(self, session_id: str) -> list[ChatMessage]:
        session = await self._get_session_or_raise(session_id)
        return ChatLog.read(session)

    async def delete_session(self, principal: Principal, session_id: str) -> None:
        """
        Administrative delete.

        Two steps, each atomic on its own record: retract the session from
        its idea, then remove the session. A failure between the two leaves a
        session without a back-reference, which is repairable.
        """
        self.guard.ensure_can_act(principal, SessionAction.DELETE)

        session = await self._get_session_or_raise(session_id)
        await self.ideas.remove_session(session.idea_id, session.session_id)

        if not await self.store.delete(session_id):
            raise AppError(
                errcode=AppErrorCode.NOT_FOUND,
                errmesg=f"No session found with id {session_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        logger.info(f"Deleted session {session_id} (idea {session.idea_id}) by {principal.user_id}")
        await self._publish(SessionEventType.DELETED, session, principal.user_id)
