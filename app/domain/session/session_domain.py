"""Session domain service."""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from app.schemas import ChatMessage

from ..idea.idea_linkage import IdeaLinkage
from ..utils.clock import utc_now
from ._lifecycle import LifecycleOperations
from ._participation import ParticipationOperations
from ._sessions import SessionOperations
from .authorization import AuthorizationGuard, Principal
from .chat_log import ChatLog
from .session_events import SessionEventPublisher
from .session_models import SessionCreateParams, SessionDetail, SessionQuery, SessionRecord
from .session_store import SessionStore


class SessionService:
    """Entry point for every session operation.

    Built once by the process entry point with an explicit store, idea
    linkage and event publisher, then injected into the API layer.
    """

    def __init__(
        self,
        store: SessionStore,
        ideas: IdeaLinkage,
        publisher: SessionEventPublisher,
        *,
        guard: AuthorizationGuard | None = None,
        clock: Callable[[], datetime] = utc_now,
        default_max_participants: int = 20,
        default_duration_minutes: int = 30,
        chat_message_max_length: int = 2000,
    ):
        self.store = store
        self.ideas = ideas
        self.publisher = publisher

        guard = guard or AuthorizationGuard()
        deps: dict[str, Any] = dict(
            store=store, ideas=ideas, publisher=publisher, guard=guard, clock=clock
        )

        self._sessions = SessionOperations(**deps)
        self._sessions.default_max_participants = default_max_participants
        self._sessions.default_duration_minutes = default_duration_minutes

        self._lifecycle = LifecycleOperations(**deps)

        self._participation = ParticipationOperations(**deps)
        self._participation.chat_log = ChatLog(max_length=chat_message_max_length)

    # ==================== SESSIONS ====================

    async def create_session(
        self,
        principal: Principal,
        params: SessionCreateParams,
    ) -> SessionRecord:
        """Create a new session hosted by `principal`.

        Raises AppError if the idea is missing or the principal may not host it.
        """
        return await self._sessions.create_session(principal=principal, params=params)

    async def get_session(self, session_id: str) -> SessionDetail:
        """Get a single session with its idea resolved.

        Raises AppError if session not found.
        """
        return await self._sessions.get_session(session_id=session_id)

    async def list_sessions(self, query: SessionQuery) -> list[SessionRecord]:
        return await self._sessions.list_sessions(query=query)

    async def delete_session(self, principal: Principal, session_id: str) -> None:
        """Administrative delete: retract from the idea, then remove the session."""
        return await self._sessions.delete_session(principal=principal, session_id=session_id)

    # ==================== LIFECYCLE ====================

    async def update_session(
        self,
        principal: Principal,
        session_id: str,
        payload: Mapping[str, Any],
    ) -> SessionRecord:
        """Update editable fields. Only the host or an admin, only while scheduled."""
        return await self._lifecycle.update_session(
            principal=principal,
            session_id=session_id,
            payload=payload,
        )

    async def cancel_session(self, principal: Principal, session_id: str) -> SessionRecord:
        """Cancel a scheduled session. Cancelling twice fails with INVALID_STATE."""
        return await self._lifecycle.cancel_session(principal=principal, session_id=session_id)

    async def end_session(self, principal: Principal, session_id: str) -> SessionRecord:
        """Complete a scheduled or live session."""
        return await self._lifecycle.end_session(principal=principal, session_id=session_id)

    async def start_session(self, principal: Principal, session_id: str) -> SessionRecord:
        """Mark a scheduled session live."""
        return await self._lifecycle.start_session(principal=principal, session_id=session_id)

    # ==================== PARTICIPATION ====================

    async def join_session(self, principal: Principal, session_id: str) -> SessionRecord:
        """Admit `principal` to the session under the capacity limit."""
        return await self._participation.join_session(principal=principal, session_id=session_id)

    async def post_chat_message(
        self,
        principal: Principal,
        session_id: str,
        message: str,
    ) -> tuple[SessionRecord, ChatMessage]:
        """Append a chat message from the host or a participant."""
        return await self._participation.post_chat_message(
            principal=principal,
            session_id=session_id,
            message=message,
        )

    async def get_chat_messages(self, session_id: str) -> list[ChatMessage]:
        """Chat transcript in insertion order."""
        return await self._sessions.get_chat_messages(session_id=session_id)
