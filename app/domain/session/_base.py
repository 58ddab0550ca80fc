"""Base service for session operations."""

from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..idea.idea_linkage import IdeaLinkage
from ..utils.clock import utc_now
from .authorization import AuthorizationGuard, Principal, SessionAction
from .session_events import SessionEvent, SessionEventPublisher, SessionEventType
from .session_models import SessionRecord
from .session_store import SessionStore

T = TypeVar("T")


class BaseService:
    """Base service with shared session operation methods.

    Collaborators are passed in explicitly; nothing here reaches for a
    process-wide store handle.
    """

    def __init__(
        self,
        store: SessionStore,
        ideas: IdeaLinkage,
        publisher: SessionEventPublisher,
        guard: AuthorizationGuard | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ideas = ideas
        self.publisher = publisher
        self.guard = guard or AuthorizationGuard()
        self.clock = clock

    async def _get_session_or_raise(self, session_id: str) -> SessionRecord:
        session = await self.store.get_by_id(session_id)
        if not session:
            raise AppError(
                errcode=AppErrorCode.NOT_FOUND,
                errmesg=f"No session found with id {session_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return session

    async def _guarded_update(
        self,
        session_id: str,
        principal: Principal | None,
        action: SessionAction,
        apply: Callable[[SessionRecord, datetime], T],
    ) -> tuple[SessionRecord, T]:
        """Authorize and apply a change as one atomic unit against the latest snapshot.

        The guard and `apply` both run inside the store mutator, so a retry
        after a concurrent write re-evaluates ownership and preconditions.
        """
        now = self.clock()
        outcome: dict[str, Any] = {}

        def mutator(session: SessionRecord) -> None:
            self.guard.ensure_can_act(principal, action, session=session)
            outcome["result"] = apply(session, now)

        record = await self.store.atomic_update(session_id, mutator)
        return record, outcome.get("result")  # type: ignore[return-value]

    async def _publish(
        self,
        event_type: SessionEventType,
        record: SessionRecord,
        actor_id: str | None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Publish one change event for a committed mutation.

        The mutation is already committed, so a transport failure is logged
        and not raised to the caller.
        """
        event = SessionEvent(
            event_type=event_type,
            session_id=record.session_id,
            actor_id=actor_id,
            status=record.status,
            payload=payload or {},
        )
        try:
            await self.publisher.publish(event)
        except Exception as e:
            logger.error(
                f"Failed to publish {event_type} for session {record.session_id}: "
                f"{type(e).__name__}: {e}"
            )
