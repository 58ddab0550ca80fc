"""Lifecycle operations: field updates and status transitions."""

from collections.abc import Mapping
from typing import Any

from ._base import BaseService
from .authorization import Principal, SessionAction
from .lifecycle import LifecycleManager
from .session_events import SessionEventType
from .session_models import SessionRecord


class LifecycleOperations(BaseService):
    """Host-only operations that change a session's fields or status."""

    lifecycle = LifecycleManager()

    async def update_session(
        self,
        principal: Principal,
        session_id: str,
        payload: Mapping[str, Any],
    ) -> SessionRecord:
        """Update editable fields of a scheduled session."""
        record, changed = await self._guarded_update(
            session_id,
            principal,
            SessionAction.UPDATE,
            lambda session, now: self.lifecycle.apply_update(session, payload, now),
        )
        if changed:
            await self._publish(
                SessionEventType.UPDATED,
                record,
                principal.user_id,
                {"fields": sorted(changed)},
            )
        return record

    async def cancel_session(self, principal: Principal, session_id: str) -> SessionRecord:
        record, _ = await self._guarded_update(
            session_id, principal, SessionAction.CANCEL, self.lifecycle.cancel
        )
        await self._publish(SessionEventType.CANCELLED, record, principal.user_id)
        return record

    async def end_session(self, principal: Principal, session_id: str) -> SessionRecord:
        record, _ = await self._guarded_update(
            session_id, principal, SessionAction.END, self.lifecycle.end
        )
        await self._publish(SessionEventType.COMPLETED, record, principal.user_id)
        return record

    async def start_session(self, principal: Principal, session_id: str) -> SessionRecord:
        record, _ = await self._guarded_update(
            session_id, principal, SessionAction.START, self.lifecycle.mark_live
        )
        await self._publish(SessionEventType.LIVE, record, principal.user_id)
        return record
