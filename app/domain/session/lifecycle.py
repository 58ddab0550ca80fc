"""Lifecycle manager: status transitions and edit rules of a session."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from app.schemas import SessionState
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import SessionRecord, validation_error
from .session_state_machine import SessionStateMachine

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "scheduled_time",
        "duration_minutes",
        "max_participants",
        "recording_url",
    }
)


class LifecycleManager:
    """Drives the session status state machine and validates field edits.

    All methods mutate the given snapshot in place and raise AppError when
    the operation is not allowed from the snapshot's current status.
    """

    def cancel(self, session: SessionRecord, now: datetime) -> SessionRecord:
        """scheduled -> cancelled. Re-cancelling is INVALID_STATE."""
        if session.status != SessionState.SCHEDULED:
            raise AppError(
                errcode=AppErrorCode.INVALID_STATE,
                errmesg=f"Only scheduled sessions can be cancelled (session {session.session_id} is {session.status})",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return self._transition(session, SessionState.CANCELLED, now)

    def end(self, session: SessionRecord, now: datetime) -> SessionRecord:
        """scheduled | live -> completed."""
        return self._transition(session, SessionState.COMPLETED, now)

    def mark_live(self, session: SessionRecord, now: datetime) -> SessionRecord:
        """scheduled -> live. Entry point for an external start trigger."""
        return self._transition(session, SessionState.LIVE, now)

    def apply_update(
        self,
        session: SessionRecord,
        payload: Mapping[str, Any],
        now: datetime,
    ) -> set[str]:
        """Apply a field update to a scheduled session.

        Immutable keys are stripped from the payload and never applied. Keys
        that are neither updatable nor immutable are rejected as VALIDATION.

        Returns:
            The names of the fields that were applied.
        """
        if not SessionStateMachine.is_editable(session.status):
            raise AppError(
                errcode=AppErrorCode.INVALID_STATE,
                errmesg=f"Only scheduled sessions can be updated (session {session.session_id} is {session.status})",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        stripped = sorted(key for key in payload if key in SessionRecord.IMMUTABLE_FIELDS)
        if stripped:
            logger.warning(
                "Ignoring immutable fields {} in update of session {}",
                stripped,
                session.session_id,
            )

        unknown = sorted(
            key
            for key in payload
            if key not in UPDATABLE_FIELDS and key not in SessionRecord.IMMUTABLE_FIELDS
        )
        if unknown:
            raise AppError(
                errcode=AppErrorCode.VALIDATION,
                errmesg=f"Unknown session fields: {', '.join(unknown)}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        changes = {key: value for key, value in payload.items() if key in UPDATABLE_FIELDS}
        if not changes:
            return set()

        # Validate the merged record as a whole before touching the snapshot
        candidate = session.model_dump()
        candidate.update(changes)
        try:
            validated = SessionRecord.model_validate(candidate)
        except ValidationError as e:
            raise validation_error(e) from e

        for key in changes:
            setattr(session, key, getattr(validated, key))
        session.updated_at = now
        return set(changes)

    def _transition(self, session: SessionRecord, new_state: SessionState, now: datetime) -> SessionRecord:
        if not SessionStateMachine.can_transition(session.status, new_state):
            targets = SessionStateMachine.get_valid_transitions(session.status)
            allowed = sorted(str(state) for state in targets)
            raise AppError(
                errcode=AppErrorCode.INVALID_STATE,
                errmesg=(
                    f"Invalid state transition: {session.status} -> {new_state} "
                    f"(allowed: {', '.join(allowed) or 'none'})"
                ),
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        logger.info(f"Session {session.session_id} state {session.status} -> {new_state}")
        session.status = new_state
        session.updated_at = now
        return session
