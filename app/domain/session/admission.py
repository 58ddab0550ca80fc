"""Admission control for joining sessions."""

from datetime import datetime

from loguru import logger

from app.schemas import Participant, SessionState
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import SessionRecord


class AdmissionController:
    """Enforces the join invariants against one session snapshot.

    Checks run in a fixed order and the first failure wins:
    1. the session is scheduled or live (SESSION_NOT_JOINABLE)
    2. the user has not joined yet (ALREADY_JOINED)
    3. a seat is free (SESSION_FULL)

    The caller must run `join` inside the store's atomic update so that the
    checks and the append are applied to the latest committed state.
    """

    def join(self, session: SessionRecord, user_id: str, now: datetime) -> Participant:
        if session.status not in SessionState.joinable_states():
            raise AppError(
                errcode=AppErrorCode.SESSION_NOT_JOINABLE,
                errmesg=f"Session {session.session_id} is {session.status} and cannot be joined",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        if session.is_participant(user_id):
            raise AppError(
                errcode=AppErrorCode.ALREADY_JOINED,
                errmesg=f"User {user_id} already joined session {session.session_id}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        if len(session.participants) >= session.max_participants:
            raise AppError(
                errcode=AppErrorCode.SESSION_FULL,
                errmesg=f"Session {session.session_id} has reached maximum capacity ({session.max_participants})",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        participant = Participant(user_id=user_id, joined_at=now)
        session.participants.append(participant)
        session.updated_at = now
        logger.debug(
            "Admitted {} to session {} ({}/{})",
            user_id,
            session.session_id,
            len(session.participants),
            session.max_participants,
        )
        return participant
