"""Participation operations: joining and chatting."""

from app.schemas import ChatMessage

from ._base import BaseService
from .admission import AdmissionController
from .authorization import Principal, SessionAction
from .chat_log import ChatLog
from .session_events import SessionEventType
from .session_models import SessionRecord


class ParticipationOperations(BaseService):
    admission = AdmissionController()
    chat_log = ChatLog()

    async def join_session(self, principal: Principal, session_id: str) -> SessionRecord:
        record, participant = await self._guarded_update(
            session_id,
            principal,
            SessionAction.JOIN,
            lambda session, now: self.admission.join(session, principal.user_id, now),
        )
        await self._publish(
            SessionEventType.JOINED,
            record,
            principal.user_id,
            {
                "user_id": participant.user_id,
                "joined_at": participant.joined_at.isoformat(),
                "participant_count": len(record.participants),
            },
        )
        return record

    async def post_chat_message(
        self,
        principal: Principal,
        session_id: str,
        message: str,
    ) -> tuple[SessionRecord, ChatMessage]:
        record, entry = await self._guarded_update(
            session_id,
            principal,
            SessionAction.CHAT,
            lambda session, now: self.chat_log.post(session, principal.user_id, message, now),
        )
        await self._publish(
            SessionEventType.CHAT,
            record,
            principal.user_id,
            entry.model_dump(mode="json"),
        )
        return record, entry
