"""Append-only chat transcript of a session."""

from datetime import datetime

from app.schemas import ChatMessage
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import SessionRecord


class ChatLog:
    """Write-once message ledger scoped to one session.

    There is no edit or delete operation; messages are read in insertion order.
    Membership (host or participant) is checked by the authorization guard
    before `post` is called.
    """

    def __init__(self, max_length: int = 2000):
        self.max_length = max_length

    def post(self, session: SessionRecord, user_id: str, message: str, now: datetime) -> ChatMessage:
        text = (message or "").strip()
        if not text:
            raise AppError(
                errcode=AppErrorCode.VALIDATION,
                errmesg="Chat message must not be empty",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if len(text) > self.max_length:
            raise AppError(
                errcode=AppErrorCode.VALIDATION,
                errmesg=f"Chat message exceeds {self.max_length} characters",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        entry = ChatMessage(user_id=user_id, message=text, timestamp=now)
        session.chat_messages.append(entry)
        session.updated_at = now
        return entry

    @staticmethod
    def read(session: SessionRecord) -> list[ChatMessage]:
        return [entry.model_copy() for entry in session.chat_messages]
