from fastapi import APIRouter, Depends, Query

from app.api.v1.dependency import CurrentUser, SessionManager, get_session_service
from app.api.v1.schemas.base import ApiListOut, ApiOut
from app.api.v1.schemas.session import (
    ChatMessageIn,
    ChatMessageOut,
    CreateSessionIn,
    SessionDetailOut,
    SessionOut,
    UpdateSessionIn,
)
from app.domain.session.session_domain import SessionService
from app.domain.session.session_models import SessionCreateParams, SessionQuery, SessionRecord
from app.schemas import SessionState
from app.utils.app_errors import HttpStatusCode

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _session_out(record: SessionRecord) -> SessionOut:
    return SessionOut.model_validate(record.model_dump())


@router.get("")
async def list_sessions(
    service: SessionService = Depends(get_session_service),
    status: SessionState | None = Query(None, description="Filter by session status"),
    idea: str | None = Query(None, description="Filter by idea id"),
    upcoming: bool = Query(False, description="Only sessions scheduled from now on"),
) -> ApiListOut[SessionOut]:
    """List sessions ordered by scheduled time."""
    records = await service.list_sessions(SessionQuery(status=status, idea_id=idea, upcoming=upcoming))
    sessions = [_session_out(r) for r in records]
    return ApiListOut[SessionOut](count=len(sessions), data=sessions)


@router.post("", status_code=HttpStatusCode.CREATED)
async def create_session(
    body: CreateSessionIn,
    user: SessionManager,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Schedule a validation session for an idea the caller authored."""
    params = SessionCreateParams(
        idea_id=body.idea_id,
        title=body.title,
        description=body.description,
        scheduled_time=body.scheduled_time,
        duration_minutes=body.duration_minutes,
        max_participants=body.max_participants,
    )
    record = await service.create_session(user, params)
    return ApiOut[SessionOut](data=_session_out(record))


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionDetailOut]:
    """Get a session with its idea."""
    detail = await service.get_session(session_id)
    return ApiOut[SessionDetailOut](data=SessionDetailOut.model_validate(detail.model_dump()))


@router.put("/{session_id}")
async def update_session(
    session_id: str,
    body: UpdateSessionIn,
    user: SessionManager,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Update editable fields of a scheduled session."""
    record = await service.update_session(user, session_id, body.to_payload())
    return ApiOut[SessionOut](data=_session_out(record))


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[dict]:
    """Remove a session and unlink it from its idea. Admin only."""
    await service.delete_session(user, session_id)
    return ApiOut[dict](data={})


@router.put("/{session_id}/join")
async def join_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Join a scheduled or live session."""
    record = await service.join_session(user, session_id)
    return ApiOut[SessionOut](data=_session_out(record))


@router.put("/{session_id}/start")
async def start_session(
    session_id: str,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Mark a scheduled session as live."""
    record = await service.start_session(user, session_id)
    return ApiOut[SessionOut](data=_session_out(record))


@router.put("/{session_id}/cancel")
async def cancel_session(
    session_id: str,
    user: SessionManager,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Cancel a session that has not started."""
    record = await service.cancel_session(user, session_id)
    return ApiOut[SessionOut](data=_session_out(record))


@router.put("/{session_id}/end")
async def end_session(
    session_id: str,
    user: SessionManager,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[SessionOut]:
    """Complete a scheduled or live session."""
    record = await service.end_session(user, session_id)
    return ApiOut[SessionOut](data=_session_out(record))


@router.post("/{session_id}/chat")
async def post_chat_message(
    session_id: str,
    body: ChatMessageIn,
    user: CurrentUser,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[list[ChatMessageOut]]:
    """Post a chat message and return the full transcript."""
    record, _ = await service.post_chat_message(user, session_id, body.message)
    messages = [ChatMessageOut.model_validate(m.model_dump()) for m in record.chat_messages]
    return ApiOut[list[ChatMessageOut]](data=messages)


@router.get("/{session_id}/chat")
async def get_chat_messages(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> ApiOut[list[ChatMessageOut]]:
    """Read the chat transcript."""
    entries = await service.get_chat_messages(session_id)
    return ApiOut[list[ChatMessageOut]](data=[ChatMessageOut.model_validate(m.model_dump()) for m in entries])
