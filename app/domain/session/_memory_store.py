"""In-process SessionStore with a per-session serialization point."""

import asyncio

from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import SessionQuery, SessionRecord
from .session_store import SessionMutator, matches_query


class InMemorySessionStore:
    """SessionStore keeping records in a dict.

    Every `atomic_update` holds an `asyncio.Lock` dedicated to the session id
    for its whole read-check-write, so updates of one session are serialized
    while different sessions proceed independently.
    """

    def __init__(self):
        self._records: dict[str, SessionRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def create(self, record: SessionRecord) -> SessionRecord:
        if record.session_id in self._records:
            raise AppError(
                errcode=AppErrorCode.VALIDATION,
                errmesg=f"Session already exists: {record.session_id}",
                status_code=HttpStatusCode.CONFLICT,
            )
        self._records[record.session_id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def get_by_id(self, session_id: str) -> SessionRecord | None:
        record = self._records.get(session_id)
        return record.model_copy(deep=True) if record else None

    async def atomic_update(self, session_id: str, mutator: SessionMutator) -> SessionRecord:
        async with self._lock_for(session_id):
            current = self._records.get(session_id)
            if current is None:
                raise AppError(
                    errcode=AppErrorCode.NOT_FOUND,
                    errmesg=f"Session not found: {session_id}",
                    status_code=HttpStatusCode.NOT_FOUND,
                )

            draft = current.model_copy(deep=True)
            mutator(draft)
            if draft == current:
                return draft

            # Give concurrent callers a chance to run; they queue on the lock
            await asyncio.sleep(0)

            draft.version = current.version + 1
            self._records[session_id] = draft
            logger.debug(f"Session {session_id} updated (version {current.version} -> {draft.version})")
            return draft.model_copy(deep=True)

    async def query(self, query: SessionQuery) -> list[SessionRecord]:
        records = [r for r in self._records.values() if matches_query(r, query)]
        records.sort(key=lambda r: r.scheduled_time, reverse=query.descending)
        if query.limit:
            records = records[: query.limit]
        return [r.model_copy(deep=True) for r in records]

    async def delete(self, session_id: str) -> bool:
        async with self._lock_for(session_id):
            removed = self._records.pop(session_id, None)
        self._locks.pop(session_id, None)
        return removed is not None
