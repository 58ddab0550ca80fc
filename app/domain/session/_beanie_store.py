"""MongoDB SessionStore using Beanie with optimistic version checks."""

from contextlib import contextmanager
from typing import Any

from loguru import logger
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.schemas import Session
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_models import SessionQuery, SessionRecord
from .session_store import SessionMutator

# Never written by atomic_update even if a mutator changes them
_WRITE_PROTECTED = frozenset({"session_id", "host_id", "idea_id", "created_at", "version"})


@contextmanager
def _store_errors(action: str):
    try:
        yield
    except PyMongoError as e:
        logger.error("Session store failure during {}: {}: {}", action, type(e).__name__, e)
        raise AppError(
            errcode=AppErrorCode.STORE_UNAVAILABLE,
            errmesg=f"Session store unavailable during {action}",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        ) from e


def _to_record(doc: Session) -> SessionRecord:
    return SessionRecord.model_validate(doc.model_dump(exclude={"id", "revision_id"}))


class BeanieSessionStore:
    """SessionStore backed by the `session` collection.

    `atomic_update` reads the latest document, applies the mutator to a
    snapshot and writes the changed fields conditioned on the version it
    read. A lost race re-reads and re-runs the mutator, so preconditions are
    always re-validated against the freshest state. After `max_retries`
    conflicts the update surfaces as STORE_UNAVAILABLE.
    """

    def __init__(self, max_retries: int = 3):
        if max_retries < 0 or max_retries > 10:
            raise ValueError(f"max_retries must be between 0 and 10, got {max_retries}")
        self.max_retries = max_retries

    async def _find(self, session_id: str) -> Session | None:
        with _store_errors("read"):
            return await Session.find_one({"session_id": session_id})

    async def create(self, record: SessionRecord) -> SessionRecord:
        doc = Session(**record.model_dump())
        try:
            await doc.insert()
        except DuplicateKeyError as e:
            raise AppError(
                errcode=AppErrorCode.VALIDATION,
                errmesg=f"Session already exists: {record.session_id}",
                status_code=HttpStatusCode.CONFLICT,
            ) from e
        except PyMongoError as e:
            logger.error("Session store failure during create: {}: {}", type(e).__name__, e)
            raise AppError(
                errcode=AppErrorCode.STORE_UNAVAILABLE,
                errmesg="Session store unavailable during create",
                status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
            ) from e
        logger.debug(f"Created session {record.session_id} for idea {record.idea_id}")
        return _to_record(doc)

    async def get_by_id(self, session_id: str) -> SessionRecord | None:
        doc = await self._find(session_id)
        return _to_record(doc) if doc else None

    async def atomic_update(self, session_id: str, mutator: SessionMutator) -> SessionRecord:
        max_attempts = self.max_retries + 1

        for attempt in range(1, max_attempts + 1):
            doc = await self._find(session_id)
            if doc is None:
                raise AppError(
                    errcode=AppErrorCode.NOT_FOUND,
                    errmesg=f"Session not found: {session_id}",
                    status_code=HttpStatusCode.NOT_FOUND,
                )

            before = _to_record(doc)
            draft = before.model_copy(deep=True)
            mutator(draft)

            updates = self._changed_fields(before, draft)
            if not updates:
                return draft

            with _store_errors("update"):
                applied = await doc.update_with_version_check(updates)
            if applied:
                draft.version = doc.version
                return draft

            logger.debug(
                f"Session {session_id} version conflict, retrying "
                f"(attempt {attempt}/{max_attempts})"
            )

        logger.warning(f"Session {session_id} update gave up after {max_attempts} conflicting attempts")
        raise AppError(
            errcode=AppErrorCode.STORE_UNAVAILABLE,
            errmesg=f"Session {session_id} is being modified concurrently, please retry",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )

    @staticmethod
    def _changed_fields(before: SessionRecord, after: SessionRecord) -> dict[str, Any]:
        old = before.model_dump()
        new = after.model_dump()
        updates: dict[str, Any] = {}
        for field_name, value in new.items():
            if field_name in _WRITE_PROTECTED or old.get(field_name) == value:
                continue
            if field_name in Session.model_fields:
                updates[field_name] = value
        return updates

    async def query(self, query: SessionQuery) -> list[SessionRecord]:
        filters: list[Any] = []
        if query.status is not None:
            filters.append(Session.status == query.status)
        if query.idea_id is not None:
            filters.append(Session.idea_id == query.idea_id)
        if query.host_id is not None:
            filters.append(Session.host_id == query.host_id)
        if query.upcoming and query.now is not None:
            filters.append(Session.scheduled_time >= query.now)

        finder = Session.find(*filters).sort(
            [("scheduled_time", DESCENDING if query.descending else ASCENDING)]
        )
        if query.limit:
            finder = finder.limit(query.limit)

        with _store_errors("query"):
            docs = await finder.to_list()
        return [_to_record(doc) for doc in docs]

    async def delete(self, session_id: str) -> bool:
        doc = await self._find(session_id)
        if doc is None:
            return False
        with _store_errors("delete"):
            await doc.delete()
        return True
