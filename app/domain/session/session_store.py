"""SessionStore contract: the boundary between session logic and persistence.

`atomic_update` is the only path by which admission, lifecycle and chat
changes are persisted. Implementations guarantee that the mutator observes
the latest committed state and that no other mutator for the same session
interleaves between its checks and the write.
"""

from collections.abc import Callable
from typing import Protocol

from .session_models import SessionQuery, SessionRecord

# Receives a private copy of the latest snapshot and mutates it in place.
# Raising AppError aborts the update without writing anything.
SessionMutator = Callable[[SessionRecord], object]


class SessionStore(Protocol):
    async def create(self, record: SessionRecord) -> SessionRecord: ...

    async def get_by_id(self, session_id: str) -> SessionRecord | None: ...

    async def atomic_update(self, session_id: str, mutator: SessionMutator) -> SessionRecord: ...

    async def query(self, query: SessionQuery) -> list[SessionRecord]: ...

    async def delete(self, session_id: str) -> bool: ...


def matches_query(record: SessionRecord, query: SessionQuery) -> bool:
    """Evaluate a SessionQuery filter against a single record."""
    if query.status is not None and record.status != query.status:
        return False
    if query.idea_id is not None and record.idea_id != query.idea_id:
        return False
    if query.host_id is not None and record.host_id != query.host_id:
        return False
    if query.upcoming and query.now is not None and record.scheduled_time < query.now:
        return False
    return True
