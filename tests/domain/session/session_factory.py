"""Builders for SessionRecord snapshots used by pure-logic tests."""

from datetime import timedelta

from app.domain.session.session_models import SessionRecord
from app.schemas import Participant, SessionState
from tests.fixtures.session_fixtures import FIXED_NOW, HOST_ID, IDEA_ID


def make_record(
    status: SessionState = SessionState.SCHEDULED,
    max_participants: int = 20,
    participant_ids: list[str] | None = None,
    **overrides,
) -> SessionRecord:
    values = {
        "session_id": "se_test",
        "host_id": HOST_ID,
        "idea_id": IDEA_ID,
        "title": "Validate the idea",
        "description": "Walk through the pitch",
        "scheduled_time": FIXED_NOW + timedelta(days=1),
        "status": status,
        "max_participants": max_participants,
        "participants": [
            Participant(user_id=user_id, joined_at=FIXED_NOW) for user_id in participant_ids or []
        ],
        "created_at": FIXED_NOW,
        "updated_at": FIXED_NOW,
    }
    values.update(overrides)
    return SessionRecord(**values)
