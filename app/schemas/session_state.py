"""Common enums used across schemas."""

from enum import Enum


class SessionState(str, Enum):
    """Session lifecycle states.

    State Transition Flow:

    SCHEDULED → LIVE → COMPLETED
        ↓
    CANCELLED | COMPLETED

    State Descriptions:
    - SCHEDULED: Session created by its host. Initial state.
    - LIVE: Session in progress. Set by an explicit start from the host or an external trigger.
    - COMPLETED: Session ended by the host, from SCHEDULED or LIVE.
    - CANCELLED: Session cancelled by the host before it started (only from SCHEDULED).

    Terminal states (no further transitions): COMPLETED, CANCELLED.
    No transition ever returns to SCHEDULED.
    """

    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def joinable_states(cls) -> list["SessionState"]:
        """States in which new participants may be admitted."""
        return [SessionState.SCHEDULED, SessionState.LIVE]


__all__ = ["SessionState"]
