"""Session state machine for managing state transitions."""

from app.schemas import SessionState


class SessionStateMachine:
    """State machine for managing session state transitions.

    State flow with triggers:
    - SCHEDULED (session created) -> LIVE (start) | COMPLETED (end) | CANCELLED (cancel)
    - LIVE -> COMPLETED (end)
    - COMPLETED/CANCELLED are terminal states

    No transition ever returns to SCHEDULED.
    """

    TRANSITIONS: dict[SessionState, set[SessionState]] = {
        SessionState.SCHEDULED: {
            SessionState.LIVE,
            SessionState.COMPLETED,
            SessionState.CANCELLED,
        },
        SessionState.LIVE: {SessionState.COMPLETED},
        SessionState.COMPLETED: set(),
        SessionState.CANCELLED: set(),
    }

    TERMINAL_STATES: set[SessionState] = {SessionState.COMPLETED, SessionState.CANCELLED}

    # Only sessions in these states accept field edits
    EDITABLE_STATES: set[SessionState] = {SessionState.SCHEDULED}

    @classmethod
    def can_transition(cls, current: SessionState, new: SessionState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current session state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: SessionState) -> bool:
        return state in cls.TERMINAL_STATES

    @classmethod
    def is_editable(cls, state: SessionState) -> bool:
        return state in cls.EDITABLE_STATES

    @classmethod
    def get_valid_transitions(cls, state: SessionState) -> set[SessionState]:
        return cls.TRANSITIONS.get(state, set())
