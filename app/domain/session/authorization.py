"""Authorization rules for session actions.

`AuthorizationGuard` is a pure decision function: given a principal, an
action and the ownership facts (session snapshot or idea), it decides whether
the action is permitted. It must be evaluated against the same snapshot the
subsequent mutation is applied to, which is why the session service calls it
from inside store mutators.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ..idea.idea_linkage import IdeaSummary
from .session_models import SessionRecord


class Role(str, Enum):
    FOUNDER = "founder"
    PARTICIPANT = "participant"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Unknown or missing roles are treated as plain participants."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.PARTICIPANT


class Principal(BaseModel):
    """Authenticated caller produced by the identity layer."""

    user_id: str
    role: Role = Role.PARTICIPANT

    @property
    def is_elevated(self) -> bool:
        return self.role == Role.ADMIN


class SessionAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    CANCEL = "cancel"
    END = "end"
    START = "start"
    JOIN = "join"
    CHAT = "chat"
    DELETE = "delete"


# Actions reserved to the session host (or an elevated principal)
HOST_ACTIONS = frozenset(
    {SessionAction.UPDATE, SessionAction.CANCEL, SessionAction.END, SessionAction.START}
)

# Roles allowed to manage sessions at all, before any ownership check
MANAGER_ROLES = frozenset({Role.FOUNDER, Role.ADMIN})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)


class AuthorizationGuard:
    """Decides whether a principal may perform an action on a session or idea."""

    def can_act(
        self,
        principal: Principal | None,
        action: SessionAction,
        *,
        session: SessionRecord | None = None,
        idea: IdeaSummary | None = None,
    ) -> Decision:
        if principal is None:
            return Decision.deny("Authentication required")

        if action == SessionAction.CREATE:
            if idea is None:
                raise ValueError("idea is required to authorize session creation")
            if principal.is_elevated or idea.author_id == principal.user_id:
                return Decision.allow()
            return Decision.deny(
                f"User {principal.user_id} is not authorized to create sessions for idea {idea.idea_id}"
            )

        if action == SessionAction.JOIN:
            return Decision.allow()

        if action == SessionAction.DELETE:
            if principal.is_elevated:
                return Decision.allow()
            return Decision.deny(f"User {principal.user_id} is not authorized to delete sessions")

        if session is None:
            raise ValueError(f"session is required to authorize {action.value}")

        if action in HOST_ACTIONS:
            if principal.is_elevated or session.is_host(principal.user_id):
                return Decision.allow()
            return Decision.deny(
                f"User {principal.user_id} is not authorized to {action.value} session {session.session_id}"
            )

        if action == SessionAction.CHAT:
            if session.is_host(principal.user_id) or session.is_participant(principal.user_id):
                return Decision.allow()
            return Decision.deny(
                f"User {principal.user_id} is not authorized to chat in session {session.session_id}"
            )

        return Decision.deny(f"Unknown action: {action}")

    def ensure_can_act(
        self,
        principal: Principal | None,
        action: SessionAction,
        *,
        session: SessionRecord | None = None,
        idea: IdeaSummary | None = None,
    ) -> None:
        """Raise NOT_AUTHORIZED unless `can_act` allows the action."""
        decision = self.can_act(principal, action, session=session, idea=idea)
        if not decision.allowed:
            raise AppError(
                errcode=AppErrorCode.NOT_AUTHORIZED,
                errmesg=decision.reason or "Not authorized",
                status_code=HttpStatusCode.FORBIDDEN,
            )

    @staticmethod
    def ensure_manager_role(principal: Principal) -> None:
        """Role gate for session management endpoints (founders and admins only)."""
        if principal.role not in MANAGER_ROLES:
            raise AppError(
                errcode=AppErrorCode.NOT_AUTHORIZED,
                errmesg=f"Role '{principal.role.value}' is not allowed to manage sessions",
                status_code=HttpStatusCode.FORBIDDEN,
            )
