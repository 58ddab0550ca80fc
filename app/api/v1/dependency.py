from typing import Annotated, Any

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from app.app_config import get_app_environ_config
from app.domain.session.authorization import AuthorizationGuard, Principal, Role
from app.domain.session.session_domain import SessionService
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

_bearer = HTTPBearer(auto_error=False)


def decode_principal(token: str, secret: str, algorithm: str = "HS256") -> Principal | None:
    """Resolve a bearer JWT into a Principal, or None if the token is unusable.

    Accepted subject claims, in order: `userId`, `user_id`, `sub`.
    """
    try:
        payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError as e:
        logger.debug("invalid bearer token: {}", e)
        return None

    user_id = payload.get("userId") or payload.get("user_id") or payload.get("sub")
    if not user_id:
        logger.debug("bearer token without user claim")
        return None

    return Principal(user_id=str(user_id), role=Role.parse(payload.get("role")))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    # Do not log the token itself.
    if credentials is None or not credentials.credentials:
        raise AppError(
            errcode=AppErrorCode.UNAUTHENTICATED,
            errmesg="Not authorized to access this route",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    env = get_app_environ_config()
    principal = decode_principal(credentials.credentials, env.AUTH_JWT_SECRET, env.AUTH_JWT_ALGORITHM)
    if principal is None:
        raise AppError(
            errcode=AppErrorCode.UNAUTHENTICATED,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {} role: {}", principal.user_id, principal.role)
    return principal


async def get_session_manager(user: Annotated[Principal, Depends(get_current_user)]) -> Principal:
    """Founders and admins only."""
    AuthorizationGuard.ensure_manager_role(user)
    return user


def get_session_service(request: Request) -> SessionService:
    """SessionService built by the application lifespan."""
    return request.app.state.session_service


CurrentUser = Annotated[Principal, Depends(get_current_user)]
SessionManager = Annotated[Principal, Depends(get_session_manager)]
