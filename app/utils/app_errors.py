"""Application error type raised by domain code and rendered by the API layer."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class AppErrorCode(str, Enum):
    """Stable machine-readable error codes surfaced to API callers."""

    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_STATE = "INVALID_STATE"
    ALREADY_JOINED = "ALREADY_JOINED"
    SESSION_FULL = "SESSION_FULL"
    SESSION_NOT_JOINABLE = "SESSION_NOT_JOINABLE"
    VALIDATION = "VALIDATION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    def __str__(self) -> str:
        return self.value


class HttpStatusCode(IntEnum):
    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


# Status used when an AppError is raised without an explicit status_code
DEFAULT_STATUS_BY_CODE: dict[AppErrorCode, HttpStatusCode] = {
    AppErrorCode.NOT_FOUND: HttpStatusCode.NOT_FOUND,
    AppErrorCode.NOT_AUTHORIZED: HttpStatusCode.FORBIDDEN,
    AppErrorCode.UNAUTHENTICATED: HttpStatusCode.UNAUTHORIZED,
    AppErrorCode.INVALID_STATE: HttpStatusCode.BAD_REQUEST,
    AppErrorCode.ALREADY_JOINED: HttpStatusCode.BAD_REQUEST,
    AppErrorCode.SESSION_FULL: HttpStatusCode.BAD_REQUEST,
    AppErrorCode.SESSION_NOT_JOINABLE: HttpStatusCode.BAD_REQUEST,
    AppErrorCode.VALIDATION: HttpStatusCode.BAD_REQUEST,
    AppErrorCode.STORE_UNAVAILABLE: HttpStatusCode.SERVICE_UNAVAILABLE,
    AppErrorCode.INTERNAL_ERROR: HttpStatusCode.INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Recoverable application error carrying a stable code and an HTTP status.

    The raise site is captured so the exception handler can log where the
    error originated without a full traceback.
    """

    def __init__(
        self,
        errcode: AppErrorCode,
        errmesg: str,
        status_code: HttpStatusCode | int | None = None,
    ):
        super().__init__(errmesg)
        self.errcode = errcode
        self.errmesg = errmesg
        self.status_code = int(status_code or DEFAULT_STATUS_BY_CODE.get(errcode, 500))
        self.erresid = uuid4().hex[:10]

        caller_frame = inspect.stack()[1]
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    def __repr__(self) -> str:
        return f"AppError({self.errcode.value}, {self.errmesg!r}, {self.status_code})"
