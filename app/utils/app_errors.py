"""Application error types raised by domain and API layers."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


class AppErrorCode(str, Enum):
    # Generic
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_NOT_CONFIGURED = "E_NOT_CONFIGURED"
    E_UPSTREAM_ERROR = "E_UPSTREAM_ERROR"

    # Authentication / authorization
    E_BAD_TOKEN = "E_BAD_TOKEN"
    E_TOKEN_EXPIRED = "E_TOKEN_EXPIRED"
    E_INVALID_CREDENTIALS = "E_INVALID_CREDENTIALS"
    E_EMAIL_NOT_VERIFIED = "E_EMAIL_NOT_VERIFIED"
    E_FORBIDDEN = "E_FORBIDDEN"
    E_EMAIL_EXISTS = "E_EMAIL_EXISTS"

    # Reference data
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_DEPARTMENT_NOT_FOUND = "E_DEPARTMENT_NOT_FOUND"
    E_DEPARTMENT_EXISTS = "E_DEPARTMENT_EXISTS"
    E_COURSE_EXISTS = "E_COURSE_EXISTS"
    E_ASSIGNMENT_NOT_FOUND = "E_ASSIGNMENT_NOT_FOUND"

    # Live classes
    E_LIVE_CLASS_NOT_FOUND = "E_LIVE_CLASS_NOT_FOUND"
    E_LIVE_CLASS_IS_LIVE = "E_LIVE_CLASS_IS_LIVE"
    E_NOT_ASSIGNED_TO_UNIT = "E_NOT_ASSIGNED_TO_UNIT"
    E_RECORDING_NOT_CONFIGURED = "E_RECORDING_NOT_CONFIGURED"
    E_RECORDING_NOT_FOUND = "E_RECORDING_NOT_FOUND"
    E_RECORDING_BUSY = "E_RECORDING_BUSY"

    # Uploads
    E_UNSUPPORTED_MEDIA = "E_UNSUPPORTED_MEDIA"
    E_FILE_TOO_LARGE = "E_FILE_TOO_LARGE"


def _caller_info(depth: int = 2) -> str:
    try:
        frame = inspect.stack()[depth]
    except IndexError:
        return "unknown"
    module = inspect.getmodule(frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else frame.filename
    return f"{module_name}:{frame.function}:{frame.lineno}"


class AppError(Exception):
    """Error with an API error code and the HTTP status it maps to.

    The caller location is captured at raise time so the exception handler can
    log where the error originated, not where it was caught.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str,
        errmesg: str,
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_REQUEST,
    ):
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.caller_info = _caller_info()
        super().__init__(f"{self.errcode}: {errmesg}")


__all__ = ["AppError", "AppErrorCode", "HttpStatusCode"]
