from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from app.shared.api.utils import E_INVALID_PARAMS, ApiFailure, api_failure, make_response
from app.shared.config import config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

_INTERNAL_CODES = {
    AppErrorCode.E_INTERNAL_ERROR.value,
    AppErrorCode.E_UPSTREAM_ERROR.value,
    AppErrorCode.E_NOT_CONFIGURED.value,
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Convert AppError into an ApiFailure response.

    Logs with the caller info captured where the error was raised. Messages of
    server-side failures are replaced with a generic text unless DEBUG is on.
    """
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.status_code >= HttpStatusCode.INTERNAL_SERVER_ERROR:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    if exc.errcode in _INTERNAL_CODES and not config.is_true("DEBUG"):
        failure = ApiFailure(errcode=exc.errcode, erresid=exc.erresid)
    else:
        failure = ApiFailure(errcode=exc.errcode, erresid=exc.erresid, error=exc.errmesg)
    return make_response(failure, status_code=exc.status_code)


async def app_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    messages = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))

    failure = api_failure(E_INVALID_PARAMS, errmesg="; ".join(messages) or "Invalid request")
    return make_response(failure, status_code=HttpStatusCode.BAD_REQUEST)
