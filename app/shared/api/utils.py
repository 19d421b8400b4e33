import asyncio
import inspect
from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field

E_INTERNAL = "E_INTERNAL_ERROR"
E_INVALID_PARAMS = "E_INVALID_REQUEST"

GENERIC_ERROR_MESSAGE = "We are sorry, an error occurred."


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return "".join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get("BUILD_COMMIT", "dev"))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    error: str = GENERIC_ERROR_MESSAGE


def api_failure(errcode: str | None = None, errmesg: Exception | str | None = None, *, trace: Any = None):
    if not errcode:
        errcode = ApiFailure.model_fields["errcode"].default

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = GENERIC_ERROR_MESSAGE

    failure = ApiFailure(errcode=errcode, error=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(f"{failure.errcode} {failure.erresid}\n{failure.error} caller={caller_info} trace={trace}")

    return failure


def make_response(results, *, status_code: int | None = None):
    if isinstance(results, Exception):
        # Never echo tracebacks to clients; they are logged by api_failure.
        api_failure(errmesg=results)
        response = ApiFailure()
        if status_code is None:
            status_code = 500
    elif isinstance(results, ApiFailure):
        response = results
        if status_code is None:
            status_code = 500 if results.errcode == E_INTERNAL else 400
    else:
        response = results
        if status_code is None:
            status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json") if hasattr(response, "model_dump") else response,
    )


def load_routes(app: FastAPI, prefix: str):
    """Include every `router` found in the shared API and v1 router modules."""
    base = Path(__file__).parent.parent.parent
    for package, folder in (
        ("app.shared.api", base / "shared" / "api"),
        ("app.api.v1.routers", base / "api" / "v1" / "routers"),
    ):
        for path in sorted(folder.glob("*.py")):
            if path.name == "__init__.py":
                continue
            name = f"{package}.{path.stem}"
            module = import_module(name)
            if hasattr(module, "router"):
                app.include_router(module.router, prefix=prefix)
                logger.info("Added routes in {}", name)

    for route in app.routes:
        if hasattr(route, "methods"):
            methods = ",".join(sorted(route.methods))
            logger.info("Loaded route: {:<12} {:<60} {}", methods, route.path, route.endpoint.__name__)


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get("WORKER_NAME", project_root.name)

    parts = environ.get("BUILD_COMMIT", "").split("-")
    commit_id = parts[1] if len(parts) > 1 else "dev"

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import logging
    import sys

    from ..config import config

    for name in ("pymongo", "botocore", "aiobotocore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.is_true("DEBUG"):
        logger_level = "DEBUG"
        logger_format = (
            f"<yellow>{worker_name}:{commit_id}</yellow> | "
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            f"{worker_name}:{commit_id} | "
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


_background_tasks: set[asyncio.Task] = set()


def run_in_background(awaitable, *, name: str) -> asyncio.Task:
    """Schedule a coroutine without awaiting it; failures are logged, never raised."""

    async def _runner():
        try:
            return await awaitable
        except Exception as e:
            logger.error("Background task {} failed: {}", name, format_error(e))

    task = asyncio.get_running_loop().create_task(_runner(), name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
