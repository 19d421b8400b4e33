import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.app_config import get_app_environ_config
from app.shared.api.utils import api_failure, init_logger, load_routes
from app.shared.config import config
from app.shared.storage.redis import get_redis_manager
from app.schemas.init_schemas import init_schema
from app.utils.app_errors import AppError, AppErrorCode


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    server.state.redis_manager = get_redis_manager()

    # Initialize MongoDB schemas and Beanie ODM
    await init_schema()

    load_routes(server, "/api")

    if config.is_true("LOGFIRE_ENABLE"):
        logger.info("Logfire initializing")

        logfire.configure(
            token=config["LOGFIRE_TOKEN"],
            service_name="elearn-api",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=False)

        logger.info("Logfire instrument mongo")
        logfire.instrument_pymongo(capture_statement=config.is_true("DEBUG"))

        logger.info("Logfire instrument httpx")
        logfire.instrument_httpx()

    yield

    logger.info("Application shutdown...")

    await server.state.redis_manager.close_all()


app = FastAPI(
    version="1.0",
    title="E-Learning API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

DEBUG = config.is_true("DEBUG")

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": config.get("API_HOST") or "0.0.0.0",
        "port": int(config.get("API_PORT") or 8000),
        "workers": int(config.get("API_WORKERS") or 1),
        "reload": DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
