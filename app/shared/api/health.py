from fastapi import APIRouter
from loguru import logger

from app.schemas.init_schemas import ELEARN_MONGO_LABEL
from app.shared.storage.mongo import get_mongo_client
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .utils import ApiSuccess

router = APIRouter()


@router.get("/health", response_model=ApiSuccess)
async def health():
    try:
        await get_mongo_client(ELEARN_MONGO_LABEL).admin.command("ping")
    except Exception as e:
        logger.error("Health check failed: {}", e)
        raise AppError(
            errcode=AppErrorCode.E_INTERNAL_ERROR,
            errmesg="Database unreachable",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        ) from e

    return ApiSuccess(results="OK")
