"""Base service for live class operations."""

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.schemas import LiveClass
from app.services.integrations.agora_recording import AgoraRecordingClient, agora_recording_client
from app.services.integrations.agora_service import AgoraTokenService, agora_token_service
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .live_class_models import Actor


class BaseService:
    """Shared lookups and provider clients for live class operations."""

    def __init__(
        self,
        tokens: AgoraTokenService | None = None,
        recorder: AgoraRecordingClient | None = None,
        cfg: AppEnvironConfig | None = None,
    ):
        self.tokens = tokens or agora_token_service
        self.recorder = recorder or agora_recording_client
        self.cfg = cfg or get_app_environ_config()

    async def _get_live_class(self, live_class_id: str) -> LiveClass:
        live_class = await LiveClass.find_one(LiveClass.live_class_id == live_class_id)
        if not live_class:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_CLASS_NOT_FOUND,
                errmesg=f"Live class not found: {live_class_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return live_class

    def _ensure_owner(self, live_class: LiveClass, actor: Actor, allow_admin: bool = False) -> None:
        if live_class.teacher_id == actor.user_id:
            return
        if allow_admin and actor.is_admin:
            return
        raise AppError(
            errcode=AppErrorCode.E_FORBIDDEN,
            errmesg="Not the owner of this live class",
            status_code=HttpStatusCode.FORBIDDEN,
        )
