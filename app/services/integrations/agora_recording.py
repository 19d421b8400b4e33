"""Agora Cloud Recording REST client.

Recording a channel takes four steps, driven by the live class domain:
acquire a resource id, mint a subscriber token for the recording bot, start
the mixed-mode recording, then persist the returned `sid`. Stopping needs the
(resource id, sid) pair and returns the uploaded file list.
"""

from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .agora_service import RECORDING_BOT_UID

RESOURCE_EXPIRED_HOUR = 24
MAX_IDLE_TIME_SECONDS = 300

TRANSCODING_CONFIG = {
    "height": 720,
    "width": 1280,
    "bitrate": 2260,
    "fps": 30,
    "mixedVideoLayout": 1,
}


class AcquireResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    resource_id: str = Field(alias="resourceId")


class StartResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sid: str
    resource_id: str | None = Field(default=None, alias="resourceId")


class StopResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sid: str | None = None
    resource_id: str | None = Field(default=None, alias="resourceId")
    server_response: dict[str, Any] | None = Field(default=None, alias="serverResponse")

    @property
    def file_list(self) -> list[dict[str, Any]]:
        """Uploaded files; the provider answers a string instead of a list in some modes."""
        raw = (self.server_response or {}).get("fileList")
        if not raw:
            return []
        if isinstance(raw, str):
            return [{"fileName": raw}]
        return [item if isinstance(item, dict) else {"fileName": str(item)} for item in raw]


class AgoraRecordingClient:
    def __init__(self, cfg: AppEnvironConfig | None = None):
        self._cfg = cfg or get_app_environ_config()

    @property
    def is_configured(self) -> bool:
        return bool(self._cfg.AGORA_CUSTOMER_ID and self._cfg.AGORA_CUSTOMER_SECRET)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise AppError(
                errcode=AppErrorCode.E_RECORDING_NOT_CONFIGURED,
                errmesg="Cloud Recording not configured. Set AGORA_CUSTOMER_ID and AGORA_CUSTOMER_SECRET.",
                status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
            )

    @property
    def base_url(self) -> str:
        return f"{self._cfg.AGORA_API_BASE_URL.rstrip('/')}/v1/apps/{self._cfg.AGORA_APP_ID}/cloud_recording"

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self._cfg.AGORA_CUSTOMER_ID, self._cfg.AGORA_CUSTOMER_SECRET)

    def _storage_config(self) -> dict[str, Any]:
        return {
            "vendor": self._cfg.AGORA_STORAGE_VENDOR,
            "region": self._cfg.AGORA_STORAGE_REGION,
            "bucket": self._cfg.AGORA_STORAGE_BUCKET or "",
            "accessKey": self._cfg.AGORA_STORAGE_ACCESS_KEY or "",
            "secretKey": self._cfg.AGORA_STORAGE_SECRET_KEY or "",
        }

    async def _post(self, action: str, path: str, body: dict[str, Any]) -> dict[str, Any]:
        self.ensure_configured()

        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    json=body,
                    auth=self._auth(),
                    timeout=self._cfg.AGORA_HTTP_TIMEOUT_SECONDS,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Cloud recording {} failed: status={} body={}",
                action,
                e.response.status_code,
                e.response.text,
            )
            raise AppError(
                errcode=AppErrorCode.E_UPSTREAM_ERROR,
                errmesg=f"Failed to {action} recording",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Cloud recording {} failed: {}: {}", action, type(e).__name__, e)
            raise AppError(
                errcode=AppErrorCode.E_UPSTREAM_ERROR,
                errmesg=f"Failed to {action} recording",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            ) from e

        logger.debug("Cloud recording {} response: {}", action, data)
        return data

    async def acquire(self, channel: str) -> AcquireResult:
        data = await self._post(
            "acquire",
            "/acquire",
            {
                "cname": channel,
                "uid": str(RECORDING_BOT_UID),
                "clientRequest": {"resourceExpiredHour": RESOURCE_EXPIRED_HOUR},
            },
        )
        return AcquireResult.model_validate(data)

    async def start(self, channel: str, resource_id: str, token: str) -> StartResult:
        data = await self._post(
            "start",
            f"/resourceid/{resource_id}/mode/mix/start",
            {
                "cname": channel,
                "uid": str(RECORDING_BOT_UID),
                "clientRequest": {
                    "token": token,
                    "recordingConfig": {
                        "maxIdleTime": MAX_IDLE_TIME_SECONDS,
                        "streamTypes": 2,
                        "channelType": 1,
                        "videoStreamType": 0,
                        "transcodingConfig": TRANSCODING_CONFIG,
                    },
                    "storageConfig": self._storage_config(),
                },
            },
        )
        return StartResult.model_validate(data)

    async def stop(self, channel: str, resource_id: str, sid: str) -> StopResult:
        data = await self._post(
            "stop",
            f"/resourceid/{resource_id}/sid/{sid}/mode/mix/stop",
            {
                "cname": channel,
                "uid": str(RECORDING_BOT_UID),
                "clientRequest": {},
            },
        )
        return StopResult.model_validate(data)


agora_recording_client = AgoraRecordingClient()
