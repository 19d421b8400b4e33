"""Live class domain service - scheduling, join tokens and cloud recording."""

from typing import Any

from app.app_config import AppEnvironConfig
from app.services.integrations.agora_recording import AgoraRecordingClient
from app.services.integrations.agora_service import AgoraTokenService

from ._classes import ClassOperations
from ._recording import RecordingOperations
from .live_class_models import (
    Actor,
    JoinTokenResult,
    LiveClassCreateParams,
    LiveClassCreateResult,
    LiveClassResponse,
    OrphanedRecording,
    RecordingStartResult,
    RecordingStopParams,
    RecordingStopResult,
    RecordingView,
    SessionInfo,
)


class LiveClassService:
    def __init__(
        self,
        tokens: AgoraTokenService | None = None,
        recorder: AgoraRecordingClient | None = None,
        cfg: AppEnvironConfig | None = None,
    ):
        self._classes = ClassOperations(tokens=tokens, recorder=recorder, cfg=cfg)
        self._recording = RecordingOperations(tokens=tokens, recorder=recorder, cfg=cfg)

    # ==================== CLASSES ====================

    async def create_live_class(self, actor: Actor, params: LiveClassCreateParams) -> LiveClassCreateResult:
        """Schedule a class. Raises AppError 403 when the caller does not teach the unit."""
        return await self._classes.create_live_class(actor, params)

    async def list_live_classes(self, unit_id: str | None = None) -> list[LiveClassResponse]:
        return await self._classes.list_live_classes(unit_id)

    async def update_status(self, live_class_id: str, actor: Actor, status: str) -> LiveClassResponse:
        return await self._classes.update_status(live_class_id, actor, status)

    async def delete_live_class(self, live_class_id: str, actor: Actor) -> None:
        """Delete an owned class. Raises AppError 400 while the class is live."""
        await self._classes.delete_live_class(live_class_id, actor)

    async def get_session_info(self, live_class_id: str) -> SessionInfo:
        return await self._classes.get_session_info(live_class_id)

    async def issue_join_tokens(self, channel: str, actor: Actor) -> JoinTokenResult:
        return await self._classes.issue_join_tokens(channel, actor)

    # ==================== RECORDING ====================

    async def start_recording(self, live_class_id: str, actor: Actor) -> RecordingStartResult:
        return await self._recording.start_recording(live_class_id, actor)

    async def stop_recording(self, params: RecordingStopParams, actor: Actor) -> RecordingStopResult:
        return await self._recording.stop_recording(params, actor)

    async def get_recording(self, live_class_id: str) -> RecordingView:
        return await self._recording.get_recording(live_class_id)

    async def get_recording_files(self, live_class_id: str) -> list[dict[str, Any]]:
        return await self._recording.get_recording_files(live_class_id)

    async def list_orphaned_recordings(self) -> list[OrphanedRecording]:
        return await self._recording.list_orphaned_recordings()
