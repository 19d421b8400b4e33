from fastapi import APIRouter, Depends, Query

from app.api.v1.dependency import AdminUser, CurrentUser, TeachingUser
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.live_class import (
    CreateLiveClassIn,
    CreateLiveClassOut,
    JoinTokenOut,
    ListLiveClassesOut,
    ListOrphanedRecordingsOut,
    LiveClassOut,
    OrphanedRecordingOut,
    RecordingFilesOut,
    RecordingOut,
    SessionInfoOut,
    StartRecordingIn,
    StartRecordingOut,
    StopRecordingIn,
    StopRecordingOut,
    UpdateStatusIn,
)
from app.domain.live.live_class.live_class_domain import LiveClassService
from app.domain.live.live_class.live_class_models import (
    LiveClassCreateParams,
    LiveClassResponse,
    RecordingStopParams,
)

router = APIRouter(prefix="/live-classes", tags=["Live Classes"])

# Singleton instance
_live_class_service = LiveClassService()


def get_live_class_service() -> LiveClassService:
    """Get the singleton LiveClassService instance."""
    return _live_class_service


def _live_class_out(live_class: LiveClassResponse) -> LiveClassOut:
    return LiveClassOut(**live_class.model_dump(exclude={"updated_at"}))


@router.get("")
async def list_live_classes(
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
    unit_id: str | None = Query(None, description="Only classes of this unit"),
) -> ApiOut[ListLiveClassesOut]:
    live_classes = await service.list_live_classes(unit_id)
    return ApiOut[ListLiveClassesOut](
        results=ListLiveClassesOut(live_classes=[_live_class_out(lc) for lc in live_classes])
    )


@router.post("")
async def create_live_class(
    body: CreateLiveClassIn,
    user: TeachingUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[CreateLiveClassOut]:
    """Schedule a live class; the response carries a host token for the new channel."""
    params = LiveClassCreateParams(**body.model_dump())
    result = await service.create_live_class(user.as_actor(), params)
    return ApiOut[CreateLiveClassOut](
        results=CreateLiveClassOut(
            live_class=_live_class_out(result.live_class),
            app_id=result.app_id,
            channel=result.channel,
            token=result.token,
        )
    )


@router.get("/token")
async def get_join_token(
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
    channel: str | None = Query(None, description="Channel name of the class"),
) -> ApiOut[JoinTokenOut]:
    result = await service.issue_join_tokens(channel or "", user.as_actor())
    return ApiOut[JoinTokenOut](results=JoinTokenOut(**result.model_dump()))


@router.post("/recording/start")
async def start_recording(
    body: StartRecordingIn,
    user: TeachingUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[StartRecordingOut]:
    result = await service.start_recording(body.class_id, user.as_actor())
    return ApiOut[StartRecordingOut](
        results=StartRecordingOut(
            class_id=result.live_class_id,
            resource_id=result.resource_id,
            sid=result.sid,
            started_at=result.started_at,
        )
    )


@router.post("/recording/stop")
async def stop_recording(
    body: StopRecordingIn,
    user: TeachingUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[StopRecordingOut]:
    params = RecordingStopParams(
        channel=body.channel,
        resource_id=body.resource_id,
        sid=body.sid,
        live_class_id=body.class_id,
    )
    result = await service.stop_recording(params, user.as_actor())
    return ApiOut[StopRecordingOut](results=StopRecordingOut(**result.model_dump()))


@router.get("/recording/orphaned", tags=["Admin"])
async def list_orphaned_recordings(
    user: AdminUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[ListOrphanedRecordingsOut]:
    """Recording starts that never completed; their provider resources may still be running."""
    orphaned = await service.list_orphaned_recordings()
    return ApiOut[ListOrphanedRecordingsOut](
        results=ListOrphanedRecordingsOut(
            recordings=[OrphanedRecordingOut(**item.model_dump(exclude={"created_at"})) for item in orphaned]
        )
    )


@router.get("/recording/{class_id}")
async def get_recording(
    class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[RecordingOut]:
    view = await service.get_recording(class_id)
    return ApiOut[RecordingOut](results=RecordingOut(id=view.live_class_id, recording=view.recording))


@router.patch("/{live_class_id}/status")
async def update_status(
    live_class_id: str,
    body: UpdateStatusIn,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    result = await service.update_status(live_class_id, user.as_actor(), body.status)
    return ApiOut[LiveClassOut](results=_live_class_out(result))


@router.delete("/{live_class_id}")
async def delete_live_class(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[str]:
    await service.delete_live_class(live_class_id, user.as_actor())
    return ApiOut[str](results="OK")


@router.get("/{live_class_id}/session-info")
async def get_session_info(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[SessionInfoOut]:
    info = await service.get_session_info(live_class_id)
    return ApiOut[SessionInfoOut](results=SessionInfoOut(**info.model_dump()))


@router.get("/{live_class_id}/recording/download")
async def download_recording(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[RecordingFilesOut]:
    files = await service.get_recording_files(live_class_id)
    return ApiOut[RecordingFilesOut](results=RecordingFilesOut(class_id=live_class_id, files=files))
