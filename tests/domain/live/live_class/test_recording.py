"""Tests for cloud recording start/stop orchestration."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.app_config import get_app_environ_config
from app.domain.live.live_class import _recording
from app.domain.live.live_class.live_class_domain import LiveClassService
from app.domain.live.live_class.live_class_models import Actor, RecordingStopParams
from app.schemas import (
    LiveClass,
    RecordingAttempt,
    RecordingAttemptPhase,
    RecordingInfo,
    RecordingStatus,
    UserRole,
)
from app.services.integrations.agora_recording import (
    AcquireResult,
    AgoraRecordingClient,
    StartResult,
    StopResult,
)
from app.services.integrations.agora_service import AgoraTokenService
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

TEACHER = Actor(user_id="us_teacher", role=UserRole.TEACHER)
OTHER_TEACHER = Actor(user_id="us_other", role=UserRole.TEACHER)
ADMIN = Actor(user_id="us_admin", role=UserRole.ADMIN)


class FakeRedis:
    """Just enough of the redis client for the lock manager."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.counters: dict[str, int] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def eval(self, script, numkeys, key, owner):
        if self.values.get(key) == owner:
            del self.values[key]
            return 1
        return 0


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    redis = FakeRedis()
    monkeypatch.setattr(_recording, "get_redis_client", lambda: redis)
    return redis


@pytest.fixture
def recorder() -> MagicMock:
    recorder = MagicMock(spec=AgoraRecordingClient)
    recorder.acquire = AsyncMock(return_value=AcquireResult(resourceId="res-1"))
    recorder.start = AsyncMock(return_value=StartResult(sid="sid-1", resourceId="res-1"))
    recorder.stop = AsyncMock(
        return_value=StopResult.model_validate(
            {"sid": "sid-1", "serverResponse": {"fileList": [{"fileName": "rec.m3u8"}]}}
        )
    )
    return recorder


@pytest.fixture
def service(recorder: MagicMock) -> LiveClassService:
    cfg = get_app_environ_config().model_copy(update={"AGORA_APP_ID": None, "AGORA_APP_CERTIFICATE": None})
    return LiveClassService(tokens=AgoraTokenService(cfg), recorder=recorder)


@pytest.fixture
async def live_class(beanie_db) -> LiveClass:
    now = datetime.now(timezone.utc)
    doc = LiveClass(
        live_class_id="lc_1",
        teacher_id=TEACHER.user_id,
        unit_id="unit-1",
        channel_name="class-abc123",
        title="Algebra",
        start_time=now,
        created_at=now,
        updated_at=now,
    )
    await doc.insert()
    return doc


async def _reload(live_class_id: str = "lc_1") -> LiveClass:
    doc = await LiveClass.find_one(LiveClass.live_class_id == live_class_id)
    assert doc is not None
    return doc


@pytest.mark.usefixtures("clear_collections", "fake_redis")
class TestStartRecording:
    async def test_start_persists_recording(self, live_class, service: LiveClassService, recorder: MagicMock):
        result = await service.start_recording("lc_1", TEACHER)

        assert (result.resource_id, result.sid) == ("res-1", "sid-1")
        recorder.acquire.assert_awaited_once_with("class-abc123")
        channel, resource_id, _token = recorder.start.await_args.args
        assert (channel, resource_id) == ("class-abc123", "res-1")

        saved = await _reload()
        assert saved.recording.status == RecordingStatus.RECORDING
        assert saved.recording.sid == "sid-1"
        assert saved.recording_attempt.phase == RecordingAttemptPhase.RECORDED
        assert saved.recording_attempt.requested_by == TEACHER.user_id

    async def test_admin_may_start(self, live_class, service: LiveClassService):
        result = await service.start_recording("lc_1", ADMIN)

        assert result.sid == "sid-1"

    async def test_non_owner_forbidden(self, live_class, service: LiveClassService, recorder: MagicMock):
        with pytest.raises(AppError) as exc_info:
            await service.start_recording("lc_1", OTHER_TEACHER)

        assert exc_info.value.status_code == 403
        recorder.acquire.assert_not_awaited()

    async def test_start_failure_keeps_previous_recording(
        self, live_class, service: LiveClassService, recorder: MagicMock
    ):
        previous = RecordingInfo(resource_id="old-res", sid="old-sid", status=RecordingStatus.STOPPED)
        await live_class.set({"recording": previous})
        recorder.start.side_effect = AppError(
            errcode=AppErrorCode.E_UPSTREAM_ERROR,
            errmesg="Recording provider request failed",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        )

        with pytest.raises(AppError) as exc_info:
            await service.start_recording("lc_1", TEACHER)

        assert exc_info.value.errcode == "E_UPSTREAM_ERROR"
        saved = await _reload()
        assert saved.recording.sid == "old-sid"
        assert saved.recording_attempt.phase == RecordingAttemptPhase.FAILED
        assert saved.recording_attempt.resource_id == "res-1"
        assert saved.recording_attempt.error == "Recording provider request failed"

    async def test_start_overwrites_prior_recording(self, live_class, service: LiveClassService):
        await live_class.set(
            {"recording": RecordingInfo(resource_id="old-res", sid="old-sid", status=RecordingStatus.STOPPED)}
        )

        await service.start_recording("lc_1", TEACHER)

        saved = await _reload()
        assert saved.recording.sid == "sid-1"
        assert saved.recording.status == RecordingStatus.RECORDING

    async def test_not_configured(self, live_class, service: LiveClassService, recorder: MagicMock):
        recorder.ensure_configured.side_effect = AppError(
            errcode=AppErrorCode.E_RECORDING_NOT_CONFIGURED,
            errmesg="Cloud recording is not configured",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )

        with pytest.raises(AppError) as exc_info:
            await service.start_recording("lc_1", TEACHER)

        assert exc_info.value.status_code == 503
        assert (await _reload()).recording_attempt is None

    async def test_unknown_class(self, beanie_db, service: LiveClassService):
        with pytest.raises(AppError) as exc_info:
            await service.start_recording("lc_missing", TEACHER)

        assert exc_info.value.status_code == 404


@pytest.mark.usefixtures("clear_collections")
class TestRecordingLock:
    async def test_busy_lock_conflicts(self, live_class, service: LiveClassService, fake_redis: FakeRedis, recorder):
        fake_redis.values["lock:recording:lc_1"] = "someone-else"

        with pytest.raises(AppError) as exc_info:
            await service.start_recording("lc_1", TEACHER)

        assert exc_info.value.status_code == 409
        assert exc_info.value.errcode == "E_RECORDING_BUSY"
        recorder.acquire.assert_not_awaited()

    async def test_lock_released_after_start(self, live_class, service: LiveClassService, fake_redis: FakeRedis):
        await service.start_recording("lc_1", TEACHER)

        assert "lock:recording:lc_1" not in fake_redis.values

    async def test_redis_down_runs_unlocked(self, live_class, service: LiveClassService, monkeypatch):
        broken = MagicMock()
        broken.set = AsyncMock(side_effect=RedisConnectionError("down"))
        monkeypatch.setattr(_recording, "get_redis_client", lambda: broken)

        result = await service.start_recording("lc_1", TEACHER)

        assert result.sid == "sid-1"


@pytest.mark.usefixtures("clear_collections", "fake_redis")
class TestStopRecording:
    async def test_stop_persists_file_list(self, live_class, service: LiveClassService, recorder: MagicMock):
        await service.start_recording("lc_1", TEACHER)
        started_at = (await _reload()).recording.started_at

        result = await service.stop_recording(
            RecordingStopParams(channel="class-abc123", resource_id="res-1", sid="sid-1", live_class_id="lc_1"),
            TEACHER,
        )

        assert result.persisted is True
        assert result.file_list == [{"fileName": "rec.m3u8"}]
        saved = await _reload()
        assert saved.recording.status == RecordingStatus.STOPPED
        assert saved.recording.file_list == [{"fileName": "rec.m3u8"}]
        assert saved.recording.started_at == started_at
        assert saved.recording.stopped_at is not None

    async def test_stop_without_class_is_not_persisted(self, live_class, service: LiveClassService):
        result = await service.stop_recording(
            RecordingStopParams(channel="class-abc123", resource_id="res-1", sid="sid-1"),
            TEACHER,
        )

        assert result.persisted is False
        assert (await _reload()).recording is None

    async def test_stop_by_non_owner_forbidden(self, live_class, service: LiveClassService, recorder: MagicMock):
        with pytest.raises(AppError) as exc_info:
            await service.stop_recording(
                RecordingStopParams(channel="class-abc123", resource_id="res-1", sid="sid-1", live_class_id="lc_1"),
                OTHER_TEACHER,
            )

        assert exc_info.value.status_code == 403
        recorder.stop.assert_not_awaited()

    async def test_stop_rejects_channel_of_another_class(
        self, live_class, service: LiveClassService, recorder: MagicMock
    ):
        await service.start_recording("lc_1", TEACHER)

        with pytest.raises(AppError) as exc_info:
            await service.stop_recording(
                RecordingStopParams(channel="class-other", resource_id="res-9", sid="sid-9", live_class_id="lc_1"),
                TEACHER,
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.errcode == "E_INVALID_REQUEST"
        recorder.stop.assert_not_awaited()
        saved = await _reload()
        assert saved.recording.sid == "sid-1"
        assert saved.recording.status == RecordingStatus.RECORDING

    async def test_stop_defaults_to_class_channel(self, live_class, service: LiveClassService, recorder: MagicMock):
        await service.start_recording("lc_1", TEACHER)

        result = await service.stop_recording(
            RecordingStopParams(resource_id="res-1", sid="sid-1", live_class_id="lc_1"),
            TEACHER,
        )

        assert result.persisted is True
        recorder.stop.assert_awaited_once_with("class-abc123", "res-1", "sid-1")

    async def test_stop_without_class_requires_channel(self, live_class, service: LiveClassService, recorder: MagicMock):
        with pytest.raises(AppError) as exc_info:
            await service.stop_recording(RecordingStopParams(resource_id="res-1", sid="sid-1"), TEACHER)

        assert exc_info.value.status_code == 400
        recorder.stop.assert_not_awaited()


@pytest.mark.usefixtures("clear_collections", "fake_redis")
class TestRecordingQueries:
    async def test_get_recording_empty(self, live_class, service: LiveClassService):
        view = await service.get_recording("lc_1")

        assert view.recording is None

    async def test_download_without_recording(self, live_class, service: LiveClassService):
        with pytest.raises(AppError) as exc_info:
            await service.get_recording_files("lc_1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.errcode == "E_RECORDING_NOT_FOUND"

    async def test_download_after_stop(self, live_class, service: LiveClassService):
        await service.start_recording("lc_1", TEACHER)
        await service.stop_recording(
            RecordingStopParams(channel="class-abc123", resource_id="res-1", sid="sid-1", live_class_id="lc_1"),
            TEACHER,
        )

        assert await service.get_recording_files("lc_1") == [{"fileName": "rec.m3u8"}]

    async def test_orphaned_attempts(self, live_class, service: LiveClassService):
        stale = datetime.now(timezone.utc) - timedelta(minutes=10)
        await live_class.set(
            {
                "recording_attempt": RecordingAttempt(
                    phase=RecordingAttemptPhase.STARTING,
                    requested_by=TEACHER.user_id,
                    resource_id="res-9",
                    created_at=stale,
                    updated_at=stale,
                )
            }
        )
        fresh = datetime.now(timezone.utc)
        await LiveClass(
            live_class_id="lc_2",
            teacher_id=TEACHER.user_id,
            unit_id="unit-1",
            channel_name="class-def456",
            title="Geometry",
            start_time=fresh,
            created_at=fresh,
            updated_at=fresh,
            recording_attempt=RecordingAttempt(
                phase=RecordingAttemptPhase.ACQUIRING,
                requested_by=TEACHER.user_id,
                created_at=fresh,
                updated_at=fresh,
            ),
        ).insert()

        orphaned = await service.list_orphaned_recordings()

        assert [o.live_class_id for o in orphaned] == ["lc_1"]
        assert orphaned[0].resource_id == "res-9"
        assert orphaned[0].phase == RecordingAttemptPhase.STARTING

    async def test_unsaved_start_is_listed_as_orphan(
        self, live_class, service: LiveClassService, recorder: MagicMock, monkeypatch
    ):
        original_set = LiveClass.set

        async def failing_set(self, expression, *args, **kwargs):
            if "recording" in expression:
                raise RuntimeError("write lost")
            return await original_set(self, expression, *args, **kwargs)

        monkeypatch.setattr(LiveClass, "set", failing_set)

        with pytest.raises(RuntimeError):
            await service.start_recording("lc_1", TEACHER)

        saved = await _reload()
        assert saved.recording is None
        assert saved.recording_attempt.phase == RecordingAttemptPhase.STARTED_UNCONFIRMED
        assert saved.recording_attempt.sid == "sid-1"

        orphaned = await service.list_orphaned_recordings()

        assert [o.live_class_id for o in orphaned] == ["lc_1"]
        assert orphaned[0].sid == "sid-1"
        assert orphaned[0].resource_id == "res-1"
        assert orphaned[0].phase == RecordingAttemptPhase.STARTED_UNCONFIRMED
