"""Cloud recording operations for live classes."""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator

from beanie.operators import In
from loguru import logger
from redis.exceptions import RedisError

from app.domain.utils.clock import as_utc, utc_now
from app.schemas import (
    LiveClass,
    RecordingAttempt,
    RecordingAttemptPhase,
    RecordingInfo,
    RecordingStatus,
)
from app.shared.lock import LockManager
from app.shared.storage.redis import get_redis_client
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .live_class_models import (
    Actor,
    OrphanedRecording,
    RecordingStartResult,
    RecordingStopParams,
    RecordingStopResult,
    RecordingView,
)
from .recording_meta import read_recording, recording_files

RECORDING_LOCK_PREFIX = "lock:recording"
RECORDING_LOCK_TTL_SECONDS = 120
# Attempts younger than this may still be running in another request
ORPHAN_GRACE_SECONDS = RECORDING_LOCK_TTL_SECONDS


class RecordingOperations(BaseService):
    @asynccontextmanager
    async def _recording_lock(self, live_class_id: str) -> AsyncIterator[None]:
        """Serialize recording start/stop for one class across workers.

        Runs unlocked when Redis is unreachable.
        """
        lock: LockManager | None = None
        try:
            lock = LockManager(
                get_redis_client(),
                lock_prefix=RECORDING_LOCK_PREFIX,
                default_ttl=RECORDING_LOCK_TTL_SECONDS,
            )
            acquired = await lock.acquire(live_class_id, blocking=False)
        except (RedisError, ConnectionError, OSError) as e:
            logger.warning(f"Redis unavailable for recording lock, continuing unlocked: {e}")
            lock = None
            acquired = True

        if not acquired:
            raise AppError(
                errcode=AppErrorCode.E_RECORDING_BUSY,
                errmesg="Another recording request for this class is in progress",
                status_code=HttpStatusCode.CONFLICT,
            )

        try:
            yield
        finally:
            if lock is not None:
                await lock.release()

    async def _save_attempt(self, live_class: LiveClass, attempt: RecordingAttempt) -> None:
        attempt.updated_at = utc_now()
        await live_class.set({"recording_attempt": attempt, "updated_at": attempt.updated_at})

    async def start_recording(self, live_class_id: str, actor: Actor) -> RecordingStartResult:
        """
        Acquire, start and persist a cloud recording for the class channel.

        Progress is tracked on `recording_attempt`; the committed `recording`
        is replaced only once the provider has returned a sid.

        Raises:
            AppError: not configured (503), busy (409), provider failure (500)
        """
        live_class = await self._get_live_class(live_class_id)
        self._ensure_owner(live_class, actor, allow_admin=True)
        self.recorder.ensure_configured()

        async with self._recording_lock(live_class_id):
            channel = live_class.channel_name
            now = utc_now()
            attempt = RecordingAttempt(
                phase=RecordingAttemptPhase.ACQUIRING,
                requested_by=actor.user_id,
                created_at=now,
                updated_at=now,
            )
            await self._save_attempt(live_class, attempt)

            try:
                acquired = await self.recorder.acquire(channel)
                attempt.phase = RecordingAttemptPhase.STARTING
                attempt.resource_id = acquired.resource_id
                await self._save_attempt(live_class, attempt)

                bot_token = self.tokens.build_recording_bot_token(channel)
                started = await self.recorder.start(channel, acquired.resource_id, bot_token)
                attempt.sid = started.sid

                started_at = utc_now()
                recording = RecordingInfo(
                    resource_id=acquired.resource_id,
                    sid=started.sid,
                    status=RecordingStatus.RECORDING,
                    started_at=started_at,
                )
                attempt.phase = RecordingAttemptPhase.RECORDED
                attempt.updated_at = started_at
                await live_class.set(
                    {"recording": recording, "recording_attempt": attempt, "updated_at": started_at}
                )
            except Exception as e:
                await self._mark_attempt_failed(live_class, attempt, e)
                raise

        logger.info(
            "Recording started class={} channel={} resource_id={} sid={}",
            live_class_id,
            channel,
            recording.resource_id,
            recording.sid,
        )
        return RecordingStartResult(
            live_class_id=live_class_id,
            resource_id=recording.resource_id,
            sid=recording.sid,
            started_at=started_at,
        )

    async def _mark_attempt_failed(self, live_class: LiveClass, attempt: RecordingAttempt, error: Exception) -> None:
        # With a sid the provider is recording; keep it visible to reconciliation
        if attempt.sid:
            attempt.phase = RecordingAttemptPhase.STARTED_UNCONFIRMED
        else:
            attempt.phase = RecordingAttemptPhase.FAILED
        attempt.error = getattr(error, "errmesg", None) or str(error)
        try:
            await self._save_attempt(live_class, attempt)
        except Exception as save_error:
            # Keep the provider error as the one that propagates
            logger.error(
                "Could not record failed attempt for class {} (resource_id={}): {}",
                live_class.live_class_id,
                attempt.resource_id,
                save_error,
            )
        logger.error(
            "Recording start failed class={} resource_id={}: {}",
            live_class.live_class_id,
            attempt.resource_id,
            attempt.error,
        )

    async def stop_recording(self, params: RecordingStopParams, actor: Actor) -> RecordingStopResult:
        """
        Stop a provider recording and, when the class is known, persist its file list.

        Without `live_class_id` only the provider call is made and `channel` is
        required. With it, the channel defaults to the class channel and any other
        channel is rejected.
        """
        self.recorder.ensure_configured()

        if not params.live_class_id:
            if not params.channel:
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_REQUEST,
                    errmesg="Channel name is required when no class is given",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )
            result = await self.recorder.stop(params.channel, params.resource_id, params.sid)
            logger.info("Recording stopped channel={} sid={} (not persisted)", params.channel, params.sid)
            return RecordingStopResult(
                resource_id=params.resource_id,
                sid=params.sid,
                stopped_at=utc_now(),
                file_list=result.file_list,
                persisted=False,
            )

        live_class = await self._get_live_class(params.live_class_id)
        self._ensure_owner(live_class, actor, allow_admin=True)

        channel = params.channel or live_class.channel_name
        if channel != live_class.channel_name:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Channel does not belong to this class",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        async with self._recording_lock(live_class.live_class_id):
            result = await self.recorder.stop(channel, params.resource_id, params.sid)

            stopped_at = utc_now()
            started_at = None
            if live_class.recording is not None and live_class.recording.sid == params.sid:
                started_at = live_class.recording.started_at

            recording = RecordingInfo(
                resource_id=params.resource_id,
                sid=params.sid,
                status=RecordingStatus.STOPPED,
                started_at=started_at,
                stopped_at=stopped_at,
                file_list=result.file_list,
            )
            await live_class.set({"recording": recording, "updated_at": stopped_at})

        logger.info("Recording stopped class={} sid={} files={}", live_class.live_class_id, params.sid, len(result.file_list))
        return RecordingStopResult(
            resource_id=params.resource_id,
            sid=params.sid,
            stopped_at=stopped_at,
            file_list=result.file_list,
            persisted=True,
        )

    async def get_recording(self, live_class_id: str) -> RecordingView:
        live_class = await self._get_live_class(live_class_id)
        return RecordingView(live_class_id=live_class_id, recording=read_recording(live_class))

    async def get_recording_files(self, live_class_id: str) -> list[dict[str, Any]]:
        live_class = await self._get_live_class(live_class_id)
        files = recording_files(live_class)
        if files is None:
            raise AppError(
                errcode=AppErrorCode.E_RECORDING_NOT_FOUND,
                errmesg="No recording available for this class",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return files

    async def list_orphaned_recordings(self, grace_seconds: int = ORPHAN_GRACE_SECONDS) -> list[OrphanedRecording]:
        """Recording starts stuck in a pending phase past the lock lifetime.

        Starts the provider confirmed but that were never saved are listed at once.
        """
        cutoff = utc_now() - timedelta(seconds=grace_seconds)
        docs = await LiveClass.find(
            In("recording_attempt.phase", [phase.value for phase in RecordingAttemptPhase.pending_phases()])
        ).to_list()

        orphaned = []
        for doc in docs:
            attempt = doc.recording_attempt
            if attempt is None:
                continue
            # Unconfirmed starts are final; only in-flight phases get the grace period
            in_flight = attempt.phase is not RecordingAttemptPhase.STARTED_UNCONFIRMED
            if in_flight and as_utc(attempt.updated_at) > cutoff:
                continue
            orphaned.append(
                OrphanedRecording(
                    live_class_id=doc.live_class_id,
                    channel_name=doc.channel_name,
                    phase=attempt.phase,
                    requested_by=attempt.requested_by,
                    resource_id=attempt.resource_id,
                    sid=attempt.sid,
                    created_at=attempt.created_at,
                    updated_at=attempt.updated_at,
                )
            )
        return orphaned
