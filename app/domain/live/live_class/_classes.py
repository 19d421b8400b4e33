"""Live class scheduling, status and join token operations."""

from loguru import logger

from app.domain.utils.clock import utc_now
from app.domain.utils.idgen import new_channel_name, new_live_class_id
from app.schemas import LecturerUnit, LiveClass, LiveClassStatus, User, UserRole
from app.services.integrations.agora_service import AgoraRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .live_class_models import (
    Actor,
    JoinTokenResult,
    LiveClassCreateParams,
    LiveClassCreateResult,
    LiveClassResponse,
    SessionInfo,
)

# Host token handed out with a freshly created class
HOST_TOKEN_UID = 0
HOST_TOKEN_TTL_SECONDS = 2 * 60 * 60


class ClassOperations(BaseService):
    async def create_live_class(self, actor: Actor, params: LiveClassCreateParams) -> LiveClassCreateResult:
        """
        Schedule a class on a unit the caller teaches.

        Admins may schedule for any unit.

        Raises:
            AppError: caller not assigned to the unit (403)
        """
        if not params.title.strip():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Title is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        if not actor.is_admin:
            assignment = await LecturerUnit.find_one(
                LecturerUnit.lecturer_id == actor.user_id,
                LecturerUnit.unit_id == params.unit_id,
            )
            if not assignment:
                raise AppError(
                    errcode=AppErrorCode.E_NOT_ASSIGNED_TO_UNIT,
                    errmesg="You are not assigned to this unit",
                    status_code=HttpStatusCode.FORBIDDEN,
                )

        now = utc_now()
        live_class = LiveClass(
            live_class_id=new_live_class_id(),
            teacher_id=actor.user_id,
            unit_id=params.unit_id,
            channel_name=new_channel_name(),
            title=params.title.strip(),
            description=params.description,
            status=LiveClassStatus.SCHEDULED,
            start_time=params.start_time,
            end_time=params.end_time,
            created_at=now,
            updated_at=now,
        )
        await live_class.insert()
        logger.info("Created live class {} on channel {}", live_class.live_class_id, live_class.channel_name)

        token = self.tokens.build_rtc_token(
            live_class.channel_name,
            HOST_TOKEN_UID,
            AgoraRole.PUBLISHER,
            self.tokens.expiry_from_now(HOST_TOKEN_TTL_SECONDS),
        )
        return LiveClassCreateResult(
            live_class=LiveClassResponse.from_document(live_class),
            app_id=self.tokens.app_id,
            channel=live_class.channel_name,
            token=token,
        )

    async def list_live_classes(self, unit_id: str | None = None) -> list[LiveClassResponse]:
        query = LiveClass.find(LiveClass.unit_id == unit_id) if unit_id else LiveClass.find_all()
        docs = await query.sort("+start_time").to_list()
        return [LiveClassResponse.from_document(doc) for doc in docs]

    async def update_status(self, live_class_id: str, actor: Actor, status: str) -> LiveClassResponse:
        try:
            new_status = LiveClassStatus(status)
        except ValueError:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Invalid status: {status}",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from None

        live_class = await self._get_live_class(live_class_id)
        self._ensure_owner(live_class, actor)

        live_class.status = new_status
        live_class.updated_at = utc_now()
        await live_class.save()
        logger.info("Live class {} status -> {}", live_class_id, new_status.value)
        return LiveClassResponse.from_document(live_class)

    async def delete_live_class(self, live_class_id: str, actor: Actor) -> None:
        live_class = await self._get_live_class(live_class_id)
        self._ensure_owner(live_class, actor)

        if live_class.status is LiveClassStatus.LIVE:
            raise AppError(
                errcode=AppErrorCode.E_LIVE_CLASS_IS_LIVE,
                errmesg="Cannot delete a class while it is live",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        await live_class.delete()
        logger.info("Deleted live class {}", live_class_id)

    async def get_session_info(self, live_class_id: str) -> SessionInfo:
        live_class = await self._get_live_class(live_class_id)
        return SessionInfo(
            live_class_id=live_class.live_class_id,
            title=live_class.title,
            channel_name=live_class.channel_name,
            status=live_class.status,
            teacher_id=live_class.teacher_id,
            unit_id=live_class.unit_id,
            start_time=live_class.start_time,
            end_time=live_class.end_time,
            has_recording=live_class.has_recording,
        )

    async def issue_join_tokens(self, channel: str, actor: Actor) -> JoinTokenResult:
        """Mint the three join tokens for a channel.

        The returned role only tells the client which UI to show.
        """
        channel = (channel or "").strip()
        if not channel:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Channel name is required",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        live_class = await LiveClass.find_one(LiveClass.channel_name == channel)
        is_owner = live_class is not None and live_class.teacher_id == actor.user_id
        is_teacher = is_owner or actor.role in UserRole.teaching_roles()

        user_name = actor.name
        if user_name is None:
            user = await User.find_one(User.user_id == actor.user_id)
            user_name = user.name if user else None

        tokens = self.tokens.issue_join_tokens(channel, actor.user_id)
        return JoinTokenResult(
            app_id=tokens.app_id,
            channel=channel,
            class_id=live_class.live_class_id if live_class else None,
            role="teacher" if is_teacher else "student",
            user_name=user_name,
            uid=tokens.uid,
            token=tokens.token,
            screen_share_uid=tokens.screen_share_uid,
            screen_share_token=tokens.screen_share_token,
            rtm_user_id=tokens.rtm_user_id,
            rtm_token=tokens.rtm_token,
            expires_at=tokens.expires_at,
        )
