"""Tests for live class scheduling, status changes and join tokens."""

from datetime import datetime, timedelta, timezone

import pytest

from app.app_config import get_app_environ_config
from app.domain.live.live_class.live_class_domain import LiveClassService
from app.domain.live.live_class.live_class_models import Actor, LiveClassCreateParams
from app.schemas import LecturerUnit, LiveClass, LiveClassStatus, User, UserRole
from app.services.integrations.agora_service import (
    SCREEN_SHARE_UID_OFFSET,
    AgoraTokenService,
    is_placeholder_token,
    numeric_uid,
)
from app.utils.app_errors import AppError

TEACHER = Actor(user_id="us_teacher", role=UserRole.TEACHER)
OTHER_TEACHER = Actor(user_id="us_other", role=UserRole.LECTURER)
ADMIN = Actor(user_id="us_admin", role=UserRole.ADMIN)
STUDENT = Actor(user_id="us_student", role=UserRole.STUDENT)


@pytest.fixture
def service() -> LiveClassService:
    cfg = get_app_environ_config().model_copy(update={"AGORA_APP_ID": None, "AGORA_APP_CERTIFICATE": None})
    return LiveClassService(tokens=AgoraTokenService(cfg))


@pytest.fixture
async def assignment(beanie_db) -> LecturerUnit:
    assignment = LecturerUnit(lecturer_id=TEACHER.user_id, unit_id="unit-1", created_at=datetime.now(timezone.utc))
    await assignment.insert()
    return assignment


def _params(unit_id: str = "unit-1", offset_hours: int = 1) -> LiveClassCreateParams:
    return LiveClassCreateParams(
        unit_id=unit_id,
        title="Algebra I",
        start_time=datetime.now(timezone.utc) + timedelta(hours=offset_hours),
    )


@pytest.mark.usefixtures("clear_collections")
class TestCreateLiveClass:
    async def test_assigned_teacher_creates_class(self, beanie_db, service: LiveClassService, assignment):
        result = await service.create_live_class(TEACHER, _params())

        assert result.live_class.live_class_id.startswith("lc_")
        assert result.live_class.status == LiveClassStatus.SCHEDULED
        assert result.channel.startswith("class-")
        assert len(result.channel) == len("class-") + 6
        assert result.channel == result.live_class.channel_name
        assert is_placeholder_token(result.token)

        saved = await LiveClass.find_one(LiveClass.live_class_id == result.live_class.live_class_id)
        assert saved is not None
        assert saved.teacher_id == TEACHER.user_id

    async def test_unassigned_teacher_is_forbidden(self, beanie_db, service: LiveClassService, assignment):
        with pytest.raises(AppError) as exc_info:
            await service.create_live_class(OTHER_TEACHER, _params())

        assert exc_info.value.status_code == 403
        assert exc_info.value.errcode == "E_NOT_ASSIGNED_TO_UNIT"
        assert await LiveClass.find_all().count() == 0

    async def test_admin_bypasses_assignment(self, beanie_db, service: LiveClassService):
        result = await service.create_live_class(ADMIN, _params(unit_id="unit-9"))

        assert result.live_class.unit_id == "unit-9"


@pytest.mark.usefixtures("clear_collections")
class TestListLiveClasses:
    async def test_filter_by_unit_and_order_by_start(self, beanie_db, service: LiveClassService):
        await service.create_live_class(ADMIN, _params(unit_id="unit-1", offset_hours=5))
        await service.create_live_class(ADMIN, _params(unit_id="unit-1", offset_hours=1))
        await service.create_live_class(ADMIN, _params(unit_id="unit-2", offset_hours=3))

        unit_classes = await service.list_live_classes("unit-1")
        all_classes = await service.list_live_classes()

        assert len(unit_classes) == 2
        assert unit_classes[0].start_time < unit_classes[1].start_time
        assert len(all_classes) == 3


@pytest.mark.usefixtures("clear_collections")
class TestStatusAndDelete:
    async def test_owner_updates_status(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())

        updated = await service.update_status(created.live_class.live_class_id, TEACHER, "live")

        assert updated.status == LiveClassStatus.LIVE

    async def test_invalid_status_rejected(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())

        with pytest.raises(AppError) as exc_info:
            await service.update_status(created.live_class.live_class_id, TEACHER, "paused")

        assert exc_info.value.status_code == 400

    async def test_non_owner_cannot_change_status(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())

        with pytest.raises(AppError) as exc_info:
            await service.update_status(created.live_class.live_class_id, OTHER_TEACHER, "live")

        assert exc_info.value.status_code == 403

    async def test_live_class_cannot_be_deleted(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())
        class_id = created.live_class.live_class_id
        await service.update_status(class_id, TEACHER, "live")

        with pytest.raises(AppError) as exc_info:
            await service.delete_live_class(class_id, TEACHER)

        assert exc_info.value.status_code == 400
        assert await LiveClass.find_one(LiveClass.live_class_id == class_id) is not None

    async def test_ended_class_can_be_deleted(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())
        class_id = created.live_class.live_class_id
        await service.update_status(class_id, TEACHER, "ended")

        await service.delete_live_class(class_id, TEACHER)

        assert await LiveClass.find_one(LiveClass.live_class_id == class_id) is None

    async def test_missing_class_is_not_found(self, beanie_db, service: LiveClassService):
        with pytest.raises(AppError) as exc_info:
            await service.get_session_info("lc_missing")

        assert exc_info.value.status_code == 404


@pytest.mark.usefixtures("clear_collections")
class TestJoinTokens:
    async def test_owner_is_teacher(self, beanie_db, service: LiveClassService, assignment):
        created = await service.create_live_class(TEACHER, _params())

        result = await service.issue_join_tokens(created.channel, TEACHER)

        assert result.role == "teacher"
        assert result.class_id == created.live_class.live_class_id
        assert result.uid == numeric_uid(TEACHER.user_id)
        assert result.screen_share_uid == result.uid + SCREEN_SHARE_UID_OFFSET
        assert result.rtm_user_id == "usteacher"

    async def test_student_gets_publisher_tokens_with_student_role(self, beanie_db, service: LiveClassService, assignment):
        now = datetime.now(timezone.utc)
        await User(
            user_id=STUDENT.user_id,
            name="Stu Dent",
            email="stu@example.com",
            password_hash="x",
            role=UserRole.STUDENT,
            is_verified=True,
            created_at=now,
            updated_at=now,
        ).insert()
        created = await service.create_live_class(TEACHER, _params())

        result = await service.issue_join_tokens(created.channel, STUDENT)

        assert result.role == "student"
        assert result.user_name == "Stu Dent"
        assert result.token
        assert result.screen_share_token
        assert result.rtm_token

    async def test_teaching_role_counts_as_teacher_without_class(self, beanie_db, service: LiveClassService):
        result = await service.issue_join_tokens("class-unknown", OTHER_TEACHER)

        assert result.role == "teacher"
        assert result.class_id is None

    async def test_missing_channel_rejected(self, beanie_db, service: LiveClassService):
        with pytest.raises(AppError) as exc_info:
            await service.issue_join_tokens("  ", STUDENT)

        assert exc_info.value.status_code == 400
