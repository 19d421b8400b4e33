"""Account registration operations."""

from collections.abc import Awaitable, Callable
from datetime import timedelta

from loguru import logger

from app.domain.utils.clock import utc_now
from app.domain.utils.idgen import new_opaque_token, new_user_id
from app.schemas import (
    AdminDetails,
    Course,
    Department,
    IdRole,
    StudentDetails,
    TeacherDetails,
    User,
    UserRole,
)
from app.services.integrations import email_templates

from ._base import BaseService
from .auth_models import (
    AdminRegisterParams,
    RegistrationResult,
    StudentRegisterParams,
    TeacherRegisterParams,
)
from .security import hash_password

DEFAULT_COURSE_CODE = "GEN"


class RegistrationOperations(BaseService):
    """Create accounts, issue their public identifier and write role details."""

    async def _create_account(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole,
        verified: bool,
        issue_details: Callable[[User], Awaitable[str]],
    ) -> tuple[User, str]:
        """
        Insert the user, then issue its identifier and details row.

        If issuance or the details insert fails, the user row is deleted
        again before the error propagates.
        """
        await self._ensure_email_free(email)

        now = utc_now()
        user = User(
            user_id=new_user_id(),
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            is_verified=verified,
            created_at=now,
            updated_at=now,
        )
        if not verified:
            user.verification_token = new_opaque_token()
            user.verification_token_expires = now + timedelta(seconds=self.cfg.EMAIL_TOKEN_TTL_SECONDS)

        await user.insert()

        try:
            issued_id = await issue_details(user)
        except Exception:
            logger.warning("Registration of {} failed after user insert, removing user {}", email, user.user_id)
            await user.delete()
            raise

        logger.info("Registered {} {} as {}", role.value, user.user_id, issued_id)
        return user, issued_id

    def _send_verification(self, user: User) -> None:
        verify_url = f"{self.cfg.API_BASE_URL.rstrip('/')}/api/auth/verify-email/{user.verification_token}"
        subject, html = email_templates.verification_email(user.name, verify_url)
        self.mailer.send_in_background(user.email, subject, html)

    async def _notify_admins(self, user: User, issued_id: str) -> None:
        subject, html = email_templates.admin_notification_email(user.name, user.email, user.role.value, issued_id)
        admins = await User.find(User.role == UserRole.ADMIN).to_list()
        for admin in admins:
            self.mailer.send_in_background(admin.email, subject, html)

    def _result(self, user: User, issued_id: str) -> RegistrationResult:
        return RegistrationResult(
            user_id=user.user_id,
            issued_id=issued_id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_verified=user.is_verified,
        )

    async def register_student(self, params: StudentRegisterParams) -> RegistrationResult:
        course_code = DEFAULT_COURSE_CODE
        if params.course_id:
            course = await Course.find_one(Course.course_id == params.course_id)
            if course:
                course_code = course.short_code
            else:
                logger.warning("Unknown course {} on registration, using {}", params.course_id, DEFAULT_COURSE_CODE)

        async def issue(user: User) -> str:
            student_id = await self.issuer.issue(IdRole.STUDENT, course_code)
            await StudentDetails(
                user_id=user.user_id,
                student_id=student_id,
                course_id=params.course_id,
                created_at=utc_now(),
            ).insert()
            return student_id

        user, issued_id = await self._create_account(
            params.name, params.email, params.password, UserRole.STUDENT, False, issue
        )
        self._send_verification(user)
        await self._notify_admins(user, issued_id)
        return self._result(user, issued_id)

    async def register_teacher(self, params: TeacherRegisterParams) -> RegistrationResult:
        async def issue(user: User) -> str:
            teacher_id = await self.issuer.issue(IdRole.TEACHER, params.department_id)
            await TeacherDetails(
                user_id=user.user_id,
                teacher_id=teacher_id,
                department_id=params.department_id,
                created_at=utc_now(),
            ).insert()
            return teacher_id

        user, issued_id = await self._create_account(
            params.name, params.email, params.password, UserRole.TEACHER, False, issue
        )
        self._send_verification(user)
        await self._notify_admins(user, issued_id)
        return self._result(user, issued_id)

    async def _register_admin(self, params: AdminRegisterParams, verified: bool) -> tuple[User, str]:
        async def issue(user: User) -> str:
            admin_id = await self.issuer.issue(IdRole.ADMIN)
            await AdminDetails(user_id=user.user_id, admin_id=admin_id, created_at=utc_now()).insert()
            return admin_id

        return await self._create_account(
            params.name, params.email, params.password, UserRole.ADMIN, verified, issue
        )

    async def register_admin(self, params: AdminRegisterParams) -> RegistrationResult:
        """Admin self registration; the account stays unverified until the email link is used."""
        user, issued_id = await self._register_admin(params, verified=False)
        self._send_verification(user)
        return self._result(user, issued_id)

    async def register_staff(self, params: AdminRegisterParams) -> RegistrationResult:
        """Admin account created by another admin; verified immediately."""
        user, issued_id = await self._register_admin(params, verified=True)
        subject, html = email_templates.admission_email(user.name, user.role.value, issued_id)
        self.mailer.send_in_background(user.email, subject, html)
        return self._result(user, issued_id)

    async def list_departments(self) -> list[Department]:
        return await Department.find_all().sort("+name").to_list()
