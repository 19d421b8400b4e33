"""Base service for identity operations."""

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.schemas import AdminDetails, StudentDetails, TeacherDetails, User, UserRole
from app.services.integrations.email_service import EmailService, email_service
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .auth_models import UserProfile
from .id_issuer import IdIssuer, id_issuer
from .security import TokenSigner, token_signer

RoleDetails = StudentDetails | TeacherDetails | AdminDetails


class BaseService:
    """Shared lookups and collaborators for identity operations."""

    def __init__(
        self,
        issuer: IdIssuer | None = None,
        signer: TokenSigner | None = None,
        mailer: EmailService | None = None,
        cfg: AppEnvironConfig | None = None,
    ):
        self.issuer = issuer or id_issuer
        self.signer = signer or token_signer
        self.mailer = mailer or email_service
        self.cfg = cfg or get_app_environ_config()

    async def _get_user(self, user_id: str) -> User:
        user = await User.find_one(User.user_id == user_id)
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg=f"User not found: {user_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return user

    async def _ensure_email_free(self, email: str, exclude_user_id: str | None = None) -> None:
        existing = await User.find_one(User.email == email)
        if existing and existing.user_id != exclude_user_id:
            raise AppError(
                errcode=AppErrorCode.E_EMAIL_EXISTS,
                errmesg="Email already in use",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

    async def _get_details(self, user: User) -> RoleDetails | None:
        if user.role is UserRole.STUDENT:
            return await StudentDetails.find_one(StudentDetails.user_id == user.user_id)
        if user.role in UserRole.teaching_roles():
            return await TeacherDetails.find_one(TeacherDetails.user_id == user.user_id)
        if user.role is UserRole.ADMIN:
            return await AdminDetails.find_one(AdminDetails.user_id == user.user_id)
        return None

    async def _find_user_by_issued_id(self, issued_id: str) -> User | None:
        """Resolve an issued identifier, searching students, then teachers, then admins."""
        details: RoleDetails | None = await StudentDetails.find_one(StudentDetails.student_id == issued_id)
        if not details:
            details = await TeacherDetails.find_one(TeacherDetails.teacher_id == issued_id)
        if not details:
            details = await AdminDetails.find_one(AdminDetails.admin_id == issued_id)
        if not details:
            return None
        return await User.find_one(User.user_id == details.user_id)

    async def _build_profile(self, user: User) -> UserProfile:
        details = await self._get_details(user)
        profile = UserProfile(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_verified=user.is_verified,
            created_at=user.created_at,
        )

        if isinstance(details, StudentDetails):
            profile.issued_id = details.student_id
            profile.course_id = details.course_id
        elif isinstance(details, TeacherDetails):
            profile.issued_id = details.teacher_id
            profile.department_id = details.department_id
            profile.national_id_number = details.national_id_number
            profile.national_id_photo_url = details.national_id_photo_url
            profile.profile_photo_url = details.profile_photo_url
        elif isinstance(details, AdminDetails):
            profile.issued_id = details.admin_id

        return profile

    def _client_url(self, role: UserRole) -> str:
        if role in UserRole.teaching_roles():
            return self.cfg.TEACHER_CLIENT_URL
        if role is UserRole.ADMIN:
            return self.cfg.ADMIN_CLIENT_URL
        return self.cfg.STUDENT_CLIENT_URL
