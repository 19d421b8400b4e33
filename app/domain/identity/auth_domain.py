"""Identity domain service - accounts, credentials and bearer sessions."""

from app.app_config import AppEnvironConfig
from app.schemas import Department
from app.services.integrations.email_service import EmailService
from app.services.integrations.s3_storage import S3Service

from ._account import AccountOperations
from ._registration import RegistrationOperations
from ._sessions import SessionOperations
from .auth_models import (
    AdminRegisterParams,
    LoginResult,
    ProfileUpdateParams,
    RegistrationResult,
    StudentRegisterParams,
    TeacherProfileUpdateParams,
    TeacherRegisterParams,
    UserProfile,
    VerifyEmailResult,
)
from .id_issuer import IdIssuer
from .security import TokenSigner


class AuthService:
    """Facade over the identity operations used by the auth router."""

    def __init__(
        self,
        issuer: IdIssuer | None = None,
        signer: TokenSigner | None = None,
        mailer: EmailService | None = None,
        storage: S3Service | None = None,
        cfg: AppEnvironConfig | None = None,
    ):
        shared = {"issuer": issuer, "signer": signer, "mailer": mailer, "cfg": cfg}
        self._registration = RegistrationOperations(**shared)
        self._sessions = SessionOperations(**shared)
        self._account = AccountOperations(storage=storage, **shared)

    # ==================== REGISTRATION ====================

    async def register_student(self, params: StudentRegisterParams) -> RegistrationResult:
        return await self._registration.register_student(params)

    async def register_teacher(self, params: TeacherRegisterParams) -> RegistrationResult:
        """Raises AppError 404 when the department does not exist."""
        return await self._registration.register_teacher(params)

    async def register_admin(self, params: AdminRegisterParams) -> RegistrationResult:
        return await self._registration.register_admin(params)

    async def register_staff(self, params: AdminRegisterParams) -> RegistrationResult:
        return await self._registration.register_staff(params)

    async def list_departments(self) -> list[Department]:
        return await self._registration.list_departments()

    # ==================== SESSIONS ====================

    async def login(self, identifier: str, password: str) -> LoginResult:
        return await self._sessions.login(identifier, password)

    async def refresh(self, refresh_token: str) -> str:
        return await self._sessions.refresh(refresh_token)

    async def logout(self, refresh_token: str | None) -> None:
        await self._sessions.logout(refresh_token)

    # ==================== ACCOUNT ====================

    async def verify_email(self, token: str) -> VerifyEmailResult:
        return await self._account.verify_email(token)

    async def forgot_password(self, email: str) -> None:
        await self._account.forgot_password(email)

    async def reset_password(self, token: str, new_password: str) -> None:
        await self._account.reset_password(token, new_password)

    async def get_profile(self, user_id: str) -> UserProfile:
        return await self._account.get_profile(user_id)

    async def update_profile(self, user_id: str, params: ProfileUpdateParams) -> UserProfile:
        return await self._account.update_profile(user_id, params)

    async def update_teacher_profile(self, user_id: str, params: TeacherProfileUpdateParams) -> UserProfile:
        return await self._account.update_teacher_profile(user_id, params)
