"""Email verification, password reset and profile operations."""

from loguru import logger

from app.domain.utils.clock import as_utc, utc_now
from app.schemas import TeacherDetails, User, UserRole
from app.services.integrations import email_templates
from app.services.integrations.s3_storage import S3Service, s3_service
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .auth_models import (
    ProfileUpdateParams,
    TeacherProfileUpdateParams,
    UserProfile,
    VerifyEmailResult,
    validate_password_length,
)
from .security import hash_password


def _nothing_to_update() -> AppError:
    return AppError(
        errcode=AppErrorCode.E_INVALID_REQUEST,
        errmesg="No fields to update",
        status_code=HttpStatusCode.BAD_REQUEST,
    )


class AccountOperations(BaseService):
    def __init__(self, storage: S3Service | None = None, **kwargs):
        super().__init__(**kwargs)
        self.storage = storage or s3_service

    async def verify_email(self, token: str) -> VerifyEmailResult:
        user = await User.find_one(User.verification_token == token) if token else None
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid verification token",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        expires = as_utc(user.verification_token_expires)
        if expires is None or expires < utc_now():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Verification token has expired",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        user.is_verified = True
        user.verification_token = None
        user.verification_token_expires = None
        user.updated_at = utc_now()
        await user.save()
        logger.info("Verified email for user {}", user.user_id)

        profile = await self._build_profile(user)
        if profile.issued_id:
            subject, html = email_templates.admission_email(user.name, user.role.value, profile.issued_id)
            self.mailer.send_in_background(user.email, subject, html)

        return VerifyEmailResult(
            user_id=user.user_id,
            role=user.role,
            redirect_url=f"{self._client_url(user.role)}/auth/login?verified=true",
        )

    async def forgot_password(self, email: str) -> None:
        """Mail a reset link if the account exists; callers answer the same either way."""
        user = await User.find_one(User.email == email.strip().lower())
        if not user:
            logger.info("Password reset requested for unknown email")
            return

        reset_token = self.signer.create_password_reset_token(user.user_id)
        reset_url = f"{self._client_url(user.role)}/auth/reset-password?token={reset_token}"
        subject, html = email_templates.password_reset_email(user.name, reset_url)
        self.mailer.send_in_background(user.email, subject, html)

    async def reset_password(self, token: str, new_password: str) -> None:
        validate_password_length(new_password)
        user_id = self.signer.decode_password_reset_token(token)
        user = await User.find_one(User.user_id == user_id)
        if not user:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid or expired reset token",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        user.password_hash = hash_password(new_password)
        user.updated_at = utc_now()
        await user.save()
        logger.info("Password reset for user {}", user.user_id)

    async def get_profile(self, user_id: str) -> UserProfile:
        return await self._build_profile(await self._get_user(user_id))

    async def update_profile(self, user_id: str, params: ProfileUpdateParams) -> UserProfile:
        user = await self._get_user(user_id)

        changed = False
        if params.name and params.name.strip():
            user.name = params.name.strip()
            changed = True
        if params.email and params.email != user.email:
            await self._ensure_email_free(params.email, exclude_user_id=user_id)
            user.email = params.email
            changed = True
        if params.password:
            user.password_hash = hash_password(params.password)
            changed = True

        if not changed:
            raise _nothing_to_update()

        user.updated_at = utc_now()
        await user.save()
        return await self._build_profile(user)

    async def update_teacher_profile(self, user_id: str, params: TeacherProfileUpdateParams) -> UserProfile:
        user = await self._get_user(user_id)
        if user.role not in UserRole.teaching_roles():
            raise AppError(
                errcode=AppErrorCode.E_FORBIDDEN,
                errmesg="Only teachers have a teacher profile",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        details = await TeacherDetails.find_one(TeacherDetails.user_id == user_id)
        if not details:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg="Teacher details not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        updates: dict[str, str] = {}
        if params.national_id_number:
            updates["national_id_number"] = params.national_id_number.strip()
        if params.national_id_photo:
            photo = params.national_id_photo
            updates["national_id_photo_url"] = await self.storage.upload_media(
                photo.content, photo.content_type, photo.filename
            )
        if params.profile_photo:
            photo = params.profile_photo
            updates["profile_photo_url"] = await self.storage.upload_media(
                photo.content, photo.content_type, photo.filename
            )

        if not updates:
            raise _nothing_to_update()

        for field, value in updates.items():
            setattr(details, field, value)
        details.updated_at = utc_now()
        await details.save()

        return await self._build_profile(user)
