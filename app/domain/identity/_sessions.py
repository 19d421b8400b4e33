"""Login and token session operations."""

from datetime import timedelta

from loguru import logger

from app.domain.utils.clock import utc_now
from app.schemas import RefreshToken, User
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .auth_models import LoginResult
from .security import verify_password


def _invalid_credentials() -> AppError:
    return AppError(
        errcode=AppErrorCode.E_INVALID_CREDENTIALS,
        errmesg="Invalid credentials",
        status_code=HttpStatusCode.BAD_REQUEST,
    )


class SessionOperations(BaseService):
    async def login(self, identifier: str, password: str) -> LoginResult:
        """
        Authenticate with an email address or an issued identifier.

        Raises:
            AppError: unknown user or wrong password (400), unverified email (403)
        """
        identifier = identifier.strip()
        if "@" in identifier:
            user = await User.find_one(User.email == identifier.lower())
        else:
            user = await self._find_user_by_issued_id(identifier)

        if not user:
            raise _invalid_credentials()
        if not user.is_verified:
            raise AppError(
                errcode=AppErrorCode.E_EMAIL_NOT_VERIFIED,
                errmesg="Verify email first",
                status_code=HttpStatusCode.FORBIDDEN,
            )
        if not verify_password(password, user.password_hash):
            raise _invalid_credentials()

        access_token = self.signer.create_access_token(user.user_id, user.role.value)
        refresh_token = self.signer.create_refresh_token(user.user_id)

        now = utc_now()
        await RefreshToken(
            token=refresh_token,
            user_id=user.user_id,
            expires_at=now + timedelta(seconds=self.cfg.JWT_REFRESH_TTL_SECONDS),
            created_at=now,
        ).insert()

        logger.info("User {} logged in", user.user_id)
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=await self._build_profile(user),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Exchange a stored refresh token for a new access token."""
        payload = self.signer.decode_refresh_token(refresh_token)

        stored = await RefreshToken.find_one(RefreshToken.token == refresh_token)
        if not stored:
            raise AppError(
                errcode=AppErrorCode.E_BAD_TOKEN,
                errmesg="Invalid refresh token",
                status_code=HttpStatusCode.UNAUTHORIZED,
            )

        user = await User.find_one(User.user_id == payload["id"])
        if not user:
            await stored.delete()
            raise AppError(
                errcode=AppErrorCode.E_BAD_TOKEN,
                errmesg="Invalid refresh token",
                status_code=HttpStatusCode.UNAUTHORIZED,
            )

        return self.signer.create_access_token(user.user_id, user.role.value)

    async def logout(self, refresh_token: str | None) -> None:
        """Revoke a refresh token. Unknown tokens are ignored."""
        if not refresh_token:
            return
        result = await RefreshToken.find(RefreshToken.token == refresh_token).delete()
        logger.debug("Logout removed {} refresh tokens", getattr(result, "deleted_count", 0))
