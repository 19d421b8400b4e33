"""Password hashing and bearer token signing."""

from datetime import timedelta
from typing import Any
from uuid import uuid4

import bcrypt
import jwt
from loguru import logger

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.domain.utils.clock import utc_now
from app.shared.config import config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

JWT_ALGORITHM = "HS256"
PASSWORD_RESET_PURPOSE = "password_reset"

# Use bcrypt directly; rounds are lowered in tests through BCRYPT_ROUNDS
BCRYPT_ROUNDS = int(config.get("BCRYPT_ROUNDS") or 12)


def _password_bytes(password: str) -> bytes:
    data = password.encode("utf-8")
    if len(data) > 72:
        logger.warning("Password exceeds 72 bytes ({} bytes), truncating", len(data))
        data = data[:72]
    return data


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class TokenSigner:
    """Issues and verifies HS256 JWTs for access, refresh and password reset."""

    def __init__(self, cfg: AppEnvironConfig | None = None):
        self._cfg = cfg or get_app_environ_config()

    def _secret(self, refresh: bool = False) -> str:
        secret = self._cfg.JWT_REFRESH_SECRET if refresh else self._cfg.JWT_SECRET
        if not secret:
            name = "JWT_REFRESH_SECRET" if refresh else "JWT_SECRET"
            logger.error("{} is not configured", name)
            raise AppError(
                errcode=AppErrorCode.E_NOT_CONFIGURED,
                errmesg="Server authentication is not configured",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        return secret

    def _encode(self, claims: dict[str, Any], ttl_seconds: int, refresh: bool = False) -> str:
        now = utc_now()
        payload = {**claims, "iat": now, "exp": now + timedelta(seconds=ttl_seconds)}
        return jwt.encode(payload, self._secret(refresh), algorithm=JWT_ALGORITHM)

    def _decode(self, token: str, refresh: bool = False) -> dict[str, Any]:
        secret = self._secret(refresh)
        try:
            return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXPIRED,
                errmesg="Token expired",
                status_code=HttpStatusCode.UNAUTHORIZED,
            ) from e
        except jwt.InvalidTokenError as e:
            raise AppError(
                errcode=AppErrorCode.E_BAD_TOKEN,
                errmesg="Invalid token",
                status_code=HttpStatusCode.UNAUTHORIZED,
            ) from e

    def create_access_token(self, user_id: str, role: str) -> str:
        return self._encode({"id": user_id, "role": role}, self._cfg.JWT_ACCESS_TTL_SECONDS)

    def decode_access_token(self, token: str) -> dict[str, Any]:
        payload = self._decode(token)
        if not payload.get("id") or not payload.get("role"):
            raise AppError(
                errcode=AppErrorCode.E_BAD_TOKEN,
                errmesg="Invalid token",
                status_code=HttpStatusCode.UNAUTHORIZED,
            )
        return payload

    def create_refresh_token(self, user_id: str) -> str:
        # jti keeps tokens issued within the same second distinct
        return self._encode({"id": user_id, "jti": uuid4().hex}, self._cfg.JWT_REFRESH_TTL_SECONDS, refresh=True)

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, refresh=True)

    def create_password_reset_token(self, user_id: str) -> str:
        return self._encode(
            {"id": user_id, "purpose": PASSWORD_RESET_PURPOSE},
            self._cfg.EMAIL_TOKEN_TTL_SECONDS,
        )

    def decode_password_reset_token(self, token: str) -> str:
        """Return the user id of a valid reset token; any failure is a 400."""
        try:
            payload = self._decode(token)
        except AppError as e:
            if e.errcode == AppErrorCode.E_NOT_CONFIGURED.value:
                raise
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid or expired reset token",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from e

        if payload.get("purpose") != PASSWORD_RESET_PURPOSE or not payload.get("id"):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Invalid or expired reset token",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return payload["id"]


token_signer = TokenSigner()
