from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from app.domain.identity.security import TokenSigner, token_signer
from app.domain.live.live_class.live_class_models import Actor
from app.schemas import UserRole
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class AuthUser(BaseModel):
    user_id: str
    role: UserRole

    def as_actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)


def get_token_signer() -> TokenSigner:
    return token_signer


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Missing or malformed Authorization header",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )
    return token.strip()


async def get_current_user(
    request: Request, signer: TokenSigner = Depends(get_token_signer)
) -> AuthUser:
    # Do not log request headers here (they carry the bearer token).
    claims = signer.decode_access_token(_bearer_token(request))

    try:
        user = AuthUser(user_id=claims["id"], role=claims["role"])
    except (KeyError, ValueError):
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        ) from None

    logger.debug("Authenticated user_id: {} role: {}", user.user_id, user.role.value)
    return user


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]


def require_roles(*roles: UserRole):
    """Dependency factory rejecting callers whose role is not listed."""
    allowed = frozenset(roles)

    async def _check(user: CurrentUser) -> AuthUser:
        if user.role not in allowed:
            raise AppError(
                errcode=AppErrorCode.E_FORBIDDEN,
                errmesg="Insufficient permissions",
                status_code=HttpStatusCode.FORBIDDEN,
            )
        return user

    return _check


TeachingUser = Annotated[
    AuthUser, Depends(require_roles(UserRole.TEACHER, UserRole.LECTURER, UserRole.ADMIN))
]
AdminUser = Annotated[AuthUser, Depends(require_roles(UserRole.ADMIN))]
TeacherUser = Annotated[AuthUser, Depends(require_roles(UserRole.TEACHER, UserRole.LECTURER))]
