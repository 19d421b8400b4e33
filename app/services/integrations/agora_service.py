"""Agora real-time token helper.

Thin wrapper around the `agora-token-builder` package that mints the three
tokens a participant needs to join a live class: the primary audio/video
token, a screen-share token for a second client, and a messaging (RTM) token.

Usage:
    from app.services.integrations.agora_service import agora_token_service

    tokens = agora_token_service.issue_join_tokens(
        channel="class-a1b2c3",
        identity="us_01hx...",
    )

When AGORA_APP_ID / AGORA_APP_CERTIFICATE are not configured, minting logs an
error and returns placeholder tokens prefixed with `mock-` instead of raising,
so local and demo environments keep working.
"""

from __future__ import annotations

import re
import secrets
from enum import Enum

from agora_token_builder import RtcTokenBuilder, RtmTokenBuilder
from loguru import logger
from pydantic import BaseModel

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.domain.utils.clock import epoch_seconds

SCREEN_SHARE_UID_OFFSET = 100_000
RECORDING_BOT_UID = 1
NUMERIC_UID_MODULUS = 1_000_000
RTM_USER_ID_MAX_LENGTH = 64

RTC_TOKEN_PLACEHOLDER_PREFIX = "mock-token-"
RTM_TOKEN_PLACEHOLDER_PREFIX = "mock-rtm-token-"

# Privilege roles understood by the Agora token format
_RTC_ROLE_PUBLISHER = 1
_RTC_ROLE_SUBSCRIBER = 2
_RTM_ROLE_USER = 1

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


class AgoraRole(str, Enum):
    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"

    @property
    def privilege(self) -> int:
        return _RTC_ROLE_PUBLISHER if self is AgoraRole.PUBLISHER else _RTC_ROLE_SUBSCRIBER


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def numeric_uid(identity: str) -> int:
    """Map a string identity onto the provider's numeric uid space.

    Folds each UTF-16 code unit with `acc = int32(acc * 31 + unit)` and returns
    `abs(acc) % 1_000_000`. Deterministic and side-effect free; two identities
    may share a uid.
    """
    data = identity.encode("utf-16-le")
    acc = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        acc = _to_int32(acc * 31 + unit)
    return abs(acc) % NUMERIC_UID_MODULUS


def screen_share_uid(uid: int) -> int:
    return uid + SCREEN_SHARE_UID_OFFSET


def rtm_user_id(identity: str) -> str:
    """Messaging ids only allow ASCII letters and digits, at most 64 chars."""
    return _NON_ALNUM.sub("", identity)[:RTM_USER_ID_MAX_LENGTH]


def is_placeholder_token(token: str) -> bool:
    return token.startswith(RTC_TOKEN_PLACEHOLDER_PREFIX) or token.startswith(RTM_TOKEN_PLACEHOLDER_PREFIX)


class JoinTokens(BaseModel):
    app_id: str | None
    channel: str
    uid: int
    token: str
    screen_share_uid: int
    screen_share_token: str
    rtm_user_id: str
    rtm_token: str
    expires_at: int


class AgoraTokenService:
    """Mints Agora RTC and RTM tokens. Stateless; nothing is persisted."""

    def __init__(self, cfg: AppEnvironConfig | None = None) -> None:
        self._cfg = cfg or get_app_environ_config()
        logger.info("AgoraTokenService initialized")

    @property
    def app_id(self) -> str | None:
        return self._cfg.AGORA_APP_ID

    @property
    def is_configured(self) -> bool:
        return bool(self._cfg.AGORA_APP_ID and self._cfg.AGORA_APP_CERTIFICATE)

    def expiry_from_now(self, ttl_seconds: int | None = None) -> int:
        if ttl_seconds is None:
            ttl_seconds = self._cfg.AGORA_TOKEN_TTL_SECONDS
        return epoch_seconds() + int(ttl_seconds)

    def build_rtc_token(self, channel: str, uid: int, role: AgoraRole, expire_at: int) -> str:
        if not self.is_configured:
            logger.error("AGORA_APP_ID or AGORA_APP_CERTIFICATE not configured, returning placeholder RTC token")
            return f"{RTC_TOKEN_PLACEHOLDER_PREFIX}{secrets.token_hex(6)}"

        return RtcTokenBuilder.buildTokenWithUid(
            self._cfg.AGORA_APP_ID,
            self._cfg.AGORA_APP_CERTIFICATE,
            channel,
            uid,
            role.privilege,
            expire_at,
        )

    def build_rtm_token(self, user_id: str, expire_at: int) -> str:
        if not self.is_configured:
            logger.error("AGORA_APP_ID or AGORA_APP_CERTIFICATE not configured, returning placeholder RTM token")
            return f"{RTM_TOKEN_PLACEHOLDER_PREFIX}{secrets.token_hex(6)}"

        return RtmTokenBuilder.buildToken(
            self._cfg.AGORA_APP_ID,
            self._cfg.AGORA_APP_CERTIFICATE,
            user_id,
            _RTM_ROLE_USER,
            expire_at,
        )

    def build_screen_share_token(self, channel: str, uid: int, expire_at: int) -> tuple[str, int]:
        share_uid = screen_share_uid(uid)
        return self.build_rtc_token(channel, share_uid, AgoraRole.PUBLISHER, expire_at), share_uid

    def build_recording_bot_token(self, channel: str, ttl_seconds: int | None = None) -> str:
        return self.build_rtc_token(
            channel,
            RECORDING_BOT_UID,
            AgoraRole.SUBSCRIBER,
            self.expiry_from_now(ttl_seconds),
        )

    def issue_join_tokens(self, channel: str, identity: str, ttl_seconds: int | None = None) -> JoinTokens:
        """Mint primary, screen-share and messaging tokens sharing one expiry.

        Every participant publishes; classroom roles are not encoded in tokens.
        """
        expire_at = self.expiry_from_now(ttl_seconds)
        uid = numeric_uid(identity)
        messaging_id = rtm_user_id(identity)

        token = self.build_rtc_token(channel, uid, AgoraRole.PUBLISHER, expire_at)
        share_token, share_uid = self.build_screen_share_token(channel, uid, expire_at)
        rtm_token = self.build_rtm_token(messaging_id, expire_at)

        logger.debug("Issued join tokens channel={} uid={} share_uid={}", channel, uid, share_uid)

        return JoinTokens(
            app_id=self.app_id,
            channel=channel,
            uid=uid,
            token=token,
            screen_share_uid=share_uid,
            screen_share_token=share_token,
            rtm_user_id=messaging_id,
            rtm_token=rtm_token,
            expires_at=expire_at,
        )


agora_token_service = AgoraTokenService()
