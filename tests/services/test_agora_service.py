"""Tests for Agora uid derivation and token minting."""

import pytest

from app.app_config import get_app_environ_config
from app.services.integrations.agora_service import (
    RECORDING_BOT_UID,
    SCREEN_SHARE_UID_OFFSET,
    AgoraRole,
    AgoraTokenService,
    is_placeholder_token,
    numeric_uid,
    rtm_user_id,
    screen_share_uid,
)

APP_ID = "0123456789abcdef0123456789abcdef"
APP_CERTIFICATE = "fedcba9876543210fedcba9876543210"


@pytest.fixture
def configured() -> AgoraTokenService:
    cfg = get_app_environ_config().model_copy(
        update={"AGORA_APP_ID": APP_ID, "AGORA_APP_CERTIFICATE": APP_CERTIFICATE}
    )
    return AgoraTokenService(cfg)


@pytest.fixture
def unconfigured() -> AgoraTokenService:
    cfg = get_app_environ_config().model_copy(update={"AGORA_APP_ID": None, "AGORA_APP_CERTIFICATE": None})
    return AgoraTokenService(cfg)


class TestNumericUid:
    def test_matches_string_hash_fold(self):
        # 'a' = 97; 'abc' = (97*31 + 98)*31 + 99
        assert numeric_uid("a") == 97
        assert numeric_uid("abc") == 96354

    def test_is_deterministic(self):
        identity = "us_01J9Z8Y7X6W5V4T3S2R1Q0P9N8"
        assert numeric_uid(identity) == numeric_uid(identity)

    def test_stays_within_range_for_long_identities(self):
        uid = numeric_uid("x" * 500)
        assert 0 <= uid < 1_000_000

    def test_overflow_wraps_like_int32(self):
        # Long enough to overflow 32 bits several times
        value = "the quick brown fox jumps over the lazy dog"
        acc = 0
        for ch in value:
            acc = (acc * 31 + ord(ch)) & 0xFFFFFFFF
        if acc & 0x80000000:
            acc -= 0x100000000
        assert numeric_uid(value) == abs(acc) % 1_000_000

    def test_empty_identity(self):
        assert numeric_uid("") == 0


class TestHelpers:
    def test_screen_share_offset(self):
        assert screen_share_uid(42) == 42 + SCREEN_SHARE_UID_OFFSET

    def test_rtm_user_id_strips_and_truncates(self):
        assert rtm_user_id("us_abc-123@x.y") == "usabc123xy"
        assert len(rtm_user_id("a" * 100)) == 64


class TestTokens:
    def test_placeholder_tokens_without_credentials(self, unconfigured: AgoraTokenService):
        tokens = unconfigured.issue_join_tokens("class-abc123", "us_user1")

        assert is_placeholder_token(tokens.token)
        assert is_placeholder_token(tokens.screen_share_token)
        assert is_placeholder_token(tokens.rtm_token)
        assert tokens.rtm_token.startswith("mock-rtm-token-")

    def test_join_tokens_share_expiry_and_uids(self, configured: AgoraTokenService):
        tokens = configured.issue_join_tokens("class-abc123", "us_user1", ttl_seconds=600)

        assert tokens.app_id == APP_ID
        assert tokens.uid == numeric_uid("us_user1")
        assert tokens.screen_share_uid == tokens.uid + SCREEN_SHARE_UID_OFFSET
        assert tokens.rtm_user_id == "ususer1"
        assert not is_placeholder_token(tokens.token)
        assert tokens.token != tokens.screen_share_token
        assert tokens.token.startswith("006")
        assert tokens.rtm_token.startswith("006")

    def test_expiry_from_now_uses_ttl(self, configured: AgoraTokenService):
        low = configured.expiry_from_now(0)
        assert configured.expiry_from_now(60) - low in (60, 61)

    def test_recording_bot_token_is_subscriber(self, configured: AgoraTokenService, monkeypatch):
        calls = []

        def fake_build(channel, uid, role, expire_at):
            calls.append((channel, uid, role))
            return "token"

        monkeypatch.setattr(configured, "build_rtc_token", fake_build)

        configured.build_recording_bot_token("class-abc123")

        assert calls == [("class-abc123", RECORDING_BOT_UID, AgoraRole.SUBSCRIBER)]
