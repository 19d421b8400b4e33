import secrets
import string

from ulid import ULID

_CHANNEL_ALPHABET = string.ascii_lowercase + string.digits


def new_ulid(prefix: str | None = None) -> str:
    value = str(ULID()).lower()
    return f"{prefix}{value}" if prefix else value


def new_user_id() -> str:
    return new_ulid("us_")


def new_department_id() -> str:
    return new_ulid("dp_")


def new_course_id() -> str:
    return new_ulid("co_")


def new_live_class_id() -> str:
    return new_ulid("lc_")


def new_channel_name() -> str:
    suffix = "".join(secrets.choice(_CHANNEL_ALPHABET) for _ in range(6))
    return f"class-{suffix}"


def new_opaque_token(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)
