from pydantic import BaseModel

from app.shared.config import config


def _optional(key: str) -> str | None:
    return (config.get(key) or "").strip() or None


def _int(key: str, default: int) -> int:
    return int((config.get(key) or "").strip() or default)


def _list(key: str, default: str = "") -> list[str]:
    return [x.strip() for x in (config.get(key) or default).split(",") if x.strip()]


class AppEnvironConfig(BaseModel):
    # Demo switch: when enabled, object storage and email use stubs and avoid network calls.
    DEMO_MODE: bool = config.is_true("DEMO_MODE", "true")
    DEBUG: bool = config.is_true("DEBUG")

    API_CORS_ORIGINS: list[str] = _list("API_CORS_ORIGINS", "*")

    # Bearer tokens
    JWT_SECRET: str | None = _optional("JWT_SECRET")
    JWT_REFRESH_SECRET: str | None = _optional("JWT_REFRESH_SECRET")
    JWT_ACCESS_TTL_SECONDS: int = _int("JWT_ACCESS_TTL_SECONDS", 24 * 3600)
    JWT_REFRESH_TTL_SECONDS: int = _int("JWT_REFRESH_TTL_SECONDS", 7 * 24 * 3600)
    EMAIL_TOKEN_TTL_SECONDS: int = _int("EMAIL_TOKEN_TTL_SECONDS", 30 * 60)

    # Client applications, per role
    STUDENT_CLIENT_URL: str = (config.get("STUDENT_CLIENT_URL") or "http://localhost:5173").strip()
    TEACHER_CLIENT_URL: str = (config.get("TEACHER_CLIENT_URL") or "http://localhost:5174").strip()
    ADMIN_CLIENT_URL: str = (config.get("ADMIN_CLIENT_URL") or "http://localhost:5175").strip()
    API_BASE_URL: str = (config.get("API_BASE_URL") or "http://localhost:8000").strip()

    # Agora real-time tokens
    AGORA_APP_ID: str | None = _optional("AGORA_APP_ID")
    AGORA_APP_CERTIFICATE: str | None = _optional("AGORA_APP_CERTIFICATE")
    AGORA_TOKEN_TTL_SECONDS: int = _int("AGORA_TOKEN_TTL_SECONDS", 2 * 3600)

    # Agora cloud recording
    AGORA_CUSTOMER_ID: str | None = _optional("AGORA_CUSTOMER_ID")
    AGORA_CUSTOMER_SECRET: str | None = _optional("AGORA_CUSTOMER_SECRET")
    AGORA_API_BASE_URL: str = (config.get("AGORA_API_BASE_URL") or "https://api.agora.io").strip()
    AGORA_HTTP_TIMEOUT_SECONDS: int = _int("AGORA_HTTP_TIMEOUT_SECONDS", 30)
    AGORA_STORAGE_VENDOR: int = _int("AGORA_STORAGE_VENDOR", 0)
    AGORA_STORAGE_REGION: int = _int("AGORA_STORAGE_REGION", 0)
    AGORA_STORAGE_BUCKET: str | None = _optional("AGORA_STORAGE_BUCKET")
    AGORA_STORAGE_ACCESS_KEY: str | None = _optional("AGORA_STORAGE_ACCESS_KEY")
    AGORA_STORAGE_SECRET_KEY: str | None = _optional("AGORA_STORAGE_SECRET_KEY")

    # AWS S3 media storage
    AWS_ACCESS_KEY_ID: str | None = _optional("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str | None = _optional("AWS_SECRET_ACCESS_KEY")
    AWS_REGION: str = (config.get("AWS_REGION") or "us-east-1").strip()
    S3_MEDIA_BUCKET: str | None = _optional("S3_MEDIA_BUCKET")
    S3_MEDIA_PREFIX: str = (config.get("S3_MEDIA_PREFIX") or "uploads").strip()
    MAX_UPLOAD_BYTES: int = _int("MAX_UPLOAD_BYTES", 500 * 1024 * 1024)

    # Outgoing mail
    SMTP_HOST: str = (config.get("SMTP_HOST") or "smtp.gmail.com").strip()
    SMTP_PORT: int = _int("SMTP_PORT", 465)
    SMTP_USE_TLS: bool = config.is_true("SMTP_USE_TLS", "true")
    SMTP_USERNAME: str | None = _optional("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = _optional("SMTP_PASSWORD")
    SMTP_SENDER_NAME: str = (config.get("SMTP_SENDER_NAME") or "Trespics School").strip()


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
