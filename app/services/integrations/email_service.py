"""Outgoing mail over SMTP (aiosmtplib).

`send` awaits delivery and raises on failure; `send_in_background` schedules
delivery and only logs failures, which is what request handlers use.
"""

from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib
from loguru import logger

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.shared.api.utils import run_in_background
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class EmailService:
    def __init__(self, cfg: AppEnvironConfig | None = None):
        self._cfg = cfg or get_app_environ_config()

    @property
    def is_configured(self) -> bool:
        return bool(self._cfg.SMTP_USERNAME and self._cfg.SMTP_PASSWORD)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f'"{self._cfg.SMTP_SENDER_NAME}" <{self._cfg.SMTP_USERNAME or "no-reply@localhost"}>'
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    async def send(self, to: str, subject: str, html: str) -> str | None:
        """Deliver one HTML email and return its Message-ID.

        Returns None without sending when SMTP is not configured or DEMO_MODE
        is on.
        """
        if self._cfg.DEMO_MODE:
            logger.info("EmailService DEMO_MODE=true: skipped '{}' to {}", subject, to)
            return None
        if not self.is_configured:
            logger.warning("SMTP credentials not configured, skipped '{}' to {}", subject, to)
            return None

        msg = self._build_message(to, subject, html)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self._cfg.SMTP_HOST,
                port=self._cfg.SMTP_PORT,
                username=self._cfg.SMTP_USERNAME,
                password=self._cfg.SMTP_PASSWORD,
                use_tls=self._cfg.SMTP_USE_TLS,
                start_tls=not self._cfg.SMTP_USE_TLS,
                timeout=30,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("Failed to send email to {}: {}", to, e)
            raise AppError(
                errcode=AppErrorCode.E_UPSTREAM_ERROR,
                errmesg="Failed to send email",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            ) from e

        logger.info("Email sent to {}: {}", to, msg["Message-ID"])
        return msg["Message-ID"]

    def send_in_background(self, to: str, subject: str, html: str) -> None:
        run_in_background(self.send(to, subject, html), name=f"email:{subject}")


email_service = EmailService()
