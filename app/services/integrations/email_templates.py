"""HTML bodies for account emails."""

from html import escape

SCHOOL_NAME = "Trespics School"


def _layout(title: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: auto;">'
        f'<h2 style="color: #1a73e8;">{escape(title)}</h2>'
        f"{body}"
        f'<p style="color: #888; font-size: 12px;">{SCHOOL_NAME}</p>'
        "</div>"
    )


def verification_email(name: str, verify_url: str) -> tuple[str, str]:
    body = (
        f"<p>Hello {escape(name)},</p>"
        "<p>Thanks for registering. Please confirm your email address within 30 minutes:</p>"
        f'<p><a href="{escape(verify_url)}">Verify my email</a></p>'
        "<p>If you did not create this account, you can ignore this message.</p>"
    )
    return f"Verify your {SCHOOL_NAME} account", _layout("Verify your email", body)


def admission_email(name: str, role: str, issued_id: str) -> tuple[str, str]:
    body = (
        f"<p>Hello {escape(name)},</p>"
        f"<p>Your {escape(role)} account has been verified.</p>"
        f"<p>Your ID is <strong>{escape(issued_id)}</strong>. You can sign in with it or with your email.</p>"
    )
    return f"Welcome to {SCHOOL_NAME}", _layout("Account verified", body)


def password_reset_email(name: str, reset_url: str) -> tuple[str, str]:
    body = (
        f"<p>Hello {escape(name)},</p>"
        "<p>We received a request to reset your password. The link is valid for 30 minutes:</p>"
        f'<p><a href="{escape(reset_url)}">Reset my password</a></p>'
        "<p>If you did not request this, no action is needed.</p>"
    )
    return "Password reset request", _layout("Reset your password", body)


def admin_notification_email(name: str, email: str, role: str, issued_id: str) -> tuple[str, str]:
    body = (
        f"<p>A new {escape(role)} has registered.</p>"
        "<ul>"
        f"<li>Name: {escape(name)}</li>"
        f"<li>Email: {escape(email)}</li>"
        f"<li>ID: {escape(issued_id)}</li>"
        "</ul>"
    )
    return f"New {role} registration", _layout("New registration", body)
