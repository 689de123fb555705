# app/core/email_client.py
"""
SMTP email helper.

Configuration comes from environment variables and is read on every call,
so a missing SMTP setup only fails the send that needs it:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=587
    SMTP_USERNAME=orders@example.com
    SMTP_PASSWORD=...
    SMTP_FROM_EMAIL=orders@example.com
    SMTP_FROM_NAME=Storefront
    SMTP_USE_TLS=true
    SMTP_USE_SSL=false

Callers on the checkout path treat every exception from here as
non-fatal (see NotificationService).
"""

from __future__ import annotations

import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

_TRUTHY = {"1", "true", "yes", "y"}


def _get_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
            from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
            from_name=os.getenv("SMTP_FROM_NAME", "Storefront"),
            use_tls=_get_bool_env("SMTP_USE_TLS", default=True),
            use_ssl=_get_bool_env("SMTP_USE_SSL", default=False),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)


def _create_smtp_client(config: SmtpConfig) -> smtplib.SMTP:
    """
    SSL (typically port 465) wins over STARTTLS (typically port 587).
    """
    if config.use_ssl:
        return smtplib.SMTP_SSL(config.host, config.port, timeout=30)

    server = smtplib.SMTP(config.host, config.port, timeout=30)
    if config.use_tls:
        server.starttls()
    return server


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
) -> None:
    """
    Send an email to a single recipient.

    Raises
    ------
    RuntimeError:
        If SMTP_HOST, SMTP_USERNAME or SMTP_PASSWORD is missing.
    smtplib.SMTPException:
        If the underlying SMTP connection or send fails.
    """
    config = SmtpConfig.from_env()
    if not config.is_complete:
        raise RuntimeError(
            "SMTP is not configured. "
            "Set SMTP_HOST, SMTP_USERNAME and SMTP_PASSWORD."
        )

    msg = EmailMessage()
    msg["From"] = (
        f"{config.from_name} <{config.from_email}>"
        if config.from_email
        else config.username
    )
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    server = _create_smtp_client(config)
    try:
        server.login(config.username, config.password)  # type: ignore[arg-type]
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            # Connection is being torn down anyway.
            pass
