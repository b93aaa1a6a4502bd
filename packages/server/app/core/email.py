"""
Outgoing email.

`EmailGateway` owns the SMTP transport. The transport is built lazily, at
most once per gateway, from the SMTP_* settings. Without SMTP_HOST and
SMTP_FROM the gateway stays unconfigured and every send reports False
without touching the network.
"""

from __future__ import annotations

import asyncio
import smtplib
import threading
from email.message import EmailMessage
from functools import lru_cache
from typing import Callable, Optional

import structlog

from app.core.config import Settings, get_settings

log = structlog.get_logger()


class SMTPTransport:
    """Connection parameters for one SMTP relay. Opens a connection per message."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        secure: bool = False,
        user: str = "",
        password: str = "",
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.secure = secure
        self.user = user
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPTransport":
        return cls(
            settings.smtp_host,
            settings.smtp_port,
            secure=settings.smtp_secure,
            user=settings.smtp_user,
            password=settings.smtp_pass,
            timeout=settings.smtp_timeout_seconds,
        )

    def send(self, message: EmailMessage) -> None:
        smtp_cls = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=self.timeout) as smtp:
            if not self.secure:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)


class EmailGateway:
    """Sends mail through a lazily constructed transport."""

    def __init__(
        self,
        settings: Settings,
        transport_factory: Callable[[Settings], SMTPTransport] = SMTPTransport.from_settings,
    ):
        self._settings = settings
        self._transport_factory = transport_factory
        self._transport: Optional[SMTPTransport] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self._settings.email_configured

    def get_transport(self) -> Optional[SMTPTransport]:
        if not self.configured:
            log.warning("email.not_configured")
            return None
        if self._transport is None:
            with self._lock:
                if self._transport is None:
                    self._transport = self._transport_factory(self._settings)
                    log.info("email.transport_ready", host=self._settings.smtp_host)
        return self._transport

    def build_message(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.smtp_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    async def send_email(
        self, to: str, subject: str, text: str, html: Optional[str] = None
    ) -> bool:
        """Send one message. Returns False when unconfigured or on any send failure."""
        transport = self.get_transport()
        if transport is None:
            return False

        message = self.build_message(to, subject, text, html)
        try:
            await asyncio.to_thread(transport.send, message)
        except Exception:
            log.exception("email.send_failed", to=to, subject=subject)
            return False

        log.info("email.sent", to=to, subject=subject)
        return True


@lru_cache
def get_email_gateway() -> EmailGateway:
    """FastAPI dependency: the process-wide gateway built from settings."""
    return EmailGateway(get_settings())
