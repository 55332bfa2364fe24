from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from hostwatch.config import Settings
from hostwatch.errors import DispatchError

logger = logging.getLogger(__name__)


def format_subject(host: str, alert_count: int) -> str:
    noun = "alert" if alert_count == 1 else "alerts"
    return f"[hostwatch] {alert_count} {noun} on {host}"


def format_body(body_lines: list[str]) -> str:
    return "\n\n".join(body_lines)


class MailNotifier:
    """Sends alert mail through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 25,
        sender: str = "hostwatch@localhost",
        recipients: list[str] | None = None,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.recipients = list(recipients or [])
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> MailNotifier:
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_from,
            recipients=settings.mail_to,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout,
        )

    async def dispatch(self, subject: str, body_lines: list[str]) -> None:
        """Deliver one message. Raises DispatchError on any transport failure."""
        if not self.recipients:
            raise DispatchError("no mail recipients configured")
        message = self._build_message(subject, body_lines)
        # Each SMTP operation is bounded by the socket timeout given to smtplib.SMTP
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError(f"SMTP delivery to {self.host}:{self.port} failed: {exc}") from exc
        logger.info("Alert mail sent to %s", ", ".join(self.recipients))

    def _build_message(self, subject: str, body_lines: list[str]) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message.set_content(format_body(body_lines))
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
