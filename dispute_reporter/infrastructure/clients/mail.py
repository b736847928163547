"""SMTP client for report notifications"""

import logging
from email.message import EmailMessage
from pathlib import Path

import aiosmtplib

from dispute_reporter.config import settings
from dispute_reporter.domain.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class MailClient:
    """Sends plain-text mail with a single CSV attachment"""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        use_tls: bool | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        recipient: str | None = None,
        reply_to: str | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.use_tls = settings.smtp_secure if use_tls is None else use_tls
        self.username = username or settings.smtp_user
        self.password = password or settings.smtp_pass
        self.sender = sender or settings.email_from
        self.recipient = recipient or settings.email_to
        self.reply_to = reply_to or settings.email_reply_to
        self.timeout = timeout or settings.smtp_timeout_seconds

    def build_message(self, subject: str, body: str, attachment: Path) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = self.recipient
        if self.reply_to:
            message["Reply-To"] = self.reply_to
        message["Subject"] = subject
        message.set_content(body)
        message.add_attachment(
            attachment.read_bytes(),
            maintype="text",
            subtype="csv",
            filename=attachment.name,
        )
        return message

    async def send_report(self, subject: str, body: str, attachment: Path) -> None:
        """
        Send the report email.

        Raises:
            DeliveryError: If the attachment is unreadable or SMTP fails
        """
        try:
            message = self.build_message(subject, body, attachment)
        except OSError as e:
            raise DeliveryError(f"Could not read attachment {attachment.name}: {e}") from e

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls,
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPException as e:
            raise DeliveryError(f"SMTP delivery failed: {e}") from e
        except OSError as e:
            raise DeliveryError(f"SMTP server unreachable: {e}") from e

        logger.info("Sent report email", extra={"recipient": self.recipient, "file_name": attachment.name})
