"""Outbound guest email over SMTP.

When EMAIL_ENABLED is off the message is logged (recipient redacted) and
dropped, so local and test environments never reach a mail server.
"""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from hotelera.infra.settings import SmtpConfig
from hotelera.observability.logging import get_logger
from hotelera.observability.redaction import redact_string

logger = get_logger(__name__)


class SmtpEmailSender:
    def __init__(self, config: SmtpConfig) -> None:
        self.config = config

    @property
    def sender(self) -> str:
        return self.config.sender or self.config.user

    def build_message(self, recipient: str, subject: str, body: str) -> MIMEMultipart:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain", "utf-8"))
        return msg

    def send(self, recipient: str, subject: str, body: str) -> None:
        """Send one plain-text email.

        Raises:
            smtplib.SMTPException / OSError: Delivery failed. The effect
                dispatcher catches and logs these.
        """
        if not self.config.enabled:
            logger.info(
                "email disabled, message dropped",
                extra={"extra_fields": {"recipient": redact_string(recipient), "subject": subject}},
            )
            return

        msg = self.build_message(recipient, subject, body)
        with smtplib.SMTP(self.config.host, self.config.port) as server:
            if self.config.use_tls:
                server.starttls()
            if self.config.user:
                server.login(self.config.user, self.config.password)
            server.send_message(msg)

        logger.info(
            "email sent",
            extra={"extra_fields": {"recipient": redact_string(recipient), "subject": subject}},
        )
