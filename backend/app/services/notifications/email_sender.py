import logging
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
from typing import Optional

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class EmailSender:
    """SMTP sender for plain-text notification mail"""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        from_name: str = None,
        timeout: int = None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.EMAIL_USER
        self.password = password if password is not None else settings.EMAIL_PASS
        self.from_name = from_name or settings.EMAIL_FROM_NAME
        self.timeout = timeout or settings.SMTP_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def build_message(self, to: str, subject: str, text: str, html: Optional[str] = None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.username))
        msg["To"] = to
        msg["Date"] = formatdate(localtime=True)
        domain = self.username.split("@")[-1] if "@" in self.username else "localhost"
        msg["Message-ID"] = f"<{uuid.uuid4()}@{domain}>"
        msg.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> str:
        """Send one message; raises EmailDeliveryError on any SMTP failure"""
        if not self.is_configured:
            raise EmailDeliveryError("Email credentials are not configured")

        msg = self.build_message(to, subject, text, html)
        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            timeout=self.timeout,
            use_tls=self.port == 465,  # Implicit TLS for port 465
        )
        try:
            await smtp.connect()
            if self.port == 587:
                await smtp.starttls()
            await smtp.login(self.username, self.password)
            await smtp.send_message(msg)
            await smtp.quit()
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP delivery to {to} failed: {e}")
            raise EmailDeliveryError(str(e)) from e

        logger.info(f"Email '{subject}' sent to {to}")
        return msg["Message-ID"]
