"""SMTP implementation of EmailSender — sends via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib

from otp_mailer.mail.base import DeliveryReceipt
from otp_mailer.errors import SendFailure

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """Sends multipart (text + HTML) messages through an SMTP relay."""

    def __init__(
        self,
        *,
        hostname: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._hostname = hostname
        self._port = port
        self._sender = sender
        self._username = username or None
        self._password = password or None
        self._timeout = timeout

    async def send(self, to: str, subject: str, html: str, text: str) -> DeliveryReceipt:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._sender
        msg["To"] = to
        msg["Message-ID"] = make_msgid()
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")

        logger.info("Sending email to %s via %s:%d", to, self._hostname, self._port)

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._hostname,
                port=self._port,
                username=self._username,
                password=self._password,
                start_tls=True,
                timeout=self._timeout,
            )
        except aiosmtplib.SMTPException as exc:
            logger.error("SMTP delivery to %s failed: %s", to, exc)
            raise SendFailure("Email provider rejected the message", details=str(exc)) from exc

        logger.info("Email sent to %s: %s", to, msg["Message-ID"])
        return DeliveryReceipt(delivery_id=msg["Message-ID"])

    async def aclose(self) -> None:
        return None
