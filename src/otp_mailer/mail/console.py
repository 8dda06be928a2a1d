"""Console email sender — logs messages instead of delivering them."""

from __future__ import annotations

import logging
import time

from otp_mailer.mail.base import DeliveryReceipt

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """Development stand-in for a real provider.

    Every message is logged and kept in :attr:`outbox` so local tooling can
    read the code back.
    """

    def __init__(self) -> None:
        self.outbox: list[dict[str, str]] = []

    async def send(self, to: str, subject: str, html: str, text: str) -> DeliveryReceipt:
        delivery_id = f"mock-message-id-{int(time.time() * 1000)}"
        self.outbox.append({"to": to, "subject": subject, "html": html, "text": text})
        logger.info(
            "📧 MOCK EMAIL to %s | subject=%r | %s",
            to,
            subject,
            text.strip()[:100] if text else "no text content",
        )
        return DeliveryReceipt(delivery_id=delivery_id)

    async def aclose(self) -> None:
        return None
