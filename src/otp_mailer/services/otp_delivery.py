"""OTP delivery service — issues a code and mails it to the user."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from otp_mailer.errors import SendFailure, ValidationError
from otp_mailer.mail.base import DeliveryReceipt, EmailSender
from otp_mailer.mail.templates import EmailContent, delivery_check_email, otp_email
from otp_mailer.otp.manager import OtpLifecycleManager, VerifyResult

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


@dataclass(frozen=True)
class SendOtpOutcome:
    """What happened to one ``send-otp`` request."""

    rate_limited: bool
    message_id: str | None
    expires_at: int
    reused: bool


def normalize_email(email: str | None) -> str:
    """Strip *email* and check it looks like an address.

    Raises :class:`ValidationError` when it is missing or malformed.
    """
    cleaned = (email or "").strip()
    if not cleaned:
        raise ValidationError("Email is required")
    if not _EMAIL_RE.match(cleaned):
        raise ValidationError("Email is invalid", details=cleaned)
    return cleaned


class OtpDeliveryService:
    """Glue between the lifecycle manager and the configured email sender.

    A record that was persisted but could not be mailed is left in place;
    the next request within its TTL reuses the same code.
    """

    def __init__(
        self,
        manager: OtpLifecycleManager,
        sender: EmailSender,
        *,
        app_name: str,
        send_timeout: float = 15.0,
    ) -> None:
        self._manager = manager
        self._sender = sender
        self._app_name = app_name
        self._send_timeout = send_timeout

    async def send_otp(self, email: str | None) -> SendOtpOutcome:
        """Issue (or reuse) a code for *email* and deliver it.

        Raises ``StoreUnavailable`` if the code could not be stored and
        ``SendFailure`` if the provider did not accept the message.
        """
        identity = normalize_email(email)
        result = await self._manager.issue(identity)

        if result.rate_limited:
            logger.info("Skipping send for %s: rate limited", identity)
            return SendOtpOutcome(
                rate_limited=True,
                message_id=None,
                expires_at=result.expires_at,
                reused=True,
            )

        ttl_minutes = max(1, self._manager.ttl_ms // 60_000)
        receipt = await self._deliver(identity, otp_email(self._app_name, result.code, ttl_minutes))
        logger.info("OTP email sent to %s: %s", identity, receipt.delivery_id)
        return SendOtpOutcome(
            rate_limited=False,
            message_id=receipt.delivery_id,
            expires_at=result.expires_at,
            reused=result.reused,
        )

    async def verify_otp(self, email: str | None, code: str | None) -> VerifyResult:
        identity = normalize_email(email)
        submitted = (code or "").strip()
        if not submitted:
            raise ValidationError("OTP is required")
        return await self._manager.verify(identity, submitted)

    async def send_test_email(self, email: str | None) -> DeliveryReceipt:
        identity = normalize_email(email)
        return await self._deliver(identity, delivery_check_email(self._app_name))

    async def _deliver(self, to: str, content: EmailContent) -> DeliveryReceipt:
        try:
            return await asyncio.wait_for(
                self._sender.send(to, content.subject, content.html, content.text),
                timeout=self._send_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Email to %s timed out after %.1fs", to, self._send_timeout)
            raise SendFailure(
                "Email provider timed out",
                details=f"no response after {self._send_timeout:g}s",
            ) from exc
