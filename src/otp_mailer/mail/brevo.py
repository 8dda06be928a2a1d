"""Brevo implementation of EmailSender (transactional email HTTP API)."""

from __future__ import annotations

import logging

import httpx

from otp_mailer.mail.base import DeliveryReceipt
from otp_mailer.errors import SendFailure

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


class BrevoEmailSender:
    """Sends mail through ``POST /v3/smtp/email``."""

    def __init__(
        self,
        api_key: str,
        *,
        sender_email: str,
        sender_name: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("BREVO_API_KEY is required for the brevo email backend")
        self._api_key = api_key
        self._sender = {"email": sender_email, "name": sender_name}
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def send(self, to: str, subject: str, html: str, text: str) -> DeliveryReceipt:
        payload: dict = {
            "sender": self._sender,
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }
        if text:
            payload["textContent"] = text

        headers = {
            "accept": "application/json",
            "api-key": self._api_key,
            "content-type": "application/json",
        }

        try:
            resp = await self._client.post(BREVO_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Brevo request error for %s: %s", to, exc)
            raise SendFailure("Email provider unreachable", details=str(exc)) from exc

        if resp.status_code >= 300:
            logger.error("Brevo rejected email to %s: %s %s", to, resp.status_code, resp.text[:200])
            raise SendFailure(
                "Email provider rejected the message",
                details=f"Brevo send failed ({resp.status_code}): {resp.text[:200]}",
            )

        data = resp.json() if resp.content else {}
        message_id = data.get("messageId") or (data.get("messageIds") or ["unknown"])[0]
        logger.info("Email sent to %s via Brevo: %s", to, message_id)
        return DeliveryReceipt(delivery_id=message_id)

    async def aclose(self) -> None:
        await self._client.aclose()
