"""Tests for the EmailSender implementations."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest

from otp_mailer.errors import SendFailure
from otp_mailer.mail.brevo import BREVO_API_URL, BrevoEmailSender
from otp_mailer.mail.console import ConsoleEmailSender
from otp_mailer.mail.smtp import SmtpEmailSender
from otp_mailer.mail.templates import otp_email


def _brevo(handler) -> BrevoEmailSender:
    return BrevoEmailSender(
        "xkeysib-test",
        sender_email="no-reply@project-delta.local",
        sender_name="Project Delta",
        transport=httpx.MockTransport(handler),
    )


# ── Templates ────────────────────────────────────────────

def test_otp_email_contains_code_and_expiry():
    content = otp_email("Project Delta", "482913", 5)
    assert "482913" in content.html
    assert "482913" in content.text
    assert "5 minutes" in content.text
    assert "Project Delta" in content.subject


# ── Console ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_console_sender_records_message():
    sender = ConsoleEmailSender()

    receipt = await sender.send("a@b.com", "Subject", "<p>hi</p>", "hi")

    assert receipt.delivery_id.startswith("mock-message-id-")
    assert sender.outbox == [{"to": "a@b.com", "subject": "Subject", "html": "<p>hi</p>", "text": "hi"}]


# ── Brevo ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_brevo_posts_transactional_email():
    captured: list[httpx.Request] = []

    def handler(request):
        captured.append(request)
        return httpx.Response(201, json={"messageId": "<abc@smtp-relay.brevo.com>"})

    sender = _brevo(handler)
    receipt = await sender.send("a@b.com", "Your code", "<b>123456</b>", "123456")
    await sender.aclose()

    assert receipt.delivery_id == "<abc@smtp-relay.brevo.com>"
    request = captured[0]
    assert str(request.url) == BREVO_API_URL
    assert request.headers["api-key"] == "xkeysib-test"
    payload = json.loads(request.content)
    assert payload["to"] == [{"email": "a@b.com"}]
    assert payload["sender"] == {"email": "no-reply@project-delta.local", "name": "Project Delta"}
    assert payload["htmlContent"] == "<b>123456</b>"
    assert payload["textContent"] == "123456"


@pytest.mark.asyncio
async def test_brevo_falls_back_to_message_ids_list():
    sender = _brevo(lambda request: httpx.Response(201, json={"messageIds": ["m-1", "m-2"]}))
    receipt = await sender.send("a@b.com", "s", "<p/>", "t")
    assert receipt.delivery_id == "m-1"


@pytest.mark.asyncio
async def test_brevo_rejection_raises_send_failure():
    sender = _brevo(lambda request: httpx.Response(400, json={"code": "invalid_parameter"}))

    with pytest.raises(SendFailure) as exc_info:
        await sender.send("a@b.com", "s", "<p/>", "t")

    assert "400" in exc_info.value.details


@pytest.mark.asyncio
async def test_brevo_transport_error_raises_send_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SendFailure):
        await _brevo(handler).send("a@b.com", "s", "<p/>", "t")


def test_brevo_requires_api_key():
    with pytest.raises(ValueError):
        BrevoEmailSender("", sender_email="x@y.com", sender_name="X")


# ── SMTP ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_smtp_sender_sends_multipart_message():
    sender = SmtpEmailSender(hostname="smtp.test", port=587, sender="from@test", username="u", password="p")

    with patch("otp_mailer.mail.smtp.aiosmtplib.send", new=AsyncMock()) as send:
        receipt = await sender.send("a@b.com", "Code", "<b>1</b>", "1")

    send.assert_awaited_once()
    msg = send.await_args.args[0]
    assert msg["To"] == "a@b.com"
    assert msg["Message-ID"] == receipt.delivery_id
    assert msg.is_multipart()
    assert send.await_args.kwargs["hostname"] == "smtp.test"
    assert send.await_args.kwargs["username"] == "u"


@pytest.mark.asyncio
async def test_smtp_failure_raises_send_failure():
    sender = SmtpEmailSender(hostname="smtp.test", port=587, sender="from@test")
    failing = AsyncMock(side_effect=aiosmtplib.SMTPException("550 mailbox unavailable"))

    with patch("otp_mailer.mail.smtp.aiosmtplib.send", new=failing):
        with pytest.raises(SendFailure):
            await sender.send("a@b.com", "Code", "<b>1</b>", "1")
