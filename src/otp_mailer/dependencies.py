"""Service wiring and FastAPI dependency providers.

The store and email backends are picked from configuration once, at
startup, and the resulting object graph is kept on ``app.state.services``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from otp_mailer.config import Settings
from otp_mailer.database.engine import make_engine
from otp_mailer.mail.base import EmailSender
from otp_mailer.mail.brevo import BrevoEmailSender
from otp_mailer.mail.console import ConsoleEmailSender
from otp_mailer.mail.smtp import SmtpEmailSender
from otp_mailer.otp.generator import OtpGenerator
from otp_mailer.otp.manager import OtpLifecycleManager
from otp_mailer.otp.rate_limiter import RateLimiter
from otp_mailer.otp.sweeper import ExpirySweeper
from otp_mailer.services.otp_delivery import OtpDeliveryService
from otp_mailer.stores.base import OtpStore
from otp_mailer.stores.firebase import FirebaseOtpStore
from otp_mailer.stores.memory import InMemoryOtpStore
from otp_mailer.stores.sql import SqlOtpStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler or background task needs."""

    settings: Settings
    store: OtpStore
    sender: EmailSender
    rate_limiter: RateLimiter
    manager: OtpLifecycleManager
    sweeper: ExpirySweeper
    delivery: OtpDeliveryService

    async def startup(self) -> None:
        if isinstance(self.store, SqlOtpStore):
            await self.store.init()
        if self.settings.otp_sweeper_enabled:
            self.sweeper.start()

    async def shutdown(self) -> None:
        await self.sweeper.stop()
        await self.sender.aclose()
        await self.store.aclose()


def build_store(settings: Settings) -> OtpStore:
    backend = settings.otp_store_backend
    if backend == "firebase":
        return FirebaseOtpStore(
            settings.firebase_database_url,
            auth_token=settings.firebase_auth_token,
            path=settings.firebase_otp_path,
            ttl_ms=settings.otp_ttl_ms,
            timeout=settings.external_call_timeout_seconds,
        )
    if backend == "sql":
        return SqlOtpStore(make_engine(settings.database_url, echo=settings.debug))
    return InMemoryOtpStore()


def build_sender(settings: Settings) -> EmailSender:
    backend = settings.email_backend
    if backend == "brevo":
        return BrevoEmailSender(
            settings.brevo_api_key,
            sender_email=settings.brevo_sender_email,
            sender_name=settings.brevo_sender_name,
            timeout=settings.external_call_timeout_seconds,
        )
    if backend == "smtp":
        return SmtpEmailSender(
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            timeout=settings.external_call_timeout_seconds,
        )
    return ConsoleEmailSender()


def build_services(
    settings: Settings,
    *,
    store: OtpStore | None = None,
    sender: EmailSender | None = None,
) -> Services:
    """Assemble the OTP service graph; *store* / *sender* override the configured backends."""
    store = store if store is not None else build_store(settings)
    sender = sender if sender is not None else build_sender(settings)
    timeout = settings.external_call_timeout_seconds

    rate_limiter = RateLimiter(window_ms=settings.otp_rate_limit_ms)
    manager = OtpLifecycleManager(
        store,
        rate_limiter,
        OtpGenerator(max_attempts=settings.otp_max_generation_attempts),
        ttl_ms=settings.otp_ttl_ms,
        store_timeout=timeout,
    )
    sweeper = ExpirySweeper(
        manager,
        interval=settings.otp_sweep_interval_seconds,
        initial_delay=settings.otp_sweep_initial_delay_seconds,
    )
    delivery = OtpDeliveryService(manager, sender, app_name=settings.app_name, send_timeout=timeout)

    logger.info(
        "OTP services ready (store=%s, email=%s)",
        type(store).__name__,
        type(sender).__name__,
    )
    return Services(
        settings=settings,
        store=store,
        sender=sender,
        rate_limiter=rate_limiter,
        manager=manager,
        sweeper=sweeper,
        delivery=delivery,
    )


def get_services(request: Request) -> Services:
    """Return the Services instance stored on app.state."""
    return request.app.state.services
