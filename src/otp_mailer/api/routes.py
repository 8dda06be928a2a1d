"""HTTP routes — OTP issuance, verification, cleanup and health.

Endpoints
---------
GET  /               → liveness payload
POST /send-otp       → issue (or reuse) a code and mail it
POST /verify-otp     → check a submitted code
POST /cleanup-otps   → run the expiry sweeper now
POST /test-email     → send a fixed message through the configured sender
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from otp_mailer.api.schemas import (
    CleanupResponse,
    EmailCheckResponse,
    EmailRequest,
    HealthResponse,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from otp_mailer.dependencies import Services, get_services
from otp_mailer.errors import SendFailure, StoreUnavailable

logger = logging.getLogger(__name__)

router = APIRouter()


def _public_failure(exc: StoreUnavailable | SendFailure, error: str) -> StoreUnavailable | SendFailure:
    """Re-wrap *exc* with the route-level message; the cause moves to ``details``."""
    return type(exc)(error, details=exc.details or exc.message)


@router.get("/", response_model=HealthResponse)
async def health(services: Services = Depends(get_services)) -> HealthResponse:
    """Simple liveness check."""
    return HealthResponse(
        status="OK",
        message=f"{services.settings.app_name} Email Service is running",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.post("/send-otp", response_model=SendOtpResponse, response_model_exclude_none=True)
async def send_otp(body: EmailRequest, services: Services = Depends(get_services)) -> SendOtpResponse:
    """Issue a verification code for ``email`` and deliver it.

    Within the rate-limit window the previous code stays valid and nothing
    is sent; the response then carries ``rateLimited: true``.
    """
    try:
        outcome = await services.delivery.send_otp(body.email)
    except (StoreUnavailable, SendFailure) as exc:
        raise _public_failure(exc, "Failed to send email") from exc

    if outcome.rate_limited:
        return SendOtpResponse(
            success=True,
            rate_limited=True,
            expires_at=outcome.expires_at,
            message="OTP already sent recently; please check your inbox",
        )
    return SendOtpResponse(
        success=True,
        message_id=outcome.message_id,
        expires_at=outcome.expires_at,
        message="OTP email sent successfully",
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(body: VerifyOtpRequest, services: Services = Depends(get_services)) -> VerifyOtpResponse:
    """Validate a submitted code; a valid code is consumed."""
    try:
        result = await services.delivery.verify_otp(body.email, body.otp)
    except StoreUnavailable as exc:
        raise _public_failure(exc, "Failed to verify OTP") from exc
    return VerifyOtpResponse(success=True, valid=result.valid, reason=result.reason.value)


@router.post("/cleanup-otps", response_model=CleanupResponse)
async def cleanup_otps(services: Services = Depends(get_services)) -> CleanupResponse:
    """Manually trigger an expiry sweep."""
    report = await services.sweeper.sweep()
    return CleanupResponse(
        success=report.failed == 0,
        message=f"Cleaned up {report.deleted} expired OTPs",
        deleted=report.deleted,
        failed=report.failed,
    )


@router.post("/test-email", response_model=EmailCheckResponse)
async def send_test_email(body: EmailRequest, services: Services = Depends(get_services)) -> EmailCheckResponse:
    """Send a fixed message to check the email setup."""
    try:
        receipt = await services.delivery.send_test_email(body.email)
    except SendFailure as exc:
        raise _public_failure(exc, "Failed to send test email") from exc
    return EmailCheckResponse(
        success=True,
        message_id=receipt.delivery_id,
        message="Test email sent successfully!",
    )
