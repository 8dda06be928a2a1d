"""Error hierarchy and FastAPI exception handlers.

``OtpServiceError`` is the base for every typed failure the service raises.
The registered handler turns it into the ``{"success": false, ...}`` JSON
body callers expect.  Verification outcomes are *not* errors; see
:class:`otp_mailer.otp.manager.VerifyReason`.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class OtpServiceError(Exception):
    """Base service error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"success": False, "error": self.message, "code": self.error_code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(OtpServiceError):
    """Missing or malformed caller input; raised before any side effect."""

    status_code = 400
    error_code = "validation_error"


class StoreUnavailable(OtpServiceError):
    """The OTP store could not be read or written (or timed out)."""

    error_code = "store_unavailable"


class SendFailure(OtpServiceError):
    """The email provider rejected the message or did not answer in time."""

    error_code = "send_failure"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(OtpServiceError)
    async def service_error_handler(request: Request, exc: OtpServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
