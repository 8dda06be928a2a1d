"""Request / response models for the HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EmailRequest(BaseModel):
    # Optional so a missing field surfaces as our 400, not FastAPI's 422
    email: str | None = None


class VerifyOtpRequest(BaseModel):
    email: str | None = None
    otp: str | None = None


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str


class SendOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    message_id: str | None = Field(default=None, alias="messageId")
    rate_limited: bool | None = Field(default=None, alias="rateLimited")
    expires_at: int | None = Field(default=None, alias="expiresAt")


class VerifyOtpResponse(BaseModel):
    success: bool
    valid: bool
    reason: str


class CleanupResponse(BaseModel):
    success: bool
    message: str
    deleted: int
    failed: int


class EmailCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    message_id: str = Field(alias="messageId")
