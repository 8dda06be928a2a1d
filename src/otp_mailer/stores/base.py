"""OtpStore protocol — the lifecycle manager depends on this, not on a backend."""

from typing import Protocol

from otp_mailer.otp.record import OtpRecord


class OtpStore(Protocol):
    """Async keyed map of OTP records.

    Keys come from :func:`otp_mailer.otp.record.storage_key`.  Backends
    raise :class:`otp_mailer.errors.StoreUnavailable` on I/O failure.
    """

    async def get(self, key: str) -> OtpRecord | None: ...

    async def set(self, key: str, record: OtpRecord) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list_all(self) -> dict[str, OtpRecord]: ...

    async def aclose(self) -> None: ...
