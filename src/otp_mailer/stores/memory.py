"""In-memory OTP store — used for local development and tests."""

from __future__ import annotations

import logging

from otp_mailer.otp.record import OtpRecord

logger = logging.getLogger(__name__)


class InMemoryOtpStore:
    """Dict-backed store.

    Each entry maps ``storage key → OtpRecord``.  Records are immutable, so
    handing them out directly is safe.  Expired entries stay until the
    sweeper removes them, matching the persistent backends.
    """

    def __init__(self) -> None:
        self._records: dict[str, OtpRecord] = {}

    async def get(self, key: str) -> OtpRecord | None:
        return self._records.get(key)

    async def set(self, key: str, record: OtpRecord) -> None:
        self._records[key] = record

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)

    async def list_all(self) -> dict[str, OtpRecord]:
        return dict(self._records)

    async def aclose(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
