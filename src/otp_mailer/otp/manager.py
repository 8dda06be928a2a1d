"""OTP lifecycle manager — issue, reuse, persist and verify codes."""

from __future__ import annotations

import asyncio
import enum
import hmac
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TypeVar

from otp_mailer.errors import StoreUnavailable
from otp_mailer.otp.generator import OtpGenerator
from otp_mailer.otp.rate_limiter import RateLimiter
from otp_mailer.otp.record import OtpRecord, now_ms, storage_key
from otp_mailer.stores.base import OtpStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IssueResult:
    """Outcome of :meth:`OtpLifecycleManager.issue`.

    ``rate_limited`` means the caller must *not* send anything: the
    identity was mailed less than one rate-limit window ago.
    """

    record: OtpRecord
    reused: bool
    rate_limited: bool = False

    @property
    def code(self) -> str:
        return self.record.code

    @property
    def expires_at(self) -> int:
        return self.record.expires_at


class VerifyReason(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    reason: VerifyReason


class OtpLifecycleManager:
    """Orchestrates the rate limiter, generator and store for one OTP flow.

    Issuance for a given identity is serialized with a per-identity
    ``asyncio.Lock``; different identities proceed concurrently.  Every
    store call is bounded by *store_timeout* seconds.
    """

    def __init__(
        self,
        store: OtpStore,
        rate_limiter: RateLimiter,
        generator: OtpGenerator,
        *,
        ttl_ms: int = 300_000,
        store_timeout: float = 15.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._rate_limiter = rate_limiter
        self._generator = generator
        self._ttl_ms = ttl_ms
        self._store_timeout = store_timeout
        self._clock = clock
        self._locks: dict[str, list] = {}

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    # ── Issue ────────────────────────────────────────────

    async def issue(self, identity: str, now: int | None = None) -> IssueResult:
        """Return the code to send to *identity*, creating one if needed.

        Raises :class:`StoreUnavailable` if the record cannot be read or
        persisted; in that case nothing must be sent.
        """
        key = storage_key(identity)
        async with self._identity_lock(key):
            now = self._clock() if now is None else now
            existing = await self._call(self._store.get(key), "read")
            active = existing if existing is not None and existing.is_active(now) else None

            if active is not None and self._rate_limiter.should_throttle(identity, now):
                logger.info("OTP issuance for %s throttled; reusing code sent at %d", identity, active.sent_at)
                return IssueResult(record=active, reused=True, rate_limited=True)

            if active is not None:
                record = OtpRecord(
                    identity=identity,
                    code=active.code,
                    issued_at=active.issued_at,
                    expires_at=active.expires_at,
                    attempts=active.attempts,
                    sent_at=now,
                )
                reused = True
            else:
                exclude = await self._active_codes(now)
                if existing is not None:
                    exclude.add(existing.code)
                record = OtpRecord(
                    identity=identity,
                    code=self._generator.generate_unique(exclude),
                    issued_at=now,
                    expires_at=now + self._ttl_ms,
                    attempts=existing.attempts if existing is not None else 0,
                    sent_at=now,
                )
                reused = False

            await self._call(self._store.set(key, record), "write")
            self._rate_limiter.record(identity, now)

        logger.info(
            "OTP %s for %s (expires at %d)",
            "reused" if reused else "generated",
            identity,
            record.expires_at,
        )
        return IssueResult(record=record, reused=reused)

    # ── Verify ───────────────────────────────────────────

    async def verify(
        self,
        identity: str,
        submitted_code: str,
        now: int | None = None,
        *,
        consume: bool = True,
    ) -> VerifyResult:
        """Check *submitted_code* against the stored record for *identity*.

        A mismatch bumps the record's ``attempts`` counter.  A match deletes
        the record when *consume* is true, so a code verifies only once.
        """
        key = storage_key(identity)
        async with self._identity_lock(key):
            now = self._clock() if now is None else now
            record = await self._call(self._store.get(key), "read")

            if record is None:
                result = VerifyResult(valid=False, reason=VerifyReason.NOT_FOUND)
            elif record.is_expired(now):
                result = VerifyResult(valid=False, reason=VerifyReason.EXPIRED)
            elif not hmac.compare_digest(record.code.encode(), submitted_code.strip().encode()):
                await self._call(self._store.set(key, record.with_failed_attempt()), "write")
                result = VerifyResult(valid=False, reason=VerifyReason.MISMATCH)
            else:
                if consume:
                    await self._call(self._store.delete(key), "delete")
                result = VerifyResult(valid=True, reason=VerifyReason.OK)

        logger.info("OTP verification for %s: %s", identity, result.reason.value)
        return result

    async def get(self, identity: str) -> OtpRecord | None:
        return await self._call(self._store.get(storage_key(identity)), "read")

    # ── Eviction ─────────────────────────────────────────

    async def list_records(self) -> dict[str, OtpRecord]:
        return await self._call(self._store.list_all(), "read")

    async def evict_if_expired(self, key: str, now: int | None = None) -> bool:
        """Delete the record under *key* if it is still expired at *now*.

        The record is re-read under the identity lock, so a code issued
        after the caller's listing is left alone.  Returns whether a record
        was deleted.
        """
        async with self._identity_lock(key):
            now = self._clock() if now is None else now
            record = await self._call(self._store.get(key), "read")
            if record is None or not record.is_expired(now):
                return False
            await self._call(self._store.delete(key), "delete")
        return True

    # ── Private helpers ──────────────────────────────────

    async def _active_codes(self, now: int) -> set[str]:
        """Codes of every unexpired record, or an empty set if the store fails."""
        try:
            records = await self._call(self._store.list_all(), "read")
        except StoreUnavailable as exc:
            logger.warning("Could not list active OTPs, skipping uniqueness check: %s", exc.details or exc)
            return set()
        return {r.code for r in records.values() if r.is_active(now)}

    async def _call(self, awaitable: Awaitable[T], operation: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._store_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("OTP store %s timed out after %.1fs", operation, self._store_timeout)
            raise StoreUnavailable(
                f"OTP store {operation} failed",
                details=f"timed out after {self._store_timeout:g}s",
            ) from exc

    @asynccontextmanager
    async def _identity_lock(self, key: str) -> AsyncIterator[None]:
        # [lock, holders]; the entry is dropped once nobody holds or awaits it
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._locks.pop(key, None)
