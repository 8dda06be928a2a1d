"""Background sweeper that evicts expired OTP records."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from otp_mailer.errors import StoreUnavailable
from otp_mailer.otp.record import now_ms

if TYPE_CHECKING:
    from otp_mailer.otp.manager import OtpLifecycleManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepReport:
    scanned: int = 0
    deleted: int = 0
    failed: int = 0


class ExpirySweeper:
    """Periodically deletes every record whose ``expires_at`` has passed.

    Deletions go through the lifecycle manager, which re-checks each record
    under its identity lock; a record replaced by a fresh issuance between
    listing and deletion survives the sweep.

    The first sweep runs *initial_delay* seconds after :meth:`start` so the
    store connection can settle; later sweeps run every *interval* seconds.
    Failures are logged and counted, never raised.
    """

    def __init__(
        self,
        manager: OtpLifecycleManager,
        *,
        interval: float = 300,
        initial_delay: float = 15,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._manager = manager
        self._interval = interval
        self._initial_delay = initial_delay
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self, now: int | None = None) -> SweepReport:
        """Run one pass over the store and return what it did."""
        now = self._clock() if now is None else now
        try:
            records = await self._manager.list_records()
        except StoreUnavailable as exc:
            logger.error("OTP sweep aborted, could not list records: %s", exc.details or exc)
            return SweepReport(failed=1)

        deleted = failed = 0
        for key, record in records.items():
            if not record.is_expired(now):
                continue
            try:
                if await self._manager.evict_if_expired(key, now):
                    deleted += 1
            except StoreUnavailable as exc:
                failed += 1
                logger.warning("Failed to delete expired OTP %s: %s", key, exc.details or exc)

        logger.info(
            "OTP sweep complete: %d scanned, %d expired removed, %d failed",
            len(records),
            deleted,
            failed,
        )
        return SweepReport(scanned=len(records), deleted=deleted, failed=failed)

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-expiry-sweeper")
        logger.info(
            "OTP sweeper started (first run in %gs, then every %gs)",
            self._initial_delay,
            self._interval,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("OTP sweeper stopped")

    async def _run(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while True:
            try:
                await self.sweep()
            except Exception:
                logger.exception("Unexpected error during OTP sweep")
            await asyncio.sleep(self._interval)
