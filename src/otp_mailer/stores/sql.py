"""SQL OTP store — data access layer over the ``otp_records`` table."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from otp_mailer.database.engine import init_db, make_session_factory
from otp_mailer.errors import StoreUnavailable
from otp_mailer.models.otp import OtpEntry
from otp_mailer.otp.record import OtpRecord

logger = logging.getLogger(__name__)


class SqlOtpStore:
    """Encapsulates all database queries related to OTP records.

    Each operation runs in its own short-lived session so the store can be
    shared by concurrent requests and the sweeper.
    """

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker | None = None) -> None:
        self._engine = engine
        self._session_factory = session_factory or make_session_factory(engine)

    async def init(self) -> None:
        """Create the ``otp_records`` table if it does not exist yet."""
        try:
            await init_db(self._engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailable("OTP store initialisation failed", details=str(exc)) from exc

    async def get(self, key: str) -> OtpRecord | None:
        try:
            async with self._session_factory() as session:
                entry = await session.get(OtpEntry, key)
                return entry.to_record() if entry else None
        except SQLAlchemyError as exc:
            logger.error("OTP read failed for %s: %s", key, exc)
            raise StoreUnavailable("OTP store read failed", details=str(exc)) from exc

    async def set(self, key: str, record: OtpRecord) -> None:
        try:
            async with self._session_factory() as session:
                await session.merge(OtpEntry.from_record(key, record))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("OTP write failed for %s: %s", key, exc)
            raise StoreUnavailable("OTP store write failed", details=str(exc)) from exc

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(OtpEntry).where(OtpEntry.key == key))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("OTP delete failed for %s: %s", key, exc)
            raise StoreUnavailable("OTP store delete failed", details=str(exc)) from exc

    async def list_all(self) -> dict[str, OtpRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(OtpEntry))
                return {entry.key: entry.to_record() for entry in result.scalars()}
        except SQLAlchemyError as exc:
            logger.error("OTP listing failed: %s", exc)
            raise StoreUnavailable("OTP store read failed", details=str(exc)) from exc

    async def aclose(self) -> None:
        await self._engine.dispose()
