"""SQLAlchemy OTP record model."""

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from otp_mailer.otp.record import OtpRecord


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


class OtpEntry(Base):
    """Row form of an :class:`OtpRecord`, one per storage key.

    Timestamps are kept as epoch milliseconds so rows round-trip with the
    realtime-database representation unchanged.
    """

    __tablename__ = "otp_records"

    key: Mapped[str] = mapped_column(String(320), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sent_at: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    __table_args__ = (Index("ix_otp_records_expires_at", "expires_at"),)

    @classmethod
    def from_record(cls, key: str, record: OtpRecord) -> "OtpEntry":
        return cls(
            key=key,
            email=record.identity,
            code=record.code,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            attempts=record.attempts,
            sent_at=record.sent_at,
        )

    def to_record(self) -> OtpRecord:
        return OtpRecord(
            identity=self.email,
            code=self.code,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
            attempts=self.attempts,
            sent_at=self.sent_at,
        )

    def __repr__(self) -> str:
        return f"<OtpEntry key={self.key!r} expires_at={self.expires_at}>"
