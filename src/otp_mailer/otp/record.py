"""OTP record value object and its storage encoding."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, replace

# Characters that cannot appear in a realtime-database path segment
_ILLEGAL_KEY_CHARS = re.compile(r"[.#$\[\]]")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def storage_key(identity: str) -> str:
    """Map an email address to a key that is safe as a store path segment.

    ``alice.smith@example.com`` → ``alice_smith@example_com``
    """
    return _ILLEGAL_KEY_CHARS.sub("_", identity)


@dataclass(frozen=True)
class OtpRecord:
    """One issued code for one identity.

    All timestamps are epoch milliseconds.  ``expires_at`` is always
    ``issued_at + ttl`` for the ttl the record was issued with.
    """

    identity: str
    code: str
    issued_at: int
    expires_at: int
    attempts: int = 0
    sent_at: int = 0

    def is_active(self, now: int) -> bool:
        return now < self.expires_at

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at

    def with_failed_attempt(self) -> OtpRecord:
        return replace(self, attempts=self.attempts + 1)

    def to_dict(self) -> dict:
        """Encode to the JSON shape kept in the realtime database."""
        return {
            "email": self.identity,
            "otp": self.code,
            "generatedAt": self.issued_at,
            "expiresAt": self.expires_at,
            "attempts": self.attempts,
            "sentAt": self.sent_at,
        }

    @classmethod
    def from_dict(cls, data: dict, *, ttl_ms: int = 300_000) -> OtpRecord:
        """Decode a stored JSON object.

        Older rows may lack ``generatedAt``; it is derived from ``expiresAt``.
        """
        expires_at = int(data["expiresAt"])
        issued_at = data.get("generatedAt")
        return cls(
            identity=str(data.get("email", "")),
            code=str(data["otp"]),
            issued_at=int(issued_at) if issued_at is not None else expires_at - ttl_ms,
            expires_at=expires_at,
            attempts=int(data.get("attempts") or 0),
            sent_at=int(data.get("sentAt") or 0),
        )
