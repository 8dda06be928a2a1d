"""EmailSender protocol — services depend on this, not on a provider."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DeliveryReceipt:
    """Provider acknowledgement for one accepted message."""

    delivery_id: str


class EmailSender(Protocol):
    """Transactional email transport.

    Implementations raise :class:`otp_mailer.errors.SendFailure` when the
    provider rejects the message or cannot be reached.
    """

    async def send(self, to: str, subject: str, html: str, text: str) -> DeliveryReceipt: ...

    async def aclose(self) -> None: ...
