"""Numeric OTP generation with best-effort uniqueness."""

from __future__ import annotations

import logging
import random
import secrets
from collections.abc import Collection

logger = logging.getLogger(__name__)

CODE_MIN = 100_000
CODE_MAX = 999_999


class OtpGenerator:
    """Draws 6-digit codes, avoiding codes that are currently active.

    Uniqueness is best effort: after ``max_attempts`` colliding draws the
    last draw is returned anyway instead of failing the request.
    """

    def __init__(self, max_attempts: int = 10, rng: random.Random | None = None) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._rng = rng or secrets.SystemRandom()

    def generate(self) -> str:
        return str(self._rng.randint(CODE_MIN, CODE_MAX))

    def generate_unique(self, active_codes: Collection[str] = ()) -> str:
        """Return a code not present in *active_codes* if one can be found."""
        code = self.generate()
        for attempt in range(1, self._max_attempts):
            if code not in active_codes:
                return code
            logger.debug("OTP collision on attempt %d, redrawing", attempt)
            code = self.generate()

        if code in active_codes:
            logger.warning(
                "OTP uniqueness not achieved after %d attempts; using colliding code",
                self._max_attempts,
            )
        return code
