"""Firebase Realtime Database OTP store.

Talks to the database's REST API rather than the admin SDK: every record
lives at ``{database_url}/{path}/{key}.json`` and the whole collection can
be fetched with ``{database_url}/{path}.json``.  A JSON ``null`` body means
the key does not exist.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from otp_mailer.errors import StoreUnavailable
from otp_mailer.otp.record import OtpRecord

logger = logging.getLogger(__name__)


class FirebaseOtpStore:
    """Async HTTP wrapper around the realtime database's ``/otp`` subtree."""

    def __init__(
        self,
        database_url: str,
        *,
        auth_token: str = "",
        path: str = "otp",
        ttl_ms: int = 300_000,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not database_url:
            raise ValueError("FIREBASE_DATABASE_URL is required for the firebase store")
        self._base_url = f"{database_url.rstrip('/')}/{path.strip('/')}"
        self._params = {"auth": auth_token} if auth_token else {}
        self._ttl_ms = ttl_ms
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _url(self, key: str | None = None) -> str:
        if key is None:
            return f"{self._base_url}.json"
        # Keys come from email local parts, which may hold "?", "/" or "%"
        return f"{self._base_url}/{quote(key, safe='@')}.json"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, url, params=self._params, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Firebase %s %s request error: %s", method, url, exc)
            raise StoreUnavailable("OTP store request failed", details=str(exc)) from exc

        if resp.status_code >= 300:
            logger.error("Firebase %s %s failed: %s %s", method, url, resp.status_code, resp.text)
            raise StoreUnavailable(
                "OTP store request failed",
                details=f"HTTP {resp.status_code}: {resp.text[:200]}",
            )
        return resp.json() if resp.content else None

    def _decode(self, key: str, data: Any) -> OtpRecord | None:
        try:
            return OtpRecord.from_dict(data, ttl_ms=self._ttl_ms)
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed OTP record at %s", key)
            return None

    async def get(self, key: str) -> OtpRecord | None:
        data = await self._request("GET", self._url(key))
        if data is None:
            return None
        return self._decode(key, data)

    async def set(self, key: str, record: OtpRecord) -> None:
        await self._request("PUT", self._url(key), json=record.to_dict())

    async def delete(self, key: str) -> None:
        await self._request("DELETE", self._url(key))

    async def list_all(self) -> dict[str, OtpRecord]:
        data = await self._request("GET", self._url())
        if not data:
            return {}
        records: dict[str, OtpRecord] = {}
        for key, raw in data.items():
            record = self._decode(key, raw)
            if record is not None:
                records[key] = record
        return records

    async def aclose(self) -> None:
        await self._client.aclose()
