"""Tests for the OtpStore backends and record encoding."""

from __future__ import annotations

import json
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from otp_mailer.errors import StoreUnavailable
from otp_mailer.otp.record import OtpRecord, storage_key
from otp_mailer.stores.firebase import FirebaseOtpStore
from otp_mailer.stores.memory import InMemoryOtpStore
from otp_mailer.stores.sql import SqlOtpStore

RECORD = OtpRecord(
    identity="alice.smith@example.com",
    code="123456",
    issued_at=1_000,
    expires_at=301_000,
    attempts=1,
    sent_at=2_000,
)


# ── Keys and encoding ────────────────────────────────────

def test_storage_key_replaces_illegal_characters():
    assert storage_key("alice.smith@example.com") == "alice_smith@example_com"
    assert storage_key("a#b$c[d]e@x.io") == "a_b_c_d_e@x_io"


def test_record_wire_format():
    assert RECORD.to_dict() == {
        "email": "alice.smith@example.com",
        "otp": "123456",
        "generatedAt": 1_000,
        "expiresAt": 301_000,
        "attempts": 1,
        "sentAt": 2_000,
    }
    assert OtpRecord.from_dict(RECORD.to_dict()) == RECORD


def test_record_without_generated_at_derives_it():
    record = OtpRecord.from_dict({"email": "a@b.com", "otp": 654321, "expiresAt": 400_000})
    assert record.code == "654321"
    assert record.issued_at == 100_000
    assert record.attempts == 0


# ── In-memory ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_memory_store_crud():
    store = InMemoryOtpStore()
    key = storage_key(RECORD.identity)

    assert await store.get(key) is None
    await store.set(key, RECORD)
    assert await store.get(key) == RECORD
    assert await store.list_all() == {key: RECORD}

    await store.delete(key)
    await store.delete(key)  # missing keys are fine
    assert await store.list_all() == {}


# ── SQL ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def sql_store():
    """SqlOtpStore over a fresh in-memory SQLite database."""
    store = SqlOtpStore(create_async_engine("sqlite+aiosqlite://", echo=False))
    await store.init()
    yield store
    await store.aclose()


@pytest.mark.asyncio
async def test_sql_store_crud(sql_store):
    key = storage_key(RECORD.identity)

    assert await sql_store.get(key) is None
    await sql_store.set(key, RECORD)
    assert await sql_store.get(key) == RECORD

    updated = RECORD.with_failed_attempt()
    await sql_store.set(key, updated)
    assert (await sql_store.get(key)).attempts == 2

    assert await sql_store.list_all() == {key: updated}
    await sql_store.delete(key)
    assert await sql_store.get(key) is None


@pytest.mark.asyncio
async def test_sql_store_errors_become_store_unavailable():
    store = SqlOtpStore(create_async_engine("sqlite+aiosqlite://", echo=False))
    # Table was never created
    with pytest.raises(StoreUnavailable):
        await store.get("missing")
    await store.aclose()


# ── Firebase REST ────────────────────────────────────────

class FakeRealtimeDatabase:
    """Just enough of the realtime-database REST API for the store."""

    def __init__(self):
        self.data: dict = {}
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, text="Permission denied")

        # Split the still-encoded path so a quoted "/" stays inside its key
        raw_path = request.url.raw_path.decode().partition("?")[0]
        path = raw_path.removesuffix(".json").strip("/").split("/")
        key = unquote(path[1]) if len(path) > 1 else None

        if request.method == "GET":
            body = self.data.get(key) if key else (self.data or None)
            return httpx.Response(200, json=body)
        if request.method == "PUT":
            self.data[key] = json.loads(request.content)
            return httpx.Response(200, json=self.data[key])
        if request.method == "DELETE":
            self.data.pop(key, None)
            return httpx.Response(200, json=None)
        return httpx.Response(405)


@pytest.fixture
def fake_db():
    return FakeRealtimeDatabase()


@pytest.fixture
def firebase_store(fake_db):
    return FirebaseOtpStore(
        "https://example-rtdb.firebaseio.com/",
        auth_token="secret",
        transport=httpx.MockTransport(fake_db),
    )


@pytest.mark.asyncio
async def test_firebase_store_crud(firebase_store, fake_db):
    key = storage_key(RECORD.identity)

    assert await firebase_store.get(key) is None
    await firebase_store.set(key, RECORD)
    assert fake_db.data[key]["otp"] == "123456"
    assert await firebase_store.get(key) == RECORD
    assert await firebase_store.list_all() == {key: RECORD}

    await firebase_store.delete(key)
    assert await firebase_store.list_all() == {}

    put = next(r for r in fake_db.requests if r.method == "PUT")
    assert put.url.path == f"/otp/{key}.json"
    assert put.url.params["auth"] == "secret"
    await firebase_store.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "encoded"),
    [
        ("a?x@b.com", "a%3Fx@b_com"),
        ("a/b@c.com", "a%2Fb@c_com"),
        ("100%@c.com", "100%25@c_com"),
    ],
)
async def test_firebase_quotes_keys_in_request_path(firebase_store, fake_db, email, encoded):
    record = OtpRecord(identity=email, code="123456", issued_at=0, expires_at=300_000)
    key = storage_key(email)

    await firebase_store.set(key, record)
    assert await firebase_store.get(key) == record
    await firebase_store.delete(key)

    paths = [(r.method, r.url.raw_path.decode().partition("?")[0]) for r in fake_db.requests]
    assert paths == [
        ("PUT", f"/otp/{encoded}.json"),
        ("GET", f"/otp/{encoded}.json"),
        ("DELETE", f"/otp/{encoded}.json"),
    ]
    assert fake_db.data == {}


@pytest.mark.asyncio
async def test_firebase_list_skips_malformed_records(firebase_store, fake_db):
    fake_db.data = {"good": RECORD.to_dict(), "bad": {"email": "x@y.com"}}

    records = await firebase_store.list_all()

    assert list(records) == ["good"]


@pytest.mark.asyncio
async def test_firebase_http_error_becomes_store_unavailable(firebase_store, fake_db):
    fake_db.fail_with = 401

    with pytest.raises(StoreUnavailable) as exc_info:
        await firebase_store.set("k", RECORD)

    assert "401" in exc_info.value.details


@pytest.mark.asyncio
async def test_firebase_transport_error_becomes_store_unavailable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = FirebaseOtpStore("https://example-rtdb.firebaseio.com", transport=httpx.MockTransport(refuse))

    with pytest.raises(StoreUnavailable):
        await store.get("k")


def test_firebase_requires_database_url():
    with pytest.raises(ValueError):
        FirebaseOtpStore("")
