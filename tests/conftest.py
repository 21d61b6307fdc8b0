"""
Pytest configuration and shared fixtures for SyncStr tests.

Provides:
- A test identity derived from a fixed private key
- An event factory producing valid, unique events
- An in-memory fake transport with scriptable failures
"""

import logging
from collections.abc import Callable
from itertools import count
from typing import Any

import pytest
from nostr_sdk import Keys

from syncstr.models.event import Event
from syncstr.utils.protocol import QueryFilter


# Valid secp256k1 test key (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)

_TEST_KEYS = Keys.parse(VALID_HEX_KEY)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Identity Fixtures
# ============================================================================


@pytest.fixture
def private_key_hex() -> str:
    return VALID_HEX_KEY


@pytest.fixture
def pubkey() -> str:
    """Hex public key of the test identity."""
    return _TEST_KEYS.public_key().to_hex()


@pytest.fixture
def npub() -> str:
    """Bech32 public key of the test identity."""
    return _TEST_KEYS.public_key().to_bech32()


# ============================================================================
# Event Fixtures
# ============================================================================


@pytest.fixture
def make_event(pubkey: str) -> Callable[..., Event]:
    """Factory for valid events with unique IDs.

    IDs and signatures are well-formed hex but not real signatures, so the
    events cannot be converted to ``nostr_sdk.Event``.
    """
    ids = count(1)

    def _make(
        kind: int = 0,
        created_at: int = 1_700_000_000,
        *,
        id: str | None = None,
        tags: Any = (),
        content: str = "",
    ) -> Event:
        return Event(
            id=id or f"{next(ids):064x}",
            pubkey=pubkey,
            kind=kind,
            created_at=created_at,
            sig="f" * 128,
            tags=tags,
            content=content,
        )

    return _make


@pytest.fixture
def event_dict(make_event: Callable[..., Event]) -> dict[str, Any]:
    """Wire JSON object of a contact list event."""
    return make_event(3, tags=[["p", "a" * 64]]).to_dict()


# ============================================================================
# Transport Fixtures
# ============================================================================


class FakeTransport:
    """In-memory transport recording every call.

    Attributes:
        events: Returned by every successful query.
        query_error: Raised by every query when set.
        submit_error: Raised by every submit when set.
        fail_ids: Per-event submit errors, keyed by event ID.
    """

    def __init__(
        self,
        name: str = "fake",
        *,
        events: list[Event] | None = None,
        query_error: Exception | None = None,
        submit_error: Exception | None = None,
    ) -> None:
        self.name = name
        self.events = list(events or [])
        self.query_error = query_error
        self.submit_error = submit_error
        self.fail_ids: dict[str, Exception] = {}
        self.queries: list[QueryFilter] = []
        self.timeouts: list[float] = []
        self.submitted: list[Event] = []
        self.closed = False

    async def query(self, query_filter: QueryFilter, *, timeout: float) -> list[Event]:
        self.queries.append(query_filter)
        self.timeouts.append(timeout)
        if self.query_error is not None:
            raise self.query_error
        return list(self.events)

    async def submit(self, event: Event, *, timeout: float) -> None:
        self.timeouts.append(timeout)
        error = self.submit_error or self.fail_ids.get(event.id)
        if error is not None:
            raise error
        self.submitted.append(event)

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Ad-hoc transport factory handing out one transport per relay.

    Attributes:
        transport: The transport returned on every successful connect.
        connect_errors: Errors raised by the next connects, in order.
        relays: Relays connect was called with.
    """

    def __init__(self, transport: FakeTransport | None = None) -> None:
        self.transport = transport or FakeTransport("ad_hoc")
        self.connect_errors: list[Exception] = []
        self.relays: list[Any] = []

    async def __call__(self, relay: Any) -> FakeTransport:
        self.relays.append(relay)
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        return self.transport


@pytest.fixture
def shared() -> FakeTransport:
    """Fake shared transport that returns nothing and accepts everything."""
    return FakeTransport("shared")


@pytest.fixture
def connector() -> FakeConnector:
    """Fake ad-hoc transport factory."""
    return FakeConnector()
