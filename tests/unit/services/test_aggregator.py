"""
Unit tests for syncstr.services.aggregator module.

Tests:
- Shared transport first, ad-hoc fallback on error or empty result
- FetchError only when the ad-hoc read fails
- Query filter, identity normalization and deadlines
"""

import asyncio
from functools import partial
from unittest.mock import AsyncMock, patch

import pytest

from syncstr.core.exceptions import FetchError, TransportError
from syncstr.models.constants import PROFILE_KINDS, ProfileSlot
from syncstr.models.relay import Relay
from syncstr.services.aggregator import Aggregator, FetchConfig
from syncstr.utils.protocol import NostrTransport


SOURCE = "wss://relay.example.com"


@pytest.fixture
def aggregator(shared, connector):
    return Aggregator(shared, connector)


class TestSharedFirst:
    """The shared transport answers when it can."""

    async def test_shared_result_used(self, aggregator, shared, connector, make_event, pubkey):
        shared.events = [make_event(0), make_event(10002)]

        profile = await aggregator.fetch(pubkey, SOURCE)

        assert set(profile) == {ProfileSlot.METADATA, ProfileSlot.RELAY_LIST}
        assert connector.relays == []

    async def test_query_filter(self, aggregator, shared, make_event, pubkey):
        shared.events = [make_event(0)]

        await aggregator.fetch(pubkey, SOURCE)

        (query_filter,) = shared.queries
        assert query_filter.kinds == PROFILE_KINDS
        assert query_filter.authors == (pubkey,)
        assert query_filter.limit == 50

    async def test_npub_identity_normalized(self, aggregator, shared, make_event, npub, pubkey):
        shared.events = [make_event(0)]
        await aggregator.fetch(npub, SOURCE)
        assert shared.queries[0].authors == (pubkey,)


class TestAdHocFallback:
    """The ad-hoc transport bound to the source decides."""

    async def test_shared_error_then_ad_hoc_success(
        self, aggregator, shared, connector, make_event, pubkey
    ):
        """Shared fails, ad-hoc returns kinds 0 and 3: two slots populated."""
        shared.query_error = TransportError("shared pool down")
        connector.transport.events = [make_event(0), make_event(3)]

        profile = await aggregator.fetch(pubkey, SOURCE)

        assert set(profile) == {ProfileSlot.METADATA, ProfileSlot.CONTACTS}
        assert connector.relays == [Relay(SOURCE)]
        assert connector.transport.closed is True

    async def test_shared_empty_then_ad_hoc(self, aggregator, shared, connector, make_event, pubkey):
        connector.transport.events = [make_event(3)]

        profile = await aggregator.fetch(pubkey, SOURCE)

        assert list(profile) == [ProfileSlot.CONTACTS]
        assert len(shared.queries) == 1

    async def test_both_empty_is_not_an_error(self, aggregator, connector, pubkey):
        profile = await aggregator.fetch(pubkey, SOURCE)
        assert len(profile) == 0
        assert connector.transport.closed is True

    async def test_ad_hoc_error_raises_fetch_error(self, aggregator, shared, connector, pubkey):
        shared.query_error = TransportError("shared down")
        cause = TransportError("source refused")
        connector.transport.query_error = cause

        with pytest.raises(FetchError, match="source refused") as exc_info:
            await aggregator.fetch(pubkey, SOURCE)

        assert exc_info.value.cause is cause
        assert connector.transport.closed is True

    async def test_ad_hoc_connect_failure(self, aggregator, connector, pubkey):
        connector.connect_errors.append(TransportError("Connection failed"))
        with pytest.raises(FetchError, match="Connection failed"):
            await aggregator.fetch(pubkey, SOURCE)

    async def test_client_rejecting_source_raises_fetch_error(self, shared, pubkey):
        aggregator = Aggregator(shared, partial(NostrTransport.ad_hoc, timeout=1.0))

        with (
            patch("syncstr.utils.protocol.create_client", return_value=AsyncMock()),
            patch("syncstr.utils.protocol.RelayUrl") as mock_relay_url,
        ):
            mock_relay_url.parse.side_effect = RuntimeError("invalid international domain name")
            with pytest.raises(FetchError, match="invalid international domain name") as exc_info:
                await aggregator.fetch(pubkey, "wss://xn--a.example")

        assert isinstance(exc_info.value.cause, TransportError)

    async def test_shared_data_with_ad_hoc_duplicates_resolved(
        self, aggregator, connector, make_event, pubkey
    ):
        old = make_event(3, created_at=100)
        new = make_event(3, created_at=200)
        connector.transport.events = [new, old]

        profile = await aggregator.fetch(pubkey, SOURCE)

        assert profile[ProfileSlot.CONTACTS] is new

    async def test_cancellation_propagates(self, aggregator, shared, connector, pubkey):
        shared.query_error = asyncio.CancelledError()
        with pytest.raises(asyncio.CancelledError):
            await aggregator.fetch(pubkey, SOURCE)
        assert connector.relays == []


class TestDeadlines:
    async def test_default_timeout_per_tier(self, aggregator, shared, connector, pubkey):
        await aggregator.fetch(pubkey, SOURCE)
        assert shared.timeouts == [15.0]
        assert connector.transport.timeouts == [15.0]

    async def test_explicit_timeout(self, aggregator, shared, pubkey):
        await aggregator.fetch(pubkey, SOURCE, timeout=2.5)
        assert shared.timeouts == [2.5]

    async def test_configured_timeout_and_limit(self, shared, connector, make_event, pubkey):
        aggregator = Aggregator(shared, connector, config=FetchConfig(timeout=4.0, limit=10))
        shared.events = [make_event(0)]

        await aggregator.fetch(pubkey, SOURCE)

        assert shared.timeouts == [4.0]
        assert shared.queries[0].limit == 10


class TestPreconditions:
    async def test_empty_identity(self, aggregator):
        with pytest.raises(ValueError, match="identity"):
            await aggregator.fetch("", SOURCE)

    async def test_insecure_source_rejected(self, aggregator, pubkey):
        with pytest.raises(ValueError, match="wss://"):
            await aggregator.fetch(pubkey, "ws://relay.example.com")

    async def test_invalid_source(self, aggregator, pubkey):
        with pytest.raises(ValueError):
            await aggregator.fetch(pubkey, "https://relay.example.com")

    async def test_bare_domain_source(self, aggregator, connector, pubkey):
        await aggregator.fetch(pubkey, "relay.example.com")
        assert connector.relays == [Relay(SOURCE)]


class TestFromDict:
    def test_config_and_collaborators(self, shared, connector):
        aggregator = Aggregator.from_dict({"timeout": 9, "limit": 20}, shared=shared, connect=connector)
        assert aggregator.config.timeout == 9.0
        assert aggregator.config.limit == 20
