"""
Unit tests for syncstr.utils.protocol module.

Tests:
- QueryFilter.to_nostr() - nostr_sdk filter construction
- connect_relay() - single relay connection
- NostrTransport - shared / ad-hoc construction, query, submit, close
- probe_relay() - relay reachability check
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from syncstr.core.exceptions import TransportError
from syncstr.models.event import Event
from syncstr.models.relay import Relay
from syncstr.utils.protocol import (
    NostrTransport,
    QueryFilter,
    _describe_probe_error,
    connect_relay,
    probe_relay,
)


def _nostr_event(data):
    mock = MagicMock()
    mock.as_json.return_value = json.dumps(data)
    return mock


def _connect_output(success, failed=None):
    output = MagicMock()
    output.success = success
    output.failed = failed or {}
    return output


# =============================================================================
# QueryFilter Tests
# =============================================================================


class TestQueryFilter:
    """QueryFilter.to_nostr()."""

    def test_kinds_authors_limit(self, pubkey):
        nostr_filter = QueryFilter(kinds=(0, 3), authors=(pubkey,), limit=50).to_nostr()
        data = json.loads(nostr_filter.as_json())
        assert sorted(data["kinds"]) == [0, 3]
        assert data["authors"] == [pubkey]
        assert data["limit"] == 50

    def test_kinds_only(self):
        data = json.loads(QueryFilter(kinds=(1,)).to_nostr().as_json())
        assert data["kinds"] == [1]
        assert "authors" not in data
        assert "limit" not in data


# =============================================================================
# connect_relay() Tests
# =============================================================================


class TestConnectRelay:
    """connect_relay() with a mocked client."""

    async def test_success_returns_client(self):
        mock_url = MagicMock()
        mock_client = AsyncMock()
        mock_client.try_connect = AsyncMock(return_value=_connect_output([mock_url]))

        with (
            patch("syncstr.utils.protocol.create_client", return_value=mock_client),
            patch("syncstr.utils.protocol.RelayUrl") as mock_relay_url,
        ):
            mock_relay_url.parse.return_value = mock_url
            client = await connect_relay(Relay("wss://relay.example.com"))

        assert client is mock_client
        mock_client.add_relay.assert_awaited_once_with(mock_url)

    async def test_failure_raises_and_disconnects(self):
        mock_url = MagicMock()
        mock_client = AsyncMock()
        mock_client.try_connect = AsyncMock(
            return_value=_connect_output([], {mock_url: "connection refused"})
        )

        with (
            patch("syncstr.utils.protocol.create_client", return_value=mock_client),
            patch("syncstr.utils.protocol.RelayUrl") as mock_relay_url,
        ):
            mock_relay_url.parse.return_value = mock_url
            with pytest.raises(TransportError, match="connection refused"):
                await connect_relay(Relay("wss://relay.example.com"))

        mock_client.disconnect.assert_awaited_once()

    async def test_sdk_rejection_becomes_transport_error(self):
        mock_client = AsyncMock()

        with (
            patch("syncstr.utils.protocol.create_client", return_value=mock_client),
            patch("syncstr.utils.protocol.RelayUrl") as mock_relay_url,
        ):
            mock_relay_url.parse.side_effect = RuntimeError("invalid international domain name")
            with pytest.raises(TransportError, match="invalid international domain name"):
                await connect_relay(Relay("wss://xn--a.example"))

        mock_client.disconnect.assert_awaited_once()
        mock_client.try_connect.assert_not_awaited()


# =============================================================================
# NostrTransport Construction Tests
# =============================================================================


class TestNostrTransportFactories:
    """shared() and ad_hoc() acquisition paths."""

    async def test_shared_adds_every_relay(self):
        mock_client = AsyncMock()
        mock_client.try_connect = AsyncMock(return_value=_connect_output(["a"], {"b": "down"}))
        relays = [Relay("wss://a.example.com"), Relay("wss://b.example.com")]

        with (
            patch("syncstr.utils.protocol.create_client", return_value=mock_client),
            patch("syncstr.utils.protocol.RelayUrl"),
        ):
            transport = await NostrTransport.shared(relays)

        assert transport.name == "shared"
        assert transport.relays == tuple(relays)
        assert mock_client.add_relay.await_count == 2

    async def test_shared_sdk_rejection_becomes_transport_error(self):
        mock_client = AsyncMock()
        mock_client.add_relay.side_effect = RuntimeError("invalid relay url")

        with (
            patch("syncstr.utils.protocol.create_client", return_value=mock_client),
            patch("syncstr.utils.protocol.RelayUrl"),
        ):
            with pytest.raises(TransportError, match="invalid relay url"):
                await NostrTransport.shared([Relay("wss://a.example.com")])

        mock_client.disconnect.assert_awaited_once()

    async def test_ad_hoc_binds_single_relay(self):
        relay = Relay("wss://nos.lol")
        mock_client = AsyncMock()

        with patch(
            "syncstr.utils.protocol.connect_relay", new_callable=AsyncMock, return_value=mock_client
        ) as mock_connect:
            transport = await NostrTransport.ad_hoc(relay, timeout=3.0)

        mock_connect.assert_awaited_once_with(relay, 3.0)
        assert transport.name == "ad_hoc"
        assert transport.relays == (relay,)

    async def test_ad_hoc_propagates_connect_failure(self):
        with patch(
            "syncstr.utils.protocol.connect_relay",
            new_callable=AsyncMock,
            side_effect=TransportError("Connection failed"),
        ):
            with pytest.raises(TransportError):
                await NostrTransport.ad_hoc(Relay("wss://nos.lol"))


# =============================================================================
# NostrTransport.query() Tests
# =============================================================================


class TestNostrTransportQuery:
    """query() conversion and error mapping."""

    async def test_converts_events(self, event_dict):
        mock_client = AsyncMock()
        mock_client.fetch_events.return_value.to_vec = MagicMock(
            return_value=[_nostr_event(event_dict)]
        )
        transport = NostrTransport(mock_client, [], name="shared")

        events = await transport.query(QueryFilter(kinds=(3,)), timeout=5.0)

        assert events == [Event.from_dict(event_dict)]

    async def test_malformed_events_skipped(self, event_dict):
        broken = dict(event_dict, kind="three")
        mock_client = AsyncMock()
        mock_client.fetch_events.return_value.to_vec = MagicMock(
            return_value=[_nostr_event(broken), _nostr_event(event_dict)]
        )
        transport = NostrTransport(mock_client, [], name="shared")

        events = await transport.query(QueryFilter(kinds=(3,)), timeout=5.0)

        assert [event.id for event in events] == [event_dict["id"]]

    async def test_client_error_becomes_transport_error(self):
        mock_client = AsyncMock()
        mock_client.fetch_events.side_effect = RuntimeError("relay closed")
        transport = NostrTransport(mock_client, [], name="ad_hoc")

        with pytest.raises(TransportError, match="ad_hoc query failed: relay closed"):
            await transport.query(QueryFilter(kinds=(0,)), timeout=5.0)

    async def test_deadline_becomes_transport_error(self):
        async def slow(*_args):
            await asyncio.sleep(10)

        mock_client = AsyncMock()
        mock_client.fetch_events.side_effect = slow
        transport = NostrTransport(mock_client, [], name="shared")

        with pytest.raises(TransportError, match="timed out"):
            await transport.query(QueryFilter(kinds=(0,)), timeout=0.01)


# =============================================================================
# NostrTransport.submit() Tests
# =============================================================================


class TestNostrTransportSubmit:
    """submit() acceptance and error mapping."""

    @pytest.fixture
    def event(self, make_event):
        event = make_event(3)
        with patch.object(Event, "to_nostr", return_value=MagicMock()):
            yield event

    async def test_accepted(self, event):
        mock_client = AsyncMock()
        mock_client.send_event.return_value = _connect_output(["wss://nos.lol"])
        transport = NostrTransport(mock_client, [], name="shared")

        await transport.submit(event, timeout=5.0)

        mock_client.send_event.assert_awaited_once()

    async def test_rejected_by_every_relay(self, event):
        mock_client = AsyncMock()
        mock_client.send_event.return_value = _connect_output(
            [], {"wss://nos.lol": "blocked: spam"}
        )
        transport = NostrTransport(mock_client, [], name="ad_hoc")

        with pytest.raises(TransportError, match="blocked: spam"):
            await transport.submit(event, timeout=5.0)

    async def test_client_error(self, event):
        mock_client = AsyncMock()
        mock_client.send_event.side_effect = RuntimeError("not connected")
        transport = NostrTransport(mock_client, [], name="shared")

        with pytest.raises(TransportError, match="not connected"):
            await transport.submit(event, timeout=5.0)

    async def test_deadline(self, event):
        async def slow(*_args):
            await asyncio.sleep(10)

        mock_client = AsyncMock()
        mock_client.send_event.side_effect = slow
        transport = NostrTransport(mock_client, [], name="shared")

        with pytest.raises(TransportError, match="timed out"):
            await transport.submit(event, timeout=0.01)


class TestNostrTransportClose:
    async def test_close_shuts_down(self):
        mock_client = AsyncMock()
        await NostrTransport(mock_client, [], name="shared").close()
        mock_client.shutdown.assert_awaited_once()

    async def test_close_suppresses_client_errors(self):
        mock_client = AsyncMock()
        mock_client.shutdown.side_effect = RuntimeError("already closed")
        await NostrTransport(mock_client, [], name="shared").close()

    async def test_context_manager(self):
        mock_client = AsyncMock()
        async with NostrTransport(mock_client, [], name="ad_hoc"):
            pass
        mock_client.shutdown.assert_awaited_once()


# =============================================================================
# probe_relay() Tests
# =============================================================================


class TestProbeRelay:
    """probe_relay() with a fake transport factory."""

    async def test_connected_even_without_events(self, connector):
        relay = Relay("relay.example.com")

        probe = await probe_relay(relay, connect=connector)

        assert probe.connected is True
        assert probe.error is None
        assert connector.transport.closed is True
        (query_filter,) = connector.transport.queries
        assert query_filter.kinds == (1,)
        assert query_filter.limit == 1

    async def test_connect_timeout(self, connector):
        connector.connect_errors.append(TransportError("connect timed out"))

        probe = await probe_relay(Relay("wss://relay.example.com"), connect=connector)

        assert probe.connected is False
        assert probe.error == "Connection timeout"

    async def test_query_failure(self, connector):
        connector.transport.query_error = TransportError("auth required")

        probe = await probe_relay(Relay("wss://relay.example.com"), connect=connector)

        assert probe.connected is False
        assert probe.error == "auth required"
        assert connector.transport.closed is True


class TestDescribeProbeError:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Connection timeout", "Connection timeout"),
            ("query timed out after 5s", "Connection timeout"),
            ("Network unreachable", "Network error"),
            ("refused", "refused"),
            ("", "Connection failed"),
        ],
    )
    def test_classification(self, message, expected):
        assert _describe_probe_error(TransportError(message)) == expected
