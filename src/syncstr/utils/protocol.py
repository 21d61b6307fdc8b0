"""Nostr transport for SyncStr.

The engine talks to relays only through the small
[Transport][syncstr.utils.protocol.Transport] protocol: query events
matching a filter, submit one signed event, close. Every call takes a
caller-supplied deadline; an elapsed deadline, a refused connection and a
relay rejection all surface as
[TransportError][syncstr.core.exceptions.TransportError].

[NostrTransport][syncstr.utils.protocol.NostrTransport] implements the
protocol on top of ``nostr_sdk.Client`` and has two acquisition paths:

* [shared()][syncstr.utils.protocol.NostrTransport.shared] -- one client
  connected up front to the configured default relays and reused for every
  operation. Queries and submissions follow the client's default routing.
* [ad_hoc()][syncstr.utils.protocol.NostrTransport.ad_hoc] -- a fresh client
  bound to exactly one relay, built on demand when the caller needs its
  explicit choice honored.

Attributes:
    QueryFilter: Kinds / authors / limit filter.
    Transport: Structural protocol consumed by the engine.
    NostrTransport: ``nostr_sdk`` implementation.
    connect_relay: Open a client connected to a single relay.
    probe_relay: Check whether a relay answers a query.

Note:
    nostr-sdk is a Rust library behind UniFFI bindings and raises its own
    exception type for protocol and network errors. Those are converted to
    [TransportError][syncstr.core.exceptions.TransportError] here so callers
    never need to know about them. ``asyncio.CancelledError`` is not an
    ``Exception`` and always propagates.

Examples:
    ```python
    shared = await NostrTransport.shared([Relay("wss://relay.damus.io")])
    events = await shared.query(QueryFilter(kinds=(0, 3), authors=(pubkey,)), timeout=15.0)

    async with await NostrTransport.ad_hoc(Relay("wss://nos.lol")) as target:
        await target.submit(events[0], timeout=15.0)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from types import TracebackType
from typing import Protocol, Self

from nostr_sdk import Client, ClientBuilder, Filter, Kind, PublicKey, RelayUrl

from syncstr.core.exceptions import TransportError
from syncstr.models.constants import EventKind
from syncstr.models.event import Event
from syncstr.models.relay import Relay


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0
PROBE_TIMEOUT = 5.0


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Event filter sent with a relay query.

    Attributes:
        kinds: Event kinds to match.
        authors: Hex public keys to match (empty = any author).
        limit: Maximum number of events the relay should return.
    """

    kinds: tuple[int, ...]
    authors: tuple[str, ...] = ()
    limit: int | None = None

    def to_nostr(self) -> Filter:
        """Build the equivalent ``nostr_sdk.Filter``."""
        nostr_filter = Filter().kinds([Kind(int(kind)) for kind in self.kinds])
        if self.authors:
            nostr_filter = nostr_filter.authors([PublicKey.parse(a) for a in self.authors])
        if self.limit is not None:
            nostr_filter = nostr_filter.limit(self.limit)
        return nostr_filter


class Transport(Protocol):
    """Query/submit capability of a relay connection."""

    name: str

    async def query(self, query_filter: QueryFilter, *, timeout: float) -> list[Event]:  # noqa: ASYNC109
        """Return the events matching *query_filter*.

        Raises:
            TransportError: If the query fails or the deadline elapses.
        """
        ...

    async def submit(self, event: Event, *, timeout: float) -> None:  # noqa: ASYNC109
        """Publish a signed event.

        Raises:
            TransportError: If no relay accepts the event or the deadline elapses.
        """
        ...

    async def close(self) -> None:
        """Release the underlying connections."""
        ...


#: Builds an ad-hoc transport bound to one relay.
TransportFactory = Callable[[Relay], Awaitable[Transport]]


def create_client() -> Client:
    """Create a read-only Nostr client (events are already signed)."""
    return ClientBuilder().build()


async def connect_relay(relay: Relay, timeout: float = DEFAULT_TIMEOUT) -> Client:  # noqa: ASYNC109
    """Open a client connected to exactly one relay.

    Args:
        relay: [Relay][syncstr.models.relay.Relay] to connect to.
        timeout: Connection timeout in seconds.

    Returns:
        Connected ``Client`` whose only relay is *relay*.

    Raises:
        TransportError: If the connection cannot be established.
    """
    logger.debug("relay_connecting relay=%s", relay.url)

    client = create_client()
    try:
        relay_url = RelayUrl.parse(relay.url)
        await client.add_relay(relay_url)
        output = await client.try_connect(timedelta(seconds=timeout))
    except Exception as e:  # nostr-sdk FFI raises its own error type
        await _disconnect_quietly(client)
        raise TransportError(f"Connection failed: {relay.url} ({e})") from e

    if relay_url in output.success:
        logger.debug("relay_connected relay=%s", relay.url)
        return client

    error_message = output.failed.get(relay_url, "Unknown error")
    await _disconnect_quietly(client)
    raise TransportError(f"Connection failed: {relay.url} ({error_message})")


async def _disconnect_quietly(client: Client) -> None:
    # nostr-sdk Rust FFI can raise arbitrary exception types during disconnect.
    with contextlib.suppress(Exception):
        await client.disconnect()


class NostrTransport:
    """[Transport][syncstr.utils.protocol.Transport] backed by ``nostr_sdk.Client``.

    Use the [shared()][syncstr.utils.protocol.NostrTransport.shared] and
    [ad_hoc()][syncstr.utils.protocol.NostrTransport.ad_hoc] factories
    rather than the constructor.

    Attributes:
        name: ``"shared"`` or ``"ad_hoc"``, used in logs and results.
    """

    def __init__(self, client: Client, relays: Sequence[Relay], *, name: str) -> None:
        self._client = client
        self._relays = tuple(relays)
        self.name = name

    def __repr__(self) -> str:
        urls = ", ".join(relay.url for relay in self._relays)
        return f"NostrTransport(name={self.name!r}, relays=[{urls}])"

    @property
    def relays(self) -> tuple[Relay, ...]:
        return self._relays

    @classmethod
    async def shared(
        cls,
        relays: Iterable[Relay],
        *,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    ) -> NostrTransport:
        """Connect one client to all default relays, ready for reuse.

        Relays that fail to connect are logged and left in the pool; the
        client keeps retrying them in the background.

        Raises:
            TransportError: If the client rejects a relay or cannot start.
        """
        relays = list(relays)
        client = create_client()
        try:
            for relay in relays:
                await client.add_relay(RelayUrl.parse(relay.url))
            output = await client.try_connect(timedelta(seconds=timeout))
        except Exception as e:  # nostr-sdk FFI raises its own error type
            await _disconnect_quietly(client)
            raise TransportError(f"Shared transport failed to start: {e}") from e
        for relay_url, error in output.failed.items():
            logger.warning("shared_relay_unavailable relay=%s error=%s", relay_url, error)
        logger.debug(
            "shared_transport_ready relays=%s connected=%s", len(relays), len(output.success)
        )
        return cls(client, relays, name="shared")

    @classmethod
    async def ad_hoc(
        cls,
        relay: Relay,
        *,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    ) -> NostrTransport:
        """Connect a fresh client bound to exactly *relay*.

        Raises:
            TransportError: If the relay cannot be reached.
        """
        client = await connect_relay(relay, timeout)
        return cls(client, [relay], name="ad_hoc")

    async def query(self, query_filter: QueryFilter, *, timeout: float) -> list[Event]:  # noqa: ASYNC109
        try:
            async with asyncio.timeout(timeout):
                events = await self._client.fetch_events(
                    query_filter.to_nostr(), timedelta(seconds=timeout)
                )
        except TimeoutError as e:
            raise TransportError(f"{self.name} query timed out after {timeout}s") from e
        except Exception as e:  # nostr-sdk FFI raises its own error type
            raise TransportError(f"{self.name} query failed: {e}") from e

        result: list[Event] = []
        for nostr_event in events.to_vec():
            try:
                result.append(Event.from_nostr(nostr_event))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("event_skipped transport=%s error=%s", self.name, e)
        return result

    async def submit(self, event: Event, *, timeout: float) -> None:  # noqa: ASYNC109
        try:
            async with asyncio.timeout(timeout):
                output = await self._client.send_event(event.to_nostr())
        except TimeoutError as e:
            raise TransportError(
                f"{self.name} publish of {event.short_id} timed out after {timeout}s"
            ) from e
        except Exception as e:  # nostr-sdk FFI raises its own error type
            raise TransportError(f"{self.name} publish of {event.short_id} failed: {e}") from e

        if not output.success:
            reasons = "; ".join(f"{url}: {reason}" for url, reason in output.failed.items())
            raise TransportError(
                f"{self.name} publish of {event.short_id} rejected: {reasons or 'no relay accepted'}"
            )

    async def close(self) -> None:
        # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
        with contextlib.suppress(Exception):
            await self._client.shutdown()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()


@dataclass(frozen=True, slots=True)
class RelayProbe:
    """Result of [probe_relay()][syncstr.utils.protocol.probe_relay].

    Attributes:
        relay: The probed relay.
        connected: Whether the relay answered the probe query.
        error: Short reason when it did not.
    """

    relay: Relay
    connected: bool
    error: str | None = None


def _describe_probe_error(error: Exception) -> str:
    message = str(error)
    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return "Connection timeout"
    if "network" in lowered:
        return "Network error"
    return message or "Connection failed"


async def probe_relay(
    relay: Relay,
    *,
    timeout: float = PROBE_TIMEOUT,  # noqa: ASYNC109
    connect: TransportFactory | None = None,
) -> RelayProbe:
    """Check whether a relay is reachable by asking it for one text note.

    A relay that answers with zero events still counts as connected.

    Args:
        relay: Relay to probe (``ws://`` is allowed).
        timeout: Budget for the connection and for the query.
        connect: Factory for the ad-hoc transport (defaults to
            [NostrTransport.ad_hoc()][syncstr.utils.protocol.NostrTransport.ad_hoc]).
    """
    connect = connect or partial(NostrTransport.ad_hoc, timeout=timeout)
    probe_filter = QueryFilter(kinds=(EventKind.TEXT_NOTE,), limit=1)

    logger.debug("probe_started relay=%s timeout_s=%s", relay.url, timeout)
    try:
        transport = await connect(relay)
    except (TransportError, OSError) as e:
        logger.debug("probe_failed relay=%s error=%s", relay.url, e)
        return RelayProbe(relay, connected=False, error=_describe_probe_error(e))

    try:
        events = await transport.query(probe_filter, timeout=timeout)
    except TransportError as e:
        logger.debug("probe_failed relay=%s error=%s", relay.url, e)
        return RelayProbe(relay, connected=False, error=_describe_probe_error(e))
    finally:
        await transport.close()

    logger.debug("probe_succeeded relay=%s events=%s", relay.url, len(events))
    return RelayProbe(relay, connected=True)
