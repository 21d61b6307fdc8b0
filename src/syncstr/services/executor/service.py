"""Sync executor.

Replays a selection of events to a target relay, one event at a time, and
accounts for every event in a
[SyncOutcome][syncstr.models.outcome.SyncOutcome].

Each event is first submitted through the shared transport. If that fails
or times out, it is submitted again through an ad-hoc transport bound to
the target relay. The ad-hoc transport is opened the first time it is
needed, reused for the remaining events, and closed when the sync ends. A
failed connection is retried for the next event that needs it.

Per-event failures never raise: they are recorded with the error of the
last attempt and the sync moves on to the next event.

See Also:
    [Aggregator][syncstr.services.aggregator.Aggregator]: Produces the
        events that are replayed here.
    [SyncOutcome.summary()][syncstr.models.outcome.SyncOutcome.summary]:
        Human summary of a finished sync.

Examples:
    ```python
    executor = Executor(shared, config=config.sync)
    outcome = await executor.sync(profile.events(), "wss://nos.lol")
    print(outcome.summary())
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import partial
from typing import ClassVar

from syncstr.core.base import BaseComponent
from syncstr.core.exceptions import NoEventsError
from syncstr.models.constants import ComponentName
from syncstr.models.event import Event
from syncstr.models.outcome import SyncOutcome, SyncResult
from syncstr.models.relay import Relay
from syncstr.services.common.fallback import Strategy, run_strategies
from syncstr.utils.protocol import NostrTransport, Transport, TransportFactory

from .configs import SyncConfig


class _LazyTransport:
    """Ad-hoc transport opened on first use and closed once."""

    def __init__(self, relay: Relay, connect: TransportFactory) -> None:
        self._relay = relay
        self._connect = connect
        self._transport: Transport | None = None

    async def submit(self, event: Event, *, timeout: float) -> None:  # noqa: ASYNC109
        if self._transport is None:
            self._transport = await self._connect(self._relay)
        await self._transport.submit(event, timeout=timeout)

    async def close(self) -> None:
        if self._transport is not None:
            await self._transport.close()
            self._transport = None


class Executor(BaseComponent[SyncConfig]):
    """Publishes events to a target relay with a per-event fallback.

    Args:
        shared: Pre-connected transport tried first for every event.
        connect: Factory opening an ad-hoc transport for the target
            (defaults to
            [NostrTransport.ad_hoc()][syncstr.utils.protocol.NostrTransport.ad_hoc]).
        config: Publish settings (defaults to ``SyncConfig()``).
    """

    COMPONENT_NAME: ClassVar[ComponentName] = ComponentName.EXECUTOR
    CONFIG_CLASS: ClassVar[type[SyncConfig]] = SyncConfig

    def __init__(
        self,
        shared: Transport,
        connect: TransportFactory | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        super().__init__(config=config)
        self._shared = shared
        self._connect: TransportFactory = connect or NostrTransport.ad_hoc

    async def sync(self, events: Iterable[Event], target: Relay | str) -> SyncOutcome:
        """Publish *events* to *target*, strictly in order.

        Args:
            events: Events to replay, usually a profile selection.
            target: Relay to write to.

        Returns:
            One result per event; ``total`` equals the number of events.

        Raises:
            NoEventsError: If *events* is empty.
            ValueError: If *target* is not a valid relay URL.
        """
        batch = tuple(events)
        if not batch:
            raise NoEventsError("No events selected to sync")
        relay = target if isinstance(target, Relay) else Relay(target)
        timeout = self._config.timeout

        self._logger.info("sync_started", target=relay.url, events=len(batch), timeout_s=timeout)

        target_transport = _LazyTransport(relay, self._connect)
        results: list[SyncResult] = []
        try:
            for event in batch:
                results.append(await self._publish(event, target_transport, timeout))
        finally:
            await target_transport.close()

        outcome = SyncOutcome.from_results(results)
        self._logger.info(
            "sync_completed",
            target=relay.url,
            status=outcome.status,
            succeeded=outcome.success_count,
            failed=outcome.error_count,
            total=outcome.total,
        )
        return outcome

    async def _publish(
        self,
        event: Event,
        target_transport: _LazyTransport,
        timeout: float,  # noqa: ASYNC109
    ) -> SyncResult:
        strategies: list[Strategy[None]] = [
            Strategy("shared", partial(self._shared.submit, event, timeout=timeout)),
            Strategy("ad_hoc", partial(target_transport.submit, event, timeout=timeout)),
        ]
        attempts = await run_strategies(strategies)
        final = attempts[-1]

        if final.ok:
            self._logger.debug(
                "sync_event_published", id=event.short_id, kind=event.kind, via=final.strategy
            )
            return SyncResult(event, succeeded=True, via=final.strategy)

        self._logger.warning(
            "sync_event_failed", id=event.short_id, kind=event.kind, error=str(final.error)
        )
        return SyncResult(event, succeeded=False, error=final.error)
