"""Profile data aggregator.

Reads the profile kinds of one identity from a source relay and folds them
into [ProfileData][syncstr.models.profile.ProfileData].

The read goes through two strategies in order:

1. The **shared** transport, already connected to the default relays. It is
   cheap but may not route to the chosen source, so an error *or* an empty
   batch moves on.
2. An **ad-hoc** transport bound to exactly the source relay. Its answer is
   authoritative: an error raises
   [FetchError][syncstr.core.exceptions.FetchError], an empty batch yields
   an empty profile.

Nothing is cached and every ad-hoc transport is closed after its query.

See Also:
    [run_strategies][syncstr.services.common.fallback.run_strategies]: The
        ordered fallback runner.
    [Executor][syncstr.services.executor.Executor]: Writes the selected
        events to a target relay.

Examples:
    ```python
    shared = await NostrTransport.shared(config.transport.relays())
    aggregator = Aggregator(shared, config=config.fetch)

    profile = await aggregator.fetch("npub1...", "wss://relay.damus.io")
    for slot, event in profile.items():
        print(slot, event.id)
    ```
"""

from __future__ import annotations

from functools import partial
from typing import ClassVar

from syncstr.core.base import BaseComponent
from syncstr.core.exceptions import FetchError
from syncstr.models.constants import PROFILE_KINDS, ComponentName
from syncstr.models.event import Event
from syncstr.models.profile import ProfileData
from syncstr.models.relay import Relay
from syncstr.services.common.fallback import Strategy, run_strategies
from syncstr.utils.keys import parse_identity
from syncstr.utils.protocol import NostrTransport, QueryFilter, Transport, TransportFactory

from .configs import FetchConfig


class Aggregator(BaseComponent[FetchConfig]):
    """Fetches the latest profile events of an identity from a source relay.

    Args:
        shared: Pre-connected transport tried first.
        connect: Factory opening an ad-hoc transport for one relay
            (defaults to
            [NostrTransport.ad_hoc()][syncstr.utils.protocol.NostrTransport.ad_hoc]).
        config: Fetch settings (defaults to ``FetchConfig()``).
    """

    COMPONENT_NAME: ClassVar[ComponentName] = ComponentName.AGGREGATOR
    CONFIG_CLASS: ClassVar[type[FetchConfig]] = FetchConfig

    def __init__(
        self,
        shared: Transport,
        connect: TransportFactory | None = None,
        config: FetchConfig | None = None,
    ) -> None:
        super().__init__(config=config)
        self._shared = shared
        self._connect: TransportFactory = connect or NostrTransport.ad_hoc

    async def fetch(
        self,
        identity: str,
        source: Relay | str,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> ProfileData:
        """Fetch and fold the profile of *identity* as published on *source*.

        Args:
            identity: Hex public key or ``npub``.
            source: Relay to read from; must use ``wss://``.
            timeout: Deadline in seconds for each attempt (defaults to
                ``config.timeout``).

        Returns:
            The rebuilt profile. It is empty when the source has nothing.

        Raises:
            ValueError: If *identity* or *source* is invalid.
            FetchError: If the ad-hoc read of the source fails.
        """
        pubkey = parse_identity(identity)
        relay = source if isinstance(source, Relay) else Relay(source)
        if not relay.secure:
            raise ValueError(f"source relay must use wss://: {relay.url}")
        deadline = timeout if timeout is not None else self._config.timeout

        query_filter = QueryFilter(kinds=PROFILE_KINDS, authors=(pubkey,), limit=self._config.limit)
        self._logger.info("fetch_started", pubkey=pubkey, source=relay.url, timeout_s=deadline)

        strategies: list[Strategy[list[Event]]] = [
            Strategy("shared", partial(self._shared.query, query_filter, timeout=deadline)),
            Strategy("ad_hoc", partial(self._query_source, relay, query_filter, deadline)),
        ]
        attempts = await run_strategies(strategies, accept=bool)

        for attempt in attempts[:-1]:
            if attempt.ok:
                self._logger.info("fetch_fallback", strategy=attempt.strategy, reason="empty")
            else:
                self._logger.warning(
                    "fetch_strategy_failed", strategy=attempt.strategy, error=str(attempt.error)
                )
                self._logger.info("fetch_fallback", strategy=attempt.strategy, reason="error")

        final = attempts[-1]
        if not final.ok:
            self._logger.error(
                "fetch_failed", source=relay.url, strategy=final.strategy, error=str(final.error)
            )
            raise FetchError(
                f"Failed to fetch profile data from {relay.url}: {final.error}", cause=final.error
            )

        profile = ProfileData.from_events(final.value or [])
        self._logger.info(
            "fetch_completed",
            source=relay.url,
            strategy=final.strategy,
            received=len(final.value or []),
            slots=len(profile),
        )
        return profile

    async def _query_source(
        self,
        relay: Relay,
        query_filter: QueryFilter,
        timeout: float,  # noqa: ASYNC109
    ) -> list[Event]:
        transport = await self._connect(relay)
        try:
            return await transport.query(query_filter, timeout=timeout)
        finally:
            await transport.close()
