"""Profile synchronization session.

[ProfileSync][syncstr.services.session.ProfileSync] wires the engine
components together for one identity and keeps what the user is working on
in an immutable [SessionState][syncstr.services.session.SessionState]. Every
operation that changes it builds a new state instead of mutating the old
one, so a reader holding a state never sees it half-updated. A fetch that
completes after a newer one simply replaces the state again: the last
operation to complete wins.

Typical flow:

1. [load_source()][syncstr.services.session.ProfileSync.load_source] reads the
   profile from a source relay;
2. [select()][syncstr.services.session.ProfileSync.select] or
   [select_all()][syncstr.services.session.ProfileSync.select_all] picks
   events;
3. [sync_to()][syncstr.services.session.ProfileSync.sync_to] replays them to a
   target, or [export()][syncstr.services.session.ProfileSync.export]
   captures a snapshot.

[restore()][syncstr.services.session.ProfileSync.restore] swaps a snapshot in
for the live profile until
[exit_restore()][syncstr.services.session.ProfileSync.exit_restore].

Examples:
    ```python
    session = ProfileSync(aggregator, executor, identity="npub1...")
    await session.load_source("wss://relay.damus.io")
    session.select_all()
    outcome = await session.sync_to("wss://nos.lol")
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from syncstr.core.exceptions import NoEventsError
from syncstr.core.logger import Logger
from syncstr.models.constants import ComponentName
from syncstr.models.event import Event
from syncstr.models.outcome import SyncOutcome
from syncstr.models.profile import ProfileData
from syncstr.models.relay import Relay
from syncstr.models.snapshot import Snapshot
from syncstr.utils.keys import parse_identity

from .aggregator import Aggregator
from .backup import BackupCodec
from .executor import Executor
from .mode import BackupModeController, ProfileView


@dataclass(frozen=True, slots=True)
class SessionState:
    """Snapshot of a session at one point in time.

    Attributes:
        identity: Hex public key the session works for.
        source: Last live source relay, if any.
        profile: Live profile read from *source*.
        selected: IDs of the selected events.
        last_outcome: Result of the most recent sync.
    """

    identity: str
    source: Relay | None = None
    profile: ProfileData | None = None
    selected: frozenset[str] = frozenset()
    last_outcome: SyncOutcome | None = None


class ProfileSync:
    """Coordinates fetch, selection, sync, backup and restore for one identity.

    Args:
        aggregator: Reads profiles from relays.
        executor: Publishes events to relays.
        identity: Hex public key or ``npub``.
        codec: Snapshot codec (a new one by default).
        mode: Backup mode controller (a new one by default).

    Raises:
        ValueError: If *identity* is not a valid public key.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        executor: Executor,
        *,
        identity: str,
        codec: BackupCodec | None = None,
        mode: BackupModeController | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._executor = executor
        self._codec = codec or BackupCodec()
        self._mode = mode or BackupModeController()
        self._state = SessionState(identity=parse_identity(identity))
        self._logger = Logger(ComponentName.SESSION)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def codec(self) -> BackupCodec:
        return self._codec

    def view(self) -> ProfileView:
        """The profile currently in effect: restored if a snapshot is active, else live."""
        source = self._state.source.url if self._state.source is not None else ""
        return self._mode.view(self._state.profile, source)

    # -------------------------------------------------------------------------
    # Live source
    # -------------------------------------------------------------------------

    async def load_source(self, source: Relay | str) -> ProfileData:
        """Fetch the profile from *source* and make it the live profile.

        The selection is cleared whenever the source changes.

        Raises:
            ValueError: If *source* is not a valid ``wss://`` relay.
            FetchError: If the source cannot be read.
        """
        relay = source if isinstance(source, Relay) else Relay(source)
        profile = await self._aggregator.fetch(self._state.identity, relay)
        self._state = replace(self._state, source=relay, profile=profile, selected=frozenset())
        return profile

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select(self, ids: Iterable[str]) -> tuple[Event, ...]:
        """Replace the selection with the events of the active profile whose ID is in *ids*.

        Unknown IDs are ignored.
        """
        profile = self.view().profile
        events = profile.select(ids) if profile is not None else ()
        self._state = replace(self._state, selected=frozenset(event.id for event in events))
        return events

    def select_all(self) -> tuple[Event, ...]:
        profile = self.view().profile
        events = profile.events() if profile is not None else ()
        return self.select(event.id for event in events)

    def clear_selection(self) -> None:
        self._state = replace(self._state, selected=frozenset())

    def selected_events(self) -> tuple[Event, ...]:
        """Selected events of the active profile, in slot order."""
        profile = self.view().profile
        return profile.select(self._state.selected) if profile is not None else ()

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    async def sync_to(self, target: Relay | str) -> SyncOutcome:
        """Publish the selected events to *target*.

        Raises:
            NoEventsError: If nothing is selected.
            ValueError: If *target* is not a valid relay URL.
        """
        outcome = await self._executor.sync(self.selected_events(), target)
        self._state = replace(self._state, last_outcome=outcome)
        return outcome

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export(self, *, now: datetime | None = None) -> Snapshot:
        """Capture the active profile as a snapshot.

        While a snapshot is restored, the export keeps that snapshot's
        identity rather than the session's.

        Raises:
            NoEventsError: If there is no profile data to back up.
        """
        profile = self.view().profile
        if not profile:
            raise NoEventsError("No profile data to backup")
        owner = self._mode.state.pubkey if self._mode.restored else None
        return self._codec.export_snapshot(profile, owner or self._state.identity, now=now)

    def restore(self, raw: bytes | str) -> ProfileView:
        """Validate a snapshot and make it the active profile.

        Nothing changes if the snapshot is rejected.

        Raises:
            ValidationError: If the snapshot is malformed or unsupported.
        """
        snapshot = self._codec.parse_snapshot(raw)
        if snapshot.pubkey != self._state.identity:
            self._logger.warning(
                "snapshot_identity_mismatch", snapshot=snapshot.pubkey, session=self._state.identity
            )
        self._mode.enter_restored(snapshot.events, pubkey=snapshot.pubkey)
        self._state = replace(self._state, selected=frozenset())
        return self.view()

    def exit_restore(self) -> ProfileView:
        """Drop the restored snapshot and go back to the live profile."""
        self._mode.exit_restored()
        self._state = replace(self._state, selected=frozenset())
        return self.view()
