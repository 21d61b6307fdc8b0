"""Backup mode: a restored snapshot standing in for live data.

[BackupModeController][syncstr.services.mode.BackupModeController] is a two
state machine:

```text
          enter_restored(events)
   LIVE  ------------------------>  RESTORED
         <------------------------
              exit_restored()
```

While RESTORED, [view()][syncstr.services.mode.BackupModeController.view]
returns the restored profile labelled ``"Uploaded Backup"`` and ignores the
live profile it is given; in LIVE it passes the live profile through. The
state itself is an immutable
[BackupModeState][syncstr.services.mode.BackupModeState] replaced on every
transition.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from syncstr.core.logger import Logger
from syncstr.models.constants import RESTORED_SOURCE_LABEL, ComponentName
from syncstr.models.event import Event
from syncstr.models.profile import ProfileData


class BackupMode(StrEnum):
    LIVE = "live"
    RESTORED = "restored"


@dataclass(frozen=True, slots=True)
class BackupModeState:
    """Current mode plus the restored data, if any.

    Attributes:
        mode: ``LIVE`` or ``RESTORED``.
        profile: Restored profile (``None`` while LIVE).
        events: Events the profile was rebuilt from, as uploaded.
        source: ``"Uploaded Backup"`` while RESTORED, else empty.
        pubkey: Owner of the restored events, when known.
    """

    mode: BackupMode = BackupMode.LIVE
    profile: ProfileData | None = None
    events: tuple[Event, ...] = field(default=(), repr=False)
    source: str = ""
    pubkey: str | None = None

    @property
    def restored(self) -> bool:
        return self.mode is BackupMode.RESTORED


@dataclass(frozen=True, slots=True)
class ProfileView:
    """What the caller should display and act on.

    Attributes:
        profile: Active profile, or ``None`` if nothing is loaded.
        source: Relay URL or the restored source label.
        restored: Whether *profile* comes from a snapshot.
    """

    profile: ProfileData | None
    source: str
    restored: bool = False


class BackupModeController:
    """Switches the active profile between live data and a restored snapshot."""

    def __init__(self) -> None:
        self._state = BackupModeState()
        self._logger = Logger(ComponentName.MODE)

    @property
    def state(self) -> BackupModeState:
        return self._state

    @property
    def restored(self) -> bool:
        return self._state.restored

    def enter_restored(
        self, events: Iterable[Event], *, pubkey: str | None = None
    ) -> BackupModeState:
        """Activate restored data rebuilt from *events*, owned by *pubkey*.

        Calling this while already RESTORED replaces the restored data.
        """
        batch = tuple(events)
        self._state = BackupModeState(
            mode=BackupMode.RESTORED,
            profile=ProfileData.from_events(batch),
            events=batch,
            source=RESTORED_SOURCE_LABEL,
            pubkey=pubkey,
        )
        self._logger.info(
            "backup_mode_entered", events=len(batch), slots=len(self._state.profile or ())
        )
        return self._state

    def exit_restored(self) -> BackupModeState:
        """Discard the restored data and return to LIVE."""
        was_restored = self._state.restored
        self._state = BackupModeState()
        if was_restored:
            self._logger.info("backup_mode_exited")
        return self._state

    def view(self, live_profile: ProfileData | None, live_source: str) -> ProfileView:
        """Pick the profile to present.

        While RESTORED the live arguments are ignored.
        """
        if self._state.restored:
            return ProfileView(self._state.profile, self._state.source, restored=True)
        return ProfileView(live_profile, live_source)
