"""The profile synchronization engine.

Services are the top layer, depending on [syncstr.core][syncstr.core],
[syncstr.utils][syncstr.utils] and [syncstr.models][syncstr.models].

```text
source relay --> Aggregator --> ProfileData --> Executor --> target relay
                                   |    ^
                          export   v    |  restore
                               BackupCodec (+ BackupModeController)
```

Attributes:
    Aggregator: Reads one identity's profile kinds from a source relay,
        shared transport first, then an ad-hoc one bound to the source.
    Executor: Publishes selected events to a target relay one by one with
        the same two-path fallback, accounting for partial failure.
    BackupCodec: Versioned snapshot export and validated import.
    BackupModeController: Lets a restored snapshot stand in for live data.
    ProfileSync: Session tying the components together for one identity.

Examples:
    ```python
    from syncstr.services import Aggregator, Executor, ProfileSync

    session = ProfileSync(Aggregator(shared), Executor(shared), identity=npub)
    await session.load_source("wss://relay.damus.io")
    ```
"""

from .aggregator import Aggregator, FetchConfig
from .backup import BackupCodec
from .common.configs import SyncstrConfig, TransportConfig
from .executor import Executor, SyncConfig
from .mode import BackupMode, BackupModeController, BackupModeState, ProfileView
from .session import ProfileSync, SessionState


__all__ = [
    "Aggregator",
    "BackupCodec",
    "BackupMode",
    "BackupModeController",
    "BackupModeState",
    "Executor",
    "FetchConfig",
    "ProfileSync",
    "ProfileView",
    "SessionState",
    "SyncConfig",
    "SyncstrConfig",
    "TransportConfig",
]
