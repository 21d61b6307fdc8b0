r"""SyncStr -- Nostr profile synchronization engine.

Copies one identity's profile events (metadata, contacts and the NIP-51
lists) from a source relay to a target relay, or to and from an offline
snapshot file.

Imports flow strictly downward:

```text
              services         Aggregator, Executor, BackupCodec, session
             /        \
          core        utils    Exceptions, logging, config | keys, transport
             \        /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Events, profiles, snapshots, sync outcomes, relays.
    core: Exceptions, structured logging, YAML loading, component base.
    utils: Nostr identity parsing and the ``nostr_sdk`` transport.
    services: The engine components and the session orchestrator.

Note:
    For lightweight usage, import directly from subpackages::

        from syncstr.models import ProfileData
        from syncstr.services import Aggregator

    Top-level imports (``from syncstr import Aggregator``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("syncstr")

__all__ = [
    "Aggregator",
    "BackupCodec",
    "BackupModeController",
    "BaseComponent",
    "Event",
    "Executor",
    "Logger",
    "ProfileData",
    "ProfileSync",
    "Relay",
    "Snapshot",
    "SyncOutcome",
    "SyncstrConfig",
    "SyncstrError",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseComponent": ("syncstr.core", "BaseComponent"),
    "Logger": ("syncstr.core", "Logger"),
    "SyncstrError": ("syncstr.core", "SyncstrError"),
    "Event": ("syncstr.models", "Event"),
    "ProfileData": ("syncstr.models", "ProfileData"),
    "Relay": ("syncstr.models", "Relay"),
    "Snapshot": ("syncstr.models", "Snapshot"),
    "SyncOutcome": ("syncstr.models", "SyncOutcome"),
    "Aggregator": ("syncstr.services", "Aggregator"),
    "BackupCodec": ("syncstr.services", "BackupCodec"),
    "BackupModeController": ("syncstr.services", "BackupModeController"),
    "Executor": ("syncstr.services", "Executor"),
    "ProfileSync": ("syncstr.services", "ProfileSync"),
    "SyncstrConfig": ("syncstr.services", "SyncstrConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'syncstr' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
