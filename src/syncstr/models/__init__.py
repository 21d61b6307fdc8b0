"""Frozen dataclasses for events, profiles, snapshots and sync outcomes.

The models layer is the foundation of the package. It performs no I/O and
depends on no other SyncStr package. Every model validates itself in
``__post_init__`` so invalid instances never escape the constructor.

Attributes:
    Event: Immutable signed Nostr event with JSON and ``nostr_sdk``
        conversions.
    ProfileData: Read-only mapping from profile slot to the latest event
        of the matching kind.
    Relay: Normalized ``ws``/``wss`` relay address.
    Snapshot: Versioned offline copy of a profile.
    SyncOutcome: Per-event results and counters of one sync.
    KIND_SLOTS: The kind-to-slot table shared by every component.

See Also:
    [syncstr.services][]: Components that produce and consume these models.
"""

from .constants import (
    BLASTR_RELAY,
    EVENT_KIND_MAX,
    KIND_SLOTS,
    PROFILE_KINDS,
    RESTORED_SOURCE_LABEL,
    SLOT_KINDS,
    SNAPSHOT_MAJOR_VERSION,
    SNAPSHOT_VERSION,
    ComponentName,
    EventKind,
    ProfileSlot,
)
from .describe import EventDescription, describe_event
from .event import Event
from .outcome import SyncOutcome, SyncResult, SyncStatus
from .profile import ProfileData
from .relay import Relay
from .snapshot import Snapshot, SnapshotMetadata


__all__ = [
    "BLASTR_RELAY",
    "EVENT_KIND_MAX",
    "KIND_SLOTS",
    "PROFILE_KINDS",
    "RESTORED_SOURCE_LABEL",
    "SLOT_KINDS",
    "SNAPSHOT_MAJOR_VERSION",
    "SNAPSHOT_VERSION",
    "ComponentName",
    "Event",
    "EventDescription",
    "EventKind",
    "ProfileData",
    "ProfileSlot",
    "Relay",
    "Snapshot",
    "SnapshotMetadata",
    "SyncOutcome",
    "SyncResult",
    "SyncStatus",
    "describe_event",
]
