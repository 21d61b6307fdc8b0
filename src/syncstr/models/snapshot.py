"""
Versioned offline snapshot of a profile.

A [Snapshot][syncstr.models.snapshot.Snapshot] is the in-memory form of a
SyncStr backup file. The JSON field names produced by
[to_dict()][syncstr.models.snapshot.Snapshot.to_dict] are the ones the
original SyncStr web client writes (``npub``, ``pubkey``,
``metadata.eventCounts`` ...), so files move freely between the two.

Parsing and validating untrusted snapshot JSON is the job of
[BackupCodec][syncstr.services.backup.BackupCodec]; this module only
guarantees that a constructed snapshot is internally consistent.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ._validation import (
    freeze_mapping,
    validate_instance,
    validate_str_not_empty,
    validate_timestamp,
)
from .event import Event


@dataclass(frozen=True, slots=True)
class SnapshotMetadata:
    """Provenance block of a snapshot.

    Attributes:
        event_counts: Number of events per kind.
        total_events: Number of events in the snapshot.
        created_at: ISO 8601 creation time.
    """

    event_counts: Mapping[int, int]
    total_events: int
    created_at: str

    def __post_init__(self) -> None:
        validate_timestamp(self.total_events, "total_events")
        validate_str_not_empty(self.created_at, "created_at")
        object.__setattr__(self, "event_counts", freeze_mapping(self.event_counts))

    @classmethod
    def for_events(cls, events: Iterable[Event], created_at: str) -> SnapshotMetadata:
        """Tally *events* by kind."""
        counts = Counter(event.kind for event in events)
        return cls(event_counts=dict(counts), total_events=sum(counts.values()), created_at=created_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            # JSON object keys are strings
            "eventCounts": {str(kind): count for kind, count in self.event_counts.items()},
            "totalEvents": self.total_events,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Profile events plus the identity and time they were captured.

    Attributes:
        version: Snapshot format version (``"1.x.y"``).
        timestamp: Creation time in epoch milliseconds.
        npub: Bech32-encoded public identity.
        pubkey: Hex public identity.
        events: The captured events.
        metadata: Counts and ISO creation time.

    Raises:
        ValueError: If ``metadata.total_events`` does not match the number
            of events.
    """

    version: str
    timestamp: int
    npub: str
    pubkey: str
    events: tuple[Event, ...]
    metadata: SnapshotMetadata = field(repr=False)

    def __post_init__(self) -> None:
        validate_str_not_empty(self.version, "version")
        validate_timestamp(self.timestamp, "timestamp")
        validate_str_not_empty(self.npub, "npub")
        validate_str_not_empty(self.pubkey, "pubkey")
        events = tuple(self.events)
        for index, event in enumerate(events):
            validate_instance(event, Event, f"events[{index}]")
        validate_instance(self.metadata, SnapshotMetadata, "metadata")
        if self.metadata.total_events != len(events):
            raise ValueError(
                f"metadata.total_events is {self.metadata.total_events} "
                f"but the snapshot holds {len(events)} events"
            )
        object.__setattr__(self, "events", events)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object written to a backup file."""
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "npub": self.npub,
            "pubkey": self.pubkey,
            "events": [event.to_dict() for event in self.events],
            "metadata": self.metadata.to_dict(),
        }
