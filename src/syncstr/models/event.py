"""
Immutable Nostr event record.

SyncStr never builds or re-signs events: it only reads them from one place
and writes them, byte-for-byte equivalent, somewhere else. The
[Event][syncstr.models.event.Event] model therefore keeps the seven NIP-01
fields exactly as received and converts to and from the two shapes the
engine meets at its edges:

* the JSON object used on the wire and inside snapshot files
  ([from_dict()][syncstr.models.event.Event.from_dict] /
  [to_dict()][syncstr.models.event.Event.to_dict]);
* ``nostr_sdk.Event``, used by the transport
  ([from_nostr()][syncstr.models.event.Event.from_nostr] /
  [to_nostr()][syncstr.models.event.Event.to_nostr]).

See Also:
    [syncstr.models.profile][]: Groups events into profile slots.
    [syncstr.utils.protocol][]: Transport that produces and consumes events.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from nostr_sdk import Event as NostrEvent

from ._validation import (
    freeze_tags,
    validate_kind,
    validate_str_no_null,
    validate_str_not_empty,
    validate_timestamp,
)


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable signed Nostr event.

    Identity (``id``, ``pubkey``) and signature (``sig``) are treated as
    opaque strings: they are checked for presence and type only. Signature
    verification is left to the relay and to ``nostr_sdk``.

    Args:
        id: Event ID (hex SHA-256 of the serialized event).
        pubkey: Author public key (hex).
        kind: Event kind (0-65535).
        created_at: Unix timestamp in seconds.
        sig: Schnorr signature (hex).
        tags: Tag arrays; lists are converted to tuples on construction.
        content: Event content.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a required string is empty, the kind is out of
            range, or the timestamp is negative.

    Examples:
        ```python
        event = Event.from_dict(json.loads(raw))
        event.kind          # 3
        event.to_dict()     # same JSON object, tags as lists
        ```
    """

    id: str
    pubkey: str
    kind: int
    created_at: int
    sig: str = field(repr=False)
    tags: tuple[tuple[str, ...], ...] = field(default=(), repr=False)
    content: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_str_not_empty(self.pubkey, "pubkey")
        validate_kind(self.kind, "kind")
        validate_timestamp(self.created_at, "created_at")
        validate_str_not_empty(self.sig, "sig")
        validate_str_no_null(self.content, "content")
        object.__setattr__(self, "tags", freeze_tags(self.tags, "tags"))

    @property
    def short_id(self) -> str:
        """First eight characters of the event ID, for logs."""
        return self.id[:8]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an event from its NIP-01 JSON object.

        Missing ``tags`` and ``content`` default to empty values; every
        other field is required.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If a field has the wrong type.
            ValueError: If a field has an invalid value.
        """
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            kind=data["kind"],
            created_at=data["created_at"],
            sig=data["sig"],
            tags=data.get("tags", []),
            content=data.get("content", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON object for this event."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    @classmethod
    def from_nostr(cls, nostr_event: NostrEvent) -> Event:
        """Convert a ``nostr_sdk.Event`` received from a relay."""
        return cls.from_dict(json.loads(nostr_event.as_json()))

    def to_nostr(self) -> NostrEvent:
        """Convert to a ``nostr_sdk.Event`` for publishing.

        Note:
            ``nostr_sdk`` parses the ID and signature as hex, so this fails
            for events whose opaque fields are not real Nostr values.
        """
        return NostrEvent.from_json(json.dumps(self.to_dict()))
