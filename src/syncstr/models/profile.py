"""
Profile data: the latest event of each profile kind for one identity.

[ProfileData][syncstr.models.profile.ProfileData] is rebuilt from scratch on
every fetch or restore through
[from_events()][syncstr.models.profile.ProfileData.from_events]; it is never
merged with a previous instance. Live fetches and restored snapshots both go
through the same fold, so downstream code cannot tell them apart.

See Also:
    [KIND_SLOTS][syncstr.models.constants.KIND_SLOTS]: The kind-to-slot table.
    [syncstr.services.aggregator][]: Produces profiles from relays.
    [syncstr.services.backup][]: Produces profiles from snapshot files.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from ._validation import freeze_mapping, validate_instance
from .constants import KIND_SLOTS, ProfileSlot
from .event import Event


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ProfileData(Mapping[ProfileSlot, Event]):
    """Read-only mapping from [ProfileSlot][syncstr.models.constants.ProfileSlot] to event.

    Only populated slots are present; iteration follows the order of
    [KIND_SLOTS][syncstr.models.constants.KIND_SLOTS].

    Raises:
        TypeError: If a value is not an [Event][syncstr.models.event.Event].
        ValueError: If a key is not a known slot or an event sits in a slot
            that does not match its kind.

    Examples:
        ```python
        profile = ProfileData.from_events([metadata_event, contacts_event])
        profile[ProfileSlot.CONTACTS]      # contacts_event
        ProfileSlot.MUTE_LIST in profile   # False
        len(profile)                       # 2
        ```
    """

    _slots: Mapping[ProfileSlot, Event] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for slot, event in self._slots.items():
            validate_instance(event, Event, f"slot {slot}")
            expected = KIND_SLOTS.get(event.kind)  # type: ignore[call-overload]
            if expected is None or expected != slot:
                raise ValueError(f"event of kind {event.kind} cannot occupy slot {slot!r}")
        ordered = {slot: self._slots[slot] for slot in KIND_SLOTS.values() if slot in self._slots}
        object.__setattr__(self, "_slots", freeze_mapping(ordered))

    def __getitem__(self, slot: ProfileSlot | str) -> Event:
        return self._slots[slot]  # type: ignore[index]

    def __iter__(self) -> Iterator[ProfileSlot]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __hash__(self) -> int:
        return hash(frozenset(self._slots.items()))

    def __repr__(self) -> str:
        return f"ProfileData({', '.join(str(slot) for slot in self._slots)})"

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> ProfileData:
        """Fold a batch of events into slots.

        Events whose kind has no slot are dropped. When several events of
        the same kind are present, the one with the greatest ``created_at``
        wins; on a tie the one processed last wins.
        """
        slots: dict[ProfileSlot, Event] = {}
        for event in events:
            slot = KIND_SLOTS.get(event.kind)  # type: ignore[call-overload]
            if slot is None:
                logger.debug("event_kind_ignored kind=%s id=%s", event.kind, event.short_id)
                continue
            current = slots.get(slot)
            if current is None or event.created_at >= current.created_at:
                slots[slot] = event
        return cls(slots)

    def events(self) -> tuple[Event, ...]:
        """All populated events in slot order."""
        return tuple(self._slots.values())

    def select(self, ids: Iterable[str]) -> tuple[Event, ...]:
        """Events whose ID is in *ids*, in slot order. Unknown IDs are ignored."""
        wanted = set(ids)
        return tuple(event for event in self._slots.values() if event.id in wanted)

    def event_counts(self) -> dict[int, int]:
        """Number of events per kind."""
        return dict(Counter(event.kind for event in self._slots.values()))
