"""Shared constants for the models layer.

Defines the event kinds SyncStr understands, the profile slots they map to,
and the snapshot format version. The kind-to-slot table
[KIND_SLOTS][syncstr.models.constants.KIND_SLOTS] is the single contract
shared by the aggregator, the backup codec, and the backup mode controller,
so the three can never disagree about which slot an event lands in.

See Also:
    [syncstr.models.profile][]: Folds events into slots using ``KIND_SLOTS``.
    [syncstr.services.backup][]: Writes and validates ``SNAPSHOT_VERSION``.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import Final


class EventKind(IntEnum):
    """Nostr event kinds that make up a user's profile.

    Attributes:
        SET_METADATA: Kind 0 -- profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note, only used to probe relays.
        CONTACTS: Kind 3 -- follow list (NIP-02).
        MUTE_LIST: Kind 10000 -- muted pubkeys, hashtags, words (NIP-51).
        PIN_LIST: Kind 10001 -- pinned notes (NIP-51).
        RELAY_LIST: Kind 10002 -- read/write relay list (NIP-65).
        BOOKMARKS: Kind 10003 -- bookmarks (NIP-51).
        COMMUNITIES: Kind 10004 -- followed communities (NIP-51).
        SEARCH_RELAYS: Kind 10007 -- preferred search relays (NIP-51).
        INTERESTS: Kind 10015 -- interest hashtags (NIP-51).
        EMOJIS: Kind 10030 -- custom emoji list (NIP-51).
        DM_RELAYS: Kind 10050 -- relays for direct messages (NIP-17).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1
    CONTACTS = 3
    MUTE_LIST = 10_000
    PIN_LIST = 10_001
    RELAY_LIST = 10_002
    BOOKMARKS = 10_003
    COMMUNITIES = 10_004
    SEARCH_RELAYS = 10_007
    INTERESTS = 10_015
    EMOJIS = 10_030
    DM_RELAYS = 10_050


class ProfileSlot(StrEnum):
    """Named slot of a [ProfileData][syncstr.models.profile.ProfileData].

    The string values match the keys used by the original SyncStr web
    client, so they can be shown to users or written to JSON unchanged.
    """

    METADATA = "metadata"
    CONTACTS = "contacts"
    MUTE_LIST = "muteList"
    PINNED_NOTES = "pinnedNotes"
    RELAY_LIST = "relayList"
    BOOKMARKS = "bookmarks"
    COMMUNITIES = "communities"
    INTERESTS = "interests"
    EMOJI_LIST = "emojiList"
    SEARCH_RELAYS = "searchRelays"
    DM_RELAYS = "dmRelays"


class ComponentName(StrEnum):
    """Logger names for the engine components and the CLI."""

    AGGREGATOR = "aggregator"
    EXECUTOR = "executor"
    BACKUP = "backup"
    MODE = "mode"
    SESSION = "session"
    CLI = "cli"


# Insertion order is the display and export order.
KIND_SLOTS: Final = MappingProxyType(
    {
        EventKind.SET_METADATA: ProfileSlot.METADATA,
        EventKind.CONTACTS: ProfileSlot.CONTACTS,
        EventKind.MUTE_LIST: ProfileSlot.MUTE_LIST,
        EventKind.PIN_LIST: ProfileSlot.PINNED_NOTES,
        EventKind.RELAY_LIST: ProfileSlot.RELAY_LIST,
        EventKind.BOOKMARKS: ProfileSlot.BOOKMARKS,
        EventKind.COMMUNITIES: ProfileSlot.COMMUNITIES,
        EventKind.SEARCH_RELAYS: ProfileSlot.SEARCH_RELAYS,
        EventKind.INTERESTS: ProfileSlot.INTERESTS,
        EventKind.EMOJIS: ProfileSlot.EMOJI_LIST,
        EventKind.DM_RELAYS: ProfileSlot.DM_RELAYS,
    }
)

SLOT_KINDS: Final = MappingProxyType({slot: kind for kind, slot in KIND_SLOTS.items()})

PROFILE_KINDS: Final[tuple[int, ...]] = tuple(int(kind) for kind in KIND_SLOTS)

EVENT_KIND_MAX: Final = 65_535

SNAPSHOT_VERSION: Final = "1.0.0"
SNAPSHOT_MAJOR_VERSION: Final = "1"
SNAPSHOT_FILENAME_PREFIX: Final = "syncstr-backup"

RESTORED_SOURCE_LABEL: Final = "Uploaded Backup"

# Broadcaster relay that fans events out to every online relay it knows.
BLASTR_RELAY: Final = "wss://sendit.nosflare.com"
