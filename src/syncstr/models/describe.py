"""Human-readable labels for profile events.

Used by the CLI to list a profile before the user picks what to sync or
back up. Each kind gets a fixed label and a short detail counted from the
event's tags, e.g. ``Contact List: 12 contacts``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from .constants import EventKind
from .event import Event


@dataclass(frozen=True, slots=True)
class EventDescription:
    """Label and tag summary of one event.

    Attributes:
        label: Kind name (``"Relay List"``), or ``"Kind <n>"`` if unknown.
        detail: Summary such as ``"3 relays"``; empty when there is none.
    """

    label: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.label}: {self.detail}" if self.detail else self.label


# kind -> (label, counted tag names, noun)
_KIND_DETAILS: Final = MappingProxyType(
    {
        EventKind.CONTACTS: ("Contact List", frozenset({"p"}), "contacts"),
        EventKind.MUTE_LIST: ("Mute List", frozenset({"p", "t", "word", "e"}), "muted items"),
        EventKind.PIN_LIST: ("Pinned Notes", frozenset({"e"}), "pinned notes"),
        EventKind.RELAY_LIST: ("Relay List", frozenset({"r"}), "relays"),
        EventKind.BOOKMARKS: ("Bookmarks", frozenset({"e", "a", "t", "r"}), "bookmarks"),
        EventKind.COMMUNITIES: ("Communities", frozenset({"a"}), "communities"),
        EventKind.SEARCH_RELAYS: ("Search Relays", frozenset({"relay"}), "search relays"),
        EventKind.INTERESTS: ("Interests", frozenset({"t", "a"}), "interests"),
        EventKind.EMOJIS: ("Emoji List", frozenset({"emoji", "a"}), "emojis/sets"),
        EventKind.DM_RELAYS: ("DM Relays", frozenset({"relay"}), "DM relays"),
    }
)

METADATA_LABEL: Final = "Profile Metadata"


def _describe_metadata(content: str) -> str:
    if not content:
        return ""
    try:
        metadata = json.loads(content)
    except json.JSONDecodeError:
        return "Invalid metadata"
    if not isinstance(metadata, dict):
        return "Invalid metadata"
    return str(metadata.get("name") or metadata.get("display_name") or "No name")


def describe_event(event: Event) -> EventDescription:
    """Return the label and tag summary of *event*."""
    if event.kind == EventKind.SET_METADATA:
        return EventDescription(METADATA_LABEL, _describe_metadata(event.content))

    details = _KIND_DETAILS.get(event.kind)  # type: ignore[call-overload]
    if details is None:
        return EventDescription(f"Kind {event.kind}")

    label, tag_names, noun = details
    count = sum(1 for tag in event.tags if tag and tag[0] in tag_names)
    return EventDescription(label, f"{count} {noun}")
