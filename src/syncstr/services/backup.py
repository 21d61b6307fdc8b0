"""Snapshot export and import.

[BackupCodec][syncstr.services.backup.BackupCodec] turns a
[ProfileData][syncstr.models.profile.ProfileData] into a versioned
[Snapshot][syncstr.models.snapshot.Snapshot] and back. Export is pure; import
validates untrusted JSON and fails on the first problem, so a snapshot is
either restored whole or not at all.

Import checks, in order:

1. the payload decodes as UTF-8 and parses as JSON;
2. the top-level value is an object;
3. ``version``, ``timestamp``, ``npub``, ``pubkey`` and ``events`` are present;
4. ``version`` is a string in the ``1.x`` series;
5. ``events`` is an array;
6. every event is an object with ``id``, ``pubkey``, numeric ``kind``,
   ``created_at`` and ``sig``;
7. ``pubkey`` is a valid public key (hex or ``npub``).

Reading and writing files is left to the caller.

Examples:
    ```python
    codec = BackupCodec()
    snapshot = codec.export_snapshot(profile, "npub1...")
    Path(codec.snapshot_filename(snapshot)).write_text(codec.dumps(snapshot))

    restored = codec.import_snapshot(Path("backup.json").read_bytes())
    ```
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

from syncstr.core.exceptions import ValidationError
from syncstr.core.logger import Logger
from syncstr.models.constants import (
    SNAPSHOT_FILENAME_PREFIX,
    SNAPSHOT_MAJOR_VERSION,
    SNAPSHOT_VERSION,
    ComponentName,
)
from syncstr.models.event import Event
from syncstr.models.profile import ProfileData
from syncstr.models.snapshot import Snapshot, SnapshotMetadata
from syncstr.utils.keys import encode_identity, parse_identity


REQUIRED_FIELDS: tuple[str, ...] = ("version", "timestamp", "npub", "pubkey", "events")
REQUIRED_EVENT_FIELDS: tuple[str, ...] = ("id", "pubkey", "created_at", "sig")

#: Characters of the npub kept in snapshot file names.
NPUB_PREFIX_LENGTH = 12

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BackupCodec:
    """Encodes profiles as snapshot files and decodes them back.

    The codec is stateless; one instance can be shared freely.
    """

    def __init__(self) -> None:
        self._logger = Logger(ComponentName.BACKUP)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_snapshot(
        self,
        profile: ProfileData,
        identity: str,
        *,
        now: datetime | None = None,
    ) -> Snapshot:
        """Capture *profile* as a snapshot of *identity*.

        An empty profile produces a valid snapshot with no events.

        Args:
            profile: The profile to capture.
            identity: Hex public key or ``npub`` of the profile owner.
            now: Capture time (defaults to the current UTC time).

        Raises:
            ValueError: If *identity* is not a valid public key.
        """
        pubkey = parse_identity(identity)
        moment = now if now is not None else datetime.now(UTC)
        events = profile.events()

        snapshot = Snapshot(
            version=SNAPSHOT_VERSION,
            timestamp=(moment - _EPOCH) // timedelta(milliseconds=1),
            npub=encode_identity(pubkey),
            pubkey=pubkey,
            events=events,
            metadata=SnapshotMetadata.for_events(events, created_at=_iso_utc(moment)),
        )
        self._logger.info(
            "snapshot_exported", pubkey=pubkey, events=len(events), version=snapshot.version
        )
        return snapshot

    def dumps(self, snapshot: Snapshot) -> str:
        """Serialize *snapshot* as indented JSON text."""
        return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

    def snapshot_filename(self, snapshot: Snapshot) -> str:
        """Suggested file name: ``syncstr-backup-<npub prefix>-<YYYY-MM-DD>.json``."""
        day = (_EPOCH + timedelta(milliseconds=snapshot.timestamp)).date().isoformat()
        return f"{SNAPSHOT_FILENAME_PREFIX}-{snapshot.npub[:NPUB_PREFIX_LENGTH]}-{day}.json"

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def parse_snapshot(self, raw: bytes | str) -> Snapshot:
        """Validate and decode a snapshot file's contents.

        Raises:
            ValidationError: On the first failed check, with a message
                naming the problem.
        """
        data = self._decode(raw)

        if not isinstance(data, dict):
            raise ValidationError("Invalid backup file: not a valid JSON object")
        if any(_is_missing(data.get(name)) for name in REQUIRED_FIELDS):
            raise ValidationError("Invalid backup file: missing required fields")

        version = data["version"]
        if not isinstance(version, str) or not version.startswith(f"{SNAPSHOT_MAJOR_VERSION}."):
            raise ValidationError("Backup version not supported. Please update SyncStr.")

        if not isinstance(data["events"], list):
            raise ValidationError("Invalid backup file: events must be an array")
        events = tuple(self._parse_event(item) for item in data["events"])

        try:
            pubkey = parse_identity(data["pubkey"])
        except ValueError as e:
            raise ValidationError("Invalid backup file: pubkey is not a valid public key") from e

        timestamp = data["timestamp"]
        if isinstance(timestamp, float) and timestamp.is_integer():
            timestamp = int(timestamp)

        try:
            snapshot = Snapshot(
                version=version,
                timestamp=timestamp,
                npub=data["npub"],
                pubkey=pubkey,
                events=events,
                metadata=self._parse_metadata(data.get("metadata"), events, timestamp),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid backup file: {e}") from e

        self._logger.info(
            "snapshot_imported",
            npub=snapshot.npub,
            events=len(snapshot.events),
            created=snapshot.metadata.created_at,
        )
        return snapshot

    def import_snapshot(self, raw: bytes | str) -> ProfileData:
        """Validate a snapshot and rebuild its profile.

        Raises:
            ValidationError: If the snapshot is malformed or unsupported.
        """
        return ProfileData.from_events(self.parse_snapshot(raw).events)

    @staticmethod
    def _decode(raw: bytes | str) -> Any:
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            return json.loads(text)
        except UnicodeDecodeError as e:
            raise ValidationError("Invalid backup file: not valid UTF-8 text") from e
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid backup file: not valid JSON ({e.msg})") from e

    @staticmethod
    def _parse_event(item: Any) -> Event:
        if not isinstance(item, dict):
            raise ValidationError("Invalid backup file: events are malformed")
        kind = item.get("kind")
        if (
            any(_is_missing(item.get(name)) for name in REQUIRED_EVENT_FIELDS)
            or isinstance(kind, bool)
            or not isinstance(kind, int)
        ):
            raise ValidationError("Invalid backup file: events are malformed")
        try:
            return Event.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError("Invalid backup file: events are malformed") from e

    def _parse_metadata(
        self, raw: Any, events: tuple[Event, ...], timestamp: Any
    ) -> SnapshotMetadata:
        created_at = raw.get("createdAt") if isinstance(raw, dict) else None
        if not isinstance(created_at, str) or not created_at:
            if not isinstance(timestamp, int) or isinstance(timestamp, bool):
                raise ValidationError("Invalid backup file: timestamp must be a number")
            try:
                created_at = _iso_utc(_EPOCH + timedelta(milliseconds=timestamp))
            except OverflowError as e:
                raise ValidationError("Invalid backup file: timestamp out of range") from e

        if isinstance(raw, dict) and raw.get("totalEvents") not in (None, len(events)):
            self._logger.warning(
                "snapshot_metadata_mismatch",
                declared=raw.get("totalEvents"),
                actual=len(events),
            )
        return SnapshotMetadata.for_events(events, created_at=created_at)
