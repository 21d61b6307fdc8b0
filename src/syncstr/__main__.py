"""CLI entry point for SyncStr.

Commands:

* ``check <relay>``: probe a relay and report whether it answers.
* ``fetch``: read a profile from ``--source`` (or ``--from-backup``) and list it.
* ``sync``: copy the selected events to ``--target`` (or ``--blastr``).
* ``backup``: write a snapshot of the profile found on ``--source``.
* ``restore <file>``: validate a snapshot and list it; with ``--target``,
  sync its events.

The identity comes from ``--pubkey`` or, when omitted, is derived from the
private key in the ``--keys-env`` environment variable (default
``PRIVATE_KEY``).

Exit codes: 0 success, 1 failure, 2 partial sync, 130 interrupted.

Examples:
    ```bash
    python -m syncstr check relay.damus.io
    python -m syncstr --pubkey npub1... fetch --source wss://relay.damus.io
    python -m syncstr --pubkey npub1... sync --source wss://relay.damus.io --blastr
    python -m syncstr --pubkey npub1... backup --source wss://nos.lol --output backups/
    python -m syncstr --pubkey npub1... restore backup.json --target wss://nos.lol
    ```
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from syncstr.core.exceptions import (
    ConfigurationError,
    FetchError,
    NoEventsError,
    SyncstrError,
    ValidationError,
)
from syncstr.core.logger import Logger, StructuredFormatter
from syncstr.core.yaml import load_yaml
from syncstr.models.constants import BLASTR_RELAY, ComponentName
from syncstr.models.describe import describe_event
from syncstr.models.outcome import SyncOutcome, SyncStatus
from syncstr.models.relay import Relay
from syncstr.services.aggregator import Aggregator
from syncstr.services.common.configs import SyncstrConfig
from syncstr.services.executor import Executor
from syncstr.services.mode import ProfileView
from syncstr.services.session import ProfileSync
from syncstr.utils.keys import ENV_PRIVATE_KEY, KeysConfig
from syncstr.utils.protocol import NostrTransport, probe_relay


DEFAULT_CONFIG = Path("config") / "syncstr.yaml"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130

logger = Logger(ComponentName.CLI)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="syncstr",
        description="Copy Nostr profile data between relays and backup files",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, else INFO)",
    )
    parser.add_argument("--pubkey", help="Identity as npub or hex public key")
    parser.add_argument(
        "--keys-env",
        default=ENV_PRIVATE_KEY,
        help=f"Env var holding a private key to derive the identity from (default: {ENV_PRIVATE_KEY})",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Check that a relay answers")
    check.add_argument("relay", help="Relay URL or bare domain")

    def add_source(sub: argparse.ArgumentParser) -> None:
        group = sub.add_mutually_exclusive_group(required=True)
        group.add_argument("--source", help="Relay to read the profile from")
        group.add_argument("--from-backup", type=Path, help="Snapshot file to use instead")

    def add_selection(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--kind", type=int, action="append", default=[], help="Only events of this kind"
        )
        sub.add_argument(
            "--event-id", action="append", default=[], help="Only the event with this ID"
        )

    def add_target(sub: argparse.ArgumentParser, *, required: bool) -> None:
        group = sub.add_mutually_exclusive_group(required=required)
        group.add_argument("--target", help="Relay to write the events to")
        group.add_argument(
            "--blastr", action="store_true", help=f"Write to the broadcaster {BLASTR_RELAY}"
        )

    fetch = commands.add_parser("fetch", help="Show the profile found on a relay")
    add_source(fetch)

    sync = commands.add_parser("sync", help="Copy profile events to a target relay")
    add_source(sync)
    add_selection(sync)
    add_target(sync, required=True)

    backup = commands.add_parser("backup", help="Save the profile as a snapshot file")
    backup.add_argument("--source", required=True, help="Relay to read the profile from")
    backup.add_argument(
        "--output", type=Path, default=Path("."), help="Output .json file, or directory to create it in (default: .)"
    )

    restore = commands.add_parser("restore", help="Load a snapshot, optionally syncing it")
    restore.add_argument("file", type=Path, help="Snapshot file")
    add_selection(restore)
    add_target(restore, required=False)

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on the root handler so that all
    log output -- from both ``Logger`` (with ``structured_kv`` extra) and
    plain ``logging.getLogger()`` calls in models/utils -- is unified as
    ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def load_config(path: Path) -> SyncstrConfig:
    """Load the configuration, falling back to defaults if the file does not exist.

    Raises:
        ConfigurationError: If the file is invalid.
    """
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return SyncstrConfig()
    data: dict[str, Any] = load_yaml(path)
    try:
        return SyncstrConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def resolve_identity(args: argparse.Namespace) -> str:
    """Return the identity from ``--pubkey`` or the private key env var.

    Raises:
        ConfigurationError: If neither yields a usable key.
    """
    if args.pubkey:
        return str(args.pubkey)
    try:
        return KeysConfig(keys_env=args.keys_env).identity
    except (PydanticValidationError, ValueError) as e:
        raise ConfigurationError(
            f"No identity: pass --pubkey or set {args.keys_env} ({e})"
        ) from e


def resolve_target(args: argparse.Namespace) -> str | None:
    return BLASTR_RELAY if args.blastr else args.target


def backup_path(output: Path, filename: str) -> Path:
    """Resolve ``--output``: an existing directory or a name without suffix is a directory.

    Missing directories are created.
    """
    if output.is_dir() or not output.suffix:
        output.mkdir(parents=True, exist_ok=True)
        return output / filename
    output.parent.mkdir(parents=True, exist_ok=True)
    return output


def _print_view(view: ProfileView) -> None:
    if not view.profile:
        print(f"No profile data found on {view.source}")
        return
    print(f"Profile data from {view.source} ({len(view.profile)} events)")
    for slot, event in view.profile.items():
        print(f"  {slot:<13} kind={event.kind:<6} {event.id}  {describe_event(event)}")


def _print_outcome(outcome: SyncOutcome) -> None:
    print(outcome.summary())
    for result in outcome.failed:
        print(f"  failed {result.event.id} kind={result.event.kind}: {result.error}")


def _outcome_exit_code(outcome: SyncOutcome) -> int:
    if outcome.status is SyncStatus.COMPLETE:
        return EXIT_OK
    if outcome.status is SyncStatus.PARTIAL:
        return EXIT_PARTIAL
    return EXIT_FAILURE


def _apply_selection(session: ProfileSync, args: argparse.Namespace) -> None:
    if not args.kind and not args.event_id:
        session.select_all()
        return
    profile = session.view().profile
    events = profile.events() if profile is not None else ()
    kinds = set(args.kind)
    ids = set(args.event_id)
    session.select(event.id for event in events if event.kind in kinds or event.id in ids)


async def _load(session: ProfileSync, args: argparse.Namespace) -> ProfileView:
    if args.from_backup is not None:
        return session.restore(args.from_backup.read_bytes())
    await session.load_source(args.source)
    return session.view()


async def _sync_selection(session: ProfileSync, args: argparse.Namespace, target: str) -> int:
    _apply_selection(session, args)
    outcome = await session.sync_to(target)
    _print_outcome(outcome)
    return _outcome_exit_code(outcome)


async def run_check(relay_url: str, config: SyncstrConfig) -> int:
    relay = Relay(relay_url)
    probe = await probe_relay(relay, timeout=min(config.transport.connect_timeout, 5.0))
    if probe.connected:
        print(f"Connected to {relay.url}")
        return EXIT_OK
    print(f"Cannot connect to {relay.url}: {probe.error}")
    return EXIT_FAILURE


async def run_command(args: argparse.Namespace, config: SyncstrConfig) -> int:
    """Run one command against a freshly connected shared transport."""
    if args.command == "check":
        return await run_check(args.relay, config)

    identity = resolve_identity(args)
    connect_timeout = config.transport.connect_timeout
    shared = await NostrTransport.shared(config.transport.relays(), timeout=connect_timeout)
    connect = partial(NostrTransport.ad_hoc, timeout=connect_timeout)

    async with shared:
        session = ProfileSync(
            Aggregator(shared, connect, config=config.fetch),
            Executor(shared, connect, config=config.sync),
            identity=identity,
        )

        if args.command == "fetch":
            _print_view(await _load(session, args))
            return EXIT_OK

        if args.command == "sync":
            _print_view(await _load(session, args))
            return await _sync_selection(session, args, resolve_target(args))

        if args.command == "backup":
            await session.load_source(args.source)
            snapshot = session.export()
            codec = session.codec
            path = backup_path(args.output, codec.snapshot_filename(snapshot))
            path.write_text(codec.dumps(snapshot), encoding="utf-8")
            print(f"Downloaded {len(snapshot.events)} events to {path}")
            return EXIT_OK

        # restore
        view = session.restore(args.file.read_bytes())
        _print_view(view)
        target = resolve_target(args)
        if target is None:
            return EXIT_OK
        return await _sync_selection(session, args, target)


async def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point: parse args, load config, and run the command."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        setup_logging(args.log_level or "INFO")
        logger.error("config_failed", error=str(e))
        return EXIT_FAILURE
    setup_logging(args.log_level or config.logging.level)

    try:
        return await run_command(args, config)
    except NoEventsError as e:
        print(str(e))
        return EXIT_FAILURE
    except (FetchError, ValidationError, ConfigurationError) as e:
        logger.error(f"{args.command}_failed", error=str(e))
        print(str(e))
        return EXIT_FAILURE
    except (SyncstrError, ValueError, OSError) as e:
        logger.error(f"{args.command}_failed", error=str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("interrupted")
        return EXIT_INTERRUPTED


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    cli()
