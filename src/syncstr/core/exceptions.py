"""SyncStr exception hierarchy.

Provides typed exceptions for every failure the engine reports, so callers
can tell a recoverable transport hiccup from an unreadable source or a
corrupt snapshot, and so ``CancelledError`` is never caught by accident.

Exception hierarchy:

```text
SyncstrError (base -- never raised directly)
├── ConfigurationError   -- config validation, missing key env var, bad YAML
├── TransportError       -- one query or submission attempt failed
├── FetchError           -- the source relay could not be read
├── NoEventsError        -- sync or backup requested with nothing selected
└── ValidationError      -- malformed or unsupported snapshot file
```

A partial sync is not an exception: it is reported as
[SyncStatus.PARTIAL][syncstr.models.outcome.SyncStatus] on the outcome.

See Also:
    [run_strategies()][syncstr.services.common.fallback.run_strategies]:
        Recovers [TransportError][syncstr.core.exceptions.TransportError]
        by trying the next publishing or query path.
    [BackupCodec][syncstr.services.backup.BackupCodec]: Raises
        [ValidationError][syncstr.core.exceptions.ValidationError].
"""

from __future__ import annotations


class SyncstrError(Exception):
    """Base exception for all SyncStr errors.

    Never raised directly -- always use a specific subclass.
    """


class ConfigurationError(SyncstrError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


class TransportError(SyncstrError):
    """A single relay query or event submission failed.

    Raised by [NostrTransport][syncstr.utils.protocol.NostrTransport] for
    connection failures, relay rejections and elapsed deadlines. Recovered
    locally by trying the alternate transport.
    """


class FetchError(SyncstrError):
    """The source relay could not be read through any transport.

    Attributes:
        cause: The error of the last transport attempt.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NoEventsError(SyncstrError):
    """A sync or backup was requested with no events."""


class ValidationError(SyncstrError):
    """A snapshot file is malformed or uses an unsupported version.

    The message is specific and meant to be shown to the user verbatim.
    """
