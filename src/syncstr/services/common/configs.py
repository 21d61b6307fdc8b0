"""Shared configuration models for SyncStr.

[SyncstrConfig][syncstr.services.common.configs.SyncstrConfig] is the
top-level model for ``config/syncstr.yaml``. It embeds the transport
settings and the per-component sections, each with defaults so that a
partial YAML file only overrides what it names.

Examples:
    ```yaml
    transport:
      default_relays:
        - wss://relay.damus.io
      connect_timeout: 10.0
    fetch:
      timeout: 15.0
    sync:
      timeout: 15.0
    ```
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from syncstr.models.relay import Relay
from syncstr.services.aggregator.configs import FetchConfig
from syncstr.services.executor.configs import SyncConfig


DEFAULT_RELAYS: list[str] = [
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://nos.lol",
]


class TransportConfig(BaseModel):
    """Settings for building transports.

    Attributes:
        default_relays: Relays the shared transport connects to up front.
        connect_timeout: Seconds allowed to open a relay connection.
    """

    default_relays: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RELAYS),
        description="Relays pre-connected by the shared transport",
    )
    connect_timeout: float = Field(default=10.0, ge=1.0, le=120.0)

    @field_validator("default_relays")
    @classmethod
    def relays_valid(cls, v: list[str]) -> list[str]:
        invalid = []
        for url in v:
            try:
                Relay(url)
            except ValueError:
                invalid.append(url)
        if invalid:
            raise ValueError(f"invalid relay URLs: {', '.join(invalid)}")
        return v

    def relays(self) -> list[Relay]:
        """The default relays as [Relay][syncstr.models.relay.Relay] objects."""
        return [Relay(url) for url in self.default_relays]


class LoggingConfig(BaseModel):
    """CLI log level, used when ``--log-level`` is not given."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


class SyncstrConfig(BaseModel):
    """Top-level SyncStr configuration."""

    transport: TransportConfig = Field(default_factory=TransportConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
