"""Nostr identity helpers for SyncStr.

SyncStr only ever needs the *public* side of an identity: the hex public
key used as the ``authors`` filter when fetching, and its ``npub`` bech32
form embedded in snapshot files. Signing stays with whatever produced the
events.

For convenience the CLI can also derive the identity from a private key
held in an environment variable, via
[KeysConfig][syncstr.utils.keys.KeysConfig].

Warning:
    Private keys must **never** be stored in configuration files, source
    code, or logged to any output. Only the derived public key leaves this
    module.

Examples:
    ```python
    pubkey = parse_identity("npub1...")   # -> 64-char hex
    encode_identity(pubkey)               # -> 'npub1...'
    ```
"""

from __future__ import annotations

import os
from typing import Any

from nostr_sdk import Keys, PublicKey
from pydantic import BaseModel, Field, model_validator


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name


def parse_identity(value: str) -> str:
    """Normalize a public identity (hex or ``npub``) to lowercase hex.

    Raises:
        ValueError: If *value* is empty or not a valid public key.
    """
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValueError("identity must not be empty")
    try:
        return PublicKey.parse(text).to_hex()
    except Exception as e:  # nostr-sdk FFI raises its own error type
        raise ValueError(f"Invalid public key: {text}") from e


def encode_identity(pubkey: str) -> str:
    """Return the ``npub`` bech32 encoding of a public key.

    Raises:
        ValueError: If *pubkey* is not a valid public key.
    """
    try:
        return PublicKey.parse(pubkey).to_bech32()
    except Exception as e:  # nostr-sdk FFI raises its own error type
        raise ValueError(f"Invalid public key: {pubkey}") from e


def load_keys_from_env(env_var: str) -> Keys:
    """Load Nostr keys from an environment variable.

    Parses a private key (nsec1 bech32 or 64-char hex).

    Raises:
        ValueError: If the environment variable is not set or is empty.
        nostr_sdk.NostrSdkError: If the key value is malformed.
    """
    value = os.getenv(env_var)

    if not value:
        raise ValueError(f"{env_var} environment variable is required to derive the identity")

    return Keys.parse(value)


class KeysConfig(BaseModel):
    """Pydantic model that auto-loads Nostr keys from an environment variable.

    The ``keys`` field is populated during validation from the variable
    named by ``keys_env``. Only
    [identity][syncstr.utils.keys.KeysConfig.identity] is used by SyncStr.

    Warning:
        The ``keys`` field contains a live private key. Do not serialize
        this model to logs, JSON, or any persistent storage.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for private key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env (required)")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        """Auto-populate the ``keys`` field from the environment variable."""
        if isinstance(data, dict) and "keys" not in data:
            env_var = data.get("keys_env", ENV_PRIVATE_KEY)
            data["keys"] = load_keys_from_env(env_var)
        return data

    @property
    def identity(self) -> str:
        """Hex public key derived from the loaded private key."""
        return self.keys.public_key().to_hex()
