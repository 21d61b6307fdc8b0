"""
Validated Nostr relay URL.

Parses, normalizes, and validates WebSocket relay URLs. Bare domain input
such as ``relay.damus.io`` is accepted and given the ``wss://`` scheme, the
way users type relays into SyncStr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from ._validation import validate_str_no_null


@dataclass(frozen=True, slots=True)
class Relay:
    """Immutable, normalized relay address.

    Attributes:
        url: Fully normalized URL including scheme.
        scheme: ``ws`` or ``wss``.
        host: Hostname or IP address (brackets stripped for IPv6).
        port: Explicit port number, or ``None`` when using the default.
        path: URL path component, or ``None``.

    Raises:
        ValueError: If the URL is malformed, uses a scheme other than
            ``ws``/``wss``, or carries a query string or fragment.

    Examples:
        ```python
        relay = Relay("relay.damus.io")
        relay.url       # 'wss://relay.damus.io'
        relay.secure    # True

        Relay("wss://Relay.Example.com:443/").url   # 'wss://relay.example.com'
        Relay("ws://localhost:7777").url            # 'ws://localhost:7777'
        ```
    """

    raw_url: str = field(repr=False, compare=False)

    url: str = field(init=False)
    scheme: str = field(init=False)
    host: str = field(init=False)
    port: int | None = field(init=False)
    path: str | None = field(init=False)

    _PORT_WS: ClassVar[int] = 80
    _PORT_WSS: ClassVar[int] = 443

    def __post_init__(self) -> None:
        validate_str_no_null(self.raw_url, "Relay URL")

        parsed = self._parse(self.raw_url)

        object.__setattr__(self, "url", parsed["url"])
        object.__setattr__(self, "scheme", parsed["scheme"])
        object.__setattr__(self, "host", parsed["host"])
        object.__setattr__(self, "port", parsed["port"])
        object.__setattr__(self, "path", parsed["path"])

    def __str__(self) -> str:
        return self.url

    @property
    def secure(self) -> bool:
        """Whether the relay is reached over TLS (``wss://``)."""
        return self.scheme == "wss"

    @staticmethod
    def normalize(raw: str) -> str:
        """Trim input and add ``wss://`` to bare domain-like addresses."""
        trimmed = raw.strip()
        if "://" not in trimmed and "." in trimmed:
            return f"wss://{trimmed}"
        return trimmed

    @staticmethod
    def _parse(raw: str) -> dict[str, Any]:
        """Parse and normalize a raw relay URL string.

        Returns:
            Dictionary containing ``url``, ``scheme``, ``host``, ``port``
            and ``path``.

        Raises:
            ValueError: If the scheme is not ``ws``/``wss`` or the URI is invalid.
        """
        uri = uri_reference(Relay.normalize(raw)).normalize()

        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )

        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError("Invalid scheme: must be ws or wss") from None
        except ValidationError as e:
            raise ValueError(f"Invalid relay URL: {e}") from None

        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        scheme = uri.scheme
        port = int(uri.port) if uri.port else None
        if port is not None and not 1 <= port <= 65_535:
            raise ValueError(f"Invalid relay URL: port {port} out of range")
        host = uri.host.strip("[]")
        if not host:
            raise ValueError("Invalid relay URL: missing host")

        path = uri.path or ""
        while "//" in path:
            path = path.replace("//", "/")
        path = path.rstrip("/") or None

        formatted_host = f"[{host}]" if ":" in host else host

        default_port = Relay._PORT_WSS if scheme == "wss" else Relay._PORT_WS
        if port is not None and port != default_port:
            authority = f"{formatted_host}:{port}"
        else:
            authority = formatted_host
            port = None

        return {
            "url": f"{scheme}://{authority}{path or ''}",
            "scheme": scheme,
            "host": host,
            "port": port,
            "path": path,
        }
