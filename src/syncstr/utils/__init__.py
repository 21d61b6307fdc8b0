"""Nostr identity handling and relay transport.

The utils layer depends on [syncstr.models][syncstr.models] and on the
exception types of [syncstr.core.exceptions][syncstr.core.exceptions]; it
never imports from [syncstr.services][syncstr.services].

Attributes:
    keys: Public identity parsing and ``npub`` encoding, plus optional
        derivation of the identity from a private key environment variable.
    protocol: The [Transport][syncstr.utils.protocol.Transport] protocol and
        its ``nostr_sdk`` implementation with shared and ad-hoc acquisition,
        plus a relay reachability probe.

Examples:
    ```python
    from syncstr.utils.keys import parse_identity
    from syncstr.utils.protocol import NostrTransport, QueryFilter
    ```
"""
