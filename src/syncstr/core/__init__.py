"""Core layer: exceptions, structured logging, YAML config and the component base.

Depends only on [syncstr.models][syncstr.models] and is depended upon by
[syncstr.utils][syncstr.utils] and [syncstr.services][syncstr.services].

Attributes:
    BaseComponent: Generic base with typed config, logger and
        ``from_dict()`` / ``from_yaml()`` factories.
    Logger: Structured logger supporting key=value and JSON output modes.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
    SyncstrError: Root of the exception hierarchy in
        [syncstr.core.exceptions][syncstr.core.exceptions].
"""

from .base import BaseComponent, ConfigT
from .exceptions import (
    ConfigurationError,
    FetchError,
    NoEventsError,
    SyncstrError,
    TransportError,
    ValidationError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .yaml import load_yaml


__all__ = [
    "BaseComponent",
    "ConfigT",
    "ConfigurationError",
    "FetchError",
    "Logger",
    "NoEventsError",
    "StructuredFormatter",
    "SyncstrError",
    "TransportError",
    "ValidationError",
    "format_kv_pairs",
    "load_yaml",
]
