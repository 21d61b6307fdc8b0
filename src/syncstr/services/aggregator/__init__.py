"""Aggregator package.

Re-exports all public symbols::

    from syncstr.services.aggregator import Aggregator, FetchConfig
"""

from .configs import FetchConfig
from .service import Aggregator


__all__ = [
    "Aggregator",
    "FetchConfig",
]
