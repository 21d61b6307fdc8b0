"""Executor package.

Re-exports all public symbols::

    from syncstr.services.executor import Executor, SyncConfig
"""

from .configs import SyncConfig
from .service import Executor


__all__ = [
    "Executor",
    "SyncConfig",
]
