"""Executor configuration models.

See Also:
    [Executor][syncstr.services.executor.Executor]: The component that
        consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncConfig(BaseModel):
    """Event publishing settings.

    Attributes:
        timeout: Seconds allowed for each publish attempt. The shared and
            the ad-hoc attempt of an event get one deadline each.
    """

    timeout: float = Field(default=15.0, ge=1.0, le=300.0)
