"""Aggregator configuration models.

See Also:
    [Aggregator][syncstr.services.aggregator.Aggregator]: The component
        that consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class FetchConfig(BaseModel):
    """Profile fetch settings.

    Attributes:
        timeout: Seconds allowed for each fetch attempt (shared, then
            ad-hoc). Each tier gets its own deadline.
        limit: Maximum number of events requested from a relay.
    """

    timeout: float = Field(default=15.0, ge=1.0, le=300.0)
    limit: int = Field(default=50, ge=1, le=5000)
