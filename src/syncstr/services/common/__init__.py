"""Building blocks shared by the SyncStr components.

Attributes:
    configs: Top-level [SyncstrConfig][syncstr.services.common.configs.SyncstrConfig]
        and the transport settings.
    fallback: Ordered [Strategy][syncstr.services.common.fallback.Strategy]
        runner used by the aggregator and the executor.
"""
