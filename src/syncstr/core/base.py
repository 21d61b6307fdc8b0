"""
Base class for configurable SyncStr components.

``BaseComponent[ConfigT]`` gives every engine component the same shape:
a typed Pydantic configuration with defaults, a structured
[Logger][syncstr.core.logger.Logger] named after the component, and the
[from_dict()][syncstr.core.base.BaseComponent.from_dict] /
[from_yaml()][syncstr.core.base.BaseComponent.from_yaml] factories.

Components are not long-running services: each public operation is a
single awaited call (fetch, sync), so there is no run loop or shutdown
event here.

See Also:
    [Aggregator][syncstr.services.aggregator.Aggregator],
    [Executor][syncstr.services.executor.Executor]: The components built on
        this base.
"""

from __future__ import annotations

from abc import ABC
from pathlib import Path
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel

from syncstr.models.constants import ComponentName

from .logger import Logger
from .yaml import load_yaml


ConfigT = TypeVar("ConfigT", bound=BaseModel)


class BaseComponent(ABC, Generic[ConfigT]):
    """Abstract base class for SyncStr engine components.

    Subclasses set ``COMPONENT_NAME`` (used as the logger name) and
    ``CONFIG_CLASS`` (the Pydantic model used by the factories).

    Attributes:
        COMPONENT_NAME: Identifier used in logging.
        CONFIG_CLASS: Pydantic model class for the component's settings.
        _config: Typed configuration (defaults from ``CONFIG_CLASS``).
        _logger: [Logger][syncstr.core.logger.Logger] named after the
            component.
    """

    COMPONENT_NAME: ClassVar[ComponentName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.COMPONENT_NAME)

    @property
    def config(self) -> ConfigT:
        """The typed component configuration (read-only)."""
        return self._config

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Self:
        """Create a component from a YAML configuration file.

        Args:
            config_path: Path to a YAML file holding this component's section.
            **kwargs: Collaborators passed to the constructor (transports).
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create a component from a configuration dictionary.

        Args:
            data: Configuration dictionary parsed into ``CONFIG_CLASS``.
            **kwargs: Collaborators passed to the constructor (transports).
        """
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(config=config, **kwargs)
