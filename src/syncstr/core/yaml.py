"""YAML configuration loading for SyncStr.

Uses ``yaml.safe_load`` so a configuration file can never instantiate
arbitrary Python objects. Used by
[BaseComponent.from_yaml()][syncstr.core.base.BaseComponent.from_yaml] and
by the CLI to read ``config/syncstr.yaml``.

Examples:
    ```python
    from syncstr.core.yaml import load_yaml

    config = load_yaml("config/syncstr.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a nested dictionary. Returns an empty dict
        if the file exists but contains no data.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping.

    Warning:
        The structure of the returned dictionary is not validated here.
        Pass it to a Pydantic config model such as
        [SyncstrConfig][syncstr.services.common.configs.SyncstrConfig].
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    return data
