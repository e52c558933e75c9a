"""
Configuration management and loading.

Handles solver settings stored in a YAML file.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.catalog import DEFAULT_PRICING_SOURCE
from ..sdk.openai_client import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT


@dataclass(frozen=True)
class SolverConfig:
    """Settings for a solver run."""
    model: str = DEFAULT_MODEL
    pricing_source: str = DEFAULT_PRICING_SOURCE
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    prompt: Optional[str] = None

    def __post_init__(self):
        """Validate setting values."""
        if not self.model or not self.model.strip():
            raise ValueError("model cannot be empty")
        if not self.base_url or not self.base_url.strip():
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")


def load_solver_config(path: str) -> SolverConfig:
    """Load and validate solver configuration from a YAML file.

    Strict validation ensures a typo in a key is reported instead of
    silently falling back to a default. The API key is never read from
    this file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated SolverConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Solver config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")

    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_keys = {'model', 'pricing_source', 'base_url', 'timeout', 'prompt'}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    settings: Dict[str, Any] = {}
    for key in ('model', 'pricing_source', 'base_url', 'prompt'):
        if key in raw_config:
            settings[key] = _parse_string(raw_config[key], key)

    if 'timeout' in raw_config:
        timeout = raw_config['timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("'timeout' must be a number > 0")
        settings['timeout'] = float(timeout)

    return SolverConfig(**settings)


def _parse_string(value: Any, key: str) -> str:
    """Validate a string setting.

    Raises:
        ValueError: If the value is not a non-empty string
    """
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    if not value.strip():
        raise ValueError(f"'{key}' cannot be empty")
    return value
