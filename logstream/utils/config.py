"""
Configuration for logstream.

Values are layered, later layers winning:
1. Bundled defaults (config/default.yaml)
2. An explicit YAML file
3. Environment variables (see ``ENV_OVERRIDES``)

Keys are addressed with dot notation, e.g. ``writer.flush_interval_ms``.
"""

import copy
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "default.yaml"

# Environment variable -> (config key, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "AWS_REGION": ("aws.region", str),
    "LOGSTREAM_ENDPOINT_URL": ("aws.endpoint_url", str),
    "LOGSTREAM_GROUP": ("stream.group", str),
    "LOGSTREAM_FLUSH_INTERVAL_MS": ("writer.flush_interval_ms", int),
    "LOG_LEVEL": ("logging.level", str),
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge ``override`` into a copy of ``base``, recursing into nested sections.

    Args:
        base: Lower-priority values
        override: Higher-priority values

    Returns:
        New merged dictionary
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class Config:
    """Layered configuration for writers, readers and the CLI."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Load configuration.

        Args:
            config_file: Optional YAML file layered over the defaults

        Raises:
            ValueError: If a configuration file is not a YAML mapping
        """
        self._config: Dict[str, Any] = {}

        if DEFAULT_CONFIG_PATH.exists():
            self.load_file(DEFAULT_CONFIG_PATH)

        if config_file:
            self.load_file(config_file)

        self._apply_env_overrides()

    def load_file(self, path: Any) -> None:
        """Layer a YAML file over the current values."""
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"configuration file {path} must contain a mapping")

        self._config = deep_merge(self._config, loaded)

    def _apply_env_overrides(self) -> None:
        for env_var, (key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw:
                self.set(key, convert(raw))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value using dot notation.

        Args:
            key: Dotted key (e.g. "aws.region")
            default: Returned when any part of the key is missing

        Returns:
            Configuration value
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value using dot notation, creating sections as needed."""
        *sections, leaf = key.split(".")
        node = self._config
        for section in sections:
            node = node.setdefault(section, {})
        node[leaf] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary."""
        return copy.deepcopy(self._config)

