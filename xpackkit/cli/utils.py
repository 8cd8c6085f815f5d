"""
Shared utilities for CLI commands.

Provides configuration loading and the settings every command resolves from
the configuration file and the command line.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from xpackkit.core.directory import get_global_cache_dir
from xpackkit.core.download import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "xpackkit.yaml"
DEFAULT_LOCK_TIMEOUT = 300


# ============================================================================
# Configuration Management
# ============================================================================


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        FileNotFoundError: If required=True and file doesn't exist
        ValueError: If YAML parsing fails or the document is not a mapping

    Example:
        >>> config = load_yaml_config(Path("xpackkit.yaml"))
        >>> config.get("cache_dir")
    """
    if not config_file.exists():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise ValueError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ValueError(f"Invalid configuration in {config_file}: expected a mapping")

    return config


@dataclass
class Settings:
    """Effective settings of a command run."""

    cache_dir: Path
    timeout: float = DEFAULT_TIMEOUT
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT


def _number(config: Dict[str, Any], key: str, default: float) -> float:
    value = config.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid '{key}' in configuration: {value!r}")
    if value <= 0:
        raise ValueError(f"Invalid '{key}' in configuration: must be positive")
    return value


def resolve_settings(args, config: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Combine configuration file values with command-line overrides.

    Command-line options win over the configuration file, which wins over
    built-in defaults.
    """
    config = config or {}

    cache_dir = getattr(args, "cache", None) or config.get("cache_dir")
    if cache_dir:
        cache_dir = Path(cache_dir).expanduser()
    else:
        cache_dir = get_global_cache_dir()

    return Settings(
        cache_dir=cache_dir,
        timeout=_number(config, "timeout", DEFAULT_TIMEOUT),
        lock_timeout=_number(config, "lock_timeout", DEFAULT_LOCK_TIMEOUT),
    )


def load_settings(args) -> Settings:
    """Load the configuration selected by --config (or the default file)."""
    config_file = getattr(args, "config", None)
    if config_file:
        config = load_yaml_config(Path(config_file), required=True)
    else:
        config = load_yaml_config(Path.cwd() / DEFAULT_CONFIG_FILE)
    return resolve_settings(args, config)


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "Settings",
    "load_yaml_config",
    "resolve_settings",
    "load_settings",
]
