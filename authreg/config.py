"""Configuration loader for the authenticity registry

All configurable values come from config/config.yaml.
Configuration is validated at load time using Pydantic.

Usage:
    from authreg.config import load_config, get_validated_config, set_config_value

    # Load and validate (call once at startup)
    load_config("config/config.yaml")

    # Runtime override by dot-path, re-validated immediately
    set_config_value("registry.mint_fee", 250)

    config = get_validated_config()
    fee = config.registry.mint_fee
"""

from __future__ import annotations

import yaml
from pathlib import Path
from typing import Any

from .config_schema import AppConfig, validate_config_dict


# Global config instances
_config: dict[str, Any] | None = None
_validated_config: AppConfig | None = None

# Default config path
DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to config/config.yaml.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    global _config, _validated_config

    path: Path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        loaded: Any = yaml.safe_load(f)
    raw: dict[str, Any] = loaded if isinstance(loaded, dict) else {}

    _validated_config = validate_config_dict(raw)
    _config = raw
    return _validated_config


def get_validated_config() -> AppConfig:
    """Get the validated configuration object.

    Loads default config if not already loaded.
    """
    if _validated_config is None:
        return load_config()
    return _validated_config


def set_config_value(key: str, value: Any) -> AppConfig:
    """Override one config value by dot-separated key path (e.g. CLI --set).

    The whole config is re-validated; an invalid override raises and leaves
    the loaded config untouched.
    """
    global _config, _validated_config

    if _config is None:
        load_config()
    assert _config is not None

    *parents, leaf = key.split(".")
    updated: dict[str, Any] = dict(_config)
    target = updated
    for part in parents:
        section = target.get(part)
        target[part] = dict(section) if isinstance(section, dict) else {}
        target = target[part]
    target[leaf] = value

    _validated_config = validate_config_dict(updated)
    _config = updated
    return _validated_config
