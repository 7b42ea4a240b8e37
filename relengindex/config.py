#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import logging
import sys

import toml
import yaml

from .exceptions import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("relengindex")

# Preference keys and values
POM_VERSION_SEVERITY = "pom_version.severity"
VALUE_IGNORE = "ignore"
VALUE_WARNING = "warning"
VALUE_ERROR = "error"
SEVERITY_VALUES = (VALUE_IGNORE, VALUE_WARNING, VALUE_ERROR)


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. RELENGINDEX_CONFIG environment variable
    2. ~/.relengindex/ directory
    """
    if 'RELENGINDEX_CONFIG' in os.environ:
        path = Path(os.environ['RELENGINDEX_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.relengindex'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config(config_path=None):
    """Load configuration from file, defaults and environment."""
    config_path = Path(config_path) if config_path else get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            suffix = config_path.suffix.lower()
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)
    configure_logging(config)
    return config


def save_config(config, config_path=None):
    """Save configuration to file."""
    config_path = Path(config_path) if config_path else get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        suffix = config_path.suffix.lower()
        if suffix == '.toml':
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except Exception as e:
        logger.error(f"Error saving config to {config_path}: {e}")


def get_default_config():
    """Get default configuration."""
    return {
        "workspace": ".",
        "closed_projects": [],
        "maps": {
            "project": "org.eclipse.releng",
            "folder": "maps",
            "extension": "map"
        },
        "pom_version": {
            "severity": VALUE_WARNING
        },
        "markers_file": "~/.relengindex/markers.json",
        "git": {
            "timeout_seconds": 30
        },
        "logging": {
            "level": "INFO"
        }
    }


def configure_logging(config):
    """Apply the logging section to the relengindex logger."""
    level = config.get("logging", {}).get("level", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if isinstance(level, int):
        logger.setLevel(level)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: RELENGINDEX_SECTION_KEY
    For example: RELENGINDEX_POM_VERSION_SEVERITY=error
    """
    env_prefix = "RELENGINDEX_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "RELENGINDEX_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


@dataclass(frozen=True)
class PreferenceChangeEvent:
    """A preference value changed."""
    key: str
    old_value: Any
    new_value: Any


PreferenceListener = Callable[[PreferenceChangeEvent], None]


class Preferences:
    """
    Live view of dotted configuration keys with change notification.

    Example:
        prefs = Preferences(load_config())
        prefs.add_listener(validator.preference_change)
        prefs.set(POM_VERSION_SEVERITY, VALUE_ERROR)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else get_default_config()
        self._listeners: List[PreferenceListener] = []

    def get(self, key: str, default: Any = None) -> Any:
        level = self.config
        for part in key.split('.'):
            if not isinstance(level, dict) or part not in level:
                return default
            level = level[part]
        return level

    def set(self, key: str, value: Any) -> None:
        """Set a value and notify listeners if it changed."""
        if key == POM_VERSION_SEVERITY and value not in SEVERITY_VALUES:
            raise ConfigError(f"Invalid severity {value!r}, expected one of {', '.join(SEVERITY_VALUES)}")

        old_value = self.get(key)
        if old_value == value:
            return

        *parents, last = key.split('.')
        level = self.config
        for part in parents:
            level = level.setdefault(part, {})
        level[last] = value

        event = PreferenceChangeEvent(key, old_value, value)
        for listener in list(self._listeners):
            listener(event)

    def add_listener(self, listener: PreferenceListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: PreferenceListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def severity(self) -> str:
        return self.get(POM_VERSION_SEVERITY, VALUE_WARNING)
