"""
Configuration Module for IBIS.

This module provides configuration loading and management for the schema store
and the ibis-validate command. Configuration is loaded from config.yml and
merged over built-in defaults.

Usage:
    >>> from config import load_config, get_schema_settings
    >>> config = load_config()
    >>> settings = get_schema_settings(config)
    >>> settings["url"]
    'https://raw.githubusercontent.com/samwightt/ibis/master/schema.min.json'
"""
import copy
import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_URL = "https://raw.githubusercontent.com/samwightt/ibis/master/schema.min.json"
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "INFO"

# Environment variable overrides
SCHEMA_URL_ENV = "IBIS_SCHEMA_URL"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from config.yml file.

    Args:
        config_path: Path to config.yml file. If None, looks in current directory
                    and parent directories.

    Returns:
        Dictionary containing configuration settings, with every section merged
        over the defaults from get_default_config()

    Example:
        >>> config = load_config()
        >>> config["schema"]["request_timeout"]
        30
    """
    if config_path is None:
        # Try to find config.yml in current directory or parent directories
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            candidate = parent / "config.yml"
            if candidate.exists():
                config_path = str(candidate)
                break

        # If still not found, check the project root (where this file is located)
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            candidate = project_root / "config.yml"
            if candidate.exists():
                config_path = str(candidate)

    if config_path is None:
        logger.warning("config.yml not found, using default configuration")
        return get_default_config()

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {config_path}")
        return get_default_config()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        return get_default_config()

    if not isinstance(config, dict):
        logger.warning("Configuration root must be a mapping, using default configuration")
        return get_default_config()

    logger.info(f"Loaded configuration from {config_path}")
    return merge_with_defaults(config)


def get_default_config() -> Dict[str, Any]:
    """Return default configuration when config.yml is not available.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "schema": {
            "url": DEFAULT_SCHEMA_URL,
            "cache_dir": None,
            "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        },
        "logging": {
            "level": DEFAULT_LOG_LEVEL,
            "file": None,
        },
    }


def merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a loaded configuration over the defaults, one section at a time.

    Sections that are present but not mappings are replaced by their defaults.
    Keys unknown to the defaults are kept as-is.
    """
    merged = get_default_config()
    for section, value in config.items():
        default_section = merged.get(section)
        if isinstance(default_section, dict):
            if isinstance(value, dict):
                default_section.update(value)
            elif value is not None:
                logger.warning(f"Configuration section '{section}' must be a mapping; using defaults")
        else:
            merged[section] = copy.deepcopy(value)
    return merged


def get_schema_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return the validated 'schema' section with environment overrides applied.

    IBIS_SCHEMA_URL overrides schema.url. An invalid request_timeout falls
    back to the default. A null cache_dir is resolved later by CacheLocation.
    """
    settings = dict(get_default_config()["schema"])
    section = config.get("schema")
    if isinstance(section, dict):
        settings.update(section)

    env_url = os.environ.get(SCHEMA_URL_ENV)
    if env_url:
        settings["url"] = env_url

    if not isinstance(settings.get("url"), str) or not settings["url"].strip():
        logger.warning(f"Invalid schema URL {settings.get('url')!r}; falling back to {DEFAULT_SCHEMA_URL}")
        settings["url"] = DEFAULT_SCHEMA_URL

    timeout = settings.get("request_timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        logger.warning(
            f"Invalid request_timeout {timeout!r}; falling back to {DEFAULT_REQUEST_TIMEOUT}"
        )
        settings["request_timeout"] = DEFAULT_REQUEST_TIMEOUT

    return settings


def get_log_level(config: Dict[str, Any]) -> int:
    """Return the numeric logging level from config, with INFO fallback."""
    section = config.get("logging")
    level_name = section.get("level", DEFAULT_LOG_LEVEL) if isinstance(section, dict) else DEFAULT_LOG_LEVEL
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}; falling back to {DEFAULT_LOG_LEVEL}")
        return logging.INFO
    return level
