"""
Configuration utilities for ProviderMatch.

Provides configuration loading, defaults and validation for the matcher,
the blocking pre-filter and the batch pipeline.
"""

import logging
import yaml
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger(__name__)


def load_matching_config(config_path: str = "config/provider_match.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file, merged over the defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Configuration file {config_path} not found, using defaults")
            return get_default_matching_config()

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        logger.info(f"Loaded matching configuration from {config_path}")
        return merge_configs(get_default_matching_config(), config)

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        return get_default_matching_config()


def get_default_matching_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "matching": {
            "thresholds": {
                "high": 85.0,
                "uncertain": 60.0
            }
        },
        "blocking": {
            "enabled": False,
            "strategies": ["name_soundex", "name_metaphone", "phone", "email"]
        },
        "pipeline": {
            "output_filename": "duplicate_check_results.csv"
        }
    }


def validate_matching_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    if "matching" not in config:
        logger.error("Missing required configuration section: matching")
        return False

    if not isinstance(config["matching"], dict):
        logger.error("matching section must be a mapping")
        return False

    thresholds = config["matching"].get("thresholds", {})
    if not isinstance(thresholds, dict):
        logger.error("matching.thresholds must be a mapping")
        return False

    high = thresholds.get("high", 85.0)
    uncertain = thresholds.get("uncertain", 60.0)

    for name, value in (("high", high), ("uncertain", uncertain)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.error(f"matching.thresholds.{name} must be a number")
            return False

    if not 0 <= uncertain <= high <= 100:
        logger.error("matching.thresholds must satisfy 0 <= uncertain <= high <= 100")
        return False

    blocking_config = config.get("blocking", {})
    if not isinstance(blocking_config, dict):
        logger.error("blocking section must be a mapping")
        return False

    if not isinstance(blocking_config.get("enabled", False), bool):
        logger.error("blocking.enabled must be a boolean")
        return False

    if not isinstance(blocking_config.get("strategies", []), list):
        logger.error("blocking.strategies must be a list")
        return False

    logger.info("Configuration validation passed")
    return True


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def save_matching_config(config: Dict[str, Any], config_path: str) -> bool:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Path to save configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2)

        logger.info(f"Saved configuration to {config_path}")
        return True

    except OSError as e:
        logger.error(f"Failed to save configuration to {config_path}: {e}")
        return False
