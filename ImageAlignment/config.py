"""
Configuration management for image alignment.

This module provides the alignment configuration, predefined presets,
validation and JSON persistence.
"""

from dataclasses import dataclass, asdict, fields
from typing import Dict, List, Any
import copy
import json
import os

from .logger import get_logger

logger = get_logger("config")


# =============================================================================
# Default Configurations
# =============================================================================


DEFAULT_CONFIG = {
    'method': 'forward_additive',
    'pyramid_levels': 3,
    'max_iterations': 60,
    'eps': 1e-3,
    'border': 1,
}


PRESET_CONFIGS = {
    'fast': {
        'method': 'inverse_compositional',
        'pyramid_levels': 4,
        'max_iterations': 20,
        'eps': 1e-2,
    },

    'balanced': {
        'method': 'forward_additive',
        'pyramid_levels': 3,
        'max_iterations': 60,
        'eps': 1e-3,
    },

    'accurate': {
        'method': 'forward_additive',
        'pyramid_levels': 4,
        'max_iterations': 200,
        'eps': 1e-5,
        'border': 2,
    },
}


VALID_METHODS = ['forward_additive', 'inverse_compositional', 'fa', 'ic', 'lucas_kanade']


@dataclass
class AlignmentConfig:
    """Configuration for a coarse-to-fine alignment run"""

    method: str = 'forward_additive'   # Aligner name, see algorithms.factory
    pyramid_levels: int = 3            # Requested levels, clamped to image size
    max_iterations: int = 60           # Budget over all levels
    eps: float = 1e-3                  # Minimum step length to keep iterating
    border: int = 1                    # Distance valid points keep to the border (at least 1)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'AlignmentConfig':
        """Build from a dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})

    @classmethod
    def from_preset(cls, preset: str) -> 'AlignmentConfig':
        return cls.from_dict(create_config_from_preset(preset))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> 'AlignmentConfig':
        """
        Validate configuration values.

        Raises:
            ValueError: If any value is invalid
        """
        result = validate_config(self.to_dict())
        for warning in result['warnings']:
            logger.warning(warning)
        if result['errors']:
            raise ValueError("Invalid alignment configuration: " + "; ".join(result['errors']))
        return self


# =============================================================================
# Configuration Functions
# =============================================================================

def get_default_config() -> Dict[str, Any]:
    """Get a copy of the default configuration"""
    return copy.deepcopy(DEFAULT_CONFIG)


def create_config_from_preset(preset: str) -> Dict[str, Any]:
    """
    Create configuration from a preset

    Args:
        preset: Preset name ('fast', 'balanced', 'accurate')

    Returns:
        Configuration dictionary

    Raises:
        ValueError: If preset is not available
    """
    if preset not in PRESET_CONFIGS:
        available = ', '.join(PRESET_CONFIGS.keys())
        raise ValueError(f"Unknown preset: {preset}. Available: {available}")

    base_config = copy.deepcopy(DEFAULT_CONFIG)
    preset_config = copy.deepcopy(PRESET_CONFIGS[preset])

    return merge_configs(base_config, preset_config)


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries

    Args:
        base_config: Base configuration
        override_config: Configuration to override base with

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def validate_config(config: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Validate configuration and return any issues

    Args:
        config: Configuration to validate

    Returns:
        Dictionary with validation results:
        {
            'errors': [list of error messages],
            'warnings': [list of warning messages]
        }
    """
    errors = []
    warnings = []

    required_fields = ['method', 'pyramid_levels', 'max_iterations', 'eps']
    for field_name in required_fields:
        if field_name not in config:
            errors.append(f"Missing required field: {field_name}")

    if 'method' in config and str(config['method']).lower() not in VALID_METHODS:
        errors.append(f"'method' must be one of: {VALID_METHODS}")

    if 'pyramid_levels' in config:
        levels = config['pyramid_levels']
        if not isinstance(levels, int) or isinstance(levels, bool):
            errors.append("'pyramid_levels' must be an integer")
        elif levels < 1:
            warnings.append("'pyramid_levels' below 1 will be clamped to 1")

    if 'max_iterations' in config:
        iterations = config['max_iterations']
        if not isinstance(iterations, int) or isinstance(iterations, bool) or iterations < 0:
            errors.append("'max_iterations' must be a non-negative integer")
        elif isinstance(config.get('pyramid_levels'), int) and 0 < iterations < config['pyramid_levels']:
            warnings.append("'max_iterations' is smaller than 'pyramid_levels'; "
                            "no level will receive an iteration")

    if 'eps' in config:
        eps = config['eps']
        if not isinstance(eps, (int, float)) or isinstance(eps, bool) or eps < 0:
            errors.append("'eps' must be a non-negative number")

    if 'border' in config:
        border = config['border']
        if not isinstance(border, int) or isinstance(border, bool) or border < 1:
            errors.append("'border' must be an integer of at least 1")

    return {'errors': errors, 'warnings': warnings}


def print_config(config: Dict[str, Any], title: str = "Configuration"):
    """
    Log a configuration

    Args:
        config: Configuration to print
        title: Title for the printout
    """
    logger.info(title)
    logger.info("=" * len(title))
    for key, value in config.items():
        logger.info(f"{key}: {value}")


def save_config(config: Dict[str, Any], filepath: str):
    """
    Save configuration to JSON file

    Args:
        config: Configuration to save
        filepath: Path to save file
    """
    with open(filepath, 'w') as f:
        json.dump(config, f, indent=2)
    logger.info(f"Configuration saved to: {filepath}")


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from JSON file

    Args:
        filepath: Path to configuration file

    Returns:
        Loaded configuration

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(filepath, 'r') as f:
        config = json.load(f)

    logger.info(f"Configuration loaded from: {filepath}")
    return config
