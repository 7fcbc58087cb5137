"""Configuration defaults and validation"""

from .defaults import DEFAULT_CONFIG, get_config, validate_config

__all__ = ['DEFAULT_CONFIG', 'get_config', 'validate_config']
