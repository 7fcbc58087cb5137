"""Logging and file helpers"""

from .logging_utils import setup_logging
from .file_utils import load_config, save_config

__all__ = ['setup_logging', 'load_config', 'save_config']
