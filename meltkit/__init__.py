"""Melting Toolkit - melting temperatures of nucleic-acid duplexes and hairpins."""

__version__ = "1.0.0"
__author__ = "Melting Toolkit Developers"
__license__ = "MIT"

import logging
from .utils.logging_utils import setup_logging

# default logging
setup_logging()

from .core.exceptions import MeltingError
from .core.environment import Environment, HybridizationType, build_environment
from .core.engine import MeltingEngine, compute_tm
from .core.results import ApproximativeResult, NearestNeighborResult
from .workflow.batch import BatchProcessor, run_batch


def calculate_tm(sequence, **options):
    """Melting temperature in degrees Celsius (convenience function)"""
    return compute_tm(sequence, **options).tm


__all__ = [
    'MeltingError',
    'Environment',
    'HybridizationType',
    'build_environment',
    'MeltingEngine',
    'compute_tm',
    'calculate_tm',
    'ApproximativeResult',
    'NearestNeighborResult',
    'BatchProcessor',
    'run_batch',
]
