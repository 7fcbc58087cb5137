"""
Melting Toolkit Core Module
Computation engine: parameter tables, environment, method selection,
correction pipeline and result aggregation
"""

from .exceptions import (
    MeltingError,
    InvalidEnvironment,
    InvalidConcentration,
    NoApplicableMethod,
    AmbiguousMethod,
    UnknownMotif,
    DivisionByZero,
    TableLoadError,
)
from .tables import ParameterTable, ParameterTableStore, get_table_store
from .environment import Environment, HybridizationType, build_environment
from .registry import MethodFamily, MethodHandle, build_registry, select, available_models
from .results import ApproximativeResult, NearestNeighborResult, finalize
from .engine import MeltingEngine, compute_tm
from .utils import reverse_complement, gc_fraction

__all__ = [
    # Errors
    'MeltingError',
    'InvalidEnvironment',
    'InvalidConcentration',
    'NoApplicableMethod',
    'AmbiguousMethod',
    'UnknownMotif',
    'DivisionByZero',
    'TableLoadError',

    # Tables
    'ParameterTable',
    'ParameterTableStore',
    'get_table_store',

    # Environment
    'Environment',
    'HybridizationType',
    'build_environment',

    # Method selection
    'MethodFamily',
    'MethodHandle',
    'build_registry',
    'select',
    'available_models',

    # Results
    'ApproximativeResult',
    'NearestNeighborResult',
    'finalize',

    # Engine
    'MeltingEngine',
    'compute_tm',

    # Helpers
    'reverse_complement',
    'gc_fraction',
]
