"""
Melting engine
select -> compute -> correct -> finalize for one environment at a time.
"""
import logging
from typing import Any, Dict, Optional

from ..config.defaults import get_config, validate_config
from .corrections import run_pipeline
from .environment import Environment, build_environment
from .exceptions import InvalidEnvironment
from .registry import MethodFamily, MethodHandle, build_registry, select
from .results import ThermoResult, finalize
from .tables import ParameterTableStore, get_table_store

logger = logging.getLogger(__name__)


class MeltingEngine:
    """Computes melting temperatures with a fixed registry and table store"""

    def __init__(self, config: Optional[Dict] = None, store: Optional[ParameterTableStore] = None):
        """
        Args:
            config: user configuration (merged over the defaults)
            store: parameter table store, the shared one when omitted
        """
        self.config = get_config(config)
        is_valid, errors = validate_config(self.config)
        if not is_valid:
            raise InvalidEnvironment("Invalid configuration: " + "; ".join(errors))

        self.registry = build_registry(self.config)
        self.store = store if store is not None else get_table_store()

    def select(self, environment: Environment) -> MethodHandle:
        return select(environment, self.registry)

    def compute(self, environment: Environment) -> ThermoResult:
        """
        Compute the melting temperature of one environment

        Args:
            environment: validated environment

        Returns:
            ApproximativeResult or NearestNeighborResult
        """
        method = self.select(environment)

        if method.family is MethodFamily.APPROXIMATIVE:
            tm = method.handler.compute(environment, self.store)
            return finalize(method, None, None, environment, tm=tm)

        raw = method.handler.compute(environment, self.store)
        enthalpy, entropy = run_pipeline(raw.enthalpy, raw.entropy, environment, self.store, method)
        return finalize(method, enthalpy, entropy, environment)

    def environment(self, **options) -> Environment:
        """Build an environment with this engine's configured defaults"""
        return build_environment(options, self.config)

    def compute_options(self, options: Dict[str, Any]) -> ThermoResult:
        return self.compute(build_environment(options, self.config))


def compute_tm(sequence: str, hybridization: str = 'dnadna',
               config: Optional[Dict] = None, **options) -> ThermoResult:
    """
    Compute a melting temperature from raw options (convenience function)

    Args:
        sequence: top strand 5'->3'
        hybridization: 'dnadna', 'dnarna', 'rnarna' or 'hairpin'
        config: user configuration
        **options: any other build_environment option

    Returns:
        ApproximativeResult or NearestNeighborResult
    """
    engine = MeltingEngine(config)
    return engine.compute_options({'sequence': sequence, 'hybridization': hybridization, **options})


__all__ = [
    'MeltingEngine',
    'compute_tm',
]
