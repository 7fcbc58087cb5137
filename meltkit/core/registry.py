"""
Method registry
A static list of (predicate, handler) entries. Selection evaluates every
predicate against the environment and requires exactly one match.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

from ..config.defaults import get_config
from .environment import Environment, HybridizationType
from .exceptions import AmbiguousMethod, InvalidEnvironment, NoApplicableMethod
from .methods import (
    APPROXIMATIVE_MODELS,
    NEAREST_NEIGHBOR_MODELS,
    ApproximativeMethod,
    NearestNeighborMethod,
)

logger = logging.getLogger(__name__)


class MethodFamily(Enum):
    APPROXIMATIVE = 'approximative'
    NEAREST_NEIGHBOR = 'nearest-neighbor'


@dataclass(frozen=True)
class MethodHandle:
    """
    Registered computation method

    Attributes:
        name: model name ('all97', 'wetdna91', ...)
        family: MethodFamily
        hybridizations: hybridization variants the method supports
        predicate: environment -> bool applicability rule
        handler: ApproximativeMethod or NearestNeighborMethod
        automatic: whether the entry serves requests without an explicit model
    """
    name: str
    family: MethodFamily
    hybridizations: Tuple[str, ...]
    predicate: Callable[[Environment], bool]
    handler: Union[ApproximativeMethod, NearestNeighborMethod]
    automatic: bool = False

    @property
    def identity(self) -> str:
        return f"{self.family.value}-{self.name}"

    def matches(self, environment: Environment) -> bool:
        return self.predicate(environment)


# ============================================================================
# Predicates
# ============================================================================

def _explicit(name: str, family: MethodFamily, hybridizations: Tuple[str, ...]):
    def predicate(environment: Environment) -> bool:
        if environment.model != name or environment.variant not in hybridizations:
            return False
        if family is MethodFamily.APPROXIMATIVE:
            return environment.structure.is_perfect
        return True
    return predicate


def _automatic_nearest_neighbor(variant: str, threshold: int):
    def predicate(environment: Environment) -> bool:
        return (environment.model is None
                and environment.variant == variant
                and environment.structure.paired_length >= 2
                and (environment.length <= threshold
                     or not environment.structure.is_perfect
                     or environment.hybridization is HybridizationType.HAIRPIN))
    return predicate


def _automatic_approximative(variant: str, threshold: int):
    def predicate(environment: Environment) -> bool:
        return (environment.model is None
                and environment.variant == variant
                and environment.structure.is_perfect
                and environment.hybridization is not HybridizationType.HAIRPIN
                and (environment.length > threshold or environment.structure.paired_length < 2))
    return predicate


# ============================================================================
# Registry
# ============================================================================

def build_registry(config: Optional[Dict] = None) -> Tuple[MethodHandle, ...]:
    """
    Build the registry from the configured defaults

    Args:
        config: configuration dict (defaults from get_config())

    Returns:
        tuple of MethodHandle: explicit entries first, then automatic ones
    """
    engine_config = (config or get_config())['engine']
    threshold = engine_config['APPROXIMATIVE_THRESHOLD']
    handles = []

    for name, (_, hybridizations) in APPROXIMATIVE_MODELS.items():
        handles.append(MethodHandle(
            name, MethodFamily.APPROXIMATIVE, hybridizations,
            _explicit(name, MethodFamily.APPROXIMATIVE, hybridizations),
            ApproximativeMethod(name),
        ))
    for name, hybridizations in NEAREST_NEIGHBOR_MODELS.items():
        handles.append(MethodHandle(
            name, MethodFamily.NEAREST_NEIGHBOR, hybridizations,
            _explicit(name, MethodFamily.NEAREST_NEIGHBOR, hybridizations),
            NearestNeighborMethod(name),
        ))

    for variant, name in engine_config['DEFAULT_NN_MODELS'].items():
        if variant not in NEAREST_NEIGHBOR_MODELS.get(name, ()):
            raise NoApplicableMethod(f"Default model '{name}' does not support {variant}")
        handles.append(MethodHandle(
            name, MethodFamily.NEAREST_NEIGHBOR, (variant,),
            _automatic_nearest_neighbor(variant, threshold),
            NearestNeighborMethod(name),
            automatic=True,
        ))
    for variant, name in engine_config['DEFAULT_APPROXIMATIVE_MODELS'].items():
        if variant not in APPROXIMATIVE_MODELS.get(name, (None, ()))[1]:
            raise NoApplicableMethod(f"Default model '{name}' does not support {variant}")
        handles.append(MethodHandle(
            name, MethodFamily.APPROXIMATIVE, (variant,),
            _automatic_approximative(variant, threshold),
            ApproximativeMethod(name),
            automatic=True,
        ))

    return tuple(handles)


_DEFAULT_REGISTRY: Optional[Tuple[MethodHandle, ...]] = None
_REGISTRY_LOCK = threading.Lock()


def default_registry() -> Tuple[MethodHandle, ...]:
    """Return the registry built from the default configuration, building it once"""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        with _REGISTRY_LOCK:
            if _DEFAULT_REGISTRY is None:
                _DEFAULT_REGISTRY = build_registry()
    return _DEFAULT_REGISTRY


def select(environment: Environment, registry: Optional[Sequence[MethodHandle]] = None) -> MethodHandle:
    """
    Select the single method applicable to an environment

    Args:
        environment: validated environment
        registry: handles to search (the default registry when omitted)

    Returns:
        MethodHandle

    Raises:
        NoApplicableMethod: no predicate matches
        AmbiguousMethod: several predicates match
        InvalidEnvironment: an explicit nearest-neighbor model with fewer than two paired positions
    """
    registry = default_registry() if registry is None else registry
    matches = [handle for handle in registry if handle.matches(environment)]

    if not matches:
        requested = environment.model or 'automatic selection'
        raise NoApplicableMethod(
            f"No method available for model '{requested}' and hybridization {environment.variant}"
        )
    if len(matches) > 1:
        names = ', '.join(handle.identity for handle in matches)
        raise AmbiguousMethod(f"Several methods match {environment.variant}: {names}")

    handle = matches[0]
    if (handle.family is MethodFamily.NEAREST_NEIGHBOR
            and environment.structure.paired_length < 2):
        raise InvalidEnvironment(
            f"{handle.identity} needs at least two paired bases, got {environment.structure.paired_length}"
        )

    logger.debug(f"Selected {handle.identity} for {environment.variant} ({environment.length} nt)")
    return handle


def available_models(hybridization: Optional[str] = None, registry=None) -> Dict[str, list]:
    """Model names per family, optionally restricted to one hybridization variant"""
    registry = default_registry() if registry is None else registry
    models = {family.value: [] for family in MethodFamily}
    for handle in registry:
        if handle.automatic:
            continue
        if hybridization and not any(v.startswith(hybridization) for v in handle.hybridizations):
            continue
        models[handle.family.value].append(handle.name)
    return models


__all__ = [
    'MethodFamily',
    'MethodHandle',
    'build_registry',
    'default_registry',
    'select',
    'available_models',
]
