"""
Result aggregation
Derives the melting temperature from corrected enthalpy/entropy and packages
it as a typed, immutable result.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..config.defaults import DENATURANT_DEFAULTS, ENGINE_DEFAULTS
from .environment import Environment
from .exceptions import DivisionByZero, InvalidConcentration

logger = logging.getLogger(__name__)

GAS_CONSTANT = ENGINE_DEFAULTS['GAS_CONSTANT']
CALORIE_TO_JOULE = ENGINE_DEFAULTS['CALORIE_TO_JOULE']
KELVIN_OFFSET = 273.15


@dataclass(frozen=True)
class ApproximativeResult:
    """Tm from a closed-form formula; no meaningful energies"""
    tm: float
    method: str

    has_energies = False

    def to_dict(self) -> Dict[str, Any]:
        return {'method': self.method, 'tm': self.tm}

    def summary_lines(self) -> List[str]:
        return [
            f"Method: {self.method}",
            f"Melting temperature: {self.tm:.2f} °C",
        ]


@dataclass(frozen=True)
class NearestNeighborResult:
    """Tm with the enthalpy (cal/mol) and entropy (cal/mol/K) it derives from"""
    tm: float
    enthalpy: float
    entropy: float
    method: str

    has_energies = True

    @property
    def enthalpy_joules(self) -> float:
        return self.enthalpy * CALORIE_TO_JOULE

    @property
    def entropy_joules(self) -> float:
        return self.entropy * CALORIE_TO_JOULE

    def free_energy(self, temperature: float = 310.15) -> float:
        """dG = dH - T dS at ``temperature`` (kelvin), in cal/mol"""
        return self.enthalpy - temperature * self.entropy

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'tm': self.tm,
            'enthalpy': self.enthalpy,
            'entropy': self.entropy,
            'enthalpy_joules': self.enthalpy_joules,
            'entropy_joules': self.entropy_joules,
        }

    def summary_lines(self) -> List[str]:
        return [
            f"Method: {self.method}",
            f"Enthalpy: {self.enthalpy:.1f} cal/mol ({self.enthalpy_joules:.1f} J/mol)",
            f"Entropy: {self.entropy:.3f} cal/mol/K ({self.entropy_joules:.3f} J/mol/K)",
            f"Melting temperature: {self.tm:.2f} °C",
        ]


ThermoResult = Union[ApproximativeResult, NearestNeighborResult]


def denaturant_correction(tm: float, environment: Environment) -> float:
    """Lower Tm by a fixed amount per percent DMSO and formamide"""
    dmso = environment.denaturants.get('DMSO', 0.0)
    formamide = environment.denaturants.get('formamide', 0.0)
    return (tm - DENATURANT_DEFAULTS['DMSO_FACTOR'] * dmso
            - DENATURANT_DEFAULTS['FORMAMIDE_FACTOR'] * formamide)


def stoichiometry_factor(environment: Environment) -> float:
    """1 for self-complementary duplexes, 4 otherwise, unless overridden"""
    if environment.concentration_factor is not None:
        return environment.concentration_factor
    return 1.0 if environment.self_complementary else 4.0


def melting_temperature(enthalpy: float, entropy: float, environment: Environment) -> float:
    """
    Tm in degrees Celsius from corrected energies

    Duplex: Tm = dH / (dS + R ln(Ct / x)); hairpin: Tm = dH / dS.

    Raises:
        InvalidConcentration: Ct / x is not positive
        DivisionByZero: the denominator vanishes
    """
    if environment.structure.is_hairpin:
        denominator = entropy
    else:
        effective = environment.strand_concentration / stoichiometry_factor(environment)
        if effective <= 0:
            raise InvalidConcentration(f"Effective strand concentration must be positive, got {effective}")
        denominator = entropy + GAS_CONSTANT * math.log(effective)

    if denominator == 0:
        raise DivisionByZero("The melting-temperature equation has a zero denominator")
    return enthalpy / denominator - KELVIN_OFFSET


def finalize(method, enthalpy: Optional[float], entropy: Optional[float],
             environment: Environment, tm: Optional[float] = None) -> ThermoResult:
    """
    Package the result of one computation

    Args:
        method: selected MethodHandle
        enthalpy: corrected enthalpy (cal/mol), None for approximative methods
        entropy: corrected entropy (cal/mol/K), None for approximative methods
        environment: validated environment
        tm: Tm from an approximative formula

    Returns:
        ApproximativeResult or NearestNeighborResult
    """
    if tm is not None:
        result = ApproximativeResult(denaturant_correction(tm, environment), method.identity)
    else:
        tm = melting_temperature(enthalpy, entropy, environment)
        result = NearestNeighborResult(denaturant_correction(tm, environment),
                                       enthalpy, entropy, method.identity)
    logger.debug(f"{method.identity}: Tm = {result.tm:.2f} C")
    return result


__all__ = [
    'ApproximativeResult',
    'NearestNeighborResult',
    'ThermoResult',
    'finalize',
    'melting_temperature',
    'stoichiometry_factor',
    'denaturant_correction',
]
