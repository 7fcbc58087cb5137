"""
Computation methods
Approximative formulas give Tm directly from composition and length; the
nearest-neighbor method sums stacking energies over the paired core.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .environment import Environment
from .exceptions import InvalidConcentration
from .tables import ParameterTable, ParameterTableStore
from .utils import SequenceUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawThermo:
    """Uncorrected nearest-neighbor sums (cal/mol, cal/mol/K)"""
    enthalpy: float
    entropy: float
    initiation_applied: bool = False


# ============================================================================
# Approximative formulas
# ============================================================================

def _salt_term(sodium: float) -> float:
    if sodium <= 0:
        raise InvalidConcentration("This formula needs a positive sodium-equivalent concentration")
    return 16.6 * math.log10(sodium / (1.0 + 0.7 * sodium))


def tm_wallace(sequence: str, sodium: float) -> float:
    """Wallace rule: 2(A+T) + 4(G+C)"""
    counts = SequenceUtils.count_bases(sequence)
    return 2.0 * (counts['A'] + counts['T']) + 4.0 * (counts['G'] + counts['C'])


def tm_marmur(sequence: str, sodium: float) -> float:
    """Marmur-Schildkraut-Doty: 64.9 + 41 (G+C - 16.4) / N"""
    counts = SequenceUtils.count_bases(sequence)
    return 64.9 + 41.0 * (counts['G'] + counts['C'] - 16.4) / len(sequence)


def tm_schildkraut_doty(sequence: str, sodium: float) -> float:
    """81.5 + 16.6 log10[Na+] + 0.41 %GC - 675 / N"""
    if sodium <= 0:
        raise InvalidConcentration("This formula needs a positive sodium-equivalent concentration")
    gc = SequenceUtils.gc_fraction(sequence) * 100
    return 81.5 + 16.6 * math.log10(sodium) + 0.41 * gc - 675.0 / len(sequence)


def tm_wetmur_dna(sequence: str, sodium: float) -> float:
    """Wetmur (1991) DNA/DNA"""
    gc = SequenceUtils.gc_fraction(sequence) * 100
    return 81.5 + _salt_term(sodium) + 0.41 * gc - 500.0 / len(sequence)


def tm_wetmur_rna(sequence: str, sodium: float) -> float:
    """Wetmur (1991) RNA/RNA"""
    gc = SequenceUtils.gc_fraction(sequence) * 100
    return 78.0 + _salt_term(sodium) + 0.7 * gc - 500.0 / len(sequence)


def tm_wetmur_hybrid(sequence: str, sodium: float) -> float:
    """Wetmur (1991) DNA/RNA"""
    gc = SequenceUtils.gc_fraction(sequence) * 100
    return 67.0 + _salt_term(sodium) + 0.8 * gc - 500.0 / len(sequence)


# name -> (formula, supported hybridizations)
APPROXIMATIVE_MODELS: Dict[str, Tuple[Callable[[str, float], float], Tuple[str, ...]]] = {
    'wallace': (tm_wallace, ('dnadna',)),
    'marmur': (tm_marmur, ('dnadna',)),
    'schdot': (tm_schildkraut_doty, ('dnadna',)),
    'wetdna91': (tm_wetmur_dna, ('dnadna',)),
    'wetrna91': (tm_wetmur_rna, ('rnarna',)),
    'wetdnarna91': (tm_wetmur_hybrid, ('dnarna',)),
}

# name -> supported hybridizations
NEAREST_NEIGHBOR_MODELS: Dict[str, Tuple[str, ...]] = {
    'bre86': ('dnadna', 'hairpin_dna'),
    'sug96': ('dnadna', 'hairpin_dna'),
    'all97': ('dnadna', 'hairpin_dna'),
    'san04': ('dnadna', 'hairpin_dna'),
    'fre86': ('rnarna', 'hairpin_rna'),
    'xia98': ('rnarna', 'hairpin_rna'),
    'che12': ('rnarna', 'hairpin_rna'),
    'sug95': ('dnarna',),
}


class ApproximativeMethod:
    """Closed-form Tm from composition and length"""

    applies_initiation = False

    def __init__(self, name: str):
        self.name = name
        self.formula, self.hybridizations = APPROXIMATIVE_MODELS[name]

    def compute(self, environment: Environment, store: Optional[ParameterTableStore] = None) -> float:
        """
        Args:
            environment: validated environment
            store: unused, accepted for a uniform handler signature

        Returns:
            float: Tm in degrees Celsius
        """
        tm = self.formula(environment.sequence, environment.sodium_equivalent)
        logger.debug(f"{self.name}: Tm = {tm:.2f} C for {environment.length} nt")
        return tm

    def __repr__(self):
        return f"ApproximativeMethod({self.name!r})"


class NearestNeighborMethod:
    """
    Sum of stacking energies over the paired core, read 5'->3'

    Single mismatches are read from the DNA mismatch table, loops are left
    to the correction pipeline except one-base bulges, which contribute the
    stack of their two flanking pairs. Initiation is not included.
    """

    applies_initiation = False
    MISMATCH_TABLE = 'dna_mismatch'

    def __init__(self, name: str):
        self.name = name
        self.hybridizations = NEAREST_NEIGHBOR_MODELS[name]

    def stack_table(self, store: ParameterTableStore) -> ParameterTable:
        return store.table(self.name)

    @staticmethod
    def _lookup(tables, key: str) -> Tuple[float, float]:
        for table in tables:
            for candidate in (key, key[::-1]):
                energy = table.find(candidate)
                if energy is not None:
                    return energy
        # raises UnknownMotif against the first table searched
        return tables[0].lookup(key, 'nearest-neighbor')

    def steps(self, environment: Environment):
        """
        Yield (key, has_mismatch) for every stack of the paired core

        One-base bulges are bridged; wider loops interrupt the walk.
        """
        structure = environment.structure
        top, bottom = structure.top, structure.bottom
        in_loop = structure.loop_positions()
        single_bulges = {loop.start for loop in structure.loops
                         if loop.kind == 'bulge' and loop.length == 1}
        mismatches = set(structure.mismatches)

        positions = [i for i in range(len(top)) if i not in in_loop]
        for left, right in zip(positions, positions[1:]):
            if right - left > 1 and not (right - left == 2 and left + 1 in single_bulges):
                continue
            key = top[left] + top[right] + '/' + bottom[left] + bottom[right]
            yield key, (left in mismatches or right in mismatches)

    def compute(self, environment: Environment, store: ParameterTableStore) -> RawThermo:
        """
        Args:
            environment: validated environment with at least two paired positions
            store: parameter table store

        Returns:
            RawThermo: raw enthalpy/entropy, initiation not applied

        Raises:
            UnknownMotif: a step is missing from every candidate table
        """
        stacks = self.stack_table(store)
        mismatch_tables = [stacks]
        if environment.variant in ('dnadna', 'hairpin_dna') and store.has_table(self.MISMATCH_TABLE):
            mismatch_tables = [store.table(self.MISMATCH_TABLE), stacks]

        enthalpy = 0.0
        entropy = 0.0
        for key, has_mismatch in self.steps(environment):
            delta_h, delta_s = self._lookup(mismatch_tables if has_mismatch else [stacks], key)
            enthalpy += delta_h
            entropy += delta_s

        logger.debug(f"{self.name}: raw dH = {enthalpy:.1f} cal/mol, dS = {entropy:.2f} cal/mol/K")
        return RawThermo(enthalpy, entropy, initiation_applied=self.applies_initiation)

    def __repr__(self):
        return f"NearestNeighborMethod({self.name!r})"


__all__ = [
    'RawThermo',
    'ApproximativeMethod',
    'NearestNeighborMethod',
    'APPROXIMATIVE_MODELS',
    'NEAREST_NEIGHBOR_MODELS',
]
