"""
Correction pipeline
Four stages applied in a fixed order to the raw nearest-neighbor sums:

    1. initiation
    2. terminal mismatch / dangling end
    3. loop
    4. salt

Each stage has the signature ``(enthalpy, entropy, environment, store, method)
-> (enthalpy, entropy)`` and returns new values without touching its inputs.
The salt stage must run last: the Owczarzy corrections scale with the
corrected enthalpy.
"""
import logging
import math
from typing import Callable, Tuple

from ..config.defaults import ION_DEFAULTS
from .environment import Environment
from .exceptions import InvalidConcentration, UnknownMotif
from .tables import ParameterTableStore
from .utils import SequenceUtils

logger = logging.getLogger(__name__)

Energies = Tuple[float, float]
Stage = Callable[..., Energies]

TERMINAL_MISMATCH_TABLES = {
    'dnadna': 'dna_terminal_mismatch',
}

DANGLING_END_TABLES = {
    'dnadna': 'dna_dangling',
    'rnarna': 'rna_dangling',
}


def _as_dna(sequence: str) -> str:
    return sequence.replace('U', 'T')


# ============================================================================
# 1. Initiation
# ============================================================================

def initiation_stage(enthalpy: float, entropy: float, environment: Environment,
                     store: ParameterTableStore, method) -> Energies:
    """
    Add the initiation terms of the selected model

    Duplexes take the general term, the all-A/T or one-G/C term, the 5'T/3'A
    penalty, one terminal A/T or G/C term per helix end and the symmetry term
    for self-complementary strands. A hairpin has a single free helix end and
    takes only that end's terminal term.
    """
    if 'initiation' not in environment.corrections or method.handler.applies_initiation:
        return enthalpy, entropy

    table = store.table(method.name)
    stage = 'initiation'
    top = _as_dna(environment.structure.top)

    if environment.structure.is_hairpin:
        terms = ['init_A/T' if top[0] in 'AT' else 'init_G/C']
    else:
        terms = ['init']
        terms.append('init_oneG/C' if ('G' in top or 'C' in top) else 'init_allA/T')
        if top.startswith('T'):
            terms.append('init_5T/A')
        if top.endswith('A'):
            terms.append('init_5T/A')
        for base in (top[0], top[-1]):
            terms.append('init_A/T' if base in 'AT' else 'init_G/C')
        if environment.self_complementary:
            terms.append('sym')

    for term in terms:
        delta_h, delta_s = table.lookup(term, stage)
        enthalpy += delta_h
        entropy += delta_s

    logger.debug(f"initiation ({', '.join(terms)}): dH = {enthalpy:.1f}, dS = {entropy:.2f}")
    return enthalpy, entropy


# ============================================================================
# 2. Terminal mismatches and dangling ends
# ============================================================================

def _feature_energy(store: ParameterTableStore, tables, variant: str,
                    key: str, stage: str) -> Energies:
    name = tables.get(variant)
    if name is None or not store.has_table(name):
        raise UnknownMotif(key, f"{stage} ({variant})", stage)
    table = store.table(name)
    energy = table.find(key)
    if energy is None:
        energy = table.lookup(key[::-1], stage)
    return energy


def terminal_stage(enthalpy: float, entropy: float, environment: Environment,
                   store: ParameterTableStore, method) -> Energies:
    """Add terminal mismatch and dangling end contributions"""
    structure = environment.structure
    variant = environment.variant
    features = []

    if 'terminal_mismatch' in environment.corrections:
        for key in (structure.left_mismatch, structure.right_mismatch):
            if key:
                features.append((TERMINAL_MISMATCH_TABLES, key, 'terminal mismatch'))
    if 'dangling_end' in environment.corrections:
        for key in (structure.left_dangling, structure.right_dangling):
            if key:
                features.append((DANGLING_END_TABLES, key, 'dangling end'))

    for tables, key, stage in features:
        delta_h, delta_s = _feature_energy(store, tables, variant, key, stage)
        enthalpy += delta_h
        entropy += delta_s
        logger.debug(f"{stage} {key}: dH += {delta_h:.1f}, dS += {delta_s:.2f}")

    return enthalpy, entropy


# ============================================================================
# 3. Loops
# ============================================================================

def loop_stage(enthalpy: float, entropy: float, environment: Environment,
               store: ParameterTableStore, method) -> Energies:
    """
    Add loop penalties

    Each loop takes its '<kind>:<length>' entry and one 'closing:AT' entry per
    A/T closing pair. One-base bulges carry no closing penalty since their
    flanking stack is already counted by the nearest-neighbor walk.
    """
    loops = environment.structure.loops
    if 'loop' not in environment.corrections or not loops:
        return enthalpy, entropy

    table = store.table('loops')
    for loop in loops:
        delta_h, delta_s = table.lookup(loop.key, 'loop')
        enthalpy += delta_h
        entropy += delta_s
        if not (loop.kind == 'bulge' and loop.length == 1):
            closing_h, closing_s = table.lookup('closing:AT', 'loop')
            enthalpy += closing_h * loop.at_closing_count
            entropy += closing_s * loop.at_closing_count
        logger.debug(f"loop {loop.key}: dS = {entropy:.2f}")

    return enthalpy, entropy


# ============================================================================
# 4. Salt
# ============================================================================

def choose_salt_model(environment: Environment) -> str:
    """Requested salt model, else owc08 for magnesium with DNA, else san04"""
    if environment.salt_model:
        return environment.salt_model
    if environment.ion('Mg') > 0 and environment.variant in ('dnadna', 'hairpin_dna'):
        return ION_DEFAULTS['DEFAULT_MAGNESIUM_SALT_MODEL']
    return ION_DEFAULTS['DEFAULT_SALT_MODEL']


def _owczarzy_2004(coefficients, gc_fraction: float, sodium: float) -> float:
    if sodium <= 0:
        raise InvalidConcentration("The Owczarzy 2004 salt correction needs a positive monovalent concentration")
    log_na = math.log(sodium)
    return ((coefficients['a'] * gc_fraction + coefficients['b']) * log_na
            + coefficients['c'] * log_na ** 2)


def _owczarzy_2008(store: ParameterTableStore, environment: Environment,
                   gc_fraction: float, length: int) -> float:
    c = store.salt_model('owc08')
    monovalent = environment.monovalent
    magnesium = environment.ion('Mg')
    dntp = environment.ion('dNTP')

    if dntp > 0:
        # free Mg2+ left after dNTP binding
        ka = c['ka']
        b = ka * dntp - ka * magnesium + 1.0
        magnesium = (-b + math.sqrt(b ** 2 + 4.0 * ka * magnesium)) / (2.0 * ka)
    if magnesium <= 0:
        raise InvalidConcentration("No free Mg2+ left for the Owczarzy 2008 salt correction")

    a, d, g = c['a'], c['d'], c['g']
    if monovalent > 0:
        ratio = math.sqrt(magnesium) / monovalent
        if ratio < c['low_ratio']:
            return _owczarzy_2004(store.salt_model('owc04'), gc_fraction, monovalent)
        if ratio < c['high_ratio']:
            log_mon = math.log(monovalent)
            a = c['a'] * (0.843 - 0.352 * math.sqrt(monovalent) * log_mon)
            d = c['d'] * (1.279 - 4.03e-3 * log_mon - 8.03e-3 * log_mon ** 2)
            g = c['g'] * (0.486 - 0.258 * log_mon + 5.25e-3 * log_mon ** 3)

    log_mg = math.log(magnesium)
    return (a + c['b'] * log_mg
            + gc_fraction * (c['c'] + d * log_mg)
            + (1.0 / (2.0 * (length - 1))) * (c['e'] + c['f'] * log_mg + g * log_mg ** 2)) * 1e-5


def salt_stage(enthalpy: float, entropy: float, environment: Environment,
               store: ParameterTableStore, method) -> Energies:
    """
    Correct the entropy for the ionic conditions

    san04 adds 0.368 (N - 1) ln[Na+eq], N being the length of the duplex core
    (mismatched and bulged positions keep their phosphates) or of a hairpin
    stem. The Owczarzy models are corrections of 1/Tm and enter as
    dS += dH * correction. Without free cations (no ions, or dNTP only) the
    stage is skipped.
    """
    cations = environment.total_ions - environment.ion('dNTP')
    if 'salt' not in environment.corrections or cations <= 0:
        return enthalpy, entropy

    structure = environment.structure
    length = len(structure.top)
    gc_fraction = SequenceUtils.gc_fraction(structure.top)
    model = choose_salt_model(environment)
    if model == 'owc08' and environment.ion('Mg') == 0:
        model = 'owc04'

    if model == 'san04':
        sodium = environment.sodium_equivalent
        if sodium <= 0:
            raise InvalidConcentration("The salt correction needs a positive sodium-equivalent concentration")
        correction = store.salt_model('san04')['slope'] * (length - 1) * math.log(sodium)
    elif model == 'owc04':
        correction = enthalpy * _owczarzy_2004(store.salt_model('owc04'), gc_fraction,
                                               environment.sodium_equivalent)
    else:
        correction = enthalpy * _owczarzy_2008(store, environment, gc_fraction, length)

    logger.debug(f"salt ({model}): dS += {correction:.3f}")
    return enthalpy, entropy + correction


# ============================================================================
# Pipeline
# ============================================================================

STAGES = (
    ('initiation', initiation_stage),
    ('terminal', terminal_stage),
    ('loop', loop_stage),
    ('salt', salt_stage),
)


def run_pipeline(enthalpy: float, entropy: float, environment: Environment,
                 store: ParameterTableStore, method, stages=STAGES) -> Energies:
    """
    Apply the correction stages in order

    Args:
        enthalpy: raw enthalpy (cal/mol)
        entropy: raw entropy (cal/mol/K)
        environment: validated environment
        store: parameter table store
        method: selected MethodHandle
        stages: (name, stage) pairs, STAGES by default

    Returns:
        (enthalpy, entropy) after every stage
    """
    for name, stage in stages:
        enthalpy, entropy = stage(enthalpy, entropy, environment, store, method)
        logger.debug(f"after {name}: dH = {enthalpy:.1f} cal/mol, dS = {entropy:.3f} cal/mol/K")
    return enthalpy, entropy


__all__ = [
    'STAGES',
    'run_pipeline',
    'initiation_stage',
    'terminal_stage',
    'loop_stage',
    'salt_stage',
    'choose_salt_model',
]
