"""
Computation environment
The validated, immutable snapshot of one melting-temperature request, and the
loader that builds it from raw user options.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from ..config.defaults import ENGINE_DEFAULTS, ION_DEFAULTS, DENATURANT_DEFAULTS, get_config
from .exceptions import InvalidConcentration, InvalidEnvironment
from .structure import DuplexStructure, analyze_duplex, analyze_hairpin
from .utils import SequenceUtils

logger = logging.getLogger(__name__)

CORRECTIONS = frozenset(ENGINE_DEFAULTS['DEFAULT_CORRECTIONS'])
KNOWN_IONS = frozenset(ION_DEFAULTS['KNOWN_IONS'])
KNOWN_DENATURANTS = frozenset(DENATURANT_DEFAULTS['KNOWN_DENATURANTS'])
SALT_MODELS = frozenset(['san04', 'owc04', 'owc08'])


def _positive(value, label: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidEnvironment(f"{label} is not a number: {value!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidConcentration(f"{label} must be finite and positive, got {value}")
    return value


class HybridizationType(Enum):
    """Kind of structure being melted"""
    DNADNA = 'dnadna'
    DNARNA = 'dnarna'
    RNARNA = 'rnarna'
    HAIRPIN = 'hairpin'

    @classmethod
    def parse(cls, value) -> 'HybridizationType':
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace('/', '').replace('-', '')
        try:
            return cls(text)
        except ValueError:
            choices = ', '.join(member.value for member in cls)
            raise InvalidEnvironment(f"Unknown hybridization type '{value}' (expected one of {choices})") from None


@dataclass(frozen=True)
class Environment:
    """
    One melting-temperature request

    Attributes:
        sequence: top strand 5'->3' (the RNA strand for DNA/RNA hybrids)
        complement: bottom strand 3'->5', None for the perfect complement
        hybridization: HybridizationType
        ions: ion name -> molar concentration
        strand_concentration: molar strand concentration
        self_complementary: None to detect it from the sequence
        model: requested model name, None for automatic selection
        corrections: correction names to apply
        salt_model: requested salt model, None to choose from the ion mix
        concentration_factor: overrides the stoichiometry divisor of the Tm equation
        denaturants: 'DMSO' / 'formamide' percentages
    """
    sequence: str
    hybridization: HybridizationType = HybridizationType.DNADNA
    complement: Optional[str] = None
    ions: Mapping[str, float] = field(default_factory=dict)
    strand_concentration: float = ENGINE_DEFAULTS['DEFAULT_STRAND_CONCENTRATION']
    self_complementary: Optional[bool] = None
    model: Optional[str] = None
    corrections: FrozenSet[str] = CORRECTIONS
    salt_model: Optional[str] = None
    concentration_factor: Optional[float] = None
    denaturants: Mapping[str, float] = field(default_factory=dict)
    structure: DuplexStructure = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        hybridization = HybridizationType.parse(self.hybridization)
        object.__setattr__(self, 'hybridization', hybridization)

        sequence = SequenceUtils.normalize(self.sequence or '')
        if not sequence:
            raise InvalidEnvironment("The sequence is empty")
        object.__setattr__(self, 'sequence', sequence)
        if self.model is not None:
            object.__setattr__(self, 'model', str(self.model).strip().lower())

        self._validate_alphabet()
        object.__setattr__(self, 'ions', MappingProxyType(self._validate_amounts(
            self.ions, KNOWN_IONS, 'ion')))
        object.__setattr__(self, 'denaturants', MappingProxyType(self._validate_amounts(
            self.denaturants, KNOWN_DENATURANTS, 'denaturant')))

        object.__setattr__(self, 'strand_concentration',
                           _positive(self.strand_concentration, 'Strand concentration'))
        if self.concentration_factor is not None:
            object.__setattr__(self, 'concentration_factor',
                               _positive(self.concentration_factor, 'Concentration factor'))

        corrections = frozenset(self.corrections)
        unknown = corrections - CORRECTIONS
        if unknown:
            raise InvalidEnvironment(f"Unknown corrections: {', '.join(sorted(unknown))}")
        object.__setattr__(self, 'corrections', corrections)

        if self.salt_model is not None and self.salt_model not in SALT_MODELS:
            raise InvalidEnvironment(f"Unknown salt model '{self.salt_model}'")

        self._resolve_self_complementarity()

        if self.hybridization is HybridizationType.HAIRPIN:
            structure = analyze_hairpin(sequence, ENGINE_DEFAULTS['MIN_HAIRPIN_LOOP'])
        else:
            structure = analyze_duplex(sequence, self.paired_complement)
        object.__setattr__(self, 'structure', structure)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _validate_alphabet(self):
        hybridization = self.hybridization
        sequence = self.sequence

        if hybridization is HybridizationType.HAIRPIN:
            if self.complement:
                raise InvalidEnvironment("A hairpin is a single strand, no complement is accepted")
            alphabet = SequenceUtils.RNA_BASES if 'U' in sequence else SequenceUtils.DNA_BASES
            complement_alphabet = None
        elif hybridization is HybridizationType.DNADNA:
            alphabet = SequenceUtils.DNA_BASES | SequenceUtils.MODIFIED_DNA_BASES
            complement_alphabet = alphabet | {SequenceUtils.GAP}
        elif hybridization is HybridizationType.RNARNA:
            alphabet = SequenceUtils.RNA_BASES
            complement_alphabet = alphabet | {SequenceUtils.GAP}
        else:
            alphabet = SequenceUtils.RNA_BASES
            complement_alphabet = SequenceUtils.DNA_BASES | {SequenceUtils.GAP}

        invalid = SequenceUtils.invalid_bases(sequence, alphabet)
        if invalid:
            raise InvalidEnvironment(
                f"Invalid bases {''.join(sorted(invalid))} in sequence for {hybridization.value}")

        if self.complement:
            complement = SequenceUtils.normalize(self.complement)
            invalid = SequenceUtils.invalid_bases(complement, complement_alphabet)
            if invalid:
                raise InvalidEnvironment(
                    f"Invalid bases {''.join(sorted(invalid))} in complement for {hybridization.value}")
            if len(complement) != len(sequence):
                raise InvalidEnvironment(
                    f"Complement length {len(complement)} does not match sequence length {len(sequence)}")
            object.__setattr__(self, 'complement', complement)
        else:
            object.__setattr__(self, 'complement', None)

    @staticmethod
    def _validate_amounts(amounts, known, what) -> Dict[str, float]:
        validated = {}
        for name, value in dict(amounts or {}).items():
            if name not in known:
                raise InvalidEnvironment(f"Unknown {what} '{name}' (expected one of {', '.join(sorted(known))})")
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise InvalidEnvironment(f"Concentration of {name} is not a number: {value!r}") from None
            if not math.isfinite(value) or value < 0:
                raise InvalidConcentration(f"Concentration of {name} must be finite and non-negative, got {value}")
            validated[name] = value
        return validated

    def _resolve_self_complementarity(self):
        hybridization = self.hybridization
        if hybridization is HybridizationType.DNARNA:
            if self.self_complementary:
                raise InvalidEnvironment("A DNA/RNA hybrid cannot be self-complementary")
            object.__setattr__(self, 'self_complementary', False)
        elif hybridization is HybridizationType.HAIRPIN:
            object.__setattr__(self, 'self_complementary', False)
        elif self.self_complementary is None:
            perfect = SequenceUtils.complement(self.sequence, self.is_rna)
            detected = (self.complement in (None, perfect)
                        and SequenceUtils.is_self_complementary(self.sequence, self.is_rna))
            object.__setattr__(self, 'self_complementary', detected)
        else:
            object.__setattr__(self, 'self_complementary', bool(self.self_complementary))

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_rna(self) -> bool:
        """Whether the top strand is RNA"""
        if self.hybridization is HybridizationType.HAIRPIN:
            return 'U' in self.sequence
        return self.hybridization in (HybridizationType.RNARNA, HybridizationType.DNARNA)

    @property
    def variant(self) -> str:
        """Hybridization key used by the model catalogue"""
        if self.hybridization is HybridizationType.HAIRPIN:
            return 'hairpin_rna' if self.is_rna else 'hairpin_dna'
        return self.hybridization.value

    @property
    def paired_complement(self) -> str:
        """Bottom strand 3'->5', the perfect complement when none was given"""
        if self.complement is not None:
            return self.complement
        complement_is_rna = self.hybridization is HybridizationType.RNARNA
        return SequenceUtils.complement(self.sequence, complement_is_rna)

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def total_ions(self) -> float:
        return sum(self.ions.values())

    def ion(self, name: str) -> float:
        return self.ions.get(name, 0.0)

    @property
    def monovalent(self) -> float:
        """Na+ + K+ + Tris/2 (molar)"""
        return self.ion('Na') + self.ion('K') + self.ion('Tris') / 2.0

    @property
    def sodium_equivalent(self) -> float:
        """
        Sodium-equivalent concentration (von Ahsen et al. 2001)

        Free Mg2+ (Mg - dNTP) counts as 3.795 * sqrt([Mg2+]) in molar units.
        """
        equivalent = self.monovalent
        free_magnesium = self.ion('Mg') - self.ion('dNTP')
        if free_magnesium > 0:
            equivalent += ION_DEFAULTS['MG_SODIUM_EQUIVALENT'] * math.sqrt(free_magnesium)
        return equivalent


# ============================================================================
# Option loader
# ============================================================================

def _parse_amounts(value, what: str) -> Dict[str, float]:
    """Parse 'Na=0.05,Mg=0.0015' style strings (or pass a mapping through)"""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)

    amounts = {}
    for item in str(value).replace(';', ',').split(','):
        item = item.strip()
        if not item:
            continue
        if '=' not in item:
            raise InvalidEnvironment(f"Malformed {what} '{item}' (expected NAME=VALUE)")
        name, amount = (part.strip() for part in item.split('=', 1))
        try:
            amounts[name] = float(amount)
        except ValueError:
            raise InvalidEnvironment(f"Malformed {what} concentration '{item}'") from None
    return amounts


def _parse_corrections(value, default: Iterable[str]) -> FrozenSet[str]:
    if value is None:
        return frozenset(default)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('', 'none'):
            return frozenset()
        if text == 'all':
            return CORRECTIONS
        value = text.split(',')
    return frozenset(item.strip() for item in value if item.strip())


def _parse_bool(value) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('true', 'yes', '1', 'y'):
        return True
    if text in ('false', 'no', '0', 'n'):
        return False
    if text in ('', 'auto', 'none'):
        return None
    raise InvalidEnvironment(f"Expected a boolean, got {value!r}")


def _parse_float(value, name: str) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidEnvironment(f"{name} must be a number, got {value!r}") from None


def build_environment(options: Dict[str, Any], config: Optional[Dict] = None) -> Environment:
    """
    Build a validated Environment from raw options

    Args:
        options: dict with 'sequence' and optionally 'complement',
            'hybridization', 'ions', 'strand_concentration',
            'self_complementary', 'model', 'corrections', 'salt_model',
            'concentration_factor', 'denaturants'. Values may be strings
            as typed on a command line.
        config: configuration dict (defaults from get_config())

    Returns:
        Environment

    Raises:
        InvalidEnvironment: missing or malformed option
    """
    config = config or get_config()
    engine_config = config['engine']
    ion_config = config['ions']

    if not options.get('sequence'):
        raise InvalidEnvironment("A sequence is required")

    ions = _parse_amounts(options.get('ions'), 'ion')
    if not ions and options.get('ions') is None:
        ions = dict(ion_config.get('DEFAULT_IONS', {}))

    strand_concentration = _parse_float(options.get('strand_concentration'), 'Strand concentration')
    if strand_concentration is None:
        strand_concentration = engine_config['DEFAULT_STRAND_CONCENTRATION']

    model = options.get('model') or None
    salt_model = options.get('salt_model') or None

    environment = Environment(
        sequence=str(options['sequence']),
        hybridization=options.get('hybridization') or 'dnadna',
        complement=options.get('complement') or None,
        ions=ions,
        strand_concentration=strand_concentration,
        self_complementary=_parse_bool(options.get('self_complementary')),
        model=model,
        corrections=_parse_corrections(options.get('corrections'),
                                       engine_config['DEFAULT_CORRECTIONS']),
        salt_model=salt_model.lower() if salt_model else None,
        concentration_factor=_parse_float(options.get('concentration_factor'), 'Concentration factor'),
        denaturants=_parse_amounts(options.get('denaturants'), 'denaturant'),
    )
    logger.debug(f"Environment built: {environment}")
    return environment


__all__ = [
    'HybridizationType',
    'Environment',
    'build_environment',
    'CORRECTIONS',
]
