"""
Parameter table store
Read-only thermodynamic tables shared by every computation: nearest-neighbor
stacks, internal/terminal mismatches, dangling ends, loop penalties and salt
correction coefficients.

Values are (enthalpy cal/mol, entropy cal/mol/K). Stacking, mismatch and
dangling-end data come from Biopython's ``Bio.SeqUtils.MeltingTemp``; loop
penalties are SantaLucia & Hicks (2004) free energies at 37 C.
"""
import logging
import re
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .exceptions import TableLoadError, UnknownMotif

logger = logging.getLogger(__name__)

Energy = Tuple[float, float]

# Motif keys look like 'AC/TG' (top 5'->3' / bottom 3'->5'), '-' marks a gap
MOTIF_PATTERN = re.compile(r'^[ACGTUI-]{2}/[ACGTUI-]{2}$')

# Biopython table -> store name, and which strands are RNA
NN_SOURCES = {
    'bre86': ('DNA_NN1', False, False),   # Breslauer et al. 1986
    'sug96': ('DNA_NN2', False, False),   # Sugimoto et al. 1996
    'all97': ('DNA_NN3', False, False),   # Allawi & SantaLucia 1997
    'san04': ('DNA_NN4', False, False),   # SantaLucia & Hicks 2004
    'fre86': ('RNA_NN1', True, True),     # Freier et al. 1986
    'xia98': ('RNA_NN2', True, True),     # Xia et al. 1998
    'che12': ('RNA_NN3', True, True),     # Chen et al. 2012
    'sug95': ('R_DNA_NN1', True, False),  # Sugimoto et al. 1995, RNA top / DNA bottom
}

EXTRA_SOURCES = {
    'dna_mismatch': ('DNA_IMM1', False, False),
    'dna_terminal_mismatch': ('DNA_TMM1', False, False),
    'dna_dangling': ('DNA_DE1', False, False),
    'rna_dangling': ('RNA_DE1', True, True),
}

# SantaLucia & Hicks (2004), dG37 in kcal/mol by loop length
HAIRPIN_LOOP_DG = {
    3: 3.5, 4: 3.5, 5: 3.3, 6: 4.0, 7: 4.2, 8: 4.3, 9: 4.5, 10: 4.6,
    12: 5.0, 14: 5.1, 16: 5.3, 18: 5.5, 20: 5.7, 25: 6.1, 30: 6.3,
}
BULGE_LOOP_DG = {
    1: 4.0, 2: 2.9, 3: 3.1, 4: 3.2, 5: 3.3, 6: 3.5, 7: 3.7, 8: 3.9, 9: 4.1,
    10: 4.3, 12: 4.5, 14: 4.8, 16: 5.0, 18: 5.2, 20: 5.3, 25: 5.6, 30: 5.9,
}
INTERNAL_LOOP_DG = {
    3: 3.2, 4: 3.6, 5: 4.0, 6: 4.4, 7: 4.6, 8: 4.8, 9: 4.9, 10: 4.9,
    12: 5.2, 14: 5.4, 16: 5.6, 18: 5.8, 20: 5.9, 25: 6.3, 30: 6.6,
}
# Penalty per A/T pair closing a loop
CLOSING_AT_DG = 0.5

REFERENCE_TEMPERATURE = 310.15

# Salt correction coefficients
SALT_COEFFICIENTS = {
    # SantaLucia (1998): dS += 0.368 (N - 1) ln[Na+]
    'san04': {'slope': 0.368},
    # Owczarzy et al. (2004): 1/Tm += (a f_GC + b) ln[Na+] + c ln^2[Na+]
    'owc04': {'a': 4.29e-5, 'b': -3.95e-5, 'c': 9.40e-6},
    # Owczarzy et al. (2008): magnesium expression with its empirical constants
    'owc08': {
        'a': 3.92, 'b': -0.911, 'c': 6.26, 'd': 1.42,
        'e': -48.2, 'f': 52.5, 'g': 8.31,
        'ka': 3e4, 'low_ratio': 0.22, 'high_ratio': 6.0,
    },
}


# ============================================================================
# Data classes
# ============================================================================

@dataclass(frozen=True)
class ParameterTable:
    """A named motif -> (enthalpy, entropy) table"""
    name: str
    entries: Mapping[str, Energy]

    def lookup(self, key: str, stage: Optional[str] = None) -> Energy:
        """
        Return the energies for ``key``

        Raises:
            UnknownMotif: the key is not in the table
        """
        try:
            return self.entries[key]
        except KeyError:
            raise UnknownMotif(key, self.name, stage) from None

    def find(self, key: str) -> Optional[Energy]:
        """Optional probe, ``None`` when the key is absent"""
        return self.entries.get(key)

    def __contains__(self, key):
        return key in self.entries

    def __len__(self):
        return len(self.entries)


@dataclass(frozen=True)
class SaltModel:
    """Named salt correction with its empirical coefficients"""
    name: str
    coefficients: Mapping[str, float]

    def __getitem__(self, key):
        return self.coefficients[key]


@dataclass(frozen=True)
class ParameterTableStore:
    """Process-wide, read-only collection of tables and salt models"""
    tables: Mapping[str, ParameterTable]
    salt_models: Mapping[str, SaltModel] = field(default_factory=dict)

    def table(self, name: str) -> ParameterTable:
        try:
            return self.tables[name]
        except KeyError:
            raise TableLoadError(f"No parameter table named '{name}'") from None

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def salt_model(self, name: str) -> SaltModel:
        try:
            return self.salt_models[name]
        except KeyError:
            raise TableLoadError(f"No salt model named '{name}'") from None

    @property
    def nn_models(self):
        return tuple(name for name in NN_SOURCES if name in self.tables)


# ============================================================================
# Loading
# ============================================================================

def _normalize_key(key: str, top_rna: bool, bottom_rna: bool) -> str:
    """Strip whitespace, write gaps as '-' and RNA strands with U"""
    key = ''.join(key.split()).replace('.', '-')
    if not MOTIF_PATTERN.match(key):
        return key
    top, bottom = key.split('/')
    if top_rna:
        top = top.replace('T', 'U')
    if bottom_rna:
        bottom = bottom.replace('T', 'U')
    return f"{top}/{bottom}"


def build_table(name: str, raw: Mapping[str, Energy],
                top_rna: bool = False, bottom_rna: bool = False) -> ParameterTable:
    """
    Build a table from a Biopython-style dict

    Args:
        name: table name
        raw: key -> (enthalpy kcal/mol, entropy cal/mol/K)
        top_rna: the top strand of motif keys is RNA
        bottom_rna: the bottom strand of motif keys is RNA

    Returns:
        ParameterTable: energies in cal/mol and cal/mol/K
    """
    entries = {}
    for key, (enthalpy, entropy) in raw.items():
        normalized = _normalize_key(key, top_rna, bottom_rna)
        if normalized in entries:
            raise TableLoadError(f"Duplicate motif '{normalized}' in table '{name}'")
        entries[normalized] = (float(enthalpy) * 1000.0, float(entropy))
    return ParameterTable(name, MappingProxyType(entries))


def _interpolate(points: Dict[int, float]) -> Dict[int, float]:
    """Fill the lengths between tabulated loop sizes linearly"""
    sizes = sorted(points)
    filled = dict(points)
    for low, high in zip(sizes, sizes[1:]):
        for size in range(low + 1, high):
            ratio = (size - low) / (high - low)
            filled[size] = points[low] + ratio * (points[high] - points[low])
    return filled


def build_loop_table() -> ParameterTable:
    """Loop penalties stored as entropy only (dH = 0, dS = -dG37 / 310.15)"""
    entries = {}
    for kind, points in (('hairpin', HAIRPIN_LOOP_DG),
                         ('bulge', BULGE_LOOP_DG),
                         ('internal', INTERNAL_LOOP_DG)):
        for size, free_energy in _interpolate(points).items():
            entries[f"{kind}:{size}"] = (0.0, -free_energy * 1000.0 / REFERENCE_TEMPERATURE)
    entries['closing:AT'] = (0.0, -CLOSING_AT_DG * 1000.0 / REFERENCE_TEMPERATURE)
    return ParameterTable('loops', MappingProxyType(entries))


def load_table_store() -> ParameterTableStore:
    """
    Load every table

    Raises:
        TableLoadError: Biopython is missing or a table is malformed
    """
    try:
        from Bio.SeqUtils import MeltingTemp
    except ImportError as e:
        raise TableLoadError(f"Biopython is required for the parameter tables: {e}") from e

    tables = {}
    for name, (source, top_rna, bottom_rna) in {**NN_SOURCES, **EXTRA_SOURCES}.items():
        raw = getattr(MeltingTemp, source, None)
        if raw is None:
            raise TableLoadError(f"Bio.SeqUtils.MeltingTemp has no table {source}")
        try:
            tables[name] = build_table(name, raw, top_rna, bottom_rna)
        except (TypeError, ValueError) as e:
            raise TableLoadError(f"Malformed table {source}: {e}") from e
        logger.debug(f"Loaded table {name} ({len(tables[name])} motifs) from {source}")

    tables['loops'] = build_loop_table()

    salt_models = {
        name: SaltModel(name, MappingProxyType(dict(coefficients)))
        for name, coefficients in SALT_COEFFICIENTS.items()
    }

    logger.debug(f"Parameter tables loaded: {len(tables)} tables, {len(salt_models)} salt models")
    return ParameterTableStore(MappingProxyType(tables), MappingProxyType(salt_models))


_STORE: Optional[ParameterTableStore] = None
_STORE_LOCK = threading.Lock()


def get_table_store() -> ParameterTableStore:
    """Return the shared store, loading it on first use"""
    global _STORE
    if _STORE is None:
        with _STORE_LOCK:
            if _STORE is None:
                _STORE = load_table_store()
    return _STORE


__all__ = [
    'ParameterTable',
    'SaltModel',
    'ParameterTableStore',
    'build_table',
    'build_loop_table',
    'load_table_store',
    'get_table_store',
    'NN_SOURCES',
]
