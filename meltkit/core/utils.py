"""
Sequence helpers
Complements, alphabets, base-pair checks and composition counts shared by the
environment, the structure analysis and the computation methods.
"""
import logging
from typing import Dict, Iterable

logger = logging.getLogger(__name__)

# ============================================================================
# Sequence helpers
# ============================================================================

class SequenceUtils:
    """DNA/RNA sequence helpers"""

    # Complement tables (inosine is written opposite C)
    DNA_COMPLEMENT = str.maketrans('ACGTI-', 'TGCAC-')
    RNA_COMPLEMENT = str.maketrans('ACGU-', 'UGCA-')

    # Alphabets
    DNA_BASES = frozenset('ACGT')
    RNA_BASES = frozenset('ACGU')
    MODIFIED_DNA_BASES = frozenset('I')
    GAP = '-'

    WATSON_CRICK_PAIRS = frozenset([
        ('A', 'T'), ('T', 'A'), ('G', 'C'), ('C', 'G'),
        ('A', 'U'), ('U', 'A'),
    ])

    @staticmethod
    def normalize(sequence: str) -> str:
        """Strip whitespace and upper-case a sequence"""
        return ''.join(sequence.split()).upper()

    @staticmethod
    def complement(sequence: str, is_rna: bool = False) -> str:
        """
        Complement a strand without reversing it

        Args:
            sequence: strand written 5'->3'
            is_rna: whether the complement is an RNA strand

        Returns:
            str: complement written 3'->5'
        """
        if not sequence:
            return ""
        if is_rna:
            # T and U both pair with A
            return sequence.replace('T', 'U').translate(SequenceUtils.RNA_COMPLEMENT)
        return sequence.replace('U', 'T').translate(SequenceUtils.DNA_COMPLEMENT)

    @staticmethod
    def reverse_complement(sequence: str, is_rna: bool = False) -> str:
        """
        Reverse-complement a strand

        Args:
            sequence: strand written 5'->3'
            is_rna: whether the result is an RNA strand

        Returns:
            str: reverse complement written 5'->3'
        """
        return SequenceUtils.complement(sequence, is_rna)[::-1]

    @staticmethod
    def is_watson_crick(top: str, bottom: str) -> bool:
        """Check whether two opposed bases form a canonical pair"""
        return (top, bottom) in SequenceUtils.WATSON_CRICK_PAIRS

    @staticmethod
    def is_self_complementary(sequence: str, is_rna: bool = False) -> bool:
        """A strand is self-complementary when it equals its reverse complement"""
        if not sequence:
            return False
        return sequence == SequenceUtils.reverse_complement(sequence, is_rna)

    @staticmethod
    def invalid_bases(sequence: str, alphabet: Iterable[str]) -> set:
        """Return the symbols of ``sequence`` that are outside ``alphabet``"""
        return set(sequence) - set(alphabet)

    @staticmethod
    def count_bases(sequence: str) -> Dict[str, int]:
        """Count A, C, G and T (U is pooled under 'T')"""
        counts = {base: sequence.count(base) for base in 'ACG'}
        counts['T'] = sequence.count('T') + sequence.count('U')
        return counts

    @staticmethod
    def gc_fraction(sequence: str) -> float:
        """
        Fraction of G and C bases (0-1)

        Gaps are ignored. An empty sequence has a GC fraction of 0.
        """
        bases = sequence.replace(SequenceUtils.GAP, '')
        if not bases:
            return 0.0
        return (bases.count('G') + bases.count('C')) / len(bases)


# ============================================================================
# Convenience functions
# ============================================================================

def reverse_complement(sequence: str, is_rna: bool = False) -> str:
    """Reverse complement (convenience wrapper)"""
    return SequenceUtils.reverse_complement(sequence, is_rna)


def gc_fraction(sequence: str) -> float:
    """GC fraction (convenience wrapper)"""
    return SequenceUtils.gc_fraction(sequence)


__all__ = [
    'SequenceUtils',
    'reverse_complement',
    'gc_fraction',
]
