"""
Duplex structure analysis
Splits an aligned sequence/complement pair into its paired core, terminal
features (dangling ends, terminal mismatches), isolated mismatches and loops.
Hairpins are reduced to their stem and closing loop.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .exceptions import InvalidEnvironment, UnknownMotif
from .utils import SequenceUtils

logger = logging.getLogger(__name__)

GAP = SequenceUtils.GAP


@dataclass(frozen=True)
class Loop:
    """
    Unpaired region of a structure

    Attributes:
        kind: 'internal', 'bulge' or 'hairpin'
        length: number of unpaired bases (both strands)
        closing_pairs: base pairs closing the loop, as (top, bottom) tuples
        start: first core position of the loop (duplex loops only)
        end: last core position of the loop (duplex loops only)
    """
    kind: str
    length: int
    closing_pairs: Tuple[Tuple[str, str], ...]
    start: int = -1
    end: int = -1

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.length}"

    @property
    def at_closing_count(self) -> int:
        return sum(1 for top, _ in self.closing_pairs if top in 'ATU')


@dataclass(frozen=True)
class DuplexStructure:
    """Paired core plus the features the correction stages act on"""
    top: str
    bottom: str
    left_dangling: Optional[str] = None
    right_dangling: Optional[str] = None
    left_mismatch: Optional[str] = None
    right_mismatch: Optional[str] = None
    mismatches: Tuple[int, ...] = ()
    loops: Tuple[Loop, ...] = ()
    is_hairpin: bool = False
    paired_length: int = field(default=0)

    @property
    def is_perfect(self) -> bool:
        return not (self.left_dangling or self.right_dangling
                    or self.left_mismatch or self.right_mismatch
                    or self.mismatches or self.loops)

    @property
    def has_dangling_ends(self) -> bool:
        return bool(self.left_dangling or self.right_dangling)

    @property
    def has_terminal_mismatches(self) -> bool:
        return bool(self.left_mismatch or self.right_mismatch)

    def loop_positions(self) -> frozenset:
        """Core positions covered by duplex loops"""
        positions = set()
        for loop in self.loops:
            if loop.start >= 0:
                positions.update(range(loop.start, loop.end + 1))
        return frozenset(positions)


def _paired(top: str, bottom: str) -> bool:
    return SequenceUtils.is_watson_crick(top, bottom)


def analyze_duplex(sequence: str, complement: str) -> DuplexStructure:
    """
    Analyze an aligned duplex

    Args:
        sequence: top strand 5'->3'
        complement: bottom strand 3'->5', '-' for missing bases

    Returns:
        DuplexStructure

    Raises:
        InvalidEnvironment: more than one terminal gap, or no paired core
        UnknownMotif: two adjacent terminal mismatches
    """
    if len(sequence) != len(complement):
        raise InvalidEnvironment(
            f"Complement length {len(complement)} does not match sequence length {len(sequence)}"
        )

    top, bottom = sequence, complement
    left_dangling = right_dangling = None

    leading = len(bottom) - len(bottom.lstrip(GAP))
    trailing = len(bottom) - len(bottom.rstrip(GAP))
    if leading > 1 or trailing > 1 or leading >= len(bottom):
        raise InvalidEnvironment("A dangling end may be a single unpaired base only")

    if leading:
        left_dangling = top[:2] + '/' + bottom[:2]
        top, bottom = top[1:], bottom[1:]
    if trailing:
        right_dangling = bottom[-2:][::-1] + '/' + top[-2:][::-1]
        top, bottom = top[:-1], bottom[:-1]

    if not top:
        raise InvalidEnvironment("The duplex has no paired core")

    left_mismatch = right_mismatch = None
    if not _paired(top[0], bottom[0]):
        key = bottom[:2][::-1] + '/' + top[:2][::-1]
        if len(top) < 2 or not _paired(top[1], bottom[1]):
            raise UnknownMotif(key, 'dna_terminal_mismatch', 'structure analysis')
        left_mismatch = key
        top, bottom = top[1:], bottom[1:]
    if not _paired(top[-1], bottom[-1]):
        key = top[-2:] + '/' + bottom[-2:]
        if len(top) < 2 or not _paired(top[-2], bottom[-2]):
            raise UnknownMotif(key, 'dna_terminal_mismatch', 'structure analysis')
        right_mismatch = key
        top, bottom = top[:-1], bottom[:-1]

    mismatches = []
    loops = []
    position = 1
    while position < len(top) - 1:
        if _paired(top[position], bottom[position]):
            position += 1
            continue
        end = position
        while end + 1 < len(top) - 1 and not _paired(top[end + 1], bottom[end + 1]):
            end += 1
        run = bottom[position:end + 1]
        closing = ((top[position - 1], bottom[position - 1]), (top[end + 1], bottom[end + 1]))
        if set(run) == {GAP}:
            loops.append(Loop('bulge', len(run), closing, position, end))
        elif len(run) == 1:
            mismatches.append(position)
        else:
            unpaired = len(run) + len(run.replace(GAP, ''))
            loops.append(Loop('internal', unpaired, closing, position, end))
        position = end + 1

    paired_length = sum(1 for t, b in zip(top, bottom) if _paired(t, b))

    structure = DuplexStructure(
        top=top,
        bottom=bottom,
        left_dangling=left_dangling,
        right_dangling=right_dangling,
        left_mismatch=left_mismatch,
        right_mismatch=right_mismatch,
        mismatches=tuple(mismatches),
        loops=tuple(loops),
        paired_length=paired_length,
    )
    if not structure.is_perfect and paired_length < 2:
        raise InvalidEnvironment("An imperfect duplex needs at least two paired positions")

    logger.debug(f"Duplex {sequence}/{complement}: core {top}/{bottom}, "
                 f"{len(mismatches)} mismatches, {len(loops)} loops")
    return structure


def analyze_hairpin(sequence: str, min_loop: int = 3) -> DuplexStructure:
    """
    Find the longest stem closing a hairpin loop

    The stem pairs ``sequence[:n]`` with ``sequence[-n:]`` (n >= 2) and leaves
    at least ``min_loop`` unpaired bases.

    Raises:
        InvalidEnvironment: no such stem exists
    """
    stem = 0
    while (stem < len(sequence) // 2
           and _paired(sequence[stem], sequence[-1 - stem])):
        stem += 1
    stem = min(stem, (len(sequence) - min_loop) // 2)

    if stem < 2:
        raise InvalidEnvironment(
            f"No hairpin stem of at least 2 pairs with a loop of at least {min_loop} bases in {sequence}"
        )

    top = sequence[:stem]
    bottom = sequence[-stem:][::-1]
    loop = Loop('hairpin', len(sequence) - 2 * stem, ((top[-1], bottom[-1]),))

    logger.debug(f"Hairpin {sequence}: stem {stem} bp, loop {loop.length} nt")
    return DuplexStructure(
        top=top,
        bottom=bottom,
        loops=(loop,),
        is_hairpin=True,
        paired_length=stem,
    )


__all__ = [
    'Loop',
    'DuplexStructure',
    'analyze_duplex',
    'analyze_hairpin',
]
