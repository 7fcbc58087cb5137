"""Environment and structure analysis tests"""

import pytest

from meltkit.core.environment import Environment, HybridizationType, build_environment
from meltkit.core.exceptions import InvalidConcentration, InvalidEnvironment, UnknownMotif
from meltkit.core.structure import analyze_duplex, analyze_hairpin


def test_environment_defaults():
    """Test default values and normalization"""
    env = Environment(' acgtacgtac ')
    assert env.sequence == 'ACGTACGTAC'
    assert env.hybridization is HybridizationType.DNADNA
    assert env.complement is None
    assert env.paired_complement == 'TGCATGCATG'
    assert env.corrections == frozenset(
        ['initiation', 'terminal_mismatch', 'dangling_end', 'loop', 'salt'])
    assert env.structure.is_perfect
    assert env.structure.paired_length == 10


def test_hybridization_parsing():
    """Test hybridization names"""
    assert HybridizationType.parse('DNA/RNA') is HybridizationType.DNARNA
    assert HybridizationType.parse('rnarna') is HybridizationType.RNARNA
    with pytest.raises(InvalidEnvironment):
        HybridizationType.parse('protein')


def test_environment_is_immutable():
    """Test that an environment cannot be changed"""
    env = Environment('ACGTACGT')
    with pytest.raises(AttributeError):
        env.sequence = 'AAAA'


def test_invalid_alphabet():
    """Test alphabet validation per hybridization"""
    with pytest.raises(InvalidEnvironment):
        Environment('ACGU', 'dnadna')
    with pytest.raises(InvalidEnvironment):
        Environment('ACGT', 'rnarna')
    with pytest.raises(InvalidEnvironment):
        Environment('ACGZ')
    with pytest.raises(InvalidEnvironment):
        Environment('')
    # inosine is accepted for DNA/DNA only
    assert Environment('ACIGT', complement='TGCCA').sequence == 'ACIGT'


def test_dnarna_strands():
    """Test that a hybrid takes an RNA sequence and a DNA complement"""
    env = Environment('AUGCAUGC', 'dnarna')
    assert env.paired_complement == 'TACGTACG'
    assert env.is_rna
    assert env.self_complementary is False
    with pytest.raises(InvalidEnvironment):
        Environment('AUGCAUGC', 'dnarna', self_complementary=True)


def test_ion_validation():
    """Test ion names and concentrations"""
    with pytest.raises(InvalidEnvironment):
        Environment('ACGTACGT', ions={'Ca': 0.01})
    with pytest.raises(InvalidConcentration):
        Environment('ACGTACGT', ions={'Na': -0.01})


def test_strand_concentration_must_be_positive():
    """Test strand concentration validation"""
    with pytest.raises(InvalidConcentration):
        Environment('ACGTACGT', strand_concentration=0)
    with pytest.raises(InvalidConcentration):
        Environment('ACGTACGT', concentration_factor=-1)


@pytest.mark.parametrize('options', [
    {'strand_concentration': float('nan')},
    {'strand_concentration': float('inf')},
    {'concentration_factor': float('nan')},
    {'concentration_factor': float('inf')},
    {'ions': {'Na': float('inf')}},
    {'ions': {'Na': 0.05, 'Mg': float('nan')}},
    {'denaturants': {'DMSO': float('inf')}},
])
def test_non_finite_concentrations_rejected(options):
    """Test that NaN and infinite concentrations are rejected"""
    with pytest.raises(InvalidConcentration):
        Environment('ACGTTGCAAGGCTTAACGTA', **options)


def test_non_finite_options_rejected():
    """Test that the option loader rejects non-finite strings"""
    with pytest.raises(InvalidConcentration):
        build_environment({'sequence': 'ACGTTGCAAGGCTTAACGTA', 'strand_concentration': 'nan'})
    with pytest.raises(InvalidConcentration):
        build_environment({'sequence': 'ACGTTGCAAGGCTTAACGTA', 'ions': 'Na=inf'})


def test_unknown_correction():
    """Test correction names"""
    with pytest.raises(InvalidEnvironment):
        Environment('ACGTACGT', corrections={'salt', 'magic'})


def test_self_complementarity_detection():
    """Test automatic self-complementarity"""
    assert Environment('GCATGC').self_complementary is True
    assert Environment('GCATGA').self_complementary is False
    assert Environment('GCAUGC', 'rnarna').self_complementary is True
    assert Environment('GCATGA', self_complementary=True).self_complementary is True


def test_sodium_equivalent():
    """Test the sodium-equivalent concentration"""
    env = Environment('ACGTACGT', ions={'Na': 0.05, 'K': 0.01, 'Tris': 0.02,
                                        'Mg': 0.0025, 'dNTP': 0.0016})
    assert env.monovalent == pytest.approx(0.07)
    assert env.sodium_equivalent == pytest.approx(0.07 + 3.795 * 0.03)

    # dNTP binds all the magnesium
    env = Environment('ACGTACGT', ions={'Na': 0.05, 'Mg': 0.001, 'dNTP': 0.002})
    assert env.sodium_equivalent == pytest.approx(0.05)


def test_build_environment_parses_strings():
    """Test the option loader"""
    env = build_environment({
        'sequence': 'acgtacgtac',
        'hybridization': 'dnadna',
        'ions': 'Na=0.05, Mg=0.0015',
        'strand_concentration': '5e-8',
        'corrections': 'initiation,salt',
        'self_complementary': 'no',
        'model': 'ALL97',
        'denaturants': 'DMSO=5',
    })
    assert env.ions == {'Na': 0.05, 'Mg': 0.0015}
    assert env.strand_concentration == pytest.approx(5e-8)
    assert env.corrections == frozenset(['initiation', 'salt'])
    assert env.self_complementary is False
    assert env.model == 'all97'
    assert env.denaturants == {'DMSO': 5.0}


def test_build_environment_defaults():
    """Test configured defaults in the option loader"""
    env = build_environment({'sequence': 'ACGTACGTAC'})
    assert env.ions == {'Na': 0.05}
    assert env.strand_concentration == pytest.approx(5e-8)

    env = build_environment({'sequence': 'ACGTACGTAC', 'corrections': 'none', 'ions': ''})
    assert env.corrections == frozenset()
    assert env.total_ions == 0


@pytest.mark.parametrize('options', [
    {},
    {'sequence': 'ACGT', 'ions': 'Na0.05'},
    {'sequence': 'ACGT', 'ions': 'Na=lots'},
    {'sequence': 'ACGT', 'strand_concentration': 'high'},
    {'sequence': 'ACGT', 'self_complementary': 'maybe'},
    {'sequence': 'ACGT', 'hybridization': 'dnaprotein'},
])
def test_build_environment_errors(options):
    """Test descriptive errors on malformed options"""
    with pytest.raises(InvalidEnvironment):
        build_environment(options)


def test_complement_length_mismatch():
    """Test that the complement must be aligned"""
    with pytest.raises(InvalidEnvironment):
        Environment('ACGTACGT', complement='TGCA')


def test_terminal_mismatch_structure():
    """Test terminal mismatch detection"""
    structure = analyze_duplex('AGCTAGCA', 'TCGATCGC')
    assert structure.right_mismatch == 'CA/GC'
    assert structure.left_mismatch is None
    assert structure.top == 'AGCTAGC'
    assert not structure.is_perfect


def test_adjacent_terminal_mismatches():
    """Test that two terminal mismatches in a row are rejected"""
    with pytest.raises(UnknownMotif):
        analyze_duplex('AGCTAGCA', 'TCGATCAC')


def test_dangling_end_structure():
    """Test dangling end detection"""
    structure = analyze_duplex('AGCTAGCA', '-CGATCGT')
    assert structure.left_dangling == 'AG/-C'
    assert structure.top == 'GCTAGCA'

    structure = analyze_duplex('AGCTAGCA', 'TCGATCG-')
    assert structure.right_dangling == '-G/AC'
    assert structure.top == 'AGCTAGC'


def test_long_dangling_end_is_rejected():
    """Test that two terminal gaps are rejected"""
    with pytest.raises(InvalidEnvironment):
        analyze_duplex('AGCTAGCA', '--GATCGT')


def test_single_mismatch_structure():
    """Test an isolated internal mismatch"""
    structure = analyze_duplex('GACTGACTGA', 'CTGAATGACT')
    assert structure.mismatches == (4,)
    assert structure.loops == ()


def test_internal_loop_structure():
    """Test two consecutive mismatches forming an internal loop"""
    structure = analyze_duplex('GACTGACTGA', 'CTGAAGGACT')
    assert structure.mismatches == ()
    assert len(structure.loops) == 1
    loop = structure.loops[0]
    assert loop.kind == 'internal'
    assert loop.length == 4
    assert (loop.start, loop.end) == (4, 5)
    assert loop.closing_pairs == (('T', 'A'), ('C', 'G'))
    assert loop.at_closing_count == 1


def test_bulge_structure():
    """Test a one-base bulge"""
    structure = analyze_duplex('GACTGACTGA', 'CTGAC-GACT')
    assert len(structure.loops) == 1
    loop = structure.loops[0]
    assert loop.kind == 'bulge'
    assert loop.length == 1
    assert loop.key == 'bulge:1'
    assert structure.paired_length == 9


def test_hairpin_structure():
    """Test the hairpin stem search"""
    structure = analyze_hairpin('GCGCTTTTGCGC')
    assert structure.is_hairpin
    assert structure.top == 'GCGC'
    assert structure.bottom == 'CGCG'
    assert structure.paired_length == 4
    assert structure.loops[0].key == 'hairpin:4'
    assert structure.loops[0].closing_pairs == (('C', 'G'),)


def test_hairpin_stem_leaves_a_loop():
    """Test that the stem never swallows the loop"""
    structure = analyze_hairpin('GCGCAGCGC')
    assert structure.loops[0].length >= 3


def test_hairpin_without_stem():
    """Test that a sequence with no stem is rejected"""
    with pytest.raises(InvalidEnvironment):
        Environment('AAAAAAAA', 'hairpin')
    with pytest.raises(InvalidEnvironment):
        Environment('GCGCTTTTGCGC', 'hairpin', complement='CGCGAAAACGCG')


def test_rna_hairpin_variant():
    """Test that U marks an RNA hairpin"""
    assert Environment('GCGCUUUUGCGC', 'hairpin').variant == 'hairpin_rna'
    assert Environment('GCGCTTTTGCGC', 'hairpin').variant == 'hairpin_dna'
