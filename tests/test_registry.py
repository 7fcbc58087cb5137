"""Method registry tests"""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from meltkit.config.defaults import get_config
from meltkit.core.environment import Environment
from meltkit.core.exceptions import InvalidEnvironment, NoApplicableMethod
from meltkit.core.registry import (
    MethodFamily,
    available_models,
    build_registry,
    default_registry,
    select,
)
from meltkit.core.utils import SequenceUtils


def _random_sequence(rng, length, bases):
    return ''.join(rng.choice(bases) for _ in range(length))


def _random_environment(rng):
    kind = rng.choice(['dnadna', 'dnarna', 'rnarna', 'hairpin'])
    if kind == 'hairpin':
        stem = _random_sequence(rng, rng.randint(2, 12), 'ACGT')
        loop = _random_sequence(rng, rng.randint(3, 10), 'ACGT')
        return Environment(stem + loop + SequenceUtils.reverse_complement(stem), 'hairpin')
    bases = 'ACGT' if kind == 'dnadna' else 'ACGU'
    length = rng.randint(1, 120)
    ions = {'Na': rng.choice([0.0, 0.01, 0.05, 1.0]), 'Mg': rng.choice([0.0, 0.002])}
    return Environment(_random_sequence(rng, length, bases), kind, ions=ions)


def test_exactly_one_method_for_valid_environments():
    """Test that automatic selection always finds a single method"""
    rng = random.Random(20240601)
    registry = build_registry(get_config())
    for _ in range(500):
        env = _random_environment(rng)
        handle = select(env, registry)
        assert handle.automatic
        assert env.variant in handle.hybridizations
        if env.hybridization.value == 'hairpin':
            assert handle.family is MethodFamily.NEAREST_NEIGHBOR


def test_threshold_routing():
    """Test the length threshold between families"""
    short = Environment('ACGT' * 15)
    long = Environment('ACGT' * 15 + 'A')
    assert select(short).identity == 'nearest-neighbor-all97'
    assert select(long).identity == 'approximative-wetdna91'


def test_imperfect_long_duplex_uses_nearest_neighbor():
    """Test that mismatches force the nearest-neighbor family"""
    sequence = 'ACGT' * 20
    complement = SequenceUtils.complement(sequence)
    complement = complement[:40] + 'G' + complement[41:]
    env = Environment(sequence, complement=complement)
    assert not env.structure.is_perfect
    assert select(env).family is MethodFamily.NEAREST_NEIGHBOR


def test_single_base_uses_approximative():
    """Test that a one-base duplex falls back to a formula"""
    env = Environment('A')
    assert select(env).identity == 'approximative-wetdna91'


@pytest.mark.parametrize('hybridization,sequence,expected', [
    ('dnadna', 'ACGTTGCA', 'nearest-neighbor-all97'),
    ('dnarna', 'ACGUUGCA', 'nearest-neighbor-sug95'),
    ('rnarna', 'ACGUUGCA', 'nearest-neighbor-xia98'),
    ('hairpin', 'GCGCTTTTGCGC', 'nearest-neighbor-san04'),
    ('hairpin', 'GCGCUUUUGCGC', 'nearest-neighbor-xia98'),
])
def test_default_models(hybridization, sequence, expected):
    """Test the default model per hybridization"""
    assert select(Environment(sequence, hybridization)).identity == expected


def test_explicit_model():
    """Test explicit model selection"""
    env = Environment('ACGTTGCA', model='san04')
    handle = select(env)
    assert handle.identity == 'nearest-neighbor-san04'
    assert not handle.automatic

    env = Environment('ACGTTGCA', model='wallace')
    assert select(env).identity == 'approximative-wallace'


def test_unknown_or_unsupported_model():
    """Test that an unusable model name matches nothing"""
    with pytest.raises(NoApplicableMethod):
        select(Environment('ACGTTGCA', model='foo'))
    with pytest.raises(NoApplicableMethod):
        select(Environment('ACGTTGCA', model='xia98'))


def test_approximative_model_needs_perfect_duplex():
    """Test that formulas reject mismatched duplexes"""
    env = Environment('ACGTTGCA', complement='TGCTACGT', model='wallace')
    with pytest.raises(NoApplicableMethod):
        select(env)


def test_explicit_nearest_neighbor_needs_two_pairs():
    """Test that a one-base duplex cannot use a nearest-neighbor model"""
    with pytest.raises(InvalidEnvironment):
        select(Environment('A', model='all97'))


def test_imperfect_duplex_needs_two_pairs():
    """Test that an imperfect duplex with a single pair is rejected upfront"""
    with pytest.raises(InvalidEnvironment):
        Environment('AC', complement='TA')


def test_registry_rejects_bad_default():
    """Test that a default model must support its hybridization"""
    config = get_config({'engine': {'DEFAULT_NN_MODELS': {
        'dnadna': 'xia98', 'dnarna': 'sug95', 'rnarna': 'xia98',
        'hairpin_dna': 'san04', 'hairpin_rna': 'xia98'}}})
    with pytest.raises(NoApplicableMethod):
        build_registry(config)


def test_available_models():
    """Test the model listing"""
    models = available_models()
    assert 'all97' in models['nearest-neighbor']
    assert 'wetdna91' in models['approximative']

    rna_models = available_models('rnarna')
    assert 'xia98' in rna_models['nearest-neighbor']
    assert 'all97' not in rna_models['nearest-neighbor']


def test_default_registry_built_once():
    """Test that concurrent callers share one default registry"""
    with ThreadPoolExecutor(max_workers=8) as executor:
        registries = list(executor.map(lambda _: default_registry(), range(16)))
    assert all(registry is registries[0] for registry in registries)
    assert select(Environment('ACGTACGT')) in registries[0]
