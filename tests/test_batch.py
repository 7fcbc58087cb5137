"""Batch processing and input validation tests"""

import numpy as np
import pandas as pd
import pytest

from meltkit.workflow.batch import (
    BatchProcessor,
    read_batch_input,
    row_to_options,
    run_batch,
    summarize_results,
)
from meltkit.workflow.validator import InputValidator, validate_batch_inputs


def _write_input(path):
    df = pd.DataFrame({
        'name': ['short', 'hybrid', 'broken', 'long'],
        'sequence': ['ACGTTGCAAGGCTTAACGTA', 'ACGUUGCAAGGCUUAACGUA', 'ACGZ', 'ACGT' * 20],
        'hybridization': ['dnadna', 'dnarna', 'dnadna', None],
        'ions': ['Na=0.05', None, None, 'Na=0.1,Mg=0.002'],
    })
    df.to_csv(path, index=False)
    return df


def test_read_batch_input(tmp_path):
    """Test CSV, TSV and plain text inputs"""
    csv_file = tmp_path / 'input.csv'
    _write_input(csv_file)
    df = read_batch_input(csv_file)
    assert list(df['name']) == ['short', 'hybrid', 'broken', 'long']

    tsv_file = tmp_path / 'input.tsv'
    pd.DataFrame({'sequence': ['ACGTACGT']}).to_csv(tsv_file, sep='\t', index=False)
    assert list(read_batch_input(tsv_file)['sequence']) == ['ACGTACGT']

    txt_file = tmp_path / 'input.txt'
    txt_file.write_text('# primers\nACGTACGT\n\nGGCCAATT\n')
    assert list(read_batch_input(txt_file)['sequence']) == ['ACGTACGT', 'GGCCAATT']

    with pytest.raises(ValueError):
        read_batch_input(tmp_path / 'input.fasta')


def test_row_to_options_drops_empty_cells():
    """Test that missing cells fall back to defaults"""
    options = row_to_options({'sequence': 'ACGT', 'ions': np.nan, 'model': ' ', 'extra': 'x'})
    assert options == {'sequence': 'ACGT'}


def test_batch_processing(tmp_path):
    """Test a batch with one failing row"""
    csv_file = tmp_path / 'input.csv'
    _write_input(csv_file)

    batch = run_batch(csv_file, max_workers=2)
    results = batch.results

    assert batch.total == 4
    assert batch.succeeded == 3
    assert batch.failed == 1
    assert list(results['name']) == ['short', 'hybrid', 'broken', 'long']
    assert results.loc[0, 'method'] == 'nearest-neighbor-all97'
    assert results.loc[1, 'method'] == 'nearest-neighbor-sug95'
    assert results.loc[2, 'error'].startswith('InvalidEnvironment')
    assert np.isnan(results.loc[2, 'tm'])
    assert results.loc[3, 'method'] == 'approximative-wetdna91'
    assert np.isnan(results.loc[3, 'enthalpy'])


def test_batch_matches_single_computation():
    """Test that the batch gives the same Tm as one-off calls"""
    from meltkit.core.engine import compute_tm

    df = pd.DataFrame({'sequence': ['ACGTTGCAAGGCTTAACGTA', 'GGCCAATTGGCCAATT']})
    batch = BatchProcessor().process(df, max_workers=4)
    for index, sequence in enumerate(df['sequence']):
        assert batch.results.loc[index, 'tm'] == pytest.approx(compute_tm(sequence).tm)
    assert batch.results.loc[0, 'name'] == 'row_1'


def test_batch_denaturant_and_factor_columns():
    """Test that rows accept every option of a single computation"""
    from meltkit.core.engine import compute_tm

    df = pd.DataFrame({
        'sequence': ['ACGTTGCAAGGCTTAACGTA'],
        'denaturants': ['DMSO=5'],
        'concentration_factor': [1.0],
    })
    assert row_to_options(df.iloc[0].to_dict())['denaturants'] == 'DMSO=5'

    batch = BatchProcessor().process(df)
    expected = compute_tm('ACGTTGCAAGGCTTAACGTA', denaturants='DMSO=5', concentration_factor=1.0)
    plain = compute_tm('ACGTTGCAAGGCTTAACGTA')
    assert batch.results.loc[0, 'tm'] == pytest.approx(expected.tm)
    assert batch.results.loc[0, 'tm'] != pytest.approx(plain.tm)


def test_summarize_results():
    """Test batch statistics"""
    df = pd.DataFrame({
        'tm': [50.0, 60.0, np.nan],
        'method': ['nearest-neighbor-all97', 'nearest-neighbor-all97', None],
        'error': [None, None, 'InvalidEnvironment: bad'],
    })
    summary = summarize_results(df)
    assert summary['count'] == 3
    assert summary['computed'] == 2
    assert summary['failed'] == 1
    assert summary['tm_mean'] == pytest.approx(55.0)
    assert summary['methods'] == {'nearest-neighbor-all97': 2}

    assert summarize_results(pd.DataFrame()) == {'count': 0}


def test_validate_input_file(tmp_path):
    """Test input file validation"""
    validator = InputValidator()

    is_valid, errors, warnings = validator.validate_input_file(tmp_path / 'missing.csv')
    assert not is_valid
    assert 'not found' in errors[0]

    csv_file = tmp_path / 'input.csv'
    _write_input(csv_file)
    is_valid, errors, warnings = validator.validate_input_file(csv_file)
    assert is_valid
    assert any('invalid sequence' in w for w in warnings)

    no_sequence = tmp_path / 'nosequence.csv'
    pd.DataFrame({'name': ['a']}).to_csv(no_sequence, index=False)
    is_valid, errors, _ = validator.validate_input_file(no_sequence)
    assert not is_valid
    assert "'sequence'" in errors[0]


def test_validate_batch_inputs(tmp_path):
    """Test combined input and output validation"""
    csv_file = tmp_path / 'input.csv'
    _write_input(csv_file)
    output_dir = tmp_path / 'reports'

    result = validate_batch_inputs(csv_file, output_dir)
    assert result.is_valid
    assert output_dir.is_dir()
    assert 'Validation passed' in result.to_string()
    assert result.to_dict()['details']['output_dir'] == str(output_dir)
