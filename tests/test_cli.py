"""Command-line interface tests"""

import json

import pandas as pd
import pytest

from meltkit.cli import build_parser, main


def _json_output(out):
    return json.loads(out[out.index('{'):])


def test_parser_defaults():
    """Test the tm subcommand defaults"""
    args = build_parser().parse_args(['tm', '-S', 'ACGTACGT'])
    assert args.command == 'tm'
    assert args.hybridization == 'dnadna'
    assert args.self_complementary is None
    assert args.json is False


def test_tm_command_json(capsys):
    """Test a single computation printed as JSON"""
    main(['tm', '-S', 'ACGTTGCAAGGCTTAACGTA', '-E', 'Na=0.05', '-P', '5e-8', '--json'])
    data = _json_output(capsys.readouterr().out)
    assert data['method'] == 'nearest-neighbor-all97'
    assert 'enthalpy_joules' in data


def test_tm_command_text(capsys):
    """Test the text rendering"""
    main(['tm', '-S', 'ACGUUGCAAGGCUUAACGUA', '-H', 'rnarna', '-m', 'che12'])
    out = capsys.readouterr().out
    assert 'Method: nearest-neighbor-che12' in out
    assert 'Hybridization: rnarna' in out


def test_tm_command_error_exits(capsys):
    """Test that a rejected request exits with status 1"""
    with pytest.raises(SystemExit) as exc_info:
        main(['tm', '-S', 'ACGZ'])
    assert exc_info.value.code == 1

    with pytest.raises(SystemExit) as exc_info:
        main(['tm', '-S', 'ACGTACGT', '-m', 'nope'])
    assert exc_info.value.code == 1


def test_models_command(capsys):
    """Test the model listing"""
    main(['models'])
    out = capsys.readouterr().out
    assert 'all97' in out
    assert 'wetdna91' in out

    main(['models', '-H', 'rnarna'])
    out = capsys.readouterr().out
    assert 'xia98' in out
    assert 'all97' not in out


def test_models_command_reads_config(tmp_path, capsys):
    """Test that the listed defaults come from the configuration file"""
    config_file = tmp_path / 'meltkit.json'
    config_file.write_text(json.dumps({'engine': {
        'APPROXIMATIVE_THRESHOLD': 30,
        'DEFAULT_NN_MODELS': {
            'dnadna': 'san04', 'dnarna': 'sug95', 'rnarna': 'xia98',
            'hairpin_dna': 'san04', 'hairpin_rna': 'xia98',
        },
    }}))

    main(['models', '-H', 'dnadna', '-c', str(config_file)])
    out = capsys.readouterr().out
    assert 'dnadna: san04 (up to 30 nt)' in out


def test_config_generate_formats(tmp_path):
    """Test that generated files follow the requested format"""
    json_file = tmp_path / 'meltkit.json'
    main(['config', 'generate', '-o', str(json_file)])
    assert 'engine' in json.loads(json_file.read_text())

    main(['config', 'generate', '-o', str(tmp_path / 'settings'), '-f', 'json'])
    assert 'engine' in json.loads((tmp_path / 'settings.json').read_text())


def test_config_commands(tmp_path, capsys):
    """Test generating and validating a configuration file"""
    config_file = tmp_path / 'meltkit.yaml'
    main(['config', 'generate', '-o', str(config_file)])
    assert config_file.exists()

    main(['config', 'validate', '-o', str(config_file)])
    assert 'Configuration is valid' in capsys.readouterr().out

    bad_file = tmp_path / 'bad.json'
    bad_file.write_text(json.dumps({'engine': {'APPROXIMATIVE_THRESHOLD': 0}}))
    with pytest.raises(SystemExit):
        main(['config', 'validate', '-o', str(bad_file)])


def test_batch_command(tmp_path):
    """Test a batch run from the command line"""
    input_file = tmp_path / 'input.csv'
    pd.DataFrame({'sequence': ['ACGTTGCAAGGCTTAACGTA', 'GGCCAATTGGCCAATT']}).to_csv(input_file, index=False)
    output_dir = tmp_path / 'out'

    main(['batch', '-i', str(input_file), '-o', str(output_dir), '--formats', 'csv', 'json'])
    written = sorted(p.suffix for p in output_dir.iterdir())
    assert written == ['.csv', '.json']


def test_batch_command_missing_input(tmp_path):
    """Test that a missing input file exits with status 1"""
    with pytest.raises(SystemExit) as exc_info:
        main(['batch', '-i', str(tmp_path / 'missing.csv'), '-o', str(tmp_path / 'out')])
    assert exc_info.value.code == 1
