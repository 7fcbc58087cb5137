"""Report generation tests"""

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from openpyxl import load_workbook

from meltkit.core.engine import MeltingEngine
from meltkit.workflow.reporter import ReportGenerator, format_result, generate_reports


def _results_frame():
    return pd.DataFrame({
        'name': ['primer_1', 'primer_2'],
        'sequence': ['ACGTTGCAAGGCTTAACGTA', 'ACGZ'],
        'hybridization': ['dnadna', 'dnadna'],
        'method': ['nearest-neighbor-all97', None],
        'tm': [52.3, np.nan],
        'enthalpy': [-150000.0, np.nan],
        'entropy': [-420.0, np.nan],
        'enthalpy_joules': [-627600.0, np.nan],
        'entropy_joules': [-1757.28, np.nan],
        'error': [None, 'InvalidEnvironment: Invalid bases Z'],
    })


def test_format_result():
    """Test the text block for one result"""
    engine = MeltingEngine()
    env = engine.environment(sequence='ACGTTGCAAGGCTTAACGTA')
    text = format_result(engine.compute(env), env)
    assert 'Sequence: ACGTTGCAAGGCTTAACGTA' in text
    assert 'Method: nearest-neighbor-all97' in text
    assert 'Melting temperature' in text
    assert 'J/mol' in text


def test_all_reports(tmp_path):
    """Test that every format is written"""
    reports = generate_reports(_results_frame(), tmp_path / 'out')
    assert set(reports) == {'csv', 'json', 'excel', 'html'}
    for path in reports.values():
        assert Path(path).exists()
        assert Path(path).parent == tmp_path / 'out'


def test_json_report(tmp_path):
    """Test the JSON report content"""
    path = ReportGenerator().generate_json_report(_results_frame(), tmp_path)
    with open(path) as f:
        data = json.load(f)
    assert data['statistics']['count'] == 2
    assert data['statistics']['failed'] == 1
    assert data['results'][1]['tm'] is None
    assert data['results'][0]['method'] == 'nearest-neighbor-all97'


def test_excel_report(tmp_path):
    """Test the workbook sheets"""
    path = ReportGenerator().generate_excel_report(_results_frame(), tmp_path)
    wb = load_workbook(path)
    assert wb.sheetnames == ['Summary', 'Results']
    ws = wb['Results']
    assert ws.cell(row=1, column=1).value == 'name'
    assert ws.cell(row=2, column=1).value == 'primer_1'
    assert ws.cell(row=3, column=5).value is None


def test_html_report(tmp_path):
    """Test the rendered HTML"""
    path = ReportGenerator().generate_html_report(_results_frame(), tmp_path)
    with open(path, encoding='utf-8') as f:
        html = f.read()
    assert '<title>Melting temperature report</title>' in html
    assert 'primer_1' in html
    assert 'class="failed"' in html
    assert '52.30' in html


def test_unsupported_format(tmp_path):
    """Test that unknown formats are rejected"""
    with pytest.raises(ValueError):
        generate_reports(_results_frame(), tmp_path, ['pdf'])
