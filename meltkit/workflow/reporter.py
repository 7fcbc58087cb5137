"""
Report generator
Text rendering of single results and CSV, JSON, Excel and HTML reports for
batch runs.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
from jinja2 import Template
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .. import __version__
from ..config.defaults import get_config
from .batch import summarize_results

logger = logging.getLogger(__name__)


def format_result(result, environment=None) -> str:
    """
    Render one result as a text block

    Args:
        result: ApproximativeResult or NearestNeighborResult
        environment: the environment it was computed from (optional)

    Returns:
        str
    """
    lines = ["=" * 60]
    if environment is not None:
        lines.append(f"Sequence: {environment.sequence}")
        lines.append(f"Complement: {environment.paired_complement}")
        lines.append(f"Hybridization: {environment.hybridization.value}")
    lines.extend(result.summary_lines())
    lines.append("=" * 60)
    return "\n".join(lines)


class ReportGenerator:
    """Batch report generator"""

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: configuration dict
        """
        self.config = get_config(config)
        self.prefix = self.config['io']['FILE_PREFIX']

    def _output_file(self, output_dir: Path, extension: str) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return output_dir / f"{self.prefix}_report_{timestamp}.{extension}"

    def generate_all_reports(
        self,
        results_df: pd.DataFrame,
        output_dir: Union[str, Path] = "./reports",
        formats: Optional[List[str]] = None
    ) -> Dict[str, str]:
        """
        Write the requested report formats

        Args:
            results_df: batch output table
            output_dir: output directory
            formats: subset of io.SUPPORTED_OUTPUT_FORMATS (all by default)

        Returns:
            Dict[str, str]: format -> report path
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        supported = self.config['io']['SUPPORTED_OUTPUT_FORMATS']
        formats = formats or supported
        unknown = [fmt for fmt in formats if fmt not in supported]
        if unknown:
            raise ValueError(f"Unsupported report formats: {', '.join(unknown)}")

        writers = {
            'csv': self.generate_csv_report,
            'json': self.generate_json_report,
            'excel': self.generate_excel_report,
            'html': self.generate_html_report,
        }

        reports = {}
        for fmt in formats:
            reports[fmt] = writers[fmt](results_df, output_dir)

        logger.info(f"Wrote {len(reports)} report files to {output_dir}")
        return reports

    def generate_csv_report(self, results_df: pd.DataFrame, output_dir: Union[str, Path]) -> str:
        """Write the results table as CSV"""
        csv_format = self.config['io']['CSV_FORMAT']
        csv_file = self._output_file(Path(output_dir), 'csv')
        results_df.to_csv(
            csv_file,
            index=False,
            sep=csv_format['delimiter'],
            encoding=csv_format['encoding'],
            float_format=csv_format['float_format'],
        )
        logger.info(f"CSV report written: {csv_file}")
        return str(csv_file)

    def generate_json_report(self, results_df: pd.DataFrame, output_dir: Union[str, Path]) -> str:
        """Write metadata, summary statistics and every row as JSON"""
        json_file = self._output_file(Path(output_dir), 'json')
        rows = results_df.replace({np.nan: None}).to_dict('records')

        report_data = {
            'metadata': {
                'report_type': 'Melting temperature report',
                'generation_time': datetime.now().isoformat(),
                'tool_version': __version__,
            },
            'statistics': summarize_results(results_df),
            'results': rows,
        }

        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, indent=2, ensure_ascii=False)

        logger.info(f"JSON report written: {json_file}")
        return str(json_file)

    def generate_excel_report(self, results_df: pd.DataFrame, output_dir: Union[str, Path]) -> str:
        """Write a workbook with a summary sheet and a results sheet"""
        excel_file = self._output_file(Path(output_dir), 'xlsx')

        wb = Workbook()
        wb.remove(wb.active)

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")
        cell_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        ws_summary = wb.create_sheet(title="Summary")
        summary = summarize_results(results_df)
        summary_rows = [
            ["Melting temperature report", ""],
            ["Generated", datetime.now().strftime("%Y-%m-%d %H:%M:%S")],
            ["", ""],
            ["Statistic", "Value"],
        ]
        for key, value in summary.items():
            if isinstance(value, dict):
                value = ", ".join(f"{k}: {v}" for k, v in value.items())
            summary_rows.append([key, value])

        for row_idx, row_data in enumerate(summary_rows, 1):
            for col_idx, value in enumerate(row_data, 1):
                cell = ws_summary.cell(row=row_idx, column=col_idx, value=value)
                if row_idx == 1:
                    cell.font = Font(bold=True, size=14)
                elif row_idx == 4:
                    cell.fill = header_fill
                    cell.font = header_font
                    cell.alignment = header_alignment
                cell.border = cell_border
        self._fit_columns(ws_summary, 50)

        ws_results = wb.create_sheet(title="Results")
        self._dataframe_to_sheet(results_df, ws_results, header_fill, header_font,
                                 header_alignment, cell_border)

        wb.save(str(excel_file))
        logger.info(f"Excel report written: {excel_file}")
        return str(excel_file)

    def _dataframe_to_sheet(self, df: pd.DataFrame, ws, header_fill, header_font,
                            header_alignment, cell_border):
        for col_idx, column_name in enumerate(df.columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=str(column_name))
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = header_alignment
            cell.border = cell_border

        for row_idx, row in enumerate(df.itertuples(index=False), 2):
            for col_idx, value in enumerate(row, 1):
                if isinstance(value, float) and np.isnan(value):
                    value = None
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = cell_border

        self._fit_columns(ws, 30)

    @staticmethod
    def _fit_columns(ws, max_width: int):
        for col in ws.columns:
            width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
            ws.column_dimensions[col[0].column_letter].width = min(width + 2, max_width)

    def generate_html_report(self, results_df: pd.DataFrame, output_dir: Union[str, Path]) -> str:
        """Render the HTML report with Jinja2"""
        html_file = self._output_file(Path(output_dir), 'html')

        template_data = {
            'report_title': 'Melting temperature report',
            'generation_time': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'tool_version': __version__,
            'summary': summarize_results(results_df),
            'columns': list(results_df.columns),
            'rows': results_df.replace({np.nan: None}).to_dict('records'),
        }

        template = Template(HTML_TEMPLATE)
        html_content = template.render(**template_data)

        with open(html_file, 'w', encoding='utf-8') as f:
            f.write(html_content)

        logger.info(f"HTML report written: {html_file}")
        return str(html_file)


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{{ report_title }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 2em; color: #333; }
        h1 { color: #366092; }
        table { border-collapse: collapse; margin-top: 1em; }
        th { background: #366092; color: #fff; padding: 6px 10px; }
        td { border: 1px solid #ddd; padding: 4px 10px; }
        tr.failed td { background: #fbeaea; }
        .meta { color: #777; font-size: 0.9em; }
    </style>
</head>
<body>
    <h1>{{ report_title }}</h1>
    <p class="meta">Generated {{ generation_time }} by meltkit {{ tool_version }}</p>

    <h2>Summary</h2>
    <table>
        <tr><th>Statistic</th><th>Value</th></tr>
        {% for key, value in summary.items() %}
        <tr><td>{{ key }}</td><td>{% if value is mapping %}{% for k, v in value.items() %}{{ k }}: {{ v }}{% if not loop.last %}, {% endif %}{% endfor %}{% elif value is float %}{{ "%.2f"|format(value) }}{% else %}{{ value }}{% endif %}</td></tr>
        {% endfor %}
    </table>

    <h2>Results</h2>
    <table>
        <tr>{% for column in columns %}<th>{{ column }}</th>{% endfor %}</tr>
        {% for row in rows %}
        <tr{% if row.error %} class="failed"{% endif %}>
            {% for column in columns %}
            <td>{% if row[column] is none %}{% elif row[column] is float %}{{ "%.2f"|format(row[column]) }}{% else %}{{ row[column] }}{% endif %}</td>
            {% endfor %}
        </tr>
        {% endfor %}
    </table>
</body>
</html>
"""


def generate_reports(results_df: pd.DataFrame, output_dir: Union[str, Path],
                     formats: Optional[List[str]] = None, config: Optional[Dict] = None) -> Dict[str, str]:
    """Write batch reports (convenience function)"""
    return ReportGenerator(config).generate_all_reports(results_df, output_dir, formats)


__all__ = [
    'format_result',
    'ReportGenerator',
    'generate_reports',
]
