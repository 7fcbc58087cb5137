"""
Batch processing
Computes melting temperatures for every row of a table. Rows are independent,
so they run on a thread pool; a failing row records its error and the batch
continues.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import numpy as np
import pandas as pd

from ..config.defaults import get_config
from ..core.engine import MeltingEngine
from ..core.exceptions import MeltingError

logger = logging.getLogger(__name__)


def read_batch_input(file_path: Union[str, Path], config: Optional[Dict] = None) -> pd.DataFrame:
    """
    Read a batch input file

    CSV and TSV files need a 'sequence' column; a .txt file holds one
    sequence per line.

    Returns:
        pd.DataFrame
    """
    config = config or get_config()
    file_path = Path(file_path)
    sequence_column = config['batch']['SEQUENCE_COLUMN']
    suffix = file_path.suffix.lower()

    if suffix == '.txt':
        with open(file_path, 'r') as f:
            sequences = [line.strip() for line in f
                         if line.strip() and not line.startswith('#')]
        return pd.DataFrame({sequence_column: sequences})
    if suffix == '.tsv':
        return pd.read_csv(file_path, sep='\t', dtype=str, comment='#')
    if suffix == '.csv':
        return pd.read_csv(file_path, dtype=str, comment='#')
    raise ValueError(f"Unsupported input format: {suffix}")


def row_to_options(row: Dict[str, Any], config: Optional[Dict] = None) -> Dict[str, Any]:
    """Keep the known option columns of a row, dropping empty cells"""
    config = config or get_config()
    columns = [config['batch']['SEQUENCE_COLUMN'], *config['batch']['OPTIONAL_COLUMNS']]
    options = {}
    for column in columns:
        value = row.get(column)
        if value is None or (isinstance(value, float) and np.isnan(value)):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        options[column] = value
    if config['batch']['SEQUENCE_COLUMN'] != 'sequence' and config['batch']['SEQUENCE_COLUMN'] in options:
        options['sequence'] = options.pop(config['batch']['SEQUENCE_COLUMN'])
    return options


@dataclass
class BatchResult:
    """Outcome of a batch run"""
    results: pd.DataFrame
    succeeded: int = 0
    failed: int = 0
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class BatchProcessor:
    """Runs the engine over the rows of a table"""

    def __init__(self, config: Optional[Dict] = None, engine: Optional[MeltingEngine] = None):
        """
        Args:
            config: configuration dict
            engine: engine to use (built from ``config`` when omitted)
        """
        self.config = get_config(config)
        self.engine = engine or MeltingEngine(config)

    def process_row(self, index: int, row: Dict[str, Any]) -> Dict[str, Any]:
        """Compute one row; typed failures become the row's error message"""
        options = row_to_options(row, self.config)
        record = {
            'name': row.get('name') if isinstance(row.get('name'), str) else f"row_{index + 1}",
            'sequence': options.get('sequence', ''),
            'hybridization': options.get('hybridization', 'dnadna'),
            'method': None,
            'tm': np.nan,
            'enthalpy': np.nan,
            'entropy': np.nan,
            'enthalpy_joules': np.nan,
            'entropy_joules': np.nan,
            'error': None,
        }

        try:
            result = self.engine.compute_options(options)
        except MeltingError as e:
            logger.warning(f"Row {record['name']} failed: {e}")
            record['error'] = f"{type(e).__name__}: {e}"
            return record

        record.update(result.to_dict())
        return record

    def process(self, df: pd.DataFrame, max_workers: Optional[int] = None) -> BatchResult:
        """
        Process every row of a table

        Args:
            df: input table with at least a sequence column
            max_workers: thread count (config batch.MAX_WORKERS by default)

        Returns:
            BatchResult: one output row per input row, in input order
        """
        max_workers = max_workers or self.config['batch']['MAX_WORKERS']
        batch_size = self.config['batch']['BATCH_SIZE']
        rows = df.to_dict('records')
        records: List[Dict[str, Any]] = []

        logger.info(f"Processing {len(rows)} sequences with {max_workers} workers")

        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(self.process_row, start + offset, row)
                           for offset, row in enumerate(batch)]
                records.extend(future.result() for future in futures)
            logger.info(f"Processed {min(start + batch_size, len(rows))}/{len(rows)} sequences")

        results = results_to_dataframe(records, self.config)
        failed = int(results['error'].notna().sum()) if not results.empty else 0
        batch_result = BatchResult(
            results=results,
            succeeded=len(results) - failed,
            failed=failed,
            summary=summarize_results(results),
        )
        logger.info(f"Batch finished: {batch_result.succeeded} succeeded, {batch_result.failed} failed")
        return batch_result

    def process_file(self, input_file: Union[str, Path], max_workers: Optional[int] = None) -> BatchResult:
        df = read_batch_input(input_file, self.config)
        return self.process(df, max_workers)


def results_to_dataframe(records: List[Dict[str, Any]], config: Optional[Dict] = None) -> pd.DataFrame:
    """Build the output table with the configured column order"""
    config = config or get_config()
    columns = config['io']['OUTPUT_COLUMNS']
    df = pd.DataFrame.from_records(records)
    for column in columns:
        if column not in df.columns:
            df[column] = np.nan
    return df[columns]


def summarize_results(df: pd.DataFrame) -> Dict[str, Any]:
    """Summary statistics of the computed melting temperatures"""
    if df.empty:
        return {'count': 0}

    tm = df['tm'].to_numpy(dtype=float)
    tm = tm[~np.isnan(tm)]
    summary = {
        'count': int(len(df)),
        'computed': int(tm.size),
        'failed': int(df['error'].notna().sum()),
    }
    if tm.size:
        summary.update({
            'tm_mean': float(np.mean(tm)),
            'tm_std': float(np.std(tm)),
            'tm_min': float(np.min(tm)),
            'tm_max': float(np.max(tm)),
            'tm_median': float(np.median(tm)),
        })
    methods = df['method'].dropna()
    if not methods.empty:
        summary['methods'] = {str(k): int(v) for k, v in methods.value_counts().items()}
    return summary


def run_batch(input_file: Union[str, Path], config: Optional[Dict] = None,
              max_workers: Optional[int] = None) -> BatchResult:
    """Process a batch input file (convenience function)"""
    return BatchProcessor(config).process_file(input_file, max_workers)


__all__ = [
    'BatchProcessor',
    'BatchResult',
    'read_batch_input',
    'row_to_options',
    'results_to_dataframe',
    'summarize_results',
    'run_batch',
]
