"""
Melting Toolkit workflow module
Batch processing, input validation and report generation.
"""

from .batch import (
    BatchProcessor,
    BatchResult,
    read_batch_input,
    results_to_dataframe,
    summarize_results,
    run_batch,
)

from .reporter import (
    ReportGenerator,
    format_result,
    generate_reports,
)

from .validator import (
    InputValidator,
    ValidationResult,
    validate_batch_inputs,
)

import logging
logger = logging.getLogger(__name__)

__all__ = [
    # Batch processing
    'BatchProcessor',
    'BatchResult',
    'read_batch_input',
    'results_to_dataframe',
    'summarize_results',
    'run_batch',

    # Reports
    'ReportGenerator',
    'format_result',
    'generate_reports',

    # Input validation
    'InputValidator',
    'ValidationResult',
    'validate_batch_inputs',
]


def validate_and_run(input_file, output_dir, formats=None, config=None):
    """
    Validate a batch input, run it and write its reports

    Args:
        input_file: batch input file
        output_dir: report directory
        formats: report formats (all by default)
        config: configuration dict

    Returns:
        tuple: (success, BatchResult and report paths, or the error list)
    """
    validation = validate_batch_inputs(input_file, output_dir, config)
    if not validation.is_valid:
        logger.error(f"Input validation failed: {validation.errors}")
        return False, validation.errors

    if validation.warnings:
        logger.warning(f"Input validation warnings: {validation.warnings}")

    batch = run_batch(input_file, config)
    reports = generate_reports(batch.results, output_dir, formats, config)
    return True, (batch, reports)
