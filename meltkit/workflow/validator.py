"""
Input validator
Checks batch input files and output directories before a batch run.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

import pandas as pd

from ..config.defaults import get_config
from ..core.utils import SequenceUtils

logger = logging.getLogger(__name__)

SEQUENCE_ALPHABET = SequenceUtils.DNA_BASES | SequenceUtils.RNA_BASES | SequenceUtils.MODIFIED_DNA_BASES
KNOWN_HYBRIDIZATIONS = {'dnadna', 'dnarna', 'rnarna', 'hairpin'}


class InputValidator:
    """Batch input validator"""

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: configuration dict
        """
        self.config = get_config(config)

        self.rules = {
            'input_file': {
                'extensions': ['.' + ext for ext in self.config['io']['SUPPORTED_INPUT_FORMATS']],
                'max_size_mb': 100,
            },
        }

        logger.debug("Input validator ready")

    def validate_input_file(self, file_path: Union[str, Path]) -> Tuple[bool, List[str], List[str]]:
        """
        Validate a batch input file

        Args:
            file_path: CSV/TSV file with a sequence column, or a text file
                with one sequence per line

        Returns:
            Tuple[bool, List[str], List[str]]: (is_valid, errors, warnings)
        """
        errors = []
        warnings = []
        file_path = Path(file_path)

        if not file_path.exists():
            errors.append(f"Input file not found: {file_path}")
            return False, errors, warnings

        if not file_path.is_file():
            errors.append(f"Input path is not a file: {file_path}")
            return False, errors, warnings

        rules = self.rules['input_file']
        if file_path.suffix.lower() not in rules['extensions']:
            errors.append(f"Unsupported input format {file_path.suffix} "
                          f"(expected one of {', '.join(rules['extensions'])})")
            return False, errors, warnings

        size_mb = file_path.stat().st_size / (1024 * 1024)
        if size_mb == 0:
            errors.append(f"Input file is empty: {file_path}")
            return False, errors, warnings
        if size_mb > rules['max_size_mb']:
            warnings.append(f"Large input file ({size_mb:.1f} MB)")

        try:
            from .batch import read_batch_input
            df = read_batch_input(file_path, self.config)
        except (ValueError, OSError, pd.errors.ParserError) as e:
            errors.append(f"Cannot read input file: {e}")
            return False, errors, warnings

        is_valid, df_errors, df_warnings = self.validate_dataframe(df)
        errors.extend(df_errors)
        warnings.extend(df_warnings)

        return len(errors) == 0, errors, warnings

    def validate_dataframe(self, df: pd.DataFrame) -> Tuple[bool, List[str], List[str]]:
        """
        Validate the rows of a batch input table

        Malformed rows are warnings, not errors: the batch records their
        failure and continues.

        Returns:
            Tuple[bool, List[str], List[str]]: (is_valid, errors, warnings)
        """
        errors = []
        warnings = []

        if df is None or df.empty:
            errors.append("Input table is empty")
            return False, errors, warnings

        sequence_column = self.config['batch']['SEQUENCE_COLUMN']
        if sequence_column not in df.columns:
            errors.append(f"Input table lacks the required column '{sequence_column}'")
            return False, errors, warnings

        known = {sequence_column, *self.config['batch']['OPTIONAL_COLUMNS']}
        unknown = [col for col in df.columns if col not in known]
        if unknown:
            warnings.append(f"Ignored columns: {', '.join(map(str, unknown))}")

        invalid_rows = []
        for idx, value in df[sequence_column].items():
            sequence = SequenceUtils.normalize(str(value)) if pd.notna(value) else ''
            if not sequence or SequenceUtils.invalid_bases(sequence, SEQUENCE_ALPHABET):
                invalid_rows.append(str(idx))
        if invalid_rows:
            warnings.append(f"{len(invalid_rows)} rows have a missing or invalid sequence "
                            f"(rows {', '.join(invalid_rows[:10])})")

        if 'hybridization' in df.columns:
            values = {str(v).strip().lower() for v in df['hybridization'].dropna()}
            unknown_types = values - KNOWN_HYBRIDIZATIONS
            if unknown_types:
                warnings.append(f"Unknown hybridization types: {', '.join(sorted(unknown_types))}")

        return len(errors) == 0, errors, warnings

    def validate_output_directory(
        self,
        output_dir: Union[str, Path],
        overwrite: bool = True
    ) -> Tuple[bool, List[str], List[str]]:
        """
        Validate an output directory

        Args:
            output_dir: output directory path
            overwrite: whether existing reports may be overwritten

        Returns:
            Tuple[bool, List[str], List[str]]: (is_valid, errors, warnings)
        """
        errors = []
        warnings = []
        output_dir = Path(output_dir)

        if output_dir.exists():
            if not output_dir.is_dir():
                errors.append(f"Output path is not a directory: {output_dir}")
                return False, errors, warnings

            prefix = self.config['io']['FILE_PREFIX']
            existing = [p for p in output_dir.iterdir() if p.name.startswith(prefix)]
            if existing:
                if overwrite:
                    warnings.append(f"Output directory already holds {len(existing)} report files")
                else:
                    errors.append(f"Output directory already holds report files: {output_dir}")
                    return False, errors, warnings
        else:
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create output directory: {e}")
                return False, errors, warnings

        try:
            test_file = output_dir / ".write_test"
            test_file.touch()
            test_file.unlink()
        except OSError as e:
            errors.append(f"Output directory is not writable: {e}")

        return len(errors) == 0, errors, warnings


@dataclass
class ValidationResult:
    """Validation outcome"""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'details': self.details
        }

    def to_string(self, include_warnings: bool = True) -> str:
        lines = []
        lines.append("=" * 60)
        lines.append("Input validation")
        lines.append("=" * 60)

        if self.is_valid:
            lines.append("✅ Validation passed")
        else:
            lines.append("❌ Validation failed")

        if self.errors:
            lines.append("")
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if include_warnings and self.warnings:
            lines.append("")
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        if self.details:
            lines.append("")
            lines.append("Details:")
            for key, value in self.details.items():
                lines.append(f"  {key}: {value}")

        lines.append("=" * 60)
        return "\n".join(lines)


def validate_batch_inputs(
    input_file: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    config: Optional[Dict] = None
) -> ValidationResult:
    """
    Validate a batch input file and, optionally, its output directory

    Returns:
        ValidationResult
    """
    validator = InputValidator(config)

    is_valid, errors, warnings = validator.validate_input_file(input_file)
    details = {'input_file': str(input_file)}

    if output_dir is not None:
        out_valid, out_errors, out_warnings = validator.validate_output_directory(output_dir)
        is_valid = is_valid and out_valid
        errors.extend(out_errors)
        warnings.extend(out_warnings)
        details['output_dir'] = str(output_dir)

    return ValidationResult(is_valid, errors, warnings, details)
