# ========================
# measurement_data/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Sample measurement files with optional error injection, for demos and
load tests.
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

HEADER = "Date;ExecutionTime;Value"


class MeasurementDataGenerator:
    """
    Generator for ``Date;ExecutionTime;Value`` files.
    """

    ERROR_TYPES = (
        'bad_date', 'missing_separator', 'bad_execution_time',
        'bad_value', 'negative_value', 'date_out_of_range',
    )

    MAX_STEP_SECONDS = 60

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
        """
        self.random = random.Random(seed)
        logger.info(f"MeasurementDataGenerator initialized with seed: {seed}")

    def generate_lines(self,
                       num_rows: int,
                       error_rate: float = 0.0,
                       start_date: Optional[datetime] = None,
                       stats: Optional[Dict[str, Any]] = None) -> List[str]:
        """
        Generate the header and ``num_rows`` data lines.

        Args:
            num_rows (int): Number of data lines
            error_rate (float): Fraction of lines with an injected error
            start_date (datetime): Timestamp of the first measurement
            stats (dict): Optional dict updated with error counts

        Returns:
            list[str]: Lines without line terminators
        """
        if start_date is None:
            # Steps are at most MAX_STEP_SECONDS, so the last line is never in the future
            span = max(timedelta(days=30), timedelta(seconds=self.MAX_STEP_SECONDS * num_rows))
            start_date = datetime.now(timezone.utc) - span
        if stats is None:
            stats = {'records_with_errors': 0, 'error_types': {}}

        lines = [HEADER]
        timestamp = start_date
        for _ in range(num_rows):
            timestamp += timedelta(seconds=self.random.randint(1, self.MAX_STEP_SECONDS))
            fields = [
                self._format_timestamp(timestamp),
                f"{self.random.uniform(0.01, 5.0):.4f}",
                f"{self.random.uniform(0.0, 1000.0):.3f}",
            ]
            if error_rate and self.random.random() < error_rate:
                error_type = self.random.choice(self.ERROR_TYPES)
                fields = self._inject_error(fields, error_type)
                stats['records_with_errors'] += 1
                stats['error_types'][error_type] = stats['error_types'].get(error_type, 0) + 1
            lines.append(';'.join(fields))
        return lines

    def generate_dataset(self,
                         file_path: str,
                         num_rows: int,
                         error_rate: float = 0.0,
                         start_date: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Write a generated file to disk.

        Returns:
            dict: Generation statistics
        """
        logger.info(f"Generating {num_rows:,} rows with {error_rate:.1%} error rate...")

        stats: Dict[str, Any] = {
            'file_path': file_path,
            'total_rows': num_rows,
            'error_rate': error_rate,
            'records_with_errors': 0,
            'error_types': {},
        }
        lines = self.generate_lines(num_rows, error_rate, start_date, stats)

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            f.write('\n'.join(lines) + '\n')

        stats['error_rate_actual'] = stats['records_with_errors'] / num_rows if num_rows else 0.0
        logger.info(f"Dataset generated: {file_path} ({stats['records_with_errors']} lines with errors)")
        return stats

    def _format_timestamp(self, timestamp: datetime) -> str:
        # Mix both time separators and fraction lengths the parser accepts
        separator = self.random.choice((':', '-'))
        digits = self.random.randint(0, 7)
        text = timestamp.strftime(f"%Y-%m-%dT%H{separator}%M{separator}%S")
        if digits:
            fraction = f"{timestamp.microsecond:06d}0"[:digits]
            text += f".{fraction}"
        return text + "Z"

    def _inject_error(self, fields: List[str], error_type: str) -> List[str]:
        date, execution_time, value = fields
        if error_type == 'bad_date':
            return [date.replace('T', ' ').rstrip('Z'), execution_time, value]
        if error_type == 'missing_separator':
            return [f"{date},{execution_time}", value]
        if error_type == 'bad_execution_time':
            return [date, execution_time.replace('.', ','), value]
        if error_type == 'bad_value':
            return [date, execution_time, 'n/a']
        if error_type == 'negative_value':
            return [date, execution_time, f"-{value}"]
        if error_type == 'date_out_of_range':
            return ["1999-12-31T23:59:59Z", execution_time, value]
        raise ValueError(f"Unknown error type: {error_type}")
