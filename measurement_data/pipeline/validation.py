# ========================
# measurement_data/pipeline/validation.py
# ========================

"""
Data Validation Module

Business rules applied to an incoming file and to its parsed records.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .errors import ErrorKind, PipelineError
from .models import IncomingFile, MeasurementRecord
from ..utils.config import ValidationSettings

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ValueValidator:
    """
    Checks files and records against the configured thresholds.

    None of the checks raise for invalid input; each returns the list of
    errors it found, empty when the input passes.
    """

    def __init__(self,
                 settings: Optional[ValidationSettings] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """
        Initialize the validator.

        Args:
            settings (ValidationSettings): Immutable thresholds
            clock (callable): Returns the current UTC time, upper date bound
        """
        self.settings = settings or ValidationSettings()
        self.clock = clock
        self.min_allowed_date = datetime(
            self.settings.min_allowed_year, 1, 1, tzinfo=timezone.utc
        )

    def validate_file(self, incoming: Optional[IncomingFile]) -> List[PipelineError]:
        """Reject a missing file or one whose declared size is zero."""
        if incoming is None or incoming.size == 0:
            return [PipelineError(
                "file is empty or was not provided", ErrorKind.FILE_ADMISSIBILITY
            )]
        return []

    def validate_row_count(self, count: int) -> List[PipelineError]:
        """Check the number of valid records against the allowed range."""
        low, high = self.settings.min_row_count, self.settings.max_row_count
        if count < low or count > high:
            return [PipelineError(
                f"row count ({count}) must be between {low} and {high}",
                ErrorKind.ROW_COUNT_POLICY
            )]
        return []

    def validate_records(self, records: Sequence[MeasurementRecord]) -> List[PipelineError]:
        """
        Validate every record and collect all errors.

        Each rule runs on each record regardless of earlier failures, so a
        single record can contribute several errors.
        """
        errors: List[PipelineError] = []
        now = self.clock()
        for record in records:
            errors.extend(self._validate_record(record, now))

        if errors:
            logger.debug(f"{len(errors)} business rule violations in {len(records)} records")
        return errors

    def _validate_record(self, record: MeasurementRecord, now: datetime) -> List[PipelineError]:
        errors = []
        line = record.line_number

        if record.timestamp < self.min_allowed_date or record.timestamp > now:
            errors.append(PipelineError(
                f"date {record.timestamp:%Y-%m-%d} is outside the allowed range "
                f"({self.settings.min_allowed_year}-01-01 to current date)",
                ErrorKind.BUSINESS_VALIDATION, line
            ))

        if not self.settings.allow_negative_execution_time and record.execution_time < 0:
            errors.append(PipelineError(
                f"execution time cannot be negative ({record.execution_time})",
                ErrorKind.BUSINESS_VALIDATION, line
            ))

        if not self.settings.allow_negative_value and record.value < 0:
            errors.append(PipelineError(
                f"value cannot be negative ({record.value})",
                ErrorKind.BUSINESS_VALIDATION, line
            ))

        return errors
