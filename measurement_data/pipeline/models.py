# ========================
# measurement_data/pipeline/models.py
# ========================

"""
Data Model

Records moved between the pipeline stages.
"""

import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import BinaryIO, List, Optional

from .errors import PipelineError

# Default value of SummaryRecord.min_date for an empty record set
ZERO_INSTANT = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class MeasurementRecord:
    """One parsed data line."""

    file_identity: str
    timestamp: datetime
    execution_time: float
    value: float
    line_number: int = 0


@dataclass(frozen=True)
class SummaryRecord:
    """Aggregate statistics of one file."""

    file_identity: str
    time_delta_seconds: float = 0.0
    min_date: datetime = ZERO_INSTANT
    avg_execution_time: float = 0.0
    avg_value: float = 0.0
    median_value: float = 0.0
    max_value: float = 0.0
    min_value: float = 0.0


@dataclass
class IncomingFile:
    """
    A file handed to the pipeline.

    Attributes:
        filename (str): Name used both for parser lookup and as file identity
        size (int): Declared size in bytes
        stream (BinaryIO): Readable binary stream with the file content
    """

    filename: Optional[str]
    size: int
    stream: BinaryIO

    @classmethod
    def from_bytes(cls, filename: Optional[str], data: bytes) -> 'IncomingFile':
        return cls(filename=filename, size=len(data), stream=io.BytesIO(data))

    @classmethod
    def from_path(cls, path) -> 'IncomingFile':
        """Open a file on disk. The parser closes the stream when done."""
        file_path = Path(path)
        return cls(
            filename=file_path.name,
            size=file_path.stat().st_size,
            stream=open(file_path, 'rb')
        )


@dataclass
class ParseResult:
    """Records and per-line errors produced by a parser, both in line order."""

    records: List[MeasurementRecord] = field(default_factory=list)
    errors: List[PipelineError] = field(default_factory=list)

    def __iter__(self):
        # Allows ``records, errors = parser.parse(...)``
        return iter((self.records, self.errors))


class PipelineStage(Enum):
    """States of one file-processing invocation."""

    RECEIVED_FILE = "received_file"
    FILE_CHECKED = "file_checked"
    PARSED = "parsed"
    VALIDATED = "validated"
    ERRORS_MERGED = "errors_merged"
    ABORTED = "aborted"
    ROW_COUNT_CHECKED = "row_count_checked"
    STATISTICS_COMPUTED = "statistics_computed"
    COMMITTED = "committed"


@dataclass
class PipelineResult:
    """
    Outcome of processing one file.

    Either ``errors`` is empty and ``committed_count`` holds the number of
    stored records, or ``errors`` holds the ordered error list and nothing
    was stored.
    """

    file_identity: Optional[str]
    stage: PipelineStage
    committed_count: int = 0
    errors: List[PipelineError] = field(default_factory=list)
    timings_ms: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_messages(self) -> List[str]:
        return [str(error) for error in self.errors]
