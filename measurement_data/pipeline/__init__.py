"""
Measurement Pipeline Package

Core components of the measurement file pipeline:
- ingestion: Line parser and parser registry
- validation: File, record and row-count checks
- statistics: Per-file summary statistics
- storage: Repository interface and SQLite implementation
- orchestrator: Pipeline coordination
"""

from .errors import CommitError, ErrorKind, PipelineError, PipelineValidationError
from .ingestion import CSVMeasurementParser, ParserRegistry, default_registry
from .models import (
    IncomingFile,
    MeasurementRecord,
    PipelineResult,
    PipelineStage,
    SummaryRecord,
)
from .orchestrator import MeasurementPipeline
from .statistics import StatisticsCalculator
from .storage import MeasurementRepository, ResultFilter, SQLiteMeasurementRepository
from .validation import ValueValidator

__all__ = [
    'CommitError',
    'ErrorKind',
    'PipelineError',
    'PipelineValidationError',
    'CSVMeasurementParser',
    'ParserRegistry',
    'default_registry',
    'IncomingFile',
    'MeasurementRecord',
    'PipelineResult',
    'PipelineStage',
    'SummaryRecord',
    'MeasurementPipeline',
    'StatisticsCalculator',
    'MeasurementRepository',
    'ResultFilter',
    'SQLiteMeasurementRepository',
    'ValueValidator',
]
