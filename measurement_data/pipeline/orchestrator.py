# ========================
# measurement_data/pipeline/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Coordinates parsing, validation, statistics and storage for one file.
"""

import logging
from typing import Optional

from .errors import ErrorKind, PipelineError, merge_errors
from .ingestion import ParserRegistry, default_registry, file_extension
from .models import IncomingFile, PipelineResult, PipelineStage
from .statistics import StatisticsCalculator
from .storage import MeasurementRepository
from .validation import ValueValidator
from ..utils.config import Config
from ..utils.performance_monitor import monitor_performance

logger = logging.getLogger(__name__)


class MeasurementPipeline:
    """
    Runs one measurement file through the pipeline.

    Stages: file check, parse, record validation, error merge, row-count
    check, statistics, commit. Any error stops the run before statistics and
    storage, so a rejected file never reaches the repository.
    """

    def __init__(self,
                 repository: MeasurementRepository,
                 registry: Optional[ParserRegistry] = None,
                 validator: Optional[ValueValidator] = None,
                 calculator: Optional[StatisticsCalculator] = None,
                 config: Optional[Config] = None):
        """
        Initialize the pipeline.

        Args:
            repository (MeasurementRepository): Storage collaborator
            registry (ParserRegistry): Parsers by extension, CSV by default
            validator (ValueValidator): Built from ``config`` when omitted
            calculator (StatisticsCalculator): Statistics engine
            config (Config): Configuration object
        """
        self.config = config or Config()
        self.repository = repository
        self.registry = registry or default_registry()
        self.validator = validator or ValueValidator(self.config.validation_settings())
        self.calculator = calculator or StatisticsCalculator()

        logger.info(f"MeasurementPipeline initialized, formats: {', '.join(self.registry.extensions)}")

    def process_file(self, incoming: Optional[IncomingFile]) -> PipelineResult:
        """
        Process one file.

        Args:
            incoming (IncomingFile): File to process, or None if none was sent

        Returns:
            PipelineResult: Committed record count, or the ordered error list

        Raises:
            CommitError: Raised by the repository; passed through unchanged
        """
        file_name = incoming.filename if incoming is not None else None

        with monitor_performance(f"Pipeline[{file_name}]") as monitor:
            errors = self.validator.validate_file(incoming)
            if errors:
                self._close(incoming)
                return self._reject(file_name, PipelineStage.RECEIVED_FILE, errors)

            extension = file_extension(file_name or '')
            parser = self.registry.resolve(file_name or '')
            if parser is None:
                self._close(incoming)
                return self._reject(file_name, PipelineStage.FILE_CHECKED, [PipelineError(
                    f"file format '{extension}' is not supported", ErrorKind.UNSUPPORTED_FORMAT
                )])

            with monitor.stage('parse'):
                records, parse_errors = parser.parse(incoming.stream, file_name)

            with monitor.stage('validation'):
                validation_errors = self.validator.validate_records(records)

            merged = merge_errors(parse_errors, validation_errors)
            if merged:
                logger.warning(
                    f"File '{file_name}' has {len(merged)} errors, processing aborted. "
                    f"Timings: parse={monitor.stage_ms['parse']:.0f}ms, "
                    f"validation={monitor.stage_ms['validation']:.0f}ms"
                )
                return self._reject(file_name, PipelineStage.ABORTED, merged, monitor.stage_ms)

            errors = self.validator.validate_row_count(len(records))
            if errors:
                return self._reject(file_name, PipelineStage.ERRORS_MERGED, errors, monitor.stage_ms)

            with monitor.stage('statistics'):
                summary = self.calculator.calculate(records, file_name)

            with monitor.stage('storage'):
                self.repository.save_file_data(file_name, records, summary)

        timings = dict(monitor.stage_ms, total=monitor.elapsed_ms())
        logger.info(
            f"File '{file_name}' processed in {timings['total']:.0f}ms. "
            f"Parse={timings['parse']:.0f}ms, validation={timings['validation']:.0f}ms, "
            f"statistics={timings['statistics']:.0f}ms, storage={timings['storage']:.0f}ms. "
            f"Records: {len(records)}"
        )
        return PipelineResult(
            file_identity=file_name,
            stage=PipelineStage.COMMITTED,
            committed_count=len(records),
            timings_ms=timings
        )

    def _reject(self, file_name, stage, errors, timings=None) -> PipelineResult:
        logger.debug(f"File '{file_name}' rejected at stage {stage.value}: {len(errors)} errors")
        return PipelineResult(
            file_identity=file_name,
            stage=stage,
            errors=list(errors),
            timings_ms=dict(timings or {})
        )

    @staticmethod
    def _close(incoming: Optional[IncomingFile]) -> None:
        if incoming is not None:
            incoming.stream.close()
