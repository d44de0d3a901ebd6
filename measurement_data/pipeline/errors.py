# ========================
# measurement_data/pipeline/errors.py
# ========================

"""
Pipeline Errors

Error values produced by the pipeline stages and the few exceptions that
cross the pipeline boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional


class ErrorKind(Enum):
    """Category of a pipeline error."""

    FILE_ADMISSIBILITY = "file_admissibility"
    EMPTY_INPUT = "empty_input"
    UNSUPPORTED_FORMAT = "unsupported_format"
    STRUCTURAL_PARSE = "structural_parse"
    BUSINESS_VALIDATION = "business_validation"
    ROW_COUNT_POLICY = "row_count_policy"


@dataclass(frozen=True)
class PipelineError:
    """
    A single user-facing error.

    The line number is carried as data from the moment the error is
    created; it is never recovered from the rendered message.
    """

    message: str
    kind: ErrorKind
    line_number: Optional[int] = None

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"Line {self.line_number}: {self.message}"


def merge_errors(*error_groups: Iterable[PipelineError]) -> List[PipelineError]:
    """
    Concatenate error groups and order them by line number.

    Errors without a line number go last. sorted() is stable, so errors on
    the same line keep the order of the groups passed in.
    """
    merged = [error for group in error_groups for error in group]
    return sorted(
        merged,
        key=lambda e: (e.line_number is None, e.line_number or 0)
    )


class MeasurementDataError(Exception):
    """Base class for exceptions raised by this package."""


class CommitError(MeasurementDataError):
    """Raised by a storage collaborator when a file could not be committed."""

    def __init__(self, file_identity: str, message: str):
        super().__init__(message)
        self.file_identity = file_identity


class PipelineValidationError(MeasurementDataError):
    """Raised by callers that want a rejected file as an exception."""

    def __init__(self, errors: List[str]):
        super().__init__("measurement data validation failed")
        self.errors = list(errors)
