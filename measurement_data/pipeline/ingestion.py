# ========================
# measurement_data/pipeline/ingestion.py
# ========================

"""
Data Ingestion Module

Line-oriented parsing of measurement files into typed records, and the
registry used to pick a parser by file extension.
"""

import io
import logging
import math
import re
from datetime import datetime, timezone
from typing import BinaryIO, Dict, Iterable, Optional, Tuple

from .errors import ErrorKind, PipelineError
from .models import MeasurementRecord, ParseResult

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = "file is empty / missing header"

# yyyy-MM-ddTHH:mm:ss[.f{1,7}]Z or yyyy-MM-ddTHH-mm-ss[.f{1,7}]Z.
# The backreference keeps both time separators identical.
_TIMESTAMP_PATTERN = re.compile(
    r'(\d{4})-(\d{2})-(\d{2})T(\d{2})([:-])(\d{2})\5(\d{2})(?:\.(\d{1,7}))?Z',
    re.ASCII
)

# Invariant float literal: sign, digits with optional point, optional exponent
_NUMBER_PATTERN = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?', re.ASCII)


def parse_timestamp(literal: str) -> Optional[datetime]:
    """
    Parse a UTC timestamp literal.

    Returns:
        datetime or None: Timezone-aware UTC datetime, or None if the literal
                          does not match the grammar or names an impossible date.
    """
    match = _TIMESTAMP_PATTERN.fullmatch(literal)
    if match is None:
        return None

    year, month, day, hour, _, minute, second, fraction = match.groups()
    # Seven fractional digits are 100ns ticks; datetime stops at microseconds
    microsecond = int(fraction[:6].ljust(6, '0')) if fraction else 0
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), microsecond,
            tzinfo=timezone.utc
        )
    except ValueError:
        return None


def parse_number(literal: str) -> Optional[float]:
    """Parse a culture-invariant float literal, or return None."""
    if _NUMBER_PATTERN.fullmatch(literal) is None:
        return None
    number = float(literal)
    # Exponent overflow yields inf
    if not math.isfinite(number):
        return None
    return number


class CSVMeasurementParser:
    """
    Parser for ``Date;ExecutionTime;Value`` files.

    The first line is a header and is skipped without looking at its content.
    A malformed data line produces one error and is dropped; parsing always
    continues with the next line.
    """

    supported_extensions = ('.csv',)
    separator = ';'

    def parse(self, stream: BinaryIO, file_identity: str) -> ParseResult:
        """
        Parse a measurement file.

        Args:
            stream (BinaryIO): UTF-8 encoded content; closed when parsing ends
            file_identity (str): Logical key stamped on every record

        Returns:
            ParseResult: Records and per-line errors, both in line order
        """
        result = ParseResult()

        with io.TextIOWrapper(stream, encoding='utf-8-sig', errors='replace') as reader:
            header = reader.readline()
            if not header.strip():
                result.errors.append(
                    PipelineError(EMPTY_FILE_MESSAGE, ErrorKind.EMPTY_INPUT)
                )
                logger.info(f"'{file_identity}': empty file or missing header")
                return result

            for line_number, line in enumerate(reader, start=2):
                if not line.strip():
                    continue

                record, error = self.parse_line(line, line_number, file_identity)
                if error is not None:
                    result.errors.append(error)
                else:
                    result.records.append(record)

        logger.debug(
            f"'{file_identity}': parsed {len(result.records)} records, "
            f"{len(result.errors)} parse errors"
        )
        return result

    def parse_line(self, line: str, line_number: int, file_identity: str
                   ) -> Tuple[Optional[MeasurementRecord], Optional[PipelineError]]:
        """Parse one data line into a record or an error, never both."""
        first = line.find(self.separator)
        if first == -1:
            return None, self._error(line_number, "invalid format (missing separator)")

        second = line.find(self.separator, first + 1)
        if second == -1:
            return None, self._error(line_number, "invalid format (missing second separator)")

        date_part = line[:first].strip()
        exec_part = line[first + 1:second].strip()
        value_part = line[second + 1:].strip()

        timestamp = parse_timestamp(date_part)
        if timestamp is None:
            return None, self._error(line_number, f"invalid date format '{date_part}'")

        execution_time = parse_number(exec_part)
        if execution_time is None:
            return None, self._error(line_number, f"invalid execution time format '{exec_part}'")

        value = parse_number(value_part)
        if value is None:
            return None, self._error(line_number, f"invalid value format '{value_part}'")

        record = MeasurementRecord(
            file_identity=file_identity,
            timestamp=timestamp,
            execution_time=execution_time,
            value=value,
            line_number=line_number
        )
        return record, None

    @staticmethod
    def _error(line_number: int, message: str) -> PipelineError:
        return PipelineError(message, ErrorKind.STRUCTURAL_PARSE, line_number)


def file_extension(filename: str) -> str:
    """Return the lower-cased last extension of a file name, dot included."""
    base = re.split(r'[\\/]', filename)[-1]
    dot = base.rfind('.')
    if dot == -1 or dot == len(base) - 1:
        return ''
    return base[dot:].lower()


class ParserRegistry:
    """Maps normalized file extensions to parsers."""

    def __init__(self, parsers: Iterable = ()):
        self._parsers: Dict[str, object] = {}
        for parser in parsers:
            self.register(parser)

    def register(self, parser) -> None:
        """Register a parser under every extension it advertises."""
        for extension in parser.supported_extensions:
            key = extension.lower()
            if not key.startswith('.'):
                key = f'.{key}'
            self._parsers[key] = parser
            logger.debug(f"Registered {type(parser).__name__} for '{key}'")

    def resolve(self, filename: str):
        """Return the parser for a file name, or None if none matches."""
        return self._parsers.get(file_extension(filename))

    @property
    def extensions(self) -> Tuple[str, ...]:
        return tuple(sorted(self._parsers))


def default_registry() -> ParserRegistry:
    """Registry containing the built-in parsers."""
    return ParserRegistry([CSVMeasurementParser()])
