# ========================
# tests/test_ingestion.py
# ========================

import io
import os
import sys
import tempfile
import unittest
from datetime import datetime, timezone

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from measurement_data.pipeline.errors import ErrorKind
from measurement_data.pipeline.ingestion import (
    CSVMeasurementParser,
    ParserRegistry,
    default_registry,
    file_extension,
    parse_number,
    parse_timestamp,
)
from measurement_data.pipeline.models import IncomingFile


def _stream(text: str) -> io.BytesIO:
    return io.BytesIO(text.encode('utf-8'))


class TestCSVMeasurementParser(unittest.TestCase):
    """Test the line-oriented measurement parser."""

    def setUp(self):
        self.parser = CSVMeasurementParser()

    def test_valid_file_returns_records(self):
        """Three well-formed lines produce three records and no errors."""
        content = (
            "Date;ExecutionTime;Value\n"
            "2023-01-01T10:00:00Z;0.1;100.0\n"
            "2023-01-01T10:00:01Z;0.2;200.0\n"
            "2023-01-01T10:00:02Z;0.3;300.0\n"
        )
        records, errors = self.parser.parse(_stream(content), "valid_data.csv")

        self.assertEqual(errors, [])
        self.assertEqual(len(records), 3)
        first = records[0]
        self.assertEqual(first.file_identity, "valid_data.csv")
        self.assertEqual(first.timestamp, datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc))
        self.assertEqual(first.execution_time, 0.1)
        self.assertEqual(first.value, 100.0)
        self.assertEqual([r.line_number for r in records], [2, 3, 4])

    def test_invalid_number_is_parse_error_negative_is_not(self):
        """A non-numeric field is a parse error; a negative number parses fine."""
        content = (
            "Date;ExecutionTime;Value\n"
            "2023-01-01T10:00:00Z;not_a_number;100.0\n"
            "2023-01-01T10:00:01Z;-1.0;100.0\n"
        )
        records, errors = self.parser.parse(_stream(content), "invalid_data.csv")

        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].line_number, 2)
        self.assertEqual(errors[0].kind, ErrorKind.STRUCTURAL_PARSE)
        self.assertEqual(str(errors[0]), "Line 2: invalid execution time format 'not_a_number'")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].execution_time, -1.0)

    def test_bad_header_is_ignored(self):
        """Header content is never validated."""
        content = "this;is;;not;a;header\n2000-01-01T00:00:00Z;10;100"
        records, errors = self.parser.parse(_stream(content), "bad_header.csv")

        self.assertEqual(errors, [])
        self.assertEqual(len(records), 1)

    def test_blank_first_line_is_empty_file(self):
        """A blank header line yields the single empty-file error."""
        for content in ("", "\n2023-01-01T10:00:00Z;1;1\n", "   \r\n"):
            records, errors = self.parser.parse(_stream(content), "empty.csv")
            self.assertEqual(records, [], f"content: {content!r}")
            self.assertEqual(len(errors), 1)
            self.assertEqual(str(errors[0]), "file is empty / missing header")
            self.assertIsNone(errors[0].line_number)
            self.assertEqual(errors[0].kind, ErrorKind.EMPTY_INPUT)

    def test_missing_separators(self):
        """Lines with fewer than two separators are reported and skipped."""
        content = (
            "Date;ExecutionTime;Value\n"
            "2023-01-01T10:00:00Z 0.1 100\n"
            "2023-01-01T10:00:00Z;0.1\n"
            "2023-01-01T10:00:00Z;0.1;100\n"
        )
        records, errors = self.parser.parse(_stream(content), "sep.csv")

        self.assertEqual(
            [str(e) for e in errors],
            [
                "Line 2: invalid format (missing separator)",
                "Line 3: invalid format (missing second separator)",
            ]
        )
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].line_number, 4)

    def test_only_first_two_separators_split(self):
        """Anything after the second separator belongs to the value field."""
        content = "h\n2023-01-01T10:00:00Z;0.1;100;200\n"
        records, errors = self.parser.parse(_stream(content), "extra.csv")

        self.assertEqual(records, [])
        self.assertEqual(str(errors[0]), "Line 2: invalid value format '100;200'")

    def test_first_failure_wins(self):
        """A line with several bad fields contributes exactly one error."""
        content = "h\nnot-a-date;abc;xyz\n"
        records, errors = self.parser.parse(_stream(content), "multi.csv")

        self.assertEqual(len(errors), 1)
        self.assertEqual(str(errors[0]), "Line 2: invalid date format 'not-a-date'")

    def test_blank_lines_skipped_but_counted(self):
        """Blank data lines are skipped and still advance the line number."""
        content = "h\n\n   \n2023-01-01T10:00:00Z;1;2\n\nbad\n"
        records, errors = self.parser.parse(_stream(content), "blank.csv")

        self.assertEqual(records[0].line_number, 4)
        self.assertEqual(errors[0].line_number, 6)

    def test_fields_are_trimmed_and_crlf_handled(self):
        """Whitespace around fields and Windows line endings are tolerated."""
        content = "h\r\n  2023-01-01T10:00:00Z ;\t0.5 ; 1e3 \r\n"
        records, errors = self.parser.parse(_stream(content), "crlf.csv")

        self.assertEqual(errors, [])
        self.assertEqual(records[0].execution_time, 0.5)
        self.assertEqual(records[0].value, 1000.0)

    def test_utf8_bom_is_dropped(self):
        """A UTF-8 byte order mark does not make the header blank or break line 2."""
        stream = io.BytesIO(b"\xef\xbb\xbfDate;ExecutionTime;Value\n2023-01-01T10:00:00Z;1;2\n")
        records, errors = self.parser.parse(stream, "bom.csv")

        self.assertEqual(errors, [])
        self.assertEqual(len(records), 1)

    def test_error_order_follows_lines(self):
        """Both output sequences preserve source line order."""
        content = (
            "h\n"
            "bad1\n"
            "2023-01-01T10:00:00Z;1;1\n"
            "bad2\n"
            "2023-01-01T10:00:01Z;2;2\n"
        )
        records, errors = self.parser.parse(_stream(content), "order.csv")

        self.assertEqual([e.line_number for e in errors], [2, 4])
        self.assertEqual([r.line_number for r in records], [3, 5])

    def test_parse_from_disk(self):
        """Parsing an IncomingFile opened from a path reads and closes the file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='') as f:
            f.write("Date;ExecutionTime;Value\n2023-01-01T10:00:00Z;0.1;100.0\n")
            temp_file_path = f.name

        try:
            incoming = IncomingFile.from_path(temp_file_path)
            records, errors = self.parser.parse(incoming.stream, incoming.filename)

            self.assertEqual(len(records), 1)
            self.assertEqual(records[0].file_identity, os.path.basename(temp_file_path))
            self.assertTrue(incoming.stream.closed)
        finally:
            os.unlink(temp_file_path)


class TestTimestampParsing(unittest.TestCase):
    """Test the accepted timestamp grammar."""

    def test_accepted_formats(self):
        """Colon and hyphen separators with 0-7 fractional digits are accepted."""
        cases = [
            ('2023-01-01T10:00:00Z', datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)),
            ('2023-01-01T10-00-00Z', datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)),
            ('2023-01-01T10:00:00.5Z', datetime(2023, 1, 1, 10, 0, 0, 500000, tzinfo=timezone.utc)),
            ('2023-01-01T10-00-00.123Z', datetime(2023, 1, 1, 10, 0, 0, 123000, tzinfo=timezone.utc)),
            ('2023-01-01T10:00:00.123456Z', datetime(2023, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)),
            ('2023-01-01T10:00:00.1234567Z', datetime(2023, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)),
        ]
        for literal, expected in cases:
            result = parse_timestamp(literal)
            self.assertEqual(result, expected, f"Failed for input: {literal}")
            self.assertEqual(result.utcoffset().total_seconds(), 0)

    def test_rejected_formats(self):
        """Anything outside the grammar is rejected."""
        rejected = [
            '2023-01-01 10:00:00Z',         # no T
            '2023-01-01T10:00:00',          # no Z
            '2023-01-01T10:00:00+00:00',    # offset instead of Z
            '2023-01-01T10:00-00Z',         # mixed separators
            '2023-01-01T10:00:00.12345678Z',  # eight fractional digits
            '2023-01-01T10:00:00.Z',        # empty fraction
            '2023-1-01T10:00:00Z',          # one-digit month
            '2023-13-01T10:00:00Z',         # impossible month
            '2023-02-30T10:00:00Z',         # impossible day
            '2023-01-01T24:00:00Z',         # impossible hour
            '2023-01-01t10:00:00z',         # lower case markers
            '',
        ]
        for literal in rejected:
            self.assertIsNone(parse_timestamp(literal), f"Accepted: {literal}")


class TestNumberParsing(unittest.TestCase):
    """Test invariant float parsing."""

    def test_number_literals(self):
        cases = [
            ('1', 1.0), ('-1.5', -1.5), ('+2', 2.0), ('.5', 0.5), ('5.', 5.0),
            ('1e3', 1000.0), ('1.5E-2', 0.015), ('0', 0.0),
            ('abc', None), ('1,5', None), ('', None), ('nan', None),
            ('inf', None), ('1_000', None), ('1e', None), ('--1', None),
            ('1e999', None), ('-1e999', None), ('1e308', 1e308),
        ]
        for literal, expected in cases:
            self.assertEqual(parse_number(literal), expected, f"Failed for input: {literal!r}")


class TestParserRegistry(unittest.TestCase):
    """Test extension based parser lookup."""

    def test_case_insensitive_lookup(self):
        registry = default_registry()
        for name in ('data.csv', 'DATA.CSV', 'archive.tar.Csv', 'dir/sub/x.csv'):
            self.assertIsInstance(registry.resolve(name), CSVMeasurementParser, name)

    def test_no_match(self):
        registry = default_registry()
        for name in ('data.txt', 'data', 'data.', 'csv', 'data.csv.bak'):
            self.assertIsNone(registry.resolve(name), name)

    def test_register_additional_format(self):
        """New formats only need a registry entry."""

        class TsvParser:
            supported_extensions = ('TSV', '.tab')

        registry = ParserRegistry([CSVMeasurementParser()])
        parser = TsvParser()
        registry.register(parser)

        self.assertIs(registry.resolve('x.tsv'), parser)
        self.assertIs(registry.resolve('x.TAB'), parser)
        self.assertEqual(registry.extensions, ('.csv', '.tab', '.tsv'))

    def test_file_extension(self):
        self.assertEqual(file_extension('a.b.CSV'), '.csv')
        self.assertEqual(file_extension('.csv'), '.csv')
        self.assertEqual(file_extension('noext'), '')
        self.assertEqual(file_extension('folder.d\\file'), '')


if __name__ == '__main__':
    unittest.main()
