#!/usr/bin/env python3
"""
Main Entry Point for the Measurement Data Pipeline

Processes measurement files from disk into the configured database and
prints either the stored record count or the ordered error list per file.
"""

import argparse
import logging
import sys
from pathlib import Path

from measurement_data.pipeline import IncomingFile, MeasurementPipeline, SQLiteMeasurementRepository
from measurement_data.utils import Config, MeasurementDataGenerator, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate and store measurement files.")
    parser.add_argument("files", nargs="*", help="Measurement files to process")
    parser.add_argument("--generate", type=int, metavar="ROWS",
                        help="Generate a sample file with ROWS data lines and process it")
    parser.add_argument("--error-rate", type=float, default=0.0,
                        help="Fraction of generated lines with injected errors")
    parser.add_argument("--db", help="SQLite database path (overrides MEASUREMENT_DB_PATH)")
    return parser


def main(argv=None) -> int:
    """Main execution function."""
    args = build_parser().parse_args(argv)

    config = Config({'database_path': args.db} if args.db else None)
    setup_logging(log_level=config.LOG_LEVEL, log_file="pipeline.log", log_dir="logs")
    logger = logging.getLogger(__name__)

    files = [Path(f) for f in args.files]
    if args.generate:
        config.ensure_directories()
        sample_file = Path(config.SAMPLE_DATA_DIR) / "sample_measurements.csv"
        generator = MeasurementDataGenerator(seed=42)
        stats = generator.generate_dataset(str(sample_file), args.generate, error_rate=args.error_rate)
        logger.info(f"Sample data generated: {stats}")
        files.append(sample_file)

    if not files:
        logger.error("No input files given. Pass file paths or --generate ROWS.")
        return 1

    pipeline = MeasurementPipeline(
        repository=SQLiteMeasurementRepository(config.DATABASE_PATH),
        config=config
    )

    exit_code = 0
    for path in files:
        if not path.is_file():
            print(f"{path}: file not found")
            exit_code = 1
            continue

        result = pipeline.process_file(IncomingFile.from_path(path))
        if result.ok:
            print(f"{path}: {result.committed_count} records stored")
        else:
            exit_code = 1
            print(f"{path}: rejected with {len(result.errors)} errors")
            for message in result.error_messages():
                print(f"  {message}")

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
