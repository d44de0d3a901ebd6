# ========================
# measurement_data/pipeline/storage.py
# ========================

"""
Data Storage Module

Repository interface the pipeline commits to, and its SQLite implementation.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import CommitError
from .models import MeasurementRecord, SummaryRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultFilter:
    """Optional, inclusive filters for summary queries."""

    file_name: Optional[str] = None
    min_date_from: Optional[datetime] = None
    min_date_to: Optional[datetime] = None
    avg_value_from: Optional[float] = None
    avg_value_to: Optional[float] = None
    avg_exec_time_from: Optional[float] = None
    avg_exec_time_to: Optional[float] = None


class MeasurementRepository(ABC):
    """Storage collaborator of the pipeline."""

    @abstractmethod
    def save_file_data(self,
                       file_identity: str,
                       records: Sequence[MeasurementRecord],
                       summary: SummaryRecord) -> None:
        """
        Atomically replace everything stored under ``file_identity``.

        Raises:
            CommitError: Nothing was changed
        """

    @abstractmethod
    def get_results(self, result_filter: Optional[ResultFilter] = None) -> List[SummaryRecord]:
        """Return stored summaries matching the filter."""

    @abstractmethod
    def get_last_values(self, file_identity: str, limit: int = 10) -> List[MeasurementRecord]:
        """Return the most recent records of a file, newest first."""


def _to_db_timestamp(value: datetime) -> str:
    # Fixed width so that text order equals time order
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')


def _from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class SQLiteMeasurementRepository(MeasurementRepository):
    """
    Stores values and summaries in a SQLite database file.

    A new connection is opened for each operation, so one instance can be
    shared by concurrent requests.
    """

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS measurement_values (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            file_name TEXT NOT NULL,
            date TEXT NOT NULL,
            execution_time REAL NOT NULL,
            value REAL NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS measurement_results (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            file_name TEXT NOT NULL,
            time_delta REAL NOT NULL,
            min_date TEXT NOT NULL,
            avg_execution_time REAL NOT NULL,
            avg_value REAL NOT NULL,
            median_value REAL NOT NULL,
            max_value REAL NOT NULL,
            min_value REAL NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS ix_values_file_name ON measurement_values (file_name)",
        "CREATE INDEX IF NOT EXISTS ix_values_date ON measurement_values (date)",
        "CREATE INDEX IF NOT EXISTS ix_results_file_name ON measurement_results (file_name)",
        "CREATE INDEX IF NOT EXISTS ix_results_min_date ON measurement_results (min_date)",
        "CREATE INDEX IF NOT EXISTS ix_results_avg_value ON measurement_results (avg_value)",
        "CREATE INDEX IF NOT EXISTS ix_results_avg_execution_time ON measurement_results (avg_execution_time)",
    )

    def __init__(self, db_path: str = "data/measurements.db"):
        """
        Initialize the repository and create the schema if needed.

        Args:
            db_path (str): Path of the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info(f"SQLiteMeasurementRepository initialized with database: {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self.db_path))
        connection.row_factory = sqlite3.Row
        return connection

    def _ensure_schema(self) -> None:
        connection = self._connect()
        try:
            for statement in self.SCHEMA:
                connection.execute(statement)
            connection.commit()
        finally:
            connection.close()

    def save_file_data(self,
                       file_identity: str,
                       records: Sequence[MeasurementRecord],
                       summary: SummaryRecord) -> None:
        try:
            connection = self._connect()
        except sqlite3.Error as e:
            logger.error(f"Cannot open database {self.db_path}: {e}")
            raise CommitError(file_identity, f"cannot open database for '{file_identity}': {e}") from e

        try:
            connection.execute("BEGIN")
            connection.execute(
                "DELETE FROM measurement_results WHERE file_name = ?", (file_identity,)
            )
            connection.execute(
                "DELETE FROM measurement_values WHERE file_name = ?", (file_identity,)
            )
            connection.executemany(
                """
                INSERT INTO measurement_values (file_name, date, execution_time, value)
                VALUES (?, ?, ?, ?)
                """,
                (
                    (file_identity, _to_db_timestamp(r.timestamp), r.execution_time, r.value)
                    for r in records
                )
            )
            connection.execute(
                """
                INSERT INTO measurement_results (
                    file_name, time_delta, min_date, avg_execution_time,
                    avg_value, median_value, max_value, min_value
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file_identity,
                    summary.time_delta_seconds,
                    _to_db_timestamp(summary.min_date),
                    summary.avg_execution_time,
                    summary.avg_value,
                    summary.median_value,
                    summary.max_value,
                    summary.min_value,
                )
            )
            connection.commit()
        except sqlite3.Error as e:
            connection.rollback()
            logger.error(f"Failed to save data for file '{file_identity}': {e}")
            raise CommitError(file_identity, f"failed to save data for '{file_identity}': {e}") from e
        finally:
            connection.close()

        logger.info(f"Saved {len(records)} values and summary for '{file_identity}'")

    def get_results(self, result_filter: Optional[ResultFilter] = None) -> List[SummaryRecord]:
        result_filter = result_filter or ResultFilter()
        clauses = []
        params: list = []

        conditions = [
            ("file_name = ?", result_filter.file_name or None),
            ("min_date >= ?", result_filter.min_date_from),
            ("min_date <= ?", result_filter.min_date_to),
            ("avg_value >= ?", result_filter.avg_value_from),
            ("avg_value <= ?", result_filter.avg_value_to),
            ("avg_execution_time >= ?", result_filter.avg_exec_time_from),
            ("avg_execution_time <= ?", result_filter.avg_exec_time_to),
        ]
        for clause, value in conditions:
            if value is None:
                continue
            if isinstance(value, datetime):
                value = _to_db_timestamp(value if value.tzinfo else value.replace(tzinfo=timezone.utc))
            clauses.append(clause)
            params.append(value)

        query = "SELECT * FROM measurement_results"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id"

        connection = self._connect()
        try:
            rows = connection.execute(query, params).fetchall()
        finally:
            connection.close()

        return [
            SummaryRecord(
                file_identity=row['file_name'],
                time_delta_seconds=row['time_delta'],
                min_date=_from_db_timestamp(row['min_date']),
                avg_execution_time=row['avg_execution_time'],
                avg_value=row['avg_value'],
                median_value=row['median_value'],
                max_value=row['max_value'],
                min_value=row['min_value'],
            )
            for row in rows
        ]

    def get_last_values(self, file_identity: str, limit: int = 10) -> List[MeasurementRecord]:
        connection = self._connect()
        try:
            rows = connection.execute(
                """
                SELECT file_name, date, execution_time, value
                FROM measurement_values
                WHERE file_name = ?
                ORDER BY date DESC, id DESC
                LIMIT ?
                """,
                (file_identity, limit)
            ).fetchall()
        finally:
            connection.close()

        return [
            MeasurementRecord(
                file_identity=row['file_name'],
                timestamp=_from_db_timestamp(row['date']),
                execution_time=row['execution_time'],
                value=row['value'],
            )
            for row in rows
        ]
