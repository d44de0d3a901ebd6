# ========================
# measurement_data/pipeline/statistics.py
# ========================

"""
Statistics Module

Reduces a file's records to one SummaryRecord.
"""

import logging
from datetime import datetime
from functools import reduce
from typing import NamedTuple, Sequence

from .models import MeasurementRecord, SummaryRecord

logger = logging.getLogger(__name__)


class _Aggregate(NamedTuple):
    min_date: datetime
    max_date: datetime
    sum_execution_time: float
    sum_value: float
    min_value: float
    max_value: float


def _fold(acc: _Aggregate, record: MeasurementRecord) -> _Aggregate:
    return _Aggregate(
        min_date=min(acc.min_date, record.timestamp),
        max_date=max(acc.max_date, record.timestamp),
        sum_execution_time=acc.sum_execution_time + record.execution_time,
        sum_value=acc.sum_value + record.value,
        min_value=min(acc.min_value, record.value),
        max_value=max(acc.max_value, record.value),
    )


def median(values: Sequence[float]) -> float:
    """Median of a non-empty sequence; mean of the two middle values for even length."""
    ordered = sorted(values)
    count = len(ordered)
    middle = count // 2
    if count % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2.0
    return ordered[middle]


class StatisticsCalculator:
    """Computes the per-file summary from validated records."""

    def calculate(self, records: Sequence[MeasurementRecord], file_identity: str) -> SummaryRecord:
        """
        Compute summary statistics.

        Args:
            records (list[MeasurementRecord]): Validated records of one file
            file_identity (str): Identity stamped on the summary

        Returns:
            SummaryRecord: All-zero summary for an empty input, otherwise
                           min/max/avg/median figures and the time span
        """
        if not records:
            return SummaryRecord(file_identity=file_identity)

        first = records[0]
        seed = _Aggregate(
            min_date=first.timestamp,
            max_date=first.timestamp,
            sum_execution_time=0.0,
            sum_value=0.0,
            min_value=first.value,
            max_value=first.value,
        )
        agg = reduce(_fold, records, seed)
        count = len(records)

        summary = SummaryRecord(
            file_identity=file_identity,
            time_delta_seconds=(agg.max_date - agg.min_date).total_seconds(),
            min_date=agg.min_date,
            avg_execution_time=agg.sum_execution_time / count,
            avg_value=agg.sum_value / count,
            median_value=median([r.value for r in records]),
            max_value=agg.max_value,
            min_value=agg.min_value,
        )
        logger.debug(f"Statistics for '{file_identity}' over {count} records: {summary}")
        return summary
