"""VMetrics — Aggregator.

Field-wise sum of canonical numeric fields. Accepts CanonicalRecords or plain
mappings that skipped normalization; anything unusable counts as 0.
"""

import math
from typing import Any, Iterable, Mapping

from vmetrics.engine.normalizer import to_finite_float
from vmetrics.models.records import NUMERIC_FIELDS, AggregatedSummary, MetricTotals


def _field_value(record: Any, field: str) -> float:
    if isinstance(record, MetricTotals):
        value = getattr(record, field, 0.0)
    elif isinstance(record, Mapping):
        value = record.get(field, 0.0)
    else:
        return 0.0
    return to_finite_float(value) or 0.0


def _field_sum(values: Iterable[float]) -> float:
    """Exactly rounded sum; a total beyond the float range is 0."""
    try:
        total = math.fsum(values)
    except OverflowError:
        return 0.0
    return total if math.isfinite(total) else 0.0


def aggregate(records: Iterable[Any], period: str = "") -> AggregatedSummary:
    """Sum every numeric field across records.

    math.fsum is exactly rounded, so the result does not depend on record order.
    """
    records = list(records)
    totals = {
        field: _field_sum(_field_value(r, field) for r in records)
        for field in NUMERIC_FIELDS
    }
    return AggregatedSummary(**totals, period=period, record_count=len(records))
