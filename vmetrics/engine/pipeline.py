"""VMetrics — Engine Pipeline.

normalize → aggregate → derive → format, composed for the two shapes the
service layer needs: one summary for a period, and one row per campaign.
"""

from typing import Any, Iterable, List, Optional, Sequence

from vmetrics.engine.aggregator import aggregate
from vmetrics.engine.derived import derive
from vmetrics.engine.normalizer import normalize_many
from vmetrics.models.dashboard_models import CampaignRow, DerivedMetric
from vmetrics.models.records import AggregatedSummary, CanonicalRecord

TEXT_COLUMNS = ("name", "source", "status")


def summarize(
    raw_rows: Iterable[Any],
    metric_ids: Optional[Sequence[str]] = None,
    period: str = "",
    currency: str = "USD",
    locale: Optional[str] = None,
) -> tuple[AggregatedSummary, List[DerivedMetric]]:
    """Run the full engine over raw upstream rows."""
    summary = aggregate(normalize_many(raw_rows), period=period)
    return summary, derive(summary, metric_ids, currency, locale)


def empty_summary(
    metric_ids: Optional[Sequence[str]] = None,
    period: str = "",
    currency: str = "USD",
    locale: Optional[str] = None,
) -> tuple[AggregatedSummary, List[DerivedMetric]]:
    """All-zero result used when upstream data is unavailable."""
    return summarize([], metric_ids, period, currency, locale)


def campaign_row(
    record: CanonicalRecord,
    column_ids: Sequence[str],
    currency: str = "USD",
    locale: Optional[str] = None,
) -> CampaignRow:
    numeric_ids = [c for c in column_ids if c not in TEXT_COLUMNS]
    values = derive(record, numeric_ids, currency, locale)
    return CampaignRow(
        id=record.id or record.name,
        name=record.name,
        source=record.source,
        status=record.status,
        values={m.id: m for m in values},
    )


def build_campaign_rows(
    raw_rows: Iterable[Any],
    column_ids: Sequence[str],
    currency: str = "USD",
    locale: Optional[str] = None,
) -> tuple[List[CampaignRow], List[DerivedMetric]]:
    """Per-campaign rows plus a totals line over all campaigns."""
    records = normalize_many(raw_rows)
    rows = [campaign_row(r, column_ids, currency, locale) for r in records]
    numeric_ids = [c for c in column_ids if c not in TEXT_COLUMNS]
    totals = derive(aggregate(records, period="total"), numeric_ids, currency, locale)
    return rows, totals
