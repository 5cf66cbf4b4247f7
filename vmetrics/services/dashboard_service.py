"""VMetrics — Dashboard Service.

Runs the data flow for each dashboard view:
  resolve period → fetch from RedTrack → normalize → aggregate → derive → format

An upstream failure is logged and replaced by an all-zero result flagged
``degraded`` so every view always has something to render.
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlmodel import Session, select

from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import RedTrackAPIError
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.core.logging import get_logger
from vmetrics.engine.aggregator import aggregate
from vmetrics.engine.breakdown import build_funnel, funnel_conversion_rate, top_performers
from vmetrics.engine.derived import safe_ratio
from vmetrics.engine.normalizer import normalize_many
from vmetrics.engine.pipeline import build_campaign_rows, empty_summary, summarize
from vmetrics.models.dashboard_models import (
    CampaignOverview,
    CampaignTable,
    ConversionsResult,
    DashboardSummary,
    FunnelCampaign,
    FunnelResult,
    MetricCategorySeries,
    PerformanceResult,
    PeriodValue,
    ReportResult,
    TopCampaign,
)
from vmetrics.models.preference_models import DashboardSnapshot
from vmetrics.models.records import AggregatedSummary, CanonicalRecord
from vmetrics.services.periods import resolve_period

logger = get_logger("services.dashboard")

OVERVIEW_PERIODS = ("today", "yesterday", "this_month", "last_month")
TOP_CAMPAIGNS_LIMIT = 3
# Conversions fetched per request for the top performers view
PERFORMANCE_PAGE_SIZE = 10000


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def detect_currency(endpoints: RedTrackEndpoints) -> str:
    """Account currency, or the configured display currency."""
    return await endpoints.fetch_currency()


# ── Dashboard cards ──


async def load_dashboard(
    endpoints: RedTrackEndpoints,
    period: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    metric_ids: Optional[Sequence[str]] = None,
    filters: Optional[Dict[str, Any]] = None,
    currency: Optional[str] = None,
    locale: Optional[str] = None,
    today: Optional[date] = None,
) -> DashboardSummary:
    """Metric cards for a period, report rows grouped by date."""
    period = period or settings.default_period
    start, end = resolve_period(period, date_from, date_to, today)
    currency = currency or settings.display_currency
    locale = locale or settings.display_locale

    degraded = False
    try:
        rows = await endpoints.fetch_report(start, end, "date", filters)
        summary, metrics = summarize(rows, metric_ids, period, currency, locale)
    except RedTrackAPIError as e:
        logger.error(
            f"Dashboard fetch failed, showing zeros: {e}",
            extra={"endpoint": "report", "period": period, "status_code": e.status_code},
        )
        summary, metrics = empty_summary(metric_ids, period, currency, locale)
        degraded = True

    return DashboardSummary(
        period=period,
        date_from=start,
        date_to=end,
        currency=currency,
        generated_at=_now(),
        metrics=metrics,
        summary=summary,
        degraded=degraded,
    )


# ── Campaigns table ──


async def load_campaigns(
    endpoints: RedTrackEndpoints,
    column_ids: Sequence[str],
    period: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
    currency: Optional[str] = None,
    locale: Optional[str] = None,
    today: Optional[date] = None,
) -> CampaignTable:
    """One row per campaign with the visible columns, plus totals."""
    period = period or settings.default_period
    start, end = resolve_period(period, date_from, date_to, today)
    currency = currency or settings.display_currency
    locale = locale or settings.display_locale

    degraded = False
    try:
        raw = await endpoints.fetch_campaigns(start, end, filters)
    except RedTrackAPIError as e:
        logger.error(
            f"Campaigns fetch failed: {e}",
            extra={"endpoint": "campaigns", "period": period, "status_code": e.status_code},
        )
        raw, degraded = [], True

    rows, totals = build_campaign_rows(raw, column_ids, currency, locale)
    return CampaignTable(
        period=period,
        date_from=start,
        date_to=end,
        currency=currency,
        columns=list(column_ids),
        rows=rows,
        totals=totals,
        degraded=degraded,
    )


# ── Period comparison overview ──


def _top_campaigns(records: List[CanonicalRecord]) -> List[TopCampaign]:
    ranked = sorted(records, key=lambda r: r.revenue, reverse=True)
    return [
        TopCampaign(name=r.name, conversions=r.conversions, revenue=r.revenue)
        for r in ranked[:TOP_CAMPAIGNS_LIMIT]
    ]


def _trend(current: float, previous: float) -> str:
    return "fall" if current < previous else "rise"


async def load_campaign_overview(
    endpoints: RedTrackEndpoints,
    today: Optional[date] = None,
) -> CampaignOverview:
    """Ad spend, revenue and ROAS for today, yesterday, this month and last month."""
    records: Dict[str, List[CanonicalRecord]] = {}
    summaries: Dict[str, AggregatedSummary] = {}
    degraded = False

    for period in OVERVIEW_PERIODS:
        start, end = resolve_period(period, today=today)
        try:
            raw = await endpoints.fetch_campaigns(start, end)
        except RedTrackAPIError as e:
            logger.error(
                f"Overview fetch failed for {period}: {e}",
                extra={"endpoint": "campaigns", "period": period},
            )
            raw, degraded = [], True
        records[period] = normalize_many(raw)
        summaries[period] = aggregate(records[period], period=period)

    def series(kind: str, value_of) -> MetricCategorySeries:
        values = []
        for period in OVERVIEW_PERIODS:
            value = value_of(summaries[period])
            trend = None
            if period == "today":
                trend = _trend(value, value_of(summaries["yesterday"]))
            values.append(PeriodValue(period=period, value=value, trend=trend))
        return MetricCategorySeries(type=kind, values=values)

    return CampaignOverview(
        metric_categories=[
            series("ad_spend", lambda s: s.spend),
            series("revenue", lambda s: s.revenue),
            series("roas", lambda s: safe_ratio(s.revenue, s.spend)),
        ],
        top_campaigns={
            "today": _top_campaigns(records["today"]),
            "yesterday": _top_campaigns(records["yesterday"]),
        },
        degraded=degraded,
    )


# ── Report & conversions ──


async def load_report(
    endpoints: RedTrackEndpoints,
    date_from: str,
    date_to: str,
    group_by: str = "date",
    filters: Optional[Dict[str, Any]] = None,
) -> ReportResult:
    start, end = resolve_period("custom", date_from, date_to)
    degraded = False
    try:
        raw = await endpoints.fetch_report(start, end, group_by, filters)
    except RedTrackAPIError as e:
        logger.error(f"Report fetch failed: {e}", extra={"endpoint": "report"})
        raw, degraded = [], True

    items = normalize_many(raw)
    return ReportResult(
        date_from=start,
        date_to=end,
        group_by=group_by,
        items=items,
        summary=aggregate(items, period=f"{start}/{end}"),
        degraded=degraded,
    )


async def load_conversions(
    endpoints: RedTrackEndpoints,
    date_from: str,
    date_to: str,
    filters: Optional[Dict[str, Any]] = None,
) -> ConversionsResult:
    start, end = resolve_period("custom", date_from, date_to)
    degraded = False
    try:
        raw = await endpoints.fetch_conversions(start, end, filters)
    except RedTrackAPIError as e:
        logger.error(f"Conversions fetch failed: {e}", extra={"endpoint": "conversions"})
        raw, degraded = [], True

    items = normalize_many(raw)
    return ConversionsResult(
        date_from=start,
        date_to=end,
        total=len(items),
        items=items,
        summary=aggregate(items, period=f"{start}/{end}"),
        degraded=degraded,
    )


# ── Funnel & top performers ──


async def load_funnel(
    endpoints: RedTrackEndpoints,
    period: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    campaign_id: Optional[str] = None,
    locale: Optional[str] = None,
    today: Optional[date] = None,
) -> FunnelResult:
    """Funnel over all campaigns, or only `campaign_id`."""
    period = period or settings.default_period
    start, end = resolve_period(period, date_from, date_to, today)
    locale = locale or settings.display_locale

    degraded = False
    try:
        raw = await endpoints.fetch_campaigns(start, end)
    except RedTrackAPIError as e:
        logger.error(
            f"Funnel fetch failed: {e}",
            extra={"endpoint": "campaigns", "period": period, "status_code": e.status_code},
        )
        raw, degraded = [], True

    records = normalize_many(raw)
    if campaign_id:
        records = [r for r in records if r.id == str(campaign_id)]
    summary = aggregate(records, period=period)
    stages = build_funnel(summary, locale)

    return FunnelResult(
        date_from=start,
        date_to=end,
        campaign_id=campaign_id,
        stages=stages,
        total_volume=stages[0].value if stages else 0.0,
        total_conversion_rate=funnel_conversion_rate(stages),
        summary=summary,
        campaigns=[FunnelCampaign(id=r.id, name=r.name, source=r.source) for r in records],
        message=None if records else "No campaigns found",
        degraded=degraded,
    )


async def load_performance(
    endpoints: RedTrackEndpoints,
    period: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    today: Optional[date] = None,
) -> PerformanceResult:
    """Top 3 campaigns, ads and offers from the conversion log."""
    period = period or settings.default_period
    start, end = resolve_period(period, date_from, date_to, today)

    degraded = False
    try:
        raw = await endpoints.fetch_conversions(start, end, {"per": PERFORMANCE_PAGE_SIZE})
    except RedTrackAPIError as e:
        logger.error(
            f"Performance fetch failed: {e}",
            extra={"endpoint": "conversions", "period": period, "status_code": e.status_code},
        )
        raw, degraded = [], True

    ranked = top_performers(raw)
    return PerformanceResult(
        date_from=start,
        date_to=end,
        campaigns=ranked["campaigns"],
        ads=ranked["ads"],
        offers=ranked["offers"],
        degraded=degraded,
    )


# ── Snapshots ──


def store_snapshot(session: Session, dashboard: DashboardSummary) -> DashboardSnapshot:
    snapshot = DashboardSnapshot(
        period=dashboard.period,
        date_from=dashboard.date_from,
        date_to=dashboard.date_to,
        degraded=dashboard.degraded,
        result_json=dashboard.model_dump_json(),
    )
    session.add(snapshot)
    session.commit()
    session.refresh(snapshot)
    return snapshot


def latest_snapshot(session: Session) -> Optional[DashboardSnapshot]:
    return session.exec(
        select(DashboardSnapshot)
        .order_by(DashboardSnapshot.created_at.desc(), DashboardSnapshot.id.desc())  # type: ignore
        .limit(1)
    ).first()


def snapshot_payload(snapshot: DashboardSnapshot) -> Dict[str, Any]:
    return {
        "id": snapshot.id,
        "created_at": snapshot.created_at.isoformat(),
        "dashboard": json.loads(snapshot.result_json),
    }
