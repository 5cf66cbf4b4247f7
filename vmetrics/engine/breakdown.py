"""VMetrics — Funnel & Top Performers.

Two views built from the same engine: the conversion funnel of aggregated
campaign stats, and the best campaigns, ads and offers in a conversion log.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from vmetrics.engine.aggregator import aggregate
from vmetrics.engine.derived import safe_ratio
from vmetrics.engine.formatter import format_percentage
from vmetrics.engine.normalizer import normalize, resolve_text
from vmetrics.models.dashboard_models import FunnelStage, Performer
from vmetrics.models.records import AggregatedSummary

# (stage name, description); "offer" reads offer_views, else offer_clicks
FUNNEL_STAGES: Tuple[Tuple[str, str, str], ...] = (
    ("clicks", "Clicks", "Total clicks received"),
    ("prelp_views", "Pre-LP", "Pre-landing page views"),
    ("lp_views", "LP", "Landing page views"),
    ("offer", "Offer", "Offer views or clicks"),
    ("approved", "Conversion", "Approved conversions"),
)

# Conversion-log fields identifying each ranked dimension: (id key, name key)
PERFORMANCE_DIMENSIONS: Dict[str, Tuple[str, str]] = {
    "campaigns": ("campaign_id", "campaign"),
    "ads": ("rt_ad_id", "rt_ad"),
    "offers": ("offer_id", "offer"),
}

TOP_PERFORMERS_LIMIT = 3


# ── Funnel ──


def _stage_value(summary: AggregatedSummary, field: str) -> float:
    if field == "offer":
        return summary.offer_views or summary.offer_clicks
    return getattr(summary, field)


def build_funnel(summary: AggregatedSummary, locale: Optional[str] = None) -> List[FunnelStage]:
    """Stages with a non-zero volume, each as a share of the stage before it.

    Clicks are always the base of the first stage present, so a funnel
    without clicks starts at 0%.
    """
    stages: List[FunnelStage] = []
    base = summary.clicks
    for field, name, description in FUNNEL_STAGES:
        value = _stage_value(summary, field)
        if value <= 0:
            continue
        percentage = 100.0 if field == "clicks" else safe_ratio(value, base, 100.0)
        stages.append(
            FunnelStage(
                name=name,
                value=value,
                percentage=percentage,
                formatted_percentage=format_percentage(percentage, locale),
                description=description,
            )
        )
        base = value
    return stages


def funnel_conversion_rate(stages: List[FunnelStage]) -> float:
    """Last stage as a percentage of the first."""
    if not stages:
        return 0.0
    return safe_ratio(stages[-1].value, stages[0].value, 100.0)


# ── Top performers ──


def _rank_key(performer: Performer) -> Tuple[float, float]:
    return performer.conversions, performer.revenue


def top_performers(
    conversions: Iterable[Any],
    limit: int = TOP_PERFORMERS_LIMIT,
) -> Dict[str, List[Performer]]:
    """Group conversion rows per dimension and keep the best `limit` of each.

    Every row counts as one conversion; ranking is by conversions, then revenue.
    Rows whose id is missing or an unexpanded tracker macro ("{{ad.id}}") are
    left out of that dimension.
    """
    groups: Dict[str, Dict[str, Tuple[str, list]]] = {d: {} for d in PERFORMANCE_DIMENSIONS}
    for raw in conversions:
        if not isinstance(raw, Mapping):
            continue
        record = normalize(raw)
        for dimension, (id_key, name_key) in PERFORMANCE_DIMENSIONS.items():
            key = resolve_text(raw, (id_key,))
            name = resolve_text(raw, (name_key,))
            if not key or not name or key.startswith("{{"):
                continue
            groups[dimension].setdefault(key, (name, []))[1].append(record)

    result: Dict[str, List[Performer]] = {}
    for dimension, entries in groups.items():
        performers = []
        for key, (name, records) in entries.items():
            totals = aggregate(records)
            performers.append(
                Performer(
                    id=key,
                    name=name,
                    conversions=float(totals.record_count),
                    revenue=totals.revenue,
                    cost=totals.spend,
                )
            )
        performers.sort(key=_rank_key, reverse=True)
        result[dimension] = performers[:limit]
    return result
