"""VMetrics — Derived Metric Calculator.

Computes ratio metrics (CTR, CPA, ROI, ...) from an AggregatedSummary.
Every ratio with a zero denominator is 0, never NaN or Infinity, because the
formatter and the dashboard cards always expect a number.
"""

from typing import Dict, Iterable, List, NamedTuple, Optional

from vmetrics.core.metric_registry import MetricUnit, get_metric
from vmetrics.engine.formatter import format_value
from vmetrics.engine.normalizer import to_finite_float
from vmetrics.models.dashboard_models import DerivedMetric
from vmetrics.models.records import NUMERIC_FIELDS, MetricTotals


class Ratio(NamedTuple):
    numerator: str
    denominator: str
    scale: float
    unit: MetricUnit


_PCT, _CUR = MetricUnit.PERCENTAGE, MetricUnit.CURRENCY

# "profit" is available as a numerator: revenue - spend
RATIOS: Dict[str, Ratio] = {
    "ctr": Ratio("clicks", "impressions", 100.0, _PCT),
    "conversion_rate": Ratio("conversions", "clicks", 100.0, _PCT),
    "cpa": Ratio("spend", "conversions", 1.0, _CUR),
    "cpc": Ratio("spend", "clicks", 1.0, _CUR),
    "cpl": Ratio("spend", "conversions", 1.0, _CUR),
    "epc": Ratio("revenue", "clicks", 1.0, _CUR),
    "epl": Ratio("revenue", "conversions", 1.0, _CUR),
    "roi": Ratio("profit", "spend", 100.0, _PCT),
    "roas": Ratio("revenue", "spend", 100.0, _PCT),
    "approval_rate": Ratio("approved", "all_conversions", 100.0, _PCT),
    "pending_rate": Ratio("pending", "all_conversions", 100.0, _PCT),
    "decline_rate": Ratio("declined", "all_conversions", 100.0, _PCT),
    "prelp_click_ctr": Ratio("prelp_clicks", "prelp_views", 100.0, _PCT),
    "lp_ctr": Ratio("lp_clicks", "lp_views", 100.0, _PCT),
}

DIFFERENCE_METRICS = ("profit",)
DERIVED_METRIC_IDS: List[str] = list(RATIOS) + list(DIFFERENCE_METRICS)


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    result = to_finite_float(numerator / denominator * scale)
    return result if result is not None else 0.0


def _base_values(summary: MetricTotals) -> Dict[str, float]:
    values = summary.numbers()
    values["profit"] = values["revenue"] - values["spend"]
    return values


def compute_value(summary: MetricTotals, metric_id: str) -> Optional[float]:
    """Raw value of a derived or base metric; None if the id is unknown."""
    values = _base_values(summary)
    ratio = RATIOS.get(metric_id)
    if ratio is not None:
        return safe_ratio(values[ratio.numerator], values[ratio.denominator], ratio.scale)
    if metric_id in values:
        return to_finite_float(values[metric_id]) or 0.0
    return None


def _unit_for(metric_id: str) -> MetricUnit:
    ratio = RATIOS.get(metric_id)
    if ratio is not None:
        return ratio.unit
    if metric_id in DIFFERENCE_METRICS:
        return _CUR
    definition = get_metric(metric_id)
    if definition is not None and definition.unit != MetricUnit.TEXT:
        return definition.unit
    return MetricUnit.COUNT


def _label_for(metric_id: str) -> str:
    definition = get_metric(metric_id)
    return definition.label if definition else metric_id


def derive(
    summary: MetricTotals,
    metric_ids: Optional[Iterable[str]] = None,
    currency: str = "USD",
    locale: Optional[str] = None,
) -> List[DerivedMetric]:
    """Compute the requested metrics, in request order.

    metric_ids may name derived metrics or canonical base fields; unknown ids
    are skipped. None requests every derived metric.
    """
    requested = DERIVED_METRIC_IDS if metric_ids is None else list(metric_ids)
    known = set(RATIOS) | set(DIFFERENCE_METRICS) | set(NUMERIC_FIELDS)

    results: List[DerivedMetric] = []
    for metric_id in requested:
        if metric_id not in known:
            continue
        value = compute_value(summary, metric_id) or 0.0
        unit = _unit_for(metric_id)
        results.append(
            DerivedMetric(
                id=metric_id,
                label=_label_for(metric_id),
                raw_value=value,
                formatted_value=format_value(value, unit, currency, locale),
                unit=unit.value,
                is_negative=value < 0,
            )
        )
    return results
