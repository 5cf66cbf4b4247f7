"""VMetrics — Metric & Column Registry.

Static catalogs of the metrics shown on the dashboard cards and the columns
available in the campaigns table. Catalog order is the natural display order;
users only choose a visible subset and its order (see vmetrics.selection).
"""

from enum import Enum
from typing import Dict, List


class MetricCategory(str, Enum):
    """Grouping used by the metric/column pickers."""

    BASIC = "basic"
    PERFORMANCE = "performance"
    CONVERSION = "conversion"
    REVENUE = "revenue"
    APPROVAL = "approval"
    FUNNEL = "funnel"


class MetricUnit(str, Enum):
    """How a value is rendered."""

    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    COUNT = "count"
    TEXT = "text"  # Identity columns: name, source, status


class MetricDefinition:
    """Describes a single selectable metric or table column."""

    def __init__(
        self,
        id: str,
        label: str,
        category: MetricCategory,
        unit: MetricUnit,
        description: str = "",
    ):
        self.id = id
        self.label = label
        self.category = category
        self.unit = unit
        self.description = description

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "unit": self.unit.value,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"<Metric {self.id} ({self.unit.value})>"


def _catalog(*definitions: MetricDefinition) -> Dict[str, MetricDefinition]:
    return {d.id: d for d in definitions}


_B, _P, _C, _R, _A, _F = (
    MetricCategory.BASIC,
    MetricCategory.PERFORMANCE,
    MetricCategory.CONVERSION,
    MetricCategory.REVENUE,
    MetricCategory.APPROVAL,
    MetricCategory.FUNNEL,
)
_CUR, _PCT, _CNT, _TXT = (
    MetricUnit.CURRENCY,
    MetricUnit.PERCENTAGE,
    MetricUnit.COUNT,
    MetricUnit.TEXT,
)


# ─────────────────────────────────────────────
# DASHBOARD METRICS
# ─────────────────────────────────────────────

METRICS: Dict[str, MetricDefinition] = _catalog(
    MetricDefinition("clicks", "Clicks", _B, _CNT, "Total clicks across campaigns"),
    MetricDefinition("conversions", "Conversions", _B, _CNT, "Total conversions"),
    MetricDefinition("spend", "Spend", _B, _CUR, "Total campaign cost"),
    MetricDefinition("revenue", "Revenue", _B, _CUR, "Total revenue"),
    MetricDefinition("profit", "Profit", _R, _CUR, "Revenue minus spend"),
    MetricDefinition("roi", "ROI", _R, _PCT, "Return on investment"),
    MetricDefinition("cpa", "CPA", _R, _CUR, "Cost per acquisition"),
    MetricDefinition("cpc", "CPC", _R, _CUR, "Cost per click"),
    MetricDefinition("cpl", "CPL", _R, _CUR, "Cost per lead"),
    MetricDefinition("ctr", "CTR", _P, _PCT, "Click-through rate"),
    MetricDefinition(
        "conversion_rate", "Conversion Rate", _P, _PCT, "Conversions / clicks"
    ),
    MetricDefinition("epc", "EPC", _R, _CUR, "Earnings per click"),
    MetricDefinition("epl", "EPL", _R, _CUR, "Earnings per lead"),
    MetricDefinition("roas", "ROAS", _R, _PCT, "Return on ad spend"),
    MetricDefinition("impressions", "Impressions", _B, _CNT, "Total impressions"),
    MetricDefinition("unique_clicks", "Unique Clicks", _B, _CNT, "Unique clicks"),
    MetricDefinition(
        "all_conversions", "All Conversions", _C, _CNT, "Conversions of every status"
    ),
    MetricDefinition("transactions", "Transactions", _C, _CNT, "Transactions"),
    MetricDefinition("approved", "Approved", _A, _CNT, "Approved conversions"),
    MetricDefinition("pending", "Pending", _A, _CNT, "Pending conversions"),
    MetricDefinition("declined", "Declined", _A, _CNT, "Declined conversions"),
    MetricDefinition(
        "approval_rate", "Approval Rate", _A, _PCT, "Approved / all conversions"
    ),
    MetricDefinition(
        "pending_rate", "Pending Rate", _A, _PCT, "Pending / all conversions"
    ),
    MetricDefinition(
        "decline_rate", "Decline Rate", _A, _PCT, "Declined / all conversions"
    ),
    MetricDefinition("prelp_views", "Pre-LP Views", _F, _CNT, "Pre-landing views"),
    MetricDefinition("prelp_clicks", "Pre-LP Clicks", _F, _CNT, "Pre-landing clicks"),
    MetricDefinition(
        "prelp_click_ctr", "Pre-LP CTR", _F, _PCT, "Pre-landing clicks / views"
    ),
    MetricDefinition("lp_views", "LP Views", _F, _CNT, "Landing page views"),
    MetricDefinition("lp_clicks", "LP Clicks", _F, _CNT, "Landing page clicks"),
    MetricDefinition("lp_ctr", "LP CTR", _F, _PCT, "Landing page clicks / views"),
    MetricDefinition(
        "initiate_checkout", "Initiate Checkout", _F, _CNT, "Checkout starts"
    ),
)

DEFAULT_METRICS: List[str] = [
    "clicks",
    "conversions",
    "spend",
    "revenue",
    "profit",
    "roi",
    "cpa",
    "ctr",
]


# ─────────────────────────────────────────────
# CAMPAIGN TABLE COLUMNS
# ─────────────────────────────────────────────

COLUMNS: Dict[str, MetricDefinition] = _catalog(
    MetricDefinition("name", "Campaign", _B, _TXT, "Campaign name"),
    MetricDefinition("source", "Source", _B, _TXT, "Traffic source"),
    MetricDefinition("status", "Status", _B, _TXT, "Campaign status"),
    MetricDefinition("clicks", "Clicks", _B, _CNT, "Total clicks"),
    MetricDefinition("unique_clicks", "Unique Clicks", _B, _CNT, "Unique clicks"),
    MetricDefinition("impressions", "Impressions", _B, _CNT, "Total impressions"),
    MetricDefinition("conversions", "Conversions", _C, _CNT, "Total conversions"),
    MetricDefinition(
        "all_conversions", "All Conversions", _C, _CNT, "Conversions of every status"
    ),
    MetricDefinition("approved", "Approved", _C, _CNT, "Approved conversions"),
    MetricDefinition("pending", "Pending", _C, _CNT, "Pending conversions"),
    MetricDefinition("declined", "Declined", _C, _CNT, "Declined conversions"),
    MetricDefinition("ctr", "CTR", _P, _PCT, "Click-through rate"),
    MetricDefinition(
        "conversion_rate", "Conversion Rate", _P, _PCT, "Conversions / clicks"
    ),
    MetricDefinition("spend", "Spend", _R, _CUR, "Total cost"),
    MetricDefinition("revenue", "Revenue", _R, _CUR, "Total revenue"),
    MetricDefinition("roi", "ROI", _R, _PCT, "Return on investment"),
    MetricDefinition("cpa", "CPA", _R, _CUR, "Cost per acquisition"),
    MetricDefinition("cpc", "CPC", _R, _CUR, "Cost per click"),
    MetricDefinition("epc", "EPC", _R, _CUR, "Earnings per click"),
    MetricDefinition("epl", "EPL", _R, _CUR, "Earnings per lead"),
    MetricDefinition("roas", "ROAS", _R, _PCT, "Return on ad spend"),
    MetricDefinition("prelp_views", "Pre-LP Views", _F, _CNT, "Pre-landing views"),
    MetricDefinition("prelp_clicks", "Pre-LP Clicks", _F, _CNT, "Pre-landing clicks"),
    MetricDefinition("lp_views", "LP Views", _F, _CNT, "Landing page views"),
    MetricDefinition("lp_clicks", "LP Clicks", _F, _CNT, "Landing page clicks"),
    MetricDefinition("offer_views", "Offer Views", _F, _CNT, "Offer page views"),
    MetricDefinition("offer_clicks", "Offer Clicks", _F, _CNT, "Offer clicks"),
    MetricDefinition(
        "initiate_checkout", "Initiate Checkout", _F, _CNT, "Checkout starts"
    ),
)

# Conversion funnel order
DEFAULT_COLUMNS: List[str] = [
    "name",
    "source",
    "status",
    "clicks",
    "prelp_views",
    "prelp_clicks",
    "lp_views",
    "lp_clicks",
    "initiate_checkout",
    "conversions",
]


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

CATALOGS: Dict[str, Dict[str, MetricDefinition]] = {
    "metrics": METRICS,
    "columns": COLUMNS,
}

DEFAULTS: Dict[str, List[str]] = {
    "metrics": DEFAULT_METRICS,
    "columns": DEFAULT_COLUMNS,
}


def get_metric(metric_id: str) -> MetricDefinition | None:
    """Look up a metric or column by id."""
    return METRICS.get(metric_id) or COLUMNS.get(metric_id)

