"""VMetrics — Canonical Record Models.

Every upstream row (campaign, report line, conversion) is normalized into a
CanonicalRecord. Numeric fields are always present and finite.
"""

from typing import Optional, Tuple
from pydantic import BaseModel

NUMERIC_FIELDS: Tuple[str, ...] = (
    "clicks",
    "unique_clicks",
    "impressions",
    "conversions",
    "all_conversions",
    "transactions",
    "spend",
    "revenue",
    "approved",
    "pending",
    "declined",
    "prelp_views",
    "prelp_clicks",
    "lp_views",
    "lp_clicks",
    "offer_views",
    "offer_clicks",
    "initiate_checkout",
)


class MetricTotals(BaseModel):
    """The numeric fields shared by records and summaries."""

    clicks: float = 0.0
    unique_clicks: float = 0.0
    impressions: float = 0.0
    conversions: float = 0.0
    all_conversions: float = 0.0
    transactions: float = 0.0
    spend: float = 0.0
    revenue: float = 0.0
    approved: float = 0.0
    pending: float = 0.0
    declined: float = 0.0
    prelp_views: float = 0.0
    prelp_clicks: float = 0.0
    lp_views: float = 0.0
    lp_clicks: float = 0.0
    offer_views: float = 0.0
    offer_clicks: float = 0.0
    initiate_checkout: float = 0.0

    model_config = {"frozen": True}

    def numbers(self) -> dict[str, float]:
        """Numeric fields as a plain dict."""
        return {name: getattr(self, name) for name in NUMERIC_FIELDS}


class CanonicalRecord(MetricTotals):
    """One normalized upstream row."""

    id: str = ""
    name: str = ""
    source: str = ""
    status: str = ""
    date: Optional[str] = None


class AggregatedSummary(MetricTotals):
    """Field-wise sum of CanonicalRecords for one reporting period."""

    period: str = ""
    record_count: int = 0
