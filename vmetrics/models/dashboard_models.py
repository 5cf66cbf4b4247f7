"""VMetrics — Dashboard Output Schemas."""

from typing import Dict, List, Optional
from pydantic import BaseModel

from vmetrics.models.records import AggregatedSummary, CanonicalRecord


class DerivedMetric(BaseModel):
    """A display-ready metric value. Recomputed on every query, never stored."""

    id: str
    label: str
    raw_value: float
    formatted_value: str
    unit: str  # "currency" | "percentage" | "count"
    is_negative: bool = False


class DashboardSummary(BaseModel):
    """Metric cards for one period."""

    period: str
    date_from: str
    date_to: str
    currency: str
    generated_at: str = ""
    metrics: List[DerivedMetric] = []
    summary: AggregatedSummary = AggregatedSummary()
    degraded: bool = False
    """True when the upstream call failed and zeros were substituted."""


class CampaignRow(BaseModel):
    """One campaign in the campaigns table."""

    id: str
    name: str
    source: str = ""
    status: str = ""
    values: Dict[str, DerivedMetric] = {}


class CampaignTable(BaseModel):
    period: str
    date_from: str
    date_to: str
    currency: str
    columns: List[str] = []
    rows: List[CampaignRow] = []
    totals: List[DerivedMetric] = []
    degraded: bool = False


class PeriodValue(BaseModel):
    period: str  # "today" | "yesterday" | "this_month" | "last_month"
    value: float
    trend: Optional[str] = None  # "rise" | "fall", only for "today"


class MetricCategorySeries(BaseModel):
    type: str  # "ad_spend" | "revenue" | "roas"
    values: List[PeriodValue] = []


class TopCampaign(BaseModel):
    name: str
    conversions: float = 0.0
    revenue: float = 0.0


class CampaignOverview(BaseModel):
    """Period comparison cards and top campaigns."""

    metric_categories: List[MetricCategorySeries] = []
    top_campaigns: Dict[str, List[TopCampaign]] = {}
    degraded: bool = False


class ReportResult(BaseModel):
    date_from: str
    date_to: str
    group_by: str = ""
    items: List[CanonicalRecord] = []
    summary: AggregatedSummary = AggregatedSummary()
    degraded: bool = False


class ConversionsResult(BaseModel):
    date_from: str
    date_to: str
    total: int = 0
    items: List[CanonicalRecord] = []
    summary: AggregatedSummary = AggregatedSummary()
    degraded: bool = False


class FunnelStage(BaseModel):
    name: str
    value: float
    percentage: float
    """Share of the previous stage, 100 for the first."""
    formatted_percentage: str = ""
    description: str = ""


class FunnelCampaign(BaseModel):
    id: str
    name: str
    source: str = ""


class FunnelResult(BaseModel):
    """Clicks → Pre-LP → LP → Offer → Conversion for one or all campaigns."""

    date_from: str
    date_to: str
    campaign_id: Optional[str] = None
    stages: List[FunnelStage] = []
    total_volume: float = 0.0
    total_conversion_rate: float = 0.0
    summary: AggregatedSummary = AggregatedSummary()
    campaigns: List[FunnelCampaign] = []
    message: Optional[str] = None
    degraded: bool = False


class Performer(BaseModel):
    id: str
    name: str
    conversions: float = 0.0
    revenue: float = 0.0
    cost: float = 0.0


class PerformanceResult(BaseModel):
    """Top campaigns, ads and offers ranked from the conversion log."""

    date_from: str
    date_to: str
    campaigns: List[Performer] = []
    ads: List[Performer] = []
    offers: List[Performer] = []
    degraded: bool = False
