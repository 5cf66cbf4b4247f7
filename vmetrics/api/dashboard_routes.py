"""VMetrics — Dashboard API Routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from vmetrics.api.dependencies import get_endpoints, get_store
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.core.logging import get_logger
from vmetrics.database import get_session
from vmetrics.models.dashboard_models import (
    CampaignOverview,
    CampaignTable,
    ConversionsResult,
    DashboardSummary,
    FunnelResult,
    PerformanceResult,
    ReportResult,
)
from vmetrics.selection.store import SelectionStore
from vmetrics.services import dashboard_service
from vmetrics.services.periods import PERIODS, InvalidPeriodError

logger = get_logger("api.dashboard")

router = APIRouter(prefix="/api", tags=["Dashboard"])

PERIOD_HELP = f"One of: {', '.join(PERIODS)}"


def _filters(**values: Optional[str]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v}


def _bad_period(e: InvalidPeriodError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))


# ── Dashboard ──


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(
    period: Optional[str] = Query(None, description=PERIOD_HELP),
    date_from: Optional[str] = Query(None, description="Custom start date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Custom end date (YYYY-MM-DD)"),
    campaign_id: Optional[str] = Query(None),
    source_id: Optional[str] = Query(None),
    currency: Optional[str] = Query(None, description="ISO 4217 code for display"),
    locale: Optional[str] = Query(None, description="Display locale, e.g. pt_BR"),
    store: SelectionStore = Depends(get_store),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Metric cards for the selected metrics, in the user's order."""
    metric_ids = store.load("metrics").visible_ids()
    try:
        return await dashboard_service.load_dashboard(
            endpoints,
            period=period,
            date_from=date_from,
            date_to=date_to,
            metric_ids=metric_ids,
            filters=_filters(campaign_id=campaign_id, source_id=source_id),
            currency=currency,
            locale=locale,
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


@router.get("/dashboard/latest")
async def get_latest_dashboard(session: Session = Depends(get_session)):
    """Most recent dashboard stored by the refresh job."""
    snapshot = dashboard_service.latest_snapshot(session)
    if not snapshot:
        return {"status": "no_data", "message": "No dashboard refresh has run yet."}
    return {"status": "success", **dashboard_service.snapshot_payload(snapshot)}


# ── Campaigns ──


@router.get("/campaigns", response_model=CampaignTable)
async def get_campaigns(
    period: Optional[str] = Query(None, description=PERIOD_HELP),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    source_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    currency: Optional[str] = Query(None),
    locale: Optional[str] = Query(None),
    store: SelectionStore = Depends(get_store),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Campaigns table with the selected columns, in the user's order."""
    column_ids = store.load("columns").visible_ids()
    try:
        return await dashboard_service.load_campaigns(
            endpoints,
            column_ids,
            period=period,
            date_from=date_from,
            date_to=date_to,
            filters=_filters(source_id=source_id, status=status),
            currency=currency,
            locale=locale,
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


@router.get("/campaigns/overview", response_model=CampaignOverview)
async def get_campaign_overview(
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Spend, revenue and ROAS across today, yesterday, this month and last month."""
    return await dashboard_service.load_campaign_overview(endpoints)


# ── Report & conversions ──


@router.get("/report", response_model=ReportResult)
async def get_report(
    date_from: str = Query(..., description="Start date (YYYY-MM-DD)"),
    date_to: str = Query(..., description="End date (YYYY-MM-DD)"),
    group_by: str = Query("date", description="date, campaign or source"),
    campaign_id: Optional[str] = Query(None),
    source_id: Optional[str] = Query(None),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    try:
        return await dashboard_service.load_report(
            endpoints,
            date_from,
            date_to,
            group_by=group_by,
            filters=_filters(campaign_id=campaign_id, source_id=source_id),
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


@router.get("/conversions", response_model=ConversionsResult)
async def get_conversions(
    date_from: str = Query(..., description="Start date (YYYY-MM-DD)"),
    date_to: str = Query(..., description="End date (YYYY-MM-DD)"),
    type: Optional[str] = Query(None, description="Conversion type"),
    campaign: Optional[str] = Query(None),
    country: Optional[str] = Query(None),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    try:
        return await dashboard_service.load_conversions(
            endpoints,
            date_from,
            date_to,
            filters=_filters(type=type, campaign=campaign, country=country),
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


# ── Funnel & top performers ──


@router.get("/funnel", response_model=FunnelResult)
async def get_funnel(
    period: Optional[str] = Query(None, description=PERIOD_HELP),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None, description="Limit the funnel to one campaign"),
    locale: Optional[str] = Query(None),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Clicks → Pre-LP → LP → Offer → Conversion."""
    try:
        return await dashboard_service.load_funnel(
            endpoints,
            period=period,
            date_from=date_from,
            date_to=date_to,
            campaign_id=campaign_id,
            locale=locale,
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


@router.get("/performance", response_model=PerformanceResult)
async def get_performance(
    period: Optional[str] = Query(None, description=PERIOD_HELP),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Top campaigns, ads and offers by conversions."""
    try:
        return await dashboard_service.load_performance(
            endpoints, period=period, date_from=date_from, date_to=date_to
        )
    except InvalidPeriodError as e:
        raise _bad_period(e)


# ── Account ──


@router.get("/account/currency")
async def get_account_currency(
    endpoints: RedTrackEndpoints = Depends(get_endpoints),
):
    """Currency of the RedTrack account, or the configured fallback."""
    return {"currency": await dashboard_service.detect_currency(endpoints)}
