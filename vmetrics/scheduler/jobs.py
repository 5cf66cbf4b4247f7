"""VMetrics — Scheduler Jobs.

APScheduler interval job that refreshes the dashboard for the default period
and stores the result as a snapshot.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import RedTrackClient
from vmetrics.connectors.redtrack.endpoints import RedTrackEndpoints
from vmetrics.core.logging import get_logger
from vmetrics.database import session_scope
from vmetrics.selection.store import SelectionStore
from vmetrics.services.dashboard_service import load_dashboard, store_snapshot

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def _refresh(session: Session) -> None:
    store = SelectionStore(session)
    api_key = store.get_api_key() or settings.redtrack_api_key
    if not api_key:
        logger.info("Dashboard refresh skipped: no RedTrack API key configured")
        return

    client = RedTrackClient(api_key=api_key)
    try:
        dashboard = await load_dashboard(
            RedTrackEndpoints(client),
            period=settings.default_period,
            metric_ids=store.load("metrics").visible_ids(),
        )
    finally:
        await client.close()

    snapshot = store_snapshot(session, dashboard)
    logger.info(
        f"Dashboard refreshed (snapshot {snapshot.id}, degraded={dashboard.degraded})",
        extra={"period": dashboard.period},
    )


async def refresh_dashboard_job():
    """Refresh the dashboard with the saved metric selection."""
    try:
        with session_scope() as session:
            await _refresh(session)
    except Exception as e:
        logger.error(f"Scheduled dashboard refresh failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        refresh_dashboard_job,
        "interval",
        minutes=settings.refresh_interval_minutes,
        id="refresh_dashboard",
        replace_existing=True,
        misfire_grace_time=60,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Dashboard refresh every {settings.refresh_interval_minutes} min")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
