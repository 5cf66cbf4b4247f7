"""VMetrics — RedTrack API Endpoints.

Fetch functions for each RedTrack resource. Each returns the raw rows; the
engine normalizes them and they are not kept afterwards.
"""

from typing import Any, Dict, List, Optional

from vmetrics.config import settings
from vmetrics.connectors.redtrack.client import (
    RedTrackAPIError,
    RedTrackClient,
    extract_items,
)
from vmetrics.core.logging import get_logger

logger = get_logger("redtrack.endpoints")


class RedTrackEndpoints:
    """Fetch raw data from RedTrack."""

    def __init__(self, client: RedTrackClient):
        self.client = client

    # ── Report ──

    async def fetch_report(
        self,
        date_from: str,
        date_to: str,
        group_by: str = "date",
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Report rows for a date range, grouped by date/campaign/source."""
        params = {
            **(filters or {}),
            "date_from": date_from,
            "date_to": date_to,
            "group_by": group_by,
        }
        data = extract_items(await self.client.get("report", params))
        logger.info(
            f"Fetched {len(data)} report rows ({date_from} → {date_to})",
            extra={"endpoint": "report"},
        )
        return data

    # ── Campaigns ──

    async def fetch_campaigns(
        self,
        date_from: str,
        date_to: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Campaigns with their stats for a date range."""
        params = {
            **(filters or {}),
            "date_from": date_from,
            "date_to": date_to,
            "with_clicks": "true",
            "total": "true",
        }
        data = extract_items(await self.client.get("campaigns", params))
        logger.info(
            f"Fetched {len(data)} campaigns ({date_from} → {date_to})",
            extra={"endpoint": "campaigns"},
        )
        return data

    # ── Conversions ──

    async def fetch_conversions(
        self,
        date_from: str,
        date_to: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Conversion log rows, optionally filtered by type, campaign, country."""
        params = {**(filters or {}), "date_from": date_from, "date_to": date_to}
        data = extract_items(await self.client.get("conversions", params))
        logger.info(
            f"Fetched {len(data)} conversions ({date_from} → {date_to})",
            extra={"endpoint": "conversions"},
        )
        return data

    # ── Account ──

    async def fetch_account_settings(self) -> Dict[str, Any]:
        """Account settings; also serves as an API key check."""
        result = await self.client.get("me/settings")
        return result if isinstance(result, dict) else {}

    async def validate_api_key(self) -> bool:
        """True if RedTrack accepts the client's API key."""
        try:
            await self.fetch_account_settings()
            return True
        except RedTrackAPIError as e:
            if e.status_code in (401, 403):
                return False
            raise

    async def fetch_currency(self) -> str:
        """Account currency from RedTrack. Falls back to config default."""
        try:
            account = await self.fetch_account_settings()
            currency = account.get("currency")
            nested = account.get("account")
            if not currency and isinstance(nested, dict):
                currency = nested.get("currency")
            if isinstance(currency, str) and currency:
                return currency.upper()
        except RedTrackAPIError as e:
            logger.warning(f"Could not fetch currency from RedTrack: {e}")
        return settings.display_currency
