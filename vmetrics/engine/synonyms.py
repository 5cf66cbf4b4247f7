"""VMetrics — Upstream Field Synonyms.

Ordered probe lists per canonical field. Dotted keys address nested
mappings (``stat.cost`` is ``raw["stat"]["cost"]``). The first key holding a
usable value wins, so order matters: bump SYNONYMS_VERSION when changing it.
"""

from typing import Dict, Tuple

SYNONYMS_VERSION = "2"

NUMERIC_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "clicks": ("stat.clicks", "clicks", "total_clicks"),
    "unique_clicks": ("stat.unique_clicks", "unique_clicks"),
    "impressions": ("stat.impressions", "impressions", "total_impressions"),
    "conversions": (
        "stat.conversions",
        "conversions",
        "total_conversions",
        "leads",
    ),
    "all_conversions": ("stat.all_conversions", "all_conversions"),
    "transactions": ("stat.transactions", "transactions"),
    "spend": (
        "stat.cost",
        "stat.spend",
        "cost",
        "spend",
        "campaign_cost",
        "total_spend",
    ),
    "revenue": (
        "stat.revenue",
        "revenue",
        "total_revenue",
        "campaign_revenue",
        "payout",
    ),
    "approved": ("stat.approved", "approved"),
    "pending": ("stat.pending", "pending"),
    "declined": ("stat.declined", "declined"),
    "prelp_views": ("stat.prelp_views", "prelp_views"),
    "prelp_clicks": ("stat.prelp_clicks", "prelp_clicks"),
    "lp_views": ("stat.lp_views", "lp_views"),
    "lp_clicks": ("stat.lp_clicks", "lp_clicks"),
    "offer_views": ("stat.offer_views", "offer_views"),
    "offer_clicks": ("stat.offer_clicks", "offer_clicks"),
    "initiate_checkout": (
        "stat.initiatecheckout",
        "stat.initiate_checkout",
        "initiatecheckout",
        "initiate_checkout",
    ),
}

TEXT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "campaign_id", "rt_campaign", "click_id"),
    "name": ("title", "campaign_name", "campaign", "rt_campaign", "name"),
    "source": ("source_title", "traffic_channel", "source"),
    "status": ("status",),
    "date": ("date", "date_start", "created_at"),
}

# Upstream encodes campaign status as an integer
STATUS_CODES: Dict[int, str] = {1: "active", 2: "paused", 3: "deleted"}
UNKNOWN_STATUS_CODE = "inactive"
