"""Tests for the dashboard service layer.

Covers the happy path for each view, degraded fallbacks when RedTrack
fails, and snapshot storage.
"""

from datetime import date

import httpx
import pytest

from vmetrics.config import settings
from vmetrics.services import dashboard_service
from vmetrics.services.periods import InvalidPeriodError

TODAY = date(2026, 3, 15)

REPORT_ROWS = [
    {"date": "2026-03-14", "stat": {"clicks": 100, "impressions": 1000, "cost": 50, "revenue": 80, "conversions": 4}},
    {"date": "2026-03-15", "stat": {"clicks": 50, "impressions": 500, "cost": 25, "revenue": 70, "conversions": 1}},
]


@pytest.fixture(autouse=True)
def display_defaults(monkeypatch):
    monkeypatch.setattr(settings, "display_currency", "USD")
    monkeypatch.setattr(settings, "display_locale", "en_US")
    monkeypatch.setattr(settings, "default_period", "today")


def _metrics(dashboard):
    return {m.id: m for m in dashboard.metrics}


@pytest.mark.asyncio
class TestLoadDashboard:
    async def test_summary_and_metrics(self, fake_redtrack):
        fake_redtrack.set("report", REPORT_ROWS)
        dashboard = await dashboard_service.load_dashboard(
            fake_redtrack.endpoints(),
            period="7d",
            metric_ids=["clicks", "spend", "ctr", "roi"],
            today=TODAY,
        )
        assert (dashboard.date_from, dashboard.date_to) == ("2026-03-09", "2026-03-15")
        assert not dashboard.degraded
        assert dashboard.summary.record_count == 2
        assert [m.id for m in dashboard.metrics] == ["clicks", "spend", "ctr", "roi"]
        metrics = _metrics(dashboard)
        assert metrics["clicks"].formatted_value == "150"
        assert metrics["spend"].formatted_value == "$75.00"
        assert metrics["ctr"].formatted_value == "10.00%"
        assert metrics["roi"].raw_value == 100.0
        assert dashboard.generated_at

        [params] = fake_redtrack.params_for("report")
        assert params["group_by"] == "date"
        assert params["date_from"] == "2026-03-09"

    async def test_default_period_and_currency(self, fake_redtrack):
        fake_redtrack.set("report", [])
        dashboard = await dashboard_service.load_dashboard(fake_redtrack.endpoints(), today=TODAY)
        assert dashboard.period == "today"
        assert dashboard.currency == "USD"
        assert (dashboard.date_from, dashboard.date_to) == ("2026-03-15", "2026-03-15")

    async def test_currency_and_locale_override(self, fake_redtrack):
        fake_redtrack.set("report", [{"cost": 1234.5}])
        dashboard = await dashboard_service.load_dashboard(
            fake_redtrack.endpoints(),
            metric_ids=["spend"],
            currency="BRL",
            locale="pt_BR",
            today=TODAY,
        )
        assert dashboard.metrics[0].formatted_value == "R$ 1.234,50"

    async def test_upstream_failure_degrades_to_zero(self, fake_redtrack):
        fake_redtrack.set("report", {"error": "boom"}, status=500)
        dashboard = await dashboard_service.load_dashboard(
            fake_redtrack.endpoints(), metric_ids=["clicks", "cpa"], today=TODAY
        )
        assert dashboard.degraded
        assert [m.raw_value for m in dashboard.metrics] == [0.0, 0.0]
        assert dashboard.summary.record_count == 0

    async def test_overflowing_totals_do_not_fail(self, fake_redtrack):
        fake_redtrack.set("report", [{"cost": "1e308"}, {"cost": "1e308"}])
        dashboard = await dashboard_service.load_dashboard(
            fake_redtrack.endpoints(), metric_ids=["spend", "cpc"], today=TODAY
        )
        assert not dashboard.degraded
        assert [m.raw_value for m in dashboard.metrics] == [0.0, 0.0]

    async def test_invalid_custom_range_raises(self, fake_redtrack):
        with pytest.raises(InvalidPeriodError):
            await dashboard_service.load_dashboard(
                fake_redtrack.endpoints(), period="custom", date_from="2026-03-02"
            )
        assert fake_redtrack.requests == []


@pytest.mark.asyncio
class TestLoadCampaigns:
    async def test_rows_and_totals(self, fake_redtrack):
        fake_redtrack.set(
            "campaigns",
            {
                "items": [
                    {"id": "1", "title": "Alpha", "source_title": "FB", "status": 1, "stat": {"clicks": 10, "lp_views": 8}},
                    {"id": "2", "title": "Beta", "status": 2, "stat": {"clicks": 30, "lp_views": 20}},
                ],
                "total": 2,
            },
        )
        table = await dashboard_service.load_campaigns(
            fake_redtrack.endpoints(),
            ["name", "status", "clicks", "lp_views"],
            period="yesterday",
            today=TODAY,
        )
        assert table.columns == ["name", "status", "clicks", "lp_views"]
        assert [r.name for r in table.rows] == ["Alpha", "Beta"]
        assert table.rows[0].source == "FB"
        assert table.rows[1].status == "paused"
        assert table.rows[1].values["clicks"].formatted_value == "30"
        assert {t.id: t.raw_value for t in table.totals} == {"clicks": 40.0, "lp_views": 28.0}
        assert (table.date_from, table.date_to) == ("2026-03-14", "2026-03-14")

    async def test_failure_gives_empty_table(self, fake_redtrack):
        fake_redtrack.set("campaigns", {"error": "Unauthorized"}, status=401)
        table = await dashboard_service.load_campaigns(
            fake_redtrack.endpoints(), ["name", "clicks"], today=TODAY
        )
        assert table.degraded
        assert table.rows == []
        assert [t.raw_value for t in table.totals] == [0.0]


@pytest.mark.asyncio
class TestCampaignOverview:
    async def test_periods_trend_and_top_campaigns(self, fake_redtrack):
        by_start = {
            "2026-03-15": [
                {"title": "A", "stat": {"cost": 10, "revenue": 30, "conversions": 3}},
                {"title": "B", "stat": {"cost": 10, "revenue": 50, "conversions": 5}},
                {"title": "C", "stat": {"cost": 5, "revenue": 5, "conversions": 1}},
                {"title": "D", "stat": {"cost": 5, "revenue": 40, "conversions": 2}},
            ],
            "2026-03-14": [{"title": "A", "stat": {"cost": 40, "revenue": 20, "conversions": 1}}],
            "2026-03-01": [{"title": "A", "stat": {"cost": 100, "revenue": 300}}],
            "2026-02-01": [{"title": "A", "stat": {"cost": 0, "revenue": 10}}],
        }
        fake_redtrack.set_handler(
            "campaigns", lambda request: (200, by_start[request.url.params["date_from"]])
        )

        overview = await dashboard_service.load_campaign_overview(
            fake_redtrack.endpoints(), today=TODAY
        )
        assert not overview.degraded
        series = {s.type: s for s in overview.metric_categories}
        assert list(series) == ["ad_spend", "revenue", "roas"]

        spend = {v.period: v for v in series["ad_spend"].values}
        assert [v.period for v in series["ad_spend"].values] == [
            "today",
            "yesterday",
            "this_month",
            "last_month",
        ]
        assert spend["today"].value == 30.0
        assert spend["today"].trend == "fall"
        assert spend["yesterday"].trend is None

        revenue = {v.period: v for v in series["revenue"].values}
        assert revenue["today"].value == 125.0
        assert revenue["today"].trend == "rise"

        roas = {v.period: v.value for v in series["roas"].values}
        assert roas["this_month"] == 3.0
        assert roas["last_month"] == 0.0

        assert [c.name for c in overview.top_campaigns["today"]] == ["B", "D", "A"]
        assert overview.top_campaigns["today"][0].conversions == 5.0
        assert [c.name for c in overview.top_campaigns["yesterday"]] == ["A"]

    async def test_partial_failure_is_degraded(self, fake_redtrack):
        def respond(request):
            if request.url.params["date_from"] == "2026-03-14":
                return 401, {"error": "nope"}
            return 200, [{"stat": {"cost": 10, "revenue": 10}}]

        fake_redtrack.set_handler("campaigns", respond)
        overview = await dashboard_service.load_campaign_overview(
            fake_redtrack.endpoints(), today=TODAY
        )
        assert overview.degraded
        assert overview.top_campaigns["yesterday"] == []
        revenue = {v.period: v for v in overview.metric_categories[1].values}
        assert revenue["yesterday"].value == 0.0
        assert revenue["today"].trend == "rise"


@pytest.mark.asyncio
class TestReportAndConversions:
    async def test_report(self, fake_redtrack):
        fake_redtrack.set("report", REPORT_ROWS)
        result = await dashboard_service.load_report(
            fake_redtrack.endpoints(), "2026-03-14", "2026-03-15", group_by="date"
        )
        assert [r.date for r in result.items] == ["2026-03-14", "2026-03-15"]
        assert result.summary.spend == 75.0
        assert not result.degraded

    async def test_report_requires_valid_range(self, fake_redtrack):
        with pytest.raises(InvalidPeriodError):
            await dashboard_service.load_report(fake_redtrack.endpoints(), "2026-03-15", "2026-03-01")

    async def test_conversions(self, fake_redtrack):
        fake_redtrack.set(
            "conversions",
            {"items": [{"click_id": "x1", "payout": 12.5}, {"click_id": "x2", "payout": 7.5}], "total": 2},
        )
        result = await dashboard_service.load_conversions(
            fake_redtrack.endpoints(), "2026-03-01", "2026-03-15", {"type": "purchase"}
        )
        assert result.total == 2
        assert [r.id for r in result.items] == ["x1", "x2"]
        assert result.summary.revenue == 20.0
        [params] = fake_redtrack.params_for("conversions")
        assert params["type"] == "purchase"

    async def test_conversions_failure(self, fake_redtrack):
        def refuse(request):
            raise httpx.ConnectError("down", request=request)

        fake_redtrack.set_handler("conversions", refuse)
        result = await dashboard_service.load_conversions(
            fake_redtrack.endpoints(), "2026-03-01", "2026-03-15"
        )
        assert result.degraded
        assert result.total == 0

    async def test_detect_currency(self, fake_redtrack):
        fake_redtrack.set("me/settings", {"currency": "brl"})
        assert await dashboard_service.detect_currency(fake_redtrack.endpoints()) == "BRL"


FUNNEL_CAMPAIGNS = [
    {"id": "c1", "title": "Alpha", "source_title": "FB", "stat": {"clicks": 200, "prelp_views": 100, "lp_views": 50, "offer_views": 25, "approved": 5}},
    {"id": "c2", "title": "Beta", "stat": {"clicks": 100, "lp_views": 40}},
]

CONVERSION_LOG = [
    {"campaign_id": "c1", "campaign": "Alpha", "rt_ad_id": "ad1", "rt_ad": "Ad 1", "offer_id": "o1", "offer": "Offer 1", "payout": 10, "cost": 2},
    {"campaign_id": "c1", "campaign": "Alpha", "rt_ad_id": "{{ad.id}}", "rt_ad": "Ad ?", "offer_id": "o1", "offer": "Offer 1", "payout": 5, "cost": 1},
    {"campaign_id": "c2", "campaign": "Beta", "rt_ad_id": "ad2", "rt_ad": "Ad 2", "payout": 50},
    {"campaign_id": "c3", "campaign": "Gamma", "payout": 20},
    {"campaign_id": "c4", "campaign": "Delta", "payout": 1},
]


@pytest.mark.asyncio
class TestFunnel:
    async def test_all_campaigns(self, fake_redtrack):
        fake_redtrack.set("campaigns", {"items": FUNNEL_CAMPAIGNS, "total": 2})
        funnel = await dashboard_service.load_funnel(fake_redtrack.endpoints(), today=TODAY)

        assert [s.name for s in funnel.stages] == ["Clicks", "Pre-LP", "LP", "Offer", "Conversion"]
        assert [s.value for s in funnel.stages] == [300.0, 100.0, 90.0, 25.0, 5.0]
        assert funnel.stages[0].percentage == 100.0
        assert funnel.stages[1].formatted_percentage == "33.33%"
        assert funnel.stages[2].percentage == pytest.approx(90.0)
        assert funnel.stages[4].percentage == pytest.approx(20.0)
        assert funnel.total_volume == 300.0
        assert funnel.total_conversion_rate == pytest.approx(5 / 300 * 100)
        assert funnel.summary.approved == 5.0
        assert [c.name for c in funnel.campaigns] == ["Alpha", "Beta"]
        assert funnel.message is None

    async def test_single_campaign(self, fake_redtrack):
        fake_redtrack.set("campaigns", FUNNEL_CAMPAIGNS)
        funnel = await dashboard_service.load_funnel(
            fake_redtrack.endpoints(), campaign_id="c2", today=TODAY
        )
        assert [s.name for s in funnel.stages] == ["Clicks", "LP"]
        assert funnel.stages[1].percentage == pytest.approx(40.0)
        assert funnel.total_conversion_rate == pytest.approx(40.0)
        assert funnel.campaign_id == "c2"
        assert [c.id for c in funnel.campaigns] == ["c2"]

    async def test_unknown_campaign_is_empty(self, fake_redtrack):
        fake_redtrack.set("campaigns", FUNNEL_CAMPAIGNS)
        funnel = await dashboard_service.load_funnel(
            fake_redtrack.endpoints(), campaign_id="missing", today=TODAY
        )
        assert funnel.stages == []
        assert funnel.total_volume == 0.0
        assert funnel.total_conversion_rate == 0.0
        assert funnel.message == "No campaigns found"
        assert not funnel.degraded

    async def test_failure_is_degraded(self, fake_redtrack):
        fake_redtrack.set("campaigns", {"error": "boom"}, status=500)
        funnel = await dashboard_service.load_funnel(fake_redtrack.endpoints(), today=TODAY)
        assert funnel.degraded
        assert funnel.stages == []


@pytest.mark.asyncio
class TestPerformance:
    async def test_top_campaigns_ads_and_offers(self, fake_redtrack):
        fake_redtrack.set("conversions", {"items": CONVERSION_LOG})
        result = await dashboard_service.load_performance(
            fake_redtrack.endpoints(), period="7d", today=TODAY
        )

        assert [c.id for c in result.campaigns] == ["c1", "c2", "c3"]
        assert result.campaigns[0].conversions == 2.0
        assert result.campaigns[0].revenue == 15.0
        assert result.campaigns[0].cost == 3.0
        assert [a.name for a in result.ads] == ["Ad 2", "Ad 1"]
        assert [(o.id, o.conversions) for o in result.offers] == [("o1", 2.0)]

        [params] = fake_redtrack.params_for("conversions")
        assert params["per"] == "10000"
        assert params["date_from"] == "2026-03-09"

    async def test_failure_is_degraded(self, fake_redtrack):
        fake_redtrack.set("conversions", {"error": "boom"}, status=503)
        result = await dashboard_service.load_performance(fake_redtrack.endpoints(), today=TODAY)
        assert result.degraded
        assert (result.campaigns, result.ads, result.offers) == ([], [], [])


@pytest.mark.asyncio
class TestSnapshots:
    async def test_store_and_read_latest(self, session, fake_redtrack):
        assert dashboard_service.latest_snapshot(session) is None

        fake_redtrack.set("report", REPORT_ROWS)
        first = await dashboard_service.load_dashboard(fake_redtrack.endpoints(), today=TODAY)
        second = await dashboard_service.load_dashboard(
            fake_redtrack.endpoints(), period="7d", today=TODAY
        )
        dashboard_service.store_snapshot(session, first)
        stored = dashboard_service.store_snapshot(session, second)

        latest = dashboard_service.latest_snapshot(session)
        assert latest.id == stored.id
        payload = dashboard_service.snapshot_payload(latest)
        assert payload["dashboard"]["period"] == "7d"
        assert payload["dashboard"]["summary"]["clicks"] == 150.0
