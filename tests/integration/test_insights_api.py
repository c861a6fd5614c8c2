"""
Integration tests for bid analysis, win probability, analytics and the
historical award import.
"""

import uuid
from datetime import date, timedelta

import pytest

from tenderalert.models import TenderStatus

pytestmark = pytest.mark.integration

AWARDS_CSV = """PE Name,Tender Title,Supplier Name,Amount,Award Date,Bids
Nairobi City County,Construction of footbridge,Kazi Builders Ltd,"5,000,000",2024-05-02,4
Mombasa County Government,Upgrading of access road,Barabara JV,12000000,2023-11-20,10
Ministry of Health,Supply of medical drugs,Afya Distributors,0,2024-01-10,3
"""


class TestBidAnalysis:
    async def test_heuristic_analysis_is_cached(self, action, make_tender):
        tender = await make_tender(
            category="ICT",
            budget_estimate=4_000_000,
            requirements=["Tax compliance", "AGPO certificate"],
            deadline=date.today() + timedelta(days=10),
        )

        first = await action("analysis", "analyze", tender_id=tender.id)
        second = await action("analysis", "analyze", tender_id=tender.id)
        regenerated = await action("analysis", "analyze", tender_id=tender.id, force_regenerate=True)

        assert first.status_code == 200
        data = first.json()["data"]
        assert first.json()["cached"] is False
        assert data["model_version"] == "heuristic-v1"
        assert 20 <= data["win_probability"] <= 95
        assert data["estimated_value_min"] < data["estimated_value_max"]
        assert data["recommendations"]
        assert second.json()["cached"] is True
        assert second.json()["data"]["id"] == data["id"]
        assert regenerated.json()["cached"] is False
        assert regenerated.json()["data"]["id"] == data["id"]

    async def test_unknown_tender(self, action):
        response = await action("analysis", "analyze", tender_id=uuid.uuid4())

        assert response.status_code == 404


class TestWinProbability:
    async def test_estimate_for_stored_tender(self, action, make_tender, make_award):
        tender = await make_tender(category="Construction", location="Nairobi", budget_estimate=10_000_000)
        await make_award(location="Nairobi")
        await make_award(location="Kenya", bid_count=12)
        await make_award(location="Mombasa")
        await make_award(category="ICT")

        response = await action("win-probability", "estimate", tender_id=tender.id)

        data = response.json()["data"]
        assert data["tender_id"] == str(tender.id)
        assert data["historical"]["sample_size"] == 2
        assert 5 <= data["win_probability"] <= 95
        assert data["bid_range"]["low"] < data["bid_range"]["optimal"] < data["bid_range"]["high"]
        assert data["disclaimer"]

    async def test_estimate_by_category(self, action):
        response = await action("win-probability", "estimate", category="Agriculture", budget_estimate=1_000_000)

        data = response.json()["data"]
        assert data["tender_id"] is None
        assert data["win_probability"] == 44
        assert data["bid_range"]["optimal"] == 1_000_000

    async def test_requires_tender_or_category(self, action):
        response = await action("win-probability", "estimate", location="Nairobi")

        assert response.status_code == 422


class TestAnalytics:
    async def test_tracking_and_trending(self, action, make_tender):
        popular = await make_tender(title="Popular tender")
        quiet = await make_tender(title="Quiet tender")
        closed = await make_tender(title="Closed tender", status=TenderStatus.CLOSED)

        for _ in range(3):
            await action("analytics", "track-tender-view", tender_id=popular.id)
        await action("analytics", "track-tender-view", tender_id=quiet.id)
        await action("analytics", "track-tender-save", tender_id=quiet.id)
        await action("analytics", "track-tender-view", tender_id=closed.id)
        last = await action("analytics", "track-tender-view", tender_id=popular.id)

        assert last.json()["data"]["views_count"] == 4
        trending = (await action("analytics", "get-trending-tenders")).json()["data"]
        assert [t["title"] for t in trending] == ["Popular tender", "Quiet tender"]
        assert trending[1]["saves_count"] == 1

    async def test_tracking_unknown_tender(self, action):
        response = await action("analytics", "track-tender-view", tender_id=uuid.uuid4())

        assert response.status_code == 404

    async def test_dashboard_stats(self, action, make_profile, make_tender, save_tender_for):
        user = await make_profile()
        tender = await make_tender()
        await make_tender(status=TenderStatus.EXPIRED)
        await save_tender_for(user.id, tender.id)
        await action("rfqs", "create-rfq", user_id=user.id, title="Office chairs")
        await action("consortiums", "create", user_id=user.id, name="Team Kenya")

        response = await action("analytics", "get-dashboard-stats", user_id=user.id)

        assert response.json()["data"] == {
            "saved_tenders": 1,
            "active_tenders": 1,
            "my_rfqs": 1,
            "consortiums": 1,
        }


class TestHistoricalImport:
    async def test_import_and_stats(self, action):
        imported = await action("historical", "import-csv", csv_text=AWARDS_CSV)
        stats = await action("historical", "stats")

        assert imported.json() == {
            "success": True,
            "imported": 2,
            "skipped": 1,
            "offset": 0,
            "limit": None,
        }
        data = stats.json()["data"]
        assert data["total"] == 2
        assert data["by_category"]["Construction"] == {"count": 2, "average_amount": 8_500_000}

    async def test_imported_awards_feed_estimates(self, action):
        await action("historical", "import-csv", csv_text=AWARDS_CSV)

        response = await action("win-probability", "estimate", category="Construction", location="Nairobi")

        assert response.json()["data"]["historical"]["sample_size"] == 1

    async def test_rejects_csv_without_required_columns(self, action):
        response = await action("historical", "import-csv", csv_text="Name,Value\na,1\n")

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
