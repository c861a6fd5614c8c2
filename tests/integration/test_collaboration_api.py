"""
Integration tests for the RFQ marketplace and consortiums.
"""

import pytest
from sqlalchemy import select

from tenderalert.models import AlertType, UserAlert

pytestmark = pytest.mark.integration


@pytest.fixture
async def buyer(make_profile):
    return await make_profile(company_name="Buyer Ltd")


@pytest.fixture
async def supplier(make_profile):
    return await make_profile(company_name="Supplier Ltd")


@pytest.fixture
def open_rfq(action, buyer):
    async def _create(**overrides):
        rfq = {"title": "Printer cartridges for county offices", "category": "Supply", "budget": 500_000}
        rfq.update(overrides)
        response = await action("rfqs", "create-rfq", user_id=buyer.id, rfq=rfq)
        assert response.status_code == 200
        return response.json()["data"]

    return _create


class TestRfqs:
    async def test_create_and_list(self, action, buyer, open_rfq):
        rfq = await open_rfq()
        await open_rfq(title="Catering for training", category="Other")

        mine = await action("rfqs", "list-rfqs", user_id=buyer.id, filters={"my_rfqs": True})
        supply = await action("rfqs", "list-rfqs", filters={"category": "Supply"})

        assert rfq["status"] == "open"
        assert rfq["user_id"] == str(buyer.id)
        assert mine.json()["count"] == 2
        assert [r["id"] for r in supply.json()["data"]] == [rfq["id"]]

    async def test_my_rfqs_requires_user(self, action):
        response = await action("rfqs", "list-rfqs", filters={"my_rfqs": True})

        assert response.status_code == 422

    async def test_only_owner_updates_or_deletes(self, action, buyer, supplier, open_rfq):
        rfq = await open_rfq()

        forbidden = await action("rfqs", "update-rfq", user_id=supplier.id, rfq_id=rfq["id"], updates={"title": "Mine now"})
        updated = await action("rfqs", "update-rfq", user_id=buyer.id, rfq_id=rfq["id"], updates={"budget": 750_000})
        not_deleted = await action("rfqs", "delete-rfq", user_id=supplier.id, rfq_id=rfq["id"])
        deleted = await action("rfqs", "delete-rfq", user_id=buyer.id, rfq_id=rfq["id"])

        assert forbidden.status_code == 403
        assert updated.json()["data"]["budget"] == 750_000
        assert not_deleted.status_code == 403
        assert deleted.status_code == 200


class TestQuotes:
    async def test_quote_and_accept_flow(self, action, db, buyer, supplier, make_profile, open_rfq):
        rfq = await open_rfq()
        rival = await make_profile()

        quote = await action("rfqs", "submit-quote", user_id=supplier.id, rfq_id=rfq["id"], amount=450_000, delivery_days=7)
        await action("rfqs", "submit-quote", user_id=rival.id, rfq_id=rfq["id"], amount=420_000)
        quotes = await action("rfqs", "list-quotes", rfq_id=rfq["id"])

        assert quote.status_code == 200
        assert [q["amount"] for q in quotes.json()["data"]] == [420_000, 450_000]

        quote_id = quote.json()["data"]["id"]
        not_owner = await action("rfqs", "accept-quote", user_id=supplier.id, quote_id=quote_id)
        accepted = await action("rfqs", "accept-quote", user_id=buyer.id, quote_id=quote_id)
        late = await action("rfqs", "submit-quote", user_id=rival.id, rfq_id=rfq["id"], amount=400_000)

        assert not_owner.status_code == 403
        assert accepted.json()["data"]["status"] == "accepted"
        assert late.status_code == 422

        buyer_alerts = (
            await db.execute(select(UserAlert.type).where(UserAlert.user_id == buyer.id))
        ).scalars().all()
        supplier_alerts = (
            await db.execute(select(UserAlert.type).where(UserAlert.user_id == supplier.id))
        ).scalars().all()
        assert buyer_alerts == [AlertType.RFQ_QUOTE.value, AlertType.RFQ_QUOTE.value]
        assert supplier_alerts == [AlertType.QUOTE_ACCEPTED.value]

    async def test_cannot_quote_own_rfq(self, action, buyer, open_rfq):
        rfq = await open_rfq()

        response = await action("rfqs", "submit-quote", user_id=buyer.id, rfq_id=rfq["id"], amount=1000)

        assert response.status_code == 403

    async def test_quote_amount_must_be_positive(self, action, supplier, open_rfq):
        rfq = await open_rfq()

        response = await action("rfqs", "submit-quote", user_id=supplier.id, rfq_id=rfq["id"], amount=0)

        assert response.status_code == 422
        assert "amount" in response.json()["details"]["field_errors"]

    async def test_supplier_edits_pending_quote(self, action, buyer, supplier, open_rfq):
        rfq = await open_rfq()
        quote = await action("rfqs", "submit-quote", user_id=supplier.id, rfq_id=rfq["id"], amount=450_000)
        quote_id = quote.json()["data"]["id"]

        by_buyer = await action("rfqs", "update-quote", user_id=buyer.id, quote_id=quote_id, updates={"amount": 1})
        edited = await action("rfqs", "update-quote", user_id=supplier.id, quote_id=quote_id, updates={"notes": "Includes delivery"})
        await action("rfqs", "accept-quote", user_id=buyer.id, quote_id=quote_id)
        after_accept = await action("rfqs", "update-quote", user_id=supplier.id, quote_id=quote_id, updates={"amount": 1})

        assert by_buyer.status_code == 403
        assert edited.json()["data"]["notes"] == "Includes delivery"
        assert after_accept.status_code == 422


class TestConsortiums:
    async def create(self, action, lead, **overrides):
        consortium = {"name": "Coast Builders JV", "max_members": 2, "expertise": "Civil works"}
        consortium.update(overrides)
        response = await action("consortiums", "create", user_id=lead.id, consortium=consortium)
        assert response.status_code == 200
        return response.json()["data"]

    async def test_creator_is_lead(self, action, buyer):
        consortium = await self.create(action, buyer)

        members = await action("consortiums", "members", consortium_id=consortium["id"])

        assert consortium["member_count"] == 1
        assert [(m["user_id"], m["role"]) for m in members.json()["data"]] == [(str(buyer.id), "lead")]

    async def test_join_duplicate_and_full(self, action, buyer, supplier, make_profile):
        consortium = await self.create(action, buyer)
        third = await make_profile()

        joined = await action("consortiums", "join", user_id=supplier.id, consortium_id=consortium["id"], expertise="Electrical")
        again = await action("consortiums", "join", user_id=supplier.id, consortium_id=consortium["id"])
        full = await action("consortiums", "join", user_id=third.id, consortium_id=consortium["id"])
        fetched = await action("consortiums", "get", consortium_id=consortium["id"])

        assert joined.json()["data"]["role"] == "member"
        assert again.status_code == 409
        assert full.status_code == 422
        assert full.json()["error"] == "Consortium is full"
        assert fetched.json()["data"]["member_count"] == 2

    async def test_leave(self, action, buyer, supplier):
        consortium = await self.create(action, buyer, max_members=5)
        await action("consortiums", "join", user_id=supplier.id, consortium_id=consortium["id"])

        lead_leaves = await action("consortiums", "leave", user_id=buyer.id, consortium_id=consortium["id"])
        left = await action("consortiums", "leave", user_id=supplier.id, consortium_id=consortium["id"])
        not_member = await action("consortiums", "leave", user_id=supplier.id, consortium_id=consortium["id"])

        assert lead_leaves.status_code == 403
        assert left.status_code == 200
        assert not_member.status_code == 404

    async def test_list_for_member(self, action, buyer, supplier):
        mine = await self.create(action, buyer, name="Lake Region Consortium")
        await self.create(action, supplier, name="Rift Valley Partners")

        response = await action("consortiums", "list", user_id=buyer.id)
        everyone = await action("consortiums", "list")

        assert [c["id"] for c in response.json()["data"]] == [mine["id"]]
        assert everyone.json()["count"] == 2
