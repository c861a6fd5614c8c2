"""
Integration tests for Paystack payments.

The Paystack API is replaced with an ``httpx.MockTransport`` injected
through the endpoint's client factory dependency.
"""

import json

import httpx
import pytest

from tenderalert.api.endpoints.payments import get_paystack_factory
from tenderalert.models import SubscriptionStatus, SubscriptionType
from tenderalert.services.paystack import PaystackClient, compute_signature

pytestmark = pytest.mark.integration

SECRET = "sk_test_secret"


class FakePaystack:
    """Records requests and answers like the Paystack transaction API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.transactions: dict[str, dict] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/transaction/initialize":
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.paystack.com/abc",
                        "access_code": "abc",
                        "reference": "ref-abc",
                    },
                },
            )
        reference = request.url.path.rsplit("/", 1)[-1]
        if reference in self.transactions:
            return httpx.Response(200, json={"status": True, "data": self.transactions[reference]})
        return httpx.Response(400, json={"status": False, "message": "Transaction reference not found"})


@pytest.fixture
def paystack(app):
    fake = FakePaystack()
    transport = httpx.MockTransport(fake.handler)
    app.dependency_overrides[get_paystack_factory] = lambda: (
        lambda: PaystackClient(secret_key=SECRET, transport=transport)
    )
    return fake


async def test_plans(action):
    response = await action("payments", "plans")

    plans = {p["key"]: p for p in response.json()["plans"]}
    assert set(plans) == {"pro", "business", "pro_annual", "business_annual"}
    assert plans["pro"]["amount"] == 2600


async def test_initialize_sends_plan_amount_and_metadata(action, paystack, make_profile):
    user = await make_profile()

    response = await action("payments", "initialize", email=user.email, plan="pro", user_id=user.id)

    assert response.status_code == 200
    assert response.json()["authorization_url"] == "https://checkout.paystack.com/abc"
    sent = json.loads(paystack.requests[0].content)
    assert sent["amount"] == 260000
    assert sent["currency"] == "KES"
    assert sent["metadata"]["user_id"] == str(user.id)
    assert paystack.requests[0].headers["Authorization"] == f"Bearer {SECRET}"


async def test_initialize_rejects_bad_input(action, paystack, make_profile):
    user = await make_profile()

    bad_plan = await action("payments", "initialize", email=user.email, plan="gold", user_id=user.id)
    bad_email = await action("payments", "initialize", email="not-an-email", plan="pro", user_id=user.id)

    assert bad_plan.status_code == 422
    assert bad_email.status_code == 422
    assert paystack.requests == []


async def test_verify_activates_subscription(action, paystack, make_profile):
    user = await make_profile()
    paystack.transactions["ref-ok"] = {
        "status": "success",
        "reference": "ref-ok",
        "amount": 650000,
        "metadata": {"user_id": str(user.id), "plan": "business"},
    }

    response = await action("payments", "verify", reference="ref-ok")
    access = await action("payments", "check_access", user_id=user.id)

    body = response.json()
    assert response.status_code == 200
    assert body["subscription_type"] == "business"
    assert body["amount"] == 6500
    assert access.json()["has_access"] is True


async def test_verify_unsuccessful_payment(action, paystack, make_profile):
    user = await make_profile()
    paystack.transactions["ref-abandoned"] = {
        "status": "abandoned",
        "reference": "ref-abandoned",
        "metadata": {"user_id": str(user.id)},
    }

    response = await action("payments", "verify", reference="ref-abandoned")

    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_FAILED"


async def test_verify_gateway_rejection(action, paystack):
    response = await action("payments", "verify", reference="missing")

    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"


class TestWebhook:
    def event(self, user_id, plan="pro") -> bytes:
        return json.dumps(
            {
                "event": "charge.success",
                "data": {
                    "reference": "ref-hook",
                    "amount": 260000,
                    "metadata": json.dumps({"user_id": str(user_id), "plan": plan}),
                },
            }
        ).encode()

    async def test_valid_signature_activates(self, client, db, paystack, make_profile):
        user = await make_profile()
        body = self.event(user.id)

        response = await client.post(
            "/api/v1/payments/webhook",
            content=body,
            headers={"x-paystack-signature": compute_signature(SECRET, body)},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        await db.refresh(user)
        assert user.subscription_type == SubscriptionType.PRO
        assert user.subscription_status == SubscriptionStatus.ACTIVE

    async def test_invalid_signature_is_rejected(self, client, db, paystack, make_profile):
        user = await make_profile()
        body = self.event(user.id)

        response = await client.post(
            "/api/v1/payments/webhook",
            content=body,
            headers={"x-paystack-signature": "forged"},
        )

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_SIGNATURE"
        await db.refresh(user)
        assert user.subscription_type == SubscriptionType.FREE

    async def test_other_events_are_acknowledged(self, client, paystack):
        body = json.dumps({"event": "transfer.success", "data": {}}).encode()

        response = await client.post(
            "/api/v1/payments/webhook",
            content=body,
            headers={"x-paystack-signature": compute_signature(SECRET, body)},
        )

        assert response.status_code == 200

    @pytest.mark.parametrize("body", [b"{not json", b"[1, 2]"])
    async def test_signed_malformed_body_is_rejected(self, client, paystack, body):
        response = await client.post(
            "/api/v1/payments/webhook",
            content=body,
            headers={"x-paystack-signature": compute_signature(SECRET, body)},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert "body" in response.json()["details"]["field_errors"]
