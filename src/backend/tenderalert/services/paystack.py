"""
Paystack payment gateway client and subscription plans.

Amounts are in the smallest currency unit (KES cents).
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Any

import httpx

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import (
    PaymentGatewayException,
    ServiceNotConfiguredException,
    ValidationException,
)
from tenderalert.core.logging import LoggerMixin


@dataclass(frozen=True)
class Plan:
    key: str
    name: str
    amount: int
    interval: str
    features: list[str] = field(default_factory=list)

    @property
    def is_annual(self) -> bool:
        return self.interval == "annually"


PLANS: dict[str, Plan] = {
    "pro": Plan(
        "pro", "TenderAlert Pro", 260000, "monthly",
        ["Unlimited tender alerts", "Smart matching", "Bid analysis", "Win probability"],
    ),
    "business": Plan(
        "business", "TenderAlert Business", 650000, "monthly",
        ["Everything in Pro", "Team seats", "Consortium tools", "Priority support"],
    ),
    "pro_annual": Plan(
        "pro_annual", "TenderAlert Pro (Annual)", 2496000, "annually",
        ["Everything in Pro", "Two months free"],
    ),
    "business_annual": Plan(
        "business_annual", "TenderAlert Business (Annual)", 6240000, "annually",
        ["Everything in Business", "Two months free"],
    ),
}


def get_plan(key: str) -> Plan:
    try:
        return PLANS[key]
    except KeyError:
        raise ValidationException(
            f"Invalid plan '{key}'",
            {"plan": [f"must be one of: {', '.join(PLANS)}"]},
        ) from None


def compute_signature(secret_key: str, body: bytes) -> str:
    return hmac.new(secret_key.encode(), body, hashlib.sha512).hexdigest()


class PaystackClient(LoggerMixin):
    """Thin async wrapper over the Paystack transaction API."""

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.secret_key = secret_key or settings.paystack_secret_key
        if not self.secret_key:
            raise ServiceNotConfiguredException("Paystack", "PAYSTACK_SECRET_KEY")
        self.base_url = (base_url or settings.paystack_base_url).rstrip("/")
        self.timeout = settings.paystack_timeout
        self._transport = transport

    def verify_signature(self, body: bytes, signature: str | None) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(compute_signature(self.secret_key, body), signature)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException:
            raise PaymentGatewayException("Request timed out") from None
        except httpx.HTTPError as e:
            raise PaymentGatewayException(f"Connection failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error or not payload.get("status"):
            message = payload.get("message") or f"HTTP {response.status_code}"
            self.logger.warning(
                "Paystack request rejected",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise PaymentGatewayException(message)

        return payload.get("data") or {}

    async def initialize_transaction(
        self,
        email: str,
        plan: Plan,
        user_id: str,
        callback_url: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "email": email,
            "amount": plan.amount,
            "currency": "KES",
            "metadata": {
                "user_id": user_id,
                "plan": plan.key,
                "plan_name": plan.name,
                "custom_fields": [
                    {
                        "display_name": "Plan",
                        "variable_name": "plan",
                        "value": plan.name,
                    }
                ],
            },
        }
        if callback_url:
            body["callback_url"] = callback_url

        data = await self._request("POST", "/transaction/initialize", json=body)
        self.logger.info("Payment initialized", user_id=user_id, plan=plan.key, reference=data.get("reference"))
        return data

    async def verify_transaction(self, reference: str) -> dict[str, Any]:
        data = await self._request("GET", f"/transaction/verify/{reference}")
        self.logger.info("Payment verified", reference=reference, status=data.get("status"))
        return data
