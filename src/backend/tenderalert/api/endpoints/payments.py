"""
Paystack payment endpoints.

Actions:
    initialize    start a checkout for a plan
    verify        confirm a transaction and activate the subscription
    check_access  whether a user currently has paid access
    plans         list available plans

The webhook is a separate route because Paystack posts its own body
format and signs it.
"""

import json
import uuid
from collections.abc import Callable
from functools import partial
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, Field

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.core.exceptions import InvalidSignatureException, PaymentFailedException, ValidationException
from tenderalert.core.logging import get_logger
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.paystack import PLANS, PaystackClient, get_plan
from tenderalert.services.subscriptions import activate_subscription, check_access

logger = get_logger(__name__)
router = APIRouter()

PaystackFactory = Callable[[], PaystackClient]


def get_paystack_factory() -> PaystackFactory:
    """The client is built per call so unconfigured keys only fail the actions that need them."""
    return PaystackClient


Paystack = Annotated[PaystackFactory, Depends(get_paystack_factory)]


class InitializeParams(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    plan: str
    user_id: uuid.UUID
    callback_url: str | None = None


class VerifyParams(BaseModel):
    reference: str = Field(min_length=1, max_length=200)


class TransactionMetadata(BaseModel):
    user_id: uuid.UUID
    plan: str = "pro"


async def _activate_from_transaction(db, data: dict[str, Any]) -> dict[str, Any]:
    raw = data.get("metadata") or {}
    if isinstance(raw, str):
        raw = json.loads(raw or "{}")
    metadata = parse_params(TransactionMetadata, raw)
    amount = (data.get("amount") or 0) / 100

    profile = await activate_subscription(
        db,
        metadata.user_id,
        metadata.plan,
        reference=data.get("reference"),
        amount=amount,
    )
    return {
        "user_id": str(metadata.user_id),
        "plan": metadata.plan,
        "amount": amount,
        "subscription_type": profile.subscription_type.value,
        "subscription_end_date": profile.subscription_end_date.isoformat(),
    }


async def list_plans(db, params: dict[str, Any], paystack: PaystackFactory) -> dict[str, Any]:
    return {
        "plans": [
            {
                "key": plan.key,
                "name": plan.name,
                "amount": plan.amount / 100,
                "interval": plan.interval,
                "features": plan.features,
            }
            for plan in PLANS.values()
        ]
    }


async def access(db, params: dict[str, Any], paystack: PaystackFactory) -> dict[str, Any]:
    result = await check_access(db, require_user(params))
    return result.model_dump(mode="json")


async def initialize(db, params: dict[str, Any], paystack: PaystackFactory) -> dict[str, Any]:
    data = parse_params(InitializeParams, params)
    plan = get_plan(data.plan)
    transaction = await paystack().initialize_transaction(
        email=data.email,
        plan=plan,
        user_id=str(data.user_id),
        callback_url=data.callback_url,
    )
    return {
        "authorization_url": transaction.get("authorization_url"),
        "access_code": transaction.get("access_code"),
        "reference": transaction.get("reference"),
    }


async def verify(db, params: dict[str, Any], paystack: PaystackFactory) -> dict[str, Any]:
    reference = parse_params(VerifyParams, params).reference
    transaction = await paystack().verify_transaction(reference)
    status = transaction.get("status") or "unknown"
    if status != "success":
        raise PaymentFailedException(status, reference)
    activated = await _activate_from_transaction(db, transaction)
    return {"message": "Payment verified", **activated}


ACTIONS = {
    "initialize": initialize,
    "verify": verify,
    "check_access": access,
    "plans": list_plans,
}


@router.post("")
async def payment_action(payload: ActionRequest, db: DB, paystack: Paystack) -> dict[str, Any]:
    handlers: dict[str, Handler] = {
        name: partial(handler, paystack=paystack) for name, handler in ACTIONS.items()
    }
    return await dispatch(handlers, payload, db)


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    db: DB,
    paystack: Paystack,
    x_paystack_signature: Annotated[str | None, Header()] = None,
) -> dict[str, Any]:
    body = await request.body()
    if not paystack().verify_signature(body, x_paystack_signature):
        logger.warning("Webhook signature mismatch")
        raise InvalidSignatureException("Paystack")

    try:
        event = json.loads(body or b"{}")
    except ValueError:
        raise ValidationException("Webhook body is not valid JSON", {"body": ["invalid JSON"]}) from None
    if not isinstance(event, dict):
        raise ValidationException("Webhook body must be a JSON object", {"body": ["expected an object"]})

    if event.get("event") == "charge.success":
        activated = await _activate_from_transaction(db, event.get("data") or {})
        logger.info("Webhook activated subscription", user_id=activated["user_id"], plan=activated["plan"])
    else:
        logger.info("Webhook event ignored", event_type=event.get("event"))

    return {"received": True}
