# backend/govcontract/api/routes_billing.py
import asyncio
import logging

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import ValidationError
from ..schemas.billing import CheckoutRequest
from ..schemas.common import envelope
from ..services.bootstrap import GateResult
from ..services.payments import SUBSCRIPTION_PLANS, PaymentService, SubscriptionPlan
from .deps import get_payments, require_account, require_owner

router = APIRouter(tags=["billing"])
logger = logging.getLogger(__name__)


def _plan_out(p: SubscriptionPlan) -> dict:
    return {
        "tier": p.tier,
        "name": p.name,
        "monthly_price": p.monthly_price,
        "annual_price": p.annual_price,
        "max_users": p.max_users,
        "allowed_jurisdictions": list(p.allowed_jurisdictions),
    }


@router.get("/stripe/plans")
def list_plans():
    return envelope([_plan_out(p) for p in SUBSCRIPTION_PLANS.values()])


@router.post("/stripe/checkout")
def create_checkout(
    payload: CheckoutRequest,
    gate: GateResult = Depends(require_owner),
    payments: PaymentService = Depends(get_payments),
):
    url = payments.create_checkout_session(
        gate.company,
        gate.profile.email,
        payload.tier,
        payload.interval,
    )
    return envelope({"url": url})


@router.post("/stripe/portal")
def create_portal(
    gate: GateResult = Depends(require_owner),
    payments: PaymentService = Depends(get_payments),
):
    url = payments.create_portal_session(gate.company)
    return envelope({"url": url})


@router.get("/stripe/subscription")
def subscription_status(gate: GateResult = Depends(require_account)):
    """Current tier and status with the limits of the matching plan (null when unsubscribed)."""
    company = gate.company
    plan = SUBSCRIPTION_PLANS.get(company.subscription_tier or "")
    return envelope(
        {
            "tier": company.subscription_tier,
            "status": company.subscription_status,
            "has_customer": bool(company.stripe_customer_id),
            "allowed_jurisdictions": company.allowed_jurisdictions,
            "plan": _plan_out(plan) if plan is not None else None,
        }
    )


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="stripe-signature"),
    payments: PaymentService = Depends(get_payments),
    db: Session = Depends(get_db),
):
    if not stripe_signature:
        raise ValidationError("Missing stripe-signature header")

    payload = await request.body()
    # Signature checks and DB writes block; run them off the event loop
    event = await asyncio.to_thread(payments.construct_event, payload, stripe_signature)

    logger.info(
        "Stripe event received: %s",
        event["type"],
        extra={"handler": "stripe_webhook", "step": "stripe:webhook"},
    )
    company = await asyncio.to_thread(payments.apply_event, db, event)
    return envelope(
        {
            "received": True,
            "type": event["type"],
            "company_id": str(company.id) if company is not None else None,
        }
    )
