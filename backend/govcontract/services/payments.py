# backend/govcontract/services/payments.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID
import logging

import stripe
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.errors import UpstreamError, ValidationError
from ..models.company import Company

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionPlan:
    tier: str
    name: str
    monthly_price: int
    annual_price: int
    max_users: int
    allowed_jurisdictions: tuple[str, ...]


SUBSCRIPTION_PLANS: Dict[str, SubscriptionPlan] = {
    "starter": SubscriptionPlan(
        tier="starter",
        name="Starter",
        monthly_price=99,
        annual_price=990,
        max_users=1,
        allowed_jurisdictions=("federal",),
    ),
    "professional": SubscriptionPlan(
        tier="professional",
        name="Professional",
        monthly_price=299,
        annual_price=2990,
        max_users=5,
        allowed_jurisdictions=("federal", "state"),
    ),
    "enterprise": SubscriptionPlan(
        tier="enterprise",
        name="Enterprise",
        monthly_price=999,
        annual_price=9990,
        max_users=25,
        allowed_jurisdictions=("federal", "state", "local"),
    ),
}


class PaymentService:
    """
    Stripe integration: checkout sessions and webhook ingestion.

    Signature verification is delegated entirely to the Stripe SDK.
    """

    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.STRIPE_SECRET_KEY
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET
        self.frontend_origin = settings.FRONTEND_ORIGIN or "http://localhost:3000"
        self.price_ids: Dict[tuple[str, str], str] = {
            ("starter", "monthly"): settings.STRIPE_PRICE_STARTER_MONTHLY,
            ("starter", "annual"): settings.STRIPE_PRICE_STARTER_ANNUAL,
            ("professional", "monthly"): settings.STRIPE_PRICE_PROFESSIONAL_MONTHLY,
            ("professional", "annual"): settings.STRIPE_PRICE_PROFESSIONAL_ANNUAL,
            ("enterprise", "monthly"): settings.STRIPE_PRICE_ENTERPRISE_MONTHLY,
            ("enterprise", "annual"): settings.STRIPE_PRICE_ENTERPRISE_ANNUAL,
        }

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_checkout_session(self, company: Company, email: str, tier: str, interval: str) -> str:
        if not self.api_key:
            raise UpstreamError("Payments are not configured")
        price_id = self.price_ids.get((tier, interval))
        if not price_id:
            raise ValidationError(f"Unknown plan: {tier}/{interval}")

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                client_reference_id=str(company.id),
                customer_email=email,
                metadata={"company_id": str(company.id), "tier": tier},
                success_url=f"{self.frontend_origin}/company/subscription?checkout=success",
                cancel_url=f"{self.frontend_origin}/company/subscription?checkout=cancelled",
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe checkout session failed: %s",
                e,
                extra={"company_id": str(company.id), "step": "stripe:checkout"},
            )
            raise UpstreamError(f"Stripe checkout failed: {e}")

        return session.url

    def create_portal_session(self, company: Company) -> str:
        """Billing portal for a company that already has a Stripe customer."""
        if not company.stripe_customer_id:
            raise ValidationError("No Stripe customer found")
        if not self.api_key:
            raise UpstreamError("Payments are not configured")

        try:
            session = stripe.billing_portal.Session.create(
                api_key=self.api_key,
                customer=company.stripe_customer_id,
                return_url=f"{self.frontend_origin}/company/subscription",
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe portal session failed: %s",
                e,
                extra={"company_id": str(company.id), "step": "stripe:portal"},
            )
            raise UpstreamError(f"Stripe portal failed: {e}")

        return session.url

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def construct_event(self, payload: bytes, signature: str):
        """
        Verify and parse a webhook delivery. Raises ValidationError when the
        SDK rejects the payload or signature.
        """
        if not self.webhook_secret:
            raise ValidationError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise ValidationError(f"Invalid webhook: {e}")

    def apply_event(self, db: Session, event: Any) -> Optional[Company]:
        """
        Reflect a subscription lifecycle event onto the owning company row.

        Returns the updated company, or None when the event is ignored or
        refers to a company we do not know.
        """
        event_type = event["type"]
        obj = event["data"]["object"]

        if event_type == "checkout.session.completed":
            return self._activate_from_checkout(db, obj)
        if event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
            return self._sync_subscription(db, obj, deleted=event_type.endswith("deleted"))

        logger.info("Ignoring Stripe event type %s", event_type, extra={"step": "stripe:webhook"})
        return None

    def _activate_from_checkout(self, db: Session, session_obj: Any) -> Optional[Company]:
        metadata = session_obj.get("metadata") or {}
        company_ref = session_obj.get("client_reference_id") or metadata.get("company_id")
        if not company_ref:
            logger.warning("Checkout session without company reference", extra={"step": "stripe:webhook"})
            return None

        try:
            company_id = UUID(str(company_ref))
        except ValueError:
            logger.warning("Checkout session with malformed company reference", extra={"step": "stripe:webhook"})
            return None

        company = db.query(Company).filter(Company.id == company_id).first()
        if company is None:
            logger.warning(
                "Checkout session for unknown company",
                extra={"company_id": str(company_id), "step": "stripe:webhook"},
            )
            return None

        tier = metadata.get("tier")
        plan = SUBSCRIPTION_PLANS.get(tier or "")
        if plan:
            company.subscription_tier = plan.tier
            company.target_jurisdictions = list(plan.allowed_jurisdictions)
        company.subscription_status = "active"
        company.stripe_customer_id = session_obj.get("customer") or company.stripe_customer_id
        company.stripe_subscription_id = session_obj.get("subscription") or company.stripe_subscription_id
        db.commit()

        logger.info(
            "Subscription activated",
            extra={"company_id": str(company.id), "step": "stripe:webhook"},
        )
        return company

    def _sync_subscription(self, db: Session, sub_obj: Any, *, deleted: bool) -> Optional[Company]:
        subscription_id = sub_obj.get("id")
        customer_id = sub_obj.get("customer")

        company = None
        if subscription_id:
            company = db.query(Company).filter(Company.stripe_subscription_id == subscription_id).first()
        if company is None and customer_id:
            company = db.query(Company).filter(Company.stripe_customer_id == customer_id).first()
        if company is None:
            logger.info("Subscription event for unknown company", extra={"step": "stripe:webhook"})
            return None

        company.subscription_status = "canceled" if deleted else (sub_obj.get("status") or company.subscription_status)
        if deleted:
            company.target_jurisdictions = ["federal"]
        db.commit()
        return company
