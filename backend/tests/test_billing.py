"""
Tests for Stripe checkout and webhook handling (api/routes_billing.py,
services/payments.py). The Stripe SDK calls are monkeypatched.
"""
import asyncio
from unittest.mock import MagicMock

import pytest
import stripe

from govcontract.models.company import Company
from govcontract.services.payments import PaymentService

from tests.fixtures.gov_fixtures import bearer


def _event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def verified_event(monkeypatch):
    """Make signature verification succeed and return the given event."""
    holder = {}

    def fake_construct_event(payload, sig_header, secret):
        assert secret == "whsec_test"
        holder["signature"] = sig_header
        return holder["event"]

    monkeypatch.setattr(stripe.Webhook, "construct_event", fake_construct_event)
    return holder


class TestWebhook:
    def test_missing_signature_is_400(self, client):
        resp = client.post("/api/webhooks/stripe", content=b"{}")
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Missing stripe-signature header"}

    def test_bad_signature_is_400(self, client, monkeypatch):
        def reject(payload, sig_header, secret):
            raise stripe.SignatureVerificationError("No signatures found", sig_header)

        monkeypatch.setattr(stripe.Webhook, "construct_event", reject)
        resp = client.post(
            "/api/webhooks/stripe",
            content=b"{}",
            headers={"stripe-signature": "t=1,v1=bad"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_checkout_completed_activates_company(self, client, owner, verified_event, db_session):
        _, _, company = owner
        verified_event["event"] = _event("checkout.session.completed", {
            "client_reference_id": str(company.id),
            "customer": "cus_123",
            "subscription": "sub_123",
            "metadata": {"company_id": str(company.id), "tier": "professional"},
        })

        resp = client.post(
            "/api/webhooks/stripe",
            content=b'{"id": "evt_1"}',
            headers={"stripe-signature": "t=1,v1=ok"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["company_id"] == str(company.id)
        assert verified_event["signature"] == "t=1,v1=ok"

        db_session.expire_all()
        stored = db_session.get(Company, company.id)
        assert stored.subscription_tier == "professional"
        assert stored.subscription_status == "active"
        assert stored.allowed_jurisdictions == ["federal", "state"]
        assert stored.stripe_subscription_id == "sub_123"

    def test_subscription_deleted_resets_jurisdictions(self, client, owner, verified_event, db_session):
        _, _, company = owner
        company.subscription_tier = "enterprise"
        company.stripe_subscription_id = "sub_999"
        company.target_jurisdictions = ["federal", "state", "local"]
        db_session.commit()

        verified_event["event"] = _event("customer.subscription.deleted", {
            "id": "sub_999",
            "customer": "cus_999",
            "status": "canceled",
        })
        resp = client.post("/api/webhooks/stripe", content=b"{}", headers={"stripe-signature": "sig"})
        assert resp.status_code == 200

        db_session.expire_all()
        stored = db_session.get(Company, company.id)
        assert stored.subscription_status == "canceled"
        assert stored.allowed_jurisdictions == ["federal"]

    def test_unknown_event_is_acknowledged(self, client, verified_event):
        verified_event["event"] = _event("invoice.paid", {"id": "in_1"})
        resp = client.post("/api/webhooks/stripe", content=b"{}", headers={"stripe-signature": "sig"})
        assert resp.status_code == 200
        assert resp.json()["data"] == {"received": True, "type": "invoice.paid", "company_id": None}

    def test_event_is_applied_off_the_event_loop(self, client, owner, verified_event, monkeypatch):
        _, _, company = owner
        verified_event["event"] = _event("checkout.session.completed", {
            "client_reference_id": str(company.id),
            "customer": "cus_123",
            "subscription": "sub_123",
            "metadata": {"company_id": str(company.id), "tier": "starter"},
        })
        seen = {}
        real_apply = PaymentService.apply_event

        def recording_apply(self, db, event):
            try:
                asyncio.get_running_loop()
                seen["on_loop"] = True
            except RuntimeError:
                seen["on_loop"] = False
            return real_apply(self, db, event)

        monkeypatch.setattr(PaymentService, "apply_event", recording_apply)
        resp = client.post("/api/webhooks/stripe", content=b"{}", headers={"stripe-signature": "sig"})
        assert resp.status_code == 200
        assert seen == {"on_loop": False}


class TestCheckout:
    def test_owner_gets_checkout_url(self, client, owner, monkeypatch):
        _, _, company = owner
        create = MagicMock(return_value=MagicMock(url="https://checkout.stripe.test/c/abc"))
        monkeypatch.setattr(stripe.checkout.Session, "create", create)

        resp = client.post(
            "/api/stripe/checkout",
            headers=bearer("tok-owner"),
            json={"tier": "starter", "interval": "annual"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"url": "https://checkout.stripe.test/c/abc"}

        kwargs = create.call_args.kwargs
        assert kwargs["line_items"] == [{"price": "price_starter_annual", "quantity": 1}]
        assert kwargs["metadata"] == {"company_id": str(company.id), "tier": "starter"}
        assert kwargs["api_key"] == "sk_test_123"

    def test_team_member_is_403(self, client, member):
        resp = client.post(
            "/api/stripe/checkout",
            headers=bearer("tok-member"),
            json={"tier": "starter"},
        )
        assert resp.status_code == 403

    def test_unknown_tier_is_400(self, client, owner):
        resp = client.post("/api/stripe/checkout", headers=bearer("tok-owner"), json={"tier": "platinum"})
        assert resp.status_code == 400

    def test_stripe_failure_is_generic_500(self, client, owner, monkeypatch):
        def fail(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", fail)
        resp = client.post("/api/stripe/checkout", headers=bearer("tok-owner"), json={"tier": "starter"})
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Upstream service error"}


class TestPortal:
    def test_owner_gets_portal_url(self, client, owner, db_session, monkeypatch):
        _, _, company = owner
        company.stripe_customer_id = "cus_123"
        db_session.commit()
        create = MagicMock(return_value=MagicMock(url="https://billing.stripe.test/p/abc"))
        monkeypatch.setattr(stripe.billing_portal.Session, "create", create)

        resp = client.post("/api/stripe/portal", headers=bearer("tok-owner"))
        assert resp.status_code == 200
        assert resp.json()["data"] == {"url": "https://billing.stripe.test/p/abc"}

        kwargs = create.call_args.kwargs
        assert kwargs["customer"] == "cus_123"
        assert kwargs["return_url"].endswith("/company/subscription")
        assert kwargs["api_key"] == "sk_test_123"

    def test_without_customer_is_400(self, client, owner, monkeypatch):
        create = MagicMock()
        monkeypatch.setattr(stripe.billing_portal.Session, "create", create)
        resp = client.post("/api/stripe/portal", headers=bearer("tok-owner"))
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "No Stripe customer found"}
        create.assert_not_called()

    def test_team_member_is_403(self, client, member):
        resp = client.post("/api/stripe/portal", headers=bearer("tok-member"))
        assert resp.status_code == 403

    def test_requires_session(self, client):
        resp = client.post("/api/stripe/portal")
        assert resp.status_code == 401


class TestSubscriptionStatus:
    def test_unsubscribed_company(self, client, owner):
        resp = client.get("/api/stripe/subscription", headers=bearer("tok-owner"))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["tier"] is None
        assert data["plan"] is None
        assert data["has_customer"] is False
        assert data["allowed_jurisdictions"] == ["federal"]

    def test_active_plan_limits_are_reported(self, client, member, owner, db_session):
        _, _, company = owner
        company.subscription_tier = "professional"
        company.subscription_status = "active"
        company.stripe_customer_id = "cus_123"
        company.target_jurisdictions = ["federal", "state"]
        db_session.commit()

        resp = client.get("/api/stripe/subscription", headers=bearer("tok-member"))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["tier"] == "professional"
        assert data["status"] == "active"
        assert data["has_customer"] is True
        assert data["plan"]["max_users"] == 5
        assert data["plan"]["allowed_jurisdictions"] == ["federal", "state"]

    def test_without_company_is_404(self, client, auth):
        auth.add("tok-new", "new@acme.test")
        resp = client.get("/api/stripe/subscription", headers=bearer("tok-new"))
        assert resp.status_code == 404


def test_plans_are_listed(client):
    plans = client.get("/api/stripe/plans").json()["data"]
    assert [p["tier"] for p in plans] == ["starter", "professional", "enterprise"]
    assert plans[2]["allowed_jurisdictions"] == ["federal", "state", "local"]
