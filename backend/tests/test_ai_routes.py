"""
Tests for the AI action handlers (api/routes_ai.py).

The AI service is a MagicMock; these tests cover auth, validation, the
persistence each handler performs and the error envelope.
"""
from uuid import uuid4

from fastapi.testclient import TestClient

from govcontract.core.errors import UpstreamError
from govcontract.models.application import Application, ApplicationStatus
from govcontract.models.opportunity_match import OpportunityMatch
from govcontract.schemas.ai import MatchReasoning, OpportunityMatchResult
from govcontract.services.accounts import setup_account

from tests.fixtures.gov_fixtures import bearer, make_opportunity


class TestAnalyzeDocument:
    def test_requires_session(self, client, ai):
        resp = client.post("/api/ai/analyze-document", json={"documentText": "RFP"})
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Unauthorized"}
        ai.analyze_document.assert_not_called()

    def test_blank_document_is_400(self, client, auth, ai):
        auth.add("tok", "a@x.test")
        resp = client.post("/api/ai/analyze-document", headers=bearer("tok"), json={"documentText": "   "})
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        ai.analyze_document.assert_not_called()

    def test_returns_analysis(self, client, auth, ai):
        auth.add("tok", "a@x.test")
        ai.analyze_document.return_value = {"title": "Cloud Services RFP", "naics_codes": ["541512"]}
        resp = client.post(
            "/api/ai/analyze-document",
            headers=bearer("tok"),
            json={"documentText": "Request for proposals...", "documentUrl": "https://sam.gov/x"},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "data": {"title": "Cloud Services RFP", "naics_codes": ["541512"]},
        }
        args = ai.analyze_document.call_args.args
        assert args[1:] == ("Request for proposals...", "https://sam.gov/x")

    def test_upstream_failure_is_generic_500(self, client, auth, ai):
        auth.add("tok", "a@x.test")
        ai.analyze_document.side_effect = UpstreamError("AI provider call failed: key revoked")
        resp = client.post("/api/ai/analyze-document", headers=bearer("tok"), json={"documentText": "RFP"})
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Upstream service error"}


class TestMatchOpportunities:
    def test_empty_list_makes_no_call_and_no_writes(self, client, owner, ai, db_session):
        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-owner"),
            json={"opportunityIds": []},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": {"matches": []}}
        ai.find_opportunity_matches.assert_not_called()
        assert db_session.query(OpportunityMatch).count() == 0

    def test_requires_company(self, client, auth, ai):
        auth.add("tok-new", "new@acme.test")
        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-new"),
            json={"opportunityIds": [str(uuid4())]},
        )
        assert resp.status_code == 404
        ai.find_opportunity_matches.assert_not_called()

    def test_malformed_id_is_400(self, client, owner):
        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-owner"),
            json={"opportunityIds": ["not-a-uuid"]},
        )
        assert resp.status_code == 400

    def test_unknown_opportunities_are_404(self, client, owner, ai):
        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-owner"),
            json={"opportunityIds": [str(uuid4())]},
        )
        assert resp.status_code == 404
        ai.find_opportunity_matches.assert_not_called()

    def test_matches_are_stored_and_returned(self, client, owner, ai, db_session):
        _, _, company = owner
        opp = make_opportunity(db_session)
        ai.find_opportunity_matches.return_value = [
            OpportunityMatchResult(
                opportunity_id=opp.id,
                match_score=82,
                win_probability=35,
                reasoning=MatchReasoning(strengths=["NAICS match"]),
            )
        ]

        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-owner"),
            json={"opportunityIds": [str(opp.id)]},
        )
        assert resp.status_code == 200
        matches = resp.json()["data"]["matches"]
        assert len(matches) == 1
        assert matches[0]["opportunity_id"] == str(opp.id)

        company_profile, opportunities = ai.find_opportunity_matches.call_args.args[1:]
        assert company_profile["name"] == "Acme Corp"
        assert [o["id"] for o in opportunities] == [str(opp.id)]

        row = db_session.query(OpportunityMatch).one()
        assert row.company_id == company.id
        assert row.match_score == 82
        assert row.reasoning["strengths"] == ["NAICS match"]

    def test_rematching_updates_the_existing_row(self, client, owner, ai, db_session):
        opp = make_opportunity(db_session)
        for score in (40, 90):
            ai.find_opportunity_matches.return_value = [
                OpportunityMatchResult(opportunity_id=opp.id, match_score=score, win_probability=10)
            ]
            client.post(
                "/api/ai/match-opportunities",
                headers=bearer("tok-owner"),
                json={"opportunityIds": [str(opp.id)]},
            )
        db_session.expire_all()
        rows = db_session.query(OpportunityMatch).all()
        assert len(rows) == 1
        assert rows[0].match_score == 90

    def test_repeated_ids_in_one_batch_store_one_row(self, client, owner, ai, db_session):
        opp = make_opportunity(db_session)
        ai.find_opportunity_matches.return_value = [
            OpportunityMatchResult(opportunity_id=opp.id, match_score=60, win_probability=10),
            OpportunityMatchResult(opportunity_id=opp.id, match_score=75, win_probability=25),
        ]
        resp = client.post(
            "/api/ai/match-opportunities",
            headers=bearer("tok-owner"),
            json={"opportunityIds": [str(opp.id)]},
        )
        assert resp.status_code == 200
        db_session.expire_all()
        rows = db_session.query(OpportunityMatch).all()
        assert len(rows) == 1
        assert rows[0].match_score == 75


class TestScoreQuality:
    def _application(self, db_session, company, profile):
        opp = make_opportunity(db_session)
        application = Application(
            company_id=company.id,
            opportunity_id=opp.id,
            created_by=profile.id,
            status=ApplicationStatus.DRAFT,
            responses={"technical_approach": "We will migrate in three phases."},
        )
        db_session.add(application)
        db_session.commit()
        return application

    def test_stores_overall_score(self, client, owner, ai, db_session):
        _, profile, company = owner
        application = self._application(db_session, company, profile)
        ai.score_application_quality.return_value = {"overall_score": 77.5, "recommendations": []}

        resp = client.post(
            "/api/ai/score-quality",
            headers=bearer("tok-owner"),
            json={"applicationId": str(application.id)},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["overall_score"] == 77.5

        db_session.expire_all()
        assert db_session.get(Application, application.id).quality_score == 77.5

    def test_other_companies_application_is_404(self, client, owner, auth, ai, db_session):
        _, profile, company = owner
        application = self._application(db_session, company, profile)

        outsider = auth.add("tok-out", "eve@other.test")
        setup_account(db_session, outsider, "Eve", "Other Co")

        resp = client.post(
            "/api/ai/score-quality",
            headers=bearer("tok-out"),
            json={"applicationId": str(application.id)},
        )
        assert resp.status_code == 404
        ai.score_application_quality.assert_not_called()


class TestChat:
    def test_reply_uses_company_context(self, client, owner, ai):
        ai.chat.return_value = "Start with the SAM.gov registration."
        resp = client.post(
            "/api/ai/chat",
            headers=bearer("tok-owner"),
            json={"message": "Where do I start?", "action": "compliance"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "reply": "Start with the SAM.gov registration.",
            "action": "compliance",
        }
        message, action, context = ai.chat.call_args.args
        assert (message, action) == ("Where do I start?", "compliance")
        assert context["name"] == "Acme Corp"

    def test_unknown_action_is_400(self, client, owner, ai):
        resp = client.post(
            "/api/ai/chat",
            headers=bearer("tok-owner"),
            json={"message": "hi", "action": "write_my_taxes"},
        )
        assert resp.status_code == 400
        ai.chat.assert_not_called()

    def test_requires_session(self, client, ai):
        resp = client.post("/api/ai/chat", json={"message": "hi"})
        assert resp.status_code == 401


def test_unexpected_exception_becomes_generic_500(app, owner, ai):
    ai.chat.side_effect = KeyError("boom")
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.post("/api/ai/chat", headers=bearer("tok-owner"), json={"message": "hi"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}
