"""
Tests for the HTML gate routes (api/routes_pages.py) and GET /api/session.
"""
from govcontract.models.company import Company
from govcontract.models.profile import Profile, Role

from tests.fixtures.gov_fixtures import bearer


class TestDashboard:
    def test_unauthenticated_redirects_to_login(self, client, auth):
        resp = client.get("/dashboard", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert auth.calls == []

    def test_invalid_token_redirects_to_login(self, client):
        resp = client.get("/dashboard", headers=bearer("nope"), follow_redirects=False)
        assert resp.status_code == 302

    def test_new_user_sees_setup_prompt_without_redirect(self, client, auth):
        auth.add("tok-new", "new@acme.test")
        resp = client.get("/dashboard", headers=bearer("tok-new"), follow_redirects=False)
        assert resp.status_code == 200
        assert "new@acme.test" in resp.text
        assert 'href="/setup-profile"' in resp.text

    def test_session_cookie_is_accepted(self, client, auth):
        auth.add("tok-cookie", "cookie@acme.test")
        client.cookies.set("sb-access-token", "tok-cookie")
        resp = client.get("/dashboard", follow_redirects=False)
        assert resp.status_code == 200
        assert "cookie@acme.test" in resp.text

    def test_ready_user_gets_shell(self, client, owner):
        resp = client.get("/dashboard", headers=bearer("tok-owner"), follow_redirects=False)
        assert resp.status_code == 200
        assert "Acme Corp" in resp.text
        assert "Jane Doe" in resp.text


class TestSetupProfilePage:
    def test_form_requires_session(self, client):
        resp = client.get("/setup-profile", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"

    def test_form_renders_for_new_user(self, client, auth):
        auth.add("tok-new", "new@acme.test")
        resp = client.get("/setup-profile", headers=bearer("tok-new"))
        assert resp.status_code == 200
        assert 'name="fullName"' in resp.text
        assert 'name="companyName"' in resp.text

    def test_ready_user_is_sent_to_dashboard(self, client, owner):
        resp = client.get("/setup-profile", headers=bearer("tok-owner"), follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard"

    def test_submit_creates_account_and_redirects(self, client, auth, db_session):
        identity = auth.add("tok-new", "new@acme.test")
        resp = client.post(
            "/setup-profile",
            headers=bearer("tok-new"),
            data={"fullName": "Jane Doe", "companyName": "Acme Corp", "role": ""},
            follow_redirects=False,
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard"

        profile = db_session.get(Profile, identity.id)
        assert profile is not None
        company = db_session.get(Company, profile.company_id)
        assert company.slug == "acme-corp"

        follow = client.get("/dashboard", headers=bearer("tok-new"))
        assert "Acme Corp" in follow.text

    def test_blank_name_rerenders_form(self, client, auth, db_session):
        auth.add("tok-new", "new@acme.test")
        resp = client.post(
            "/setup-profile",
            headers=bearer("tok-new"),
            data={"fullName": "", "companyName": "Acme Corp"},
        )
        assert resp.status_code == 400
        assert "Full name and company name are required" in resp.text
        assert 'value="Acme Corp"' in resp.text
        assert db_session.query(Company).count() == 0

    def test_admin_role_rerenders_form(self, client, auth, db_session):
        auth.add("tok-new", "new@acme.test")
        resp = client.post(
            "/setup-profile",
            headers=bearer("tok-new"),
            data={"fullName": "Jane Doe", "companyName": "Acme Corp", "role": "admin"},
            follow_redirects=False,
        )
        assert resp.status_code == 400
        assert 'name="fullName"' in resp.text
        assert db_session.query(Company).count() == 0
        assert db_session.query(Profile).count() == 0

    def test_profile_without_company_completes_setup(self, client, auth, db_session):
        identity = auth.add("tok-new", "new@acme.test")
        db_session.add(Profile(
            id=identity.id,
            email=identity.email,
            full_name="",
            role=Role.TEAM_MEMBER,
            company_id=None,
            email_verified=False,
            onboarding_completed=False,
        ))
        db_session.commit()

        prompt = client.get("/dashboard", headers=bearer("tok-new"), follow_redirects=False)
        assert prompt.status_code == 200
        assert 'href="/setup-profile"' in prompt.text

        resp = client.post(
            "/setup-profile",
            headers=bearer("tok-new"),
            data={"fullName": "Jane Doe", "companyName": "Acme Corp"},
            follow_redirects=False,
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard"

        follow = client.get("/dashboard", headers=bearer("tok-new"))
        assert "Acme Corp" in follow.text
        assert "Jane Doe" in follow.text


class TestSessionEndpoint:
    def test_unauthenticated(self, client):
        resp = client.get("/api/session")
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "data": {"state": "UNAUTHENTICATED", "identity": None, "profile": None, "company": None},
        }

    def test_ready(self, client, owner):
        _, profile, company = owner
        data = client.get("/api/session", headers=bearer("tok-owner")).json()["data"]
        assert data["state"] == "READY"
        assert data["profile"]["id"] == str(profile.id)
        assert data["company"]["slug"] == "acme-corp"
        assert data["company"]["allowed_jurisdictions"] == ["federal"]

    def test_request_id_is_echoed(self, client):
        resp = client.get("/api/session", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
