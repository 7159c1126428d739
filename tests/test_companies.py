"""
Tests for company signup, lookup and deletion
"""
from sqlalchemy import func, select

from estate_crm.core.config import settings
from estate_crm.models import Company, Lead, Property, User
from tests.conftest import LeadFactory, PropertyFactory, auth_headers

SIGNUP = {
    "name": "Est Residence",
    "alias": "  EST ",
    "adminUsername": "founder",
    "adminPassword": "founder-pass",
    "secret": "let-me-in",
}


class TestSignup:

    async def test_creates_company_admin_and_token(self, client, db_session):
        response = await client.post("/companies", json=SIGNUP)
        assert response.status_code == 201
        body = response.json()
        assert body["company"]["alias"] == "est"
        assert body["user"]["role"] == "admin"
        assert body["user"]["companyId"] == body["company"]["id"]

        me = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"}
        )
        assert me.json()["username"] == "founder"

    async def test_wrong_secret(self, client):
        response = await client.post("/companies", json={**SIGNUP, "secret": "guess"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid secret for company creation"

    async def test_signup_disabled_without_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "COMPANY_CREATION_SECRET", "")
        response = await client.post("/companies", json=SIGNUP)
        assert response.status_code == 403
        assert response.json()["message"] == "Company creation is not configured"

    async def test_duplicate_alias(self, client, company):
        response = await client.post("/companies", json={**SIGNUP, "alias": "Nord"})
        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"

    async def test_short_admin_password(self, client, db_session):
        response = await client.post("/companies", json={**SIGNUP, "adminPassword": "123"})
        assert response.status_code == 400
        count = await db_session.scalar(select(func.count()).select_from(Company))
        assert count == 0

    async def test_admin_failure_removes_company(self, client, db_session):
        response = await client.post("/companies", json={**SIGNUP, "adminUsername": "   "})
        assert response.status_code == 400
        assert await db_session.scalar(select(func.count()).select_from(Company)) == 0


class TestLookup:

    async def test_anonymous_sees_public_fields(self, client, company):
        response = await client.get("/companies/NORD")
        assert response.status_code == 200
        assert response.json() == {"name": "Nord Residence", "alias": "nord"}

    async def test_member_sees_full_record(self, client, company, plain_user):
        response = await client.get("/companies/nord", headers=auth_headers(plain_user))
        assert response.json()["id"] == company.id

    async def test_other_tenant_sees_public_fields(self, client, company, outsider):
        response = await client.get("/companies/nord", headers=auth_headers(outsider))
        assert "id" not in response.json()

    async def test_unknown_alias(self, client):
        response = await client.get("/companies/nobody")
        assert response.status_code == 404


class TestDelete:

    async def test_admin_deletes_company_and_its_data(self, client, db_session, company, admin, plain_user, outsider):
        await PropertyFactory.create(db_session, company)
        await LeadFactory.create(db_session, company)
        response = await client.delete(f"/companies/{company.id}", headers=auth_headers(admin))
        assert response.status_code == 200

        assert await db_session.get(Company, company.id) is None
        users = (await db_session.execute(select(User.username))).scalars().all()
        assert users == ["boss"]  # the other company's admin
        assert await db_session.scalar(select(func.count()).select_from(Property)) == 0
        assert await db_session.scalar(select(func.count()).select_from(Lead)) == 0

    async def test_non_admin_refused(self, client, company, moderator):
        response = await client.delete(f"/companies/{company.id}", headers=auth_headers(moderator))
        assert response.status_code == 403

    async def test_other_company_refused(self, client, company, other_company, outsider):
        response = await client.delete(f"/companies/{company.id}", headers=auth_headers(outsider))
        assert response.status_code == 403
