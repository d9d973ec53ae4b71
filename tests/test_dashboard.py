"""Integration tests for the agent dashboard."""

from tests.conftest import AGENT_EMAIL, AGENT_ID, SCRAPED_DATA


class TestDashboardAuth:
    async def test_unauthenticated_redirect(self, client):
        resp = await client.get("/dashboard/", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/auth/login"

    async def test_invalid_token_redirects(self, client):
        resp = await client.get(
            "/dashboard/", headers={"Authorization": "Bearer expired"}, follow_redirects=False,
        )
        assert resp.status_code == 302

    async def test_property_detail_redirects(self, client):
        resp = await client.get("/dashboard/properties/p1", follow_redirects=False)
        assert resp.status_code == 302


class TestOverview:
    async def test_empty(self, client, auth_headers):
        resp = await client.get("/dashboard/", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["identity"] == {"id": AGENT_ID, "email": AGENT_EMAIL}
        assert data["properties"] == []
        assert data["stats"] == {"total": 0, "active": 0, "processing": 0}
        assert data["brand"]["company_name"] == "Nester"

    async def test_nav_marks_overview_active(self, client, auth_headers):
        data = (await client.get("/dashboard/", headers=auth_headers)).json()
        active = [item["label"] for item in data["nav_items"] if item["active"]]
        assert active == ["Overview"]

    async def test_lists_properties_with_job_summary(self, client, auth_headers, listed_property):
        data = (await client.get("/dashboard/", headers=auth_headers)).json()
        assert data["stats"] == {"total": 1, "active": 1, "processing": 0}
        prop = data["properties"][0]
        assert prop["id"] == listed_property
        assert prop["address"] == SCRAPED_DATA["address"]
        assert prop["jobs"] == {
            "scrape": "completed",
            "content": "processing",
            "images": "not_started",
            "social_campaign": "not_started",
        }

    async def test_other_agents_properties_hidden(self, client, other_auth_headers, listed_property):
        data = (await client.get("/dashboard/", headers=other_auth_headers)).json()
        assert data["properties"] == []

    async def test_uses_agent_brand(self, client, auth_headers):
        await client.patch("/api/brand", headers=auth_headers, json={
            "company_name": "Acme Realty", "primary_color": "#112233",
        })
        data = (await client.get("/dashboard/", headers=auth_headers)).json()
        assert data["brand"]["company_name"] == "Acme Realty"
        assert data["css_variables"]["--brand-primary"] == "#112233"


class TestPropertyDetail:
    async def test_detail(self, client, auth_headers, listed_property):
        resp = await client.get(f"/dashboard/properties/{listed_property}", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["property"]["listing_platform"] == "zillow"
        assert len(data["images"]) == 2
        assert data["images"][0]["is_primary"] is True
        assert data["posts"] == []
        assert [j["job_type"] for j in data["job_history"]] == ["content", "scrape"]
        active = [item["label"] for item in data["nav_items"] if item["active"]]
        assert active == ["Properties"]

    async def test_not_owned_is_404(self, client, other_auth_headers, listed_property):
        resp = await client.get(
            f"/dashboard/properties/{listed_property}", headers=other_auth_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "Property not found or access denied"
