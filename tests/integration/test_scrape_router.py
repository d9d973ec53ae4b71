"""Integration tests for listing scrape initiation and its callback."""

import json

import pytest

from nester_engine.common.security import sign_payload
from nester_engine.jobs.models import JobStatus, JobType

from tests.conftest import AGENT_ID, SCRAPED_DATA, ZILLOW_URL


async def _record(job_id: str):
    from nester_engine.deps import get_db, get_job_store
    async with get_db().get_session() as session:
        return await get_job_store().get_by_job_id(session, JobType.SCRAPE, job_id)


async def _start(client, auth_headers) -> dict:
    resp = await client.post(
        "/api/property/scrape",
        headers=auth_headers,
        json={"url": ZILLOW_URL, "agent_id": AGENT_ID},
    )
    assert resp.status_code == 200
    return resp.json()


class TestScrapeValidation:
    async def test_missing_field_is_400_before_auth(self, client, workflow_engine):
        resp = await client.post("/api/property/scrape", json={"url": ZILLOW_URL})
        assert resp.status_code == 400
        assert resp.json()["error"] == "URL and agent_id are required"
        assert workflow_engine.calls == []

    async def test_invalid_url(self, client):
        resp = await client.post(
            "/api/property/scrape", json={"url": "not a url", "agent_id": AGENT_ID},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid URL format"

    async def test_unsupported_platform(self, client, auth_headers, workflow_engine):
        resp = await client.post(
            "/api/property/scrape",
            headers=auth_headers,
            json={"url": "https://www.example.com/listing/1", "agent_id": AGENT_ID},
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Unsupported platform. Supported platforms:")
        assert workflow_engine.calls == []

    async def test_anonymous_is_401(self, client, workflow_engine):
        resp = await client.post(
            "/api/property/scrape", json={"url": ZILLOW_URL, "agent_id": AGENT_ID},
        )
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized"
        assert workflow_engine.calls == []

    async def test_agent_mismatch_is_401(self, client, other_auth_headers, workflow_engine):
        resp = await client.post(
            "/api/property/scrape",
            headers=other_auth_headers,
            json={"url": ZILLOW_URL, "agent_id": AGENT_ID},
        )
        assert resp.status_code == 401
        assert workflow_engine.calls == []

    async def test_malformed_json_is_generic_500(self, client, auth_headers):
        resp = await client.post(
            "/api/property/scrape",
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"{not json",
        )
        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"

    async def test_engine_failure_is_500(self, client, auth_headers, workflow_engine):
        workflow_engine.fail = True
        resp = await client.post(
            "/api/property/scrape",
            headers=auth_headers,
            json={"url": ZILLOW_URL, "agent_id": AGENT_ID},
        )
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to initiate property scraping"


class TestScrapeInitiation:
    async def test_zillow_creates_processing_record(self, client, auth_headers):
        data = await _start(client, auth_headers)
        assert data["success"] is True
        assert data["status"] == "processing"
        assert data["job_id"] == "exec-1"
        assert data["property"]["platform"] == "zillow"
        assert data["property"]["listing_url"] == ZILLOW_URL

        record = await _record("exec-1")
        assert record.status == JobStatus.PROCESSING.value
        assert record.property_id == data["property_id"]
        assert record.agent_id == AGENT_ID

    async def test_capabilities(self, client):
        resp = await client.get("/api/property/scrape")
        assert resp.status_code == 200
        assert set(resp.json()["supported_platforms"]) == {
            "zillow", "realtor", "redfin", "homes", "trulia",
        }


class TestScrapeCallback:
    async def test_failure_is_recorded_and_acknowledged(self, client, auth_headers):
        data = await _start(client, auth_headers)
        resp = await client.post("/api/property/scrape/callback", json={
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": False,
            "error": "timeout",
        })
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        record = await _record(data["job_id"])
        assert record.status == JobStatus.ERROR.value
        assert record.error == "timeout"

    async def test_success_cascades_into_content(self, client, auth_headers, workflow_engine):
        data = await _start(client, auth_headers)
        resp = await client.post("/api/property/scrape/callback", json={
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": True,
            "data": SCRAPED_DATA,
        })
        assert resp.json() == {"success": True}
        assert workflow_engine.workflows() == ["property-scraper", "content-generator"]
        assert (await _record(data["job_id"])).status == JobStatus.COMPLETED.value

    async def test_cascade_failure_still_acknowledged(self, client, auth_headers, workflow_engine):
        data = await _start(client, auth_headers)
        workflow_engine.fail = True
        resp = await client.post("/api/property/scrape/callback", json={
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": True,
            "data": SCRAPED_DATA,
        })
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert (await _record(data["job_id"])).status == JobStatus.COMPLETED.value

    async def test_duplicate_delivery(self, client, auth_headers, workflow_engine):
        data = await _start(client, auth_headers)
        body = {
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": True,
            "data": SCRAPED_DATA,
        }
        await client.post("/api/property/scrape/callback", json=body)
        resp = await client.post("/api/property/scrape/callback", json=body)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "duplicate": True}
        # no second content job
        assert workflow_engine.workflows().count("content-generator") == 1

    async def test_unknown_execution_is_404(self, client):
        resp = await client.post("/api/property/scrape/callback", json={
            "property_id": "missing", "execution_id": "exec-999", "success": False,
        })
        assert resp.status_code == 404
        assert resp.json()["error"] == "Property not found"

    async def test_missing_fields_is_400(self, client):
        resp = await client.post("/api/property/scrape/callback", json={"success": True})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields: property_id, execution_id"

    async def test_info(self, client):
        resp = await client.get("/api/property/scrape/callback")
        assert resp.status_code == 200
        assert "timestamp" in resp.json()


class TestCallbackSignature:
    @pytest.fixture
    def secret(self, app, monkeypatch):
        from nester_engine.common.config import get_settings
        monkeypatch.setattr(get_settings(), "workflow_webhook_secret", "shh")
        return "shh"

    async def test_unsigned_rejected(self, client, auth_headers, secret):
        data = await _start(client, auth_headers)
        resp = await client.post("/api/property/scrape/callback", json={
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": False,
            "error": "timeout",
        })
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid signature"
        assert (await _record(data["job_id"])).status == JobStatus.PROCESSING.value

    async def test_signed_accepted(self, client, auth_headers, secret):
        data = await _start(client, auth_headers)
        body = json.dumps({
            "property_id": data["property_id"],
            "execution_id": data["job_id"],
            "success": False,
            "error": "timeout",
        }).encode()
        resp = await client.post(
            "/api/property/scrape/callback",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-N8N-Signature": sign_payload(body, secret),
            },
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
