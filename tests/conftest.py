"""Shared test fixtures for Nester-Engine."""

import json
import os

import httpx
import pytest
from httpx import ASGITransport, AsyncClient


SECRET_KEY = "test-secret-key-for-unit-tests"
IDENTITY_URL = "http://identity.test"
WORKFLOW_URL = "http://workflow.test/webhook"
BACKEND_URL = "http://backend.test"
APP_URL = "http://nester.test"

AGENT_ID = "agent-1"
AGENT_EMAIL = "agent1@example.com"
OTHER_AGENT_ID = "agent-2"
PASSWORD = "correct-horse-battery"

USERS = {
    "token-agent-1": {"id": AGENT_ID, "email": AGENT_EMAIL},
    "token-agent-2": {"id": OTHER_AGENT_ID, "email": "agent2@example.com"},
}
REFRESH_TOKENS = {
    "refresh-agent-1": "token-agent-1",
    "refresh-agent-2": "token-agent-2",
}

ZILLOW_URL = "https://www.zillow.com/homedetails/123-Main-St/12345_zpid/"

SCRAPED_DATA = {
    "address": "123 Main St, Springfield, IL 62701",
    "price": 450000,
    "bedrooms": 3,
    "bathrooms": 2.5,
    "square_feet": 2100,
    "property_type": "house",
    "description": "Bright colonial on a quiet street.",
    "features": ["Hardwood floors", "Updated kitchen"],
    "neighborhood_info": "Walkable to parks and schools.",
    "images": [
        {"url": "https://photos.zillowstatic.com/1.jpg", "alt": "Front"},
        {"url": "https://photos.zillowstatic.com/2.jpg", "alt": "Kitchen"},
    ],
    "listing_agent": {"name": "Pat Lee", "phone": "555-0100", "email": "pat@example.com"},
    "property_details": {
        "year_built": 1998,
        "lot_size": 0.25,
        "garage_spaces": 2,
        "heating": "Forced air",
        "cooling": "Central",
        "flooring": ["Hardwood", "Tile"],
    },
}


def _session_payload(access_token: str, user: dict) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": f"refresh-{user['id']}",
        "expires_in": 3600,
        "token_type": "bearer",
        "user": user,
    }


class FakeIdentityProvider:
    """GoTrue-style answers keyed on the fixed tokens above."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path == "/auth/v1/user":
            token = request.headers.get("authorization", "").removeprefix("Bearer ")
            user = USERS.get(token)
            if user is None:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=user)

        if path == "/auth/v1/token":
            grant = request.url.params.get("grant_type")
            if grant == "password":
                for token, user in USERS.items():
                    if user["email"] == body.get("email") and body.get("password") == PASSWORD:
                        return httpx.Response(200, json=_session_payload(token, user))
                return httpx.Response(400, json={
                    "error": "invalid_grant",
                    "error_description": "Invalid login credentials",
                })
            if grant == "refresh_token":
                token = REFRESH_TOKENS.get(body.get("refresh_token"))
                if token is None:
                    return httpx.Response(400, json={"error_description": "Invalid Refresh Token"})
                return httpx.Response(200, json=_session_payload(token, USERS[token]))

        if path == "/auth/v1/signup":
            email = body.get("email", "")
            if email == "taken@example.com":
                return httpx.Response(422, json={"msg": "User already registered"})
            user = {"id": "new-user", "email": email}
            if email.startswith("pending"):
                return httpx.Response(200, json={**user, "confirmation_sent_at": "2026-01-01T00:00:00Z"})
            return httpx.Response(200, json=_session_payload("token-new-user", user))

        if path == "/auth/v1/logout":
            return httpx.Response(204)

        if path == "/auth/v1/recover":
            if body.get("email") == "unknown@example.com":
                return httpx.Response(429, json={"msg": "Email rate limit exceeded"})
            return httpx.Response(200, json={})

        return httpx.Response(404, json={"msg": "not found"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


class FakeWorkflowEngine:
    """Records triggers and hands out sequential execution ids."""

    def __init__(self):
        self.calls: list[dict] = []
        self.fail = False
        self._counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append({
            "workflow": request.url.path.rsplit("/", 1)[-1],
            "payload": json.loads(request.content),
            "authorization": request.headers.get("authorization"),
        })
        if self.fail:
            return httpx.Response(503, json={"message": "Workflow engine unavailable"})
        self._counter += 1
        return httpx.Response(200, json={"execution_id": f"exec-{self._counter}"})

    def workflows(self) -> list[str]:
        return [c["workflow"] for c in self.calls]

    def last(self, workflow: str) -> dict:
        return [c for c in self.calls if c["workflow"] == workflow][-1]


class FakeBackend:
    """Echoes each forwarded request back as JSON."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={
            "method": request.method,
            "path": request.url.path,
            "query": [list(item) for item in request.url.params.multi_items()],
            "authorization": request.headers.get("authorization"),
            "content_type": request.headers.get("content-type"),
            "body": request.content.decode(errors="replace") if request.content else "",
        })


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def workflow_engine():
    return FakeWorkflowEngine()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer token-agent-1"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": "Bearer token-agent-2"}


@pytest.fixture
async def db():
    """Standalone in-memory database for service-level tests."""
    from nester_engine.common.config import NesterSettings
    from nester_engine.common.database import DatabaseManager

    manager = DatabaseManager(NesterSettings(db_url="sqlite+aiosqlite://"))
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def app(identity_provider, workflow_engine, backend):
    """Create a test app with in-memory DB and fake upstream services."""
    os.environ["NESTER_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["NESTER_SECRET_KEY"] = SECRET_KEY
    os.environ["NESTER_APP_URL"] = APP_URL
    os.environ["NESTER_IDENTITY_URL"] = IDENTITY_URL
    os.environ["NESTER_WORKFLOW_URL"] = WORKFLOW_URL
    os.environ["NESTER_BACKEND_URL"] = BACKEND_URL

    # Clear caches and singletons so new env vars take effect
    from nester_engine.common.config import get_settings
    get_settings.cache_clear()

    from nester_engine.deps import reset_singletons, set_clients
    reset_singletons()

    from nester_engine.backend.client import BackendClient
    from nester_engine.identity.provider import IdentityProvider
    from nester_engine.jobs.workflow_client import WorkflowClient
    set_clients(
        identity=IdentityProvider(
            IDENTITY_URL, "anon-key", transport=httpx.MockTransport(identity_provider.handler),
        ),
        workflow=WorkflowClient(
            WORKFLOW_URL, "workflow-key", transport=httpx.MockTransport(workflow_engine.handler),
        ),
        backend=BackendClient(BACKEND_URL, transport=httpx.MockTransport(backend.handler)),
    )

    from nester_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from nester_engine.deps import close_clients, get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_clients()
    await db.close()


@pytest.fixture
async def listed_property(client, auth_headers):
    """A property that has been scraped successfully for AGENT_ID."""
    resp = await client.post(
        "/api/property/scrape",
        headers=auth_headers,
        json={"url": ZILLOW_URL, "agent_id": AGENT_ID},
    )
    assert resp.status_code == 200
    started = resp.json()
    done = await client.post(
        "/api/property/scrape/callback",
        json={
            "property_id": started["property_id"],
            "execution_id": started["job_id"],
            "success": True,
            "data": SCRAPED_DATA,
        },
    )
    assert done.json() == {"success": True}
    return started["property_id"]
